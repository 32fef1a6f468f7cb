"""Pre-send and post-receive hooks that keep every request authenticated."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable

from ..auth_token.coordinator import SESSION_EXPIRED_REASON, RefreshCoordinator
from ..auth_token.notifier import SessionNotifier
from ..auth_token.store import TokenStore
from ..errors.internal import DecodeError
from .models import ApiResponse, PendingRequest

INVALID_TOKEN_REASON = "Invalid token in local storage. Please log in again."

Clock = Callable[[], float]
Dispatch = Callable[[PendingRequest], Awaitable[ApiResponse]]
IsRefreshEndpoint = Callable[[PendingRequest], bool]


class RequestInterceptor:
    """Attaches the bearer credential and renews a token about to expire.

    A request is never sent with the stored token once a refresh for it has
    failed: the refresh error propagates and the request is abandoned.
    """

    def __init__(
        self,
        store: TokenStore,
        coordinator: RefreshCoordinator,
        notifier: SessionNotifier,
        is_refresh_endpoint: IsRefreshEndpoint,
        *,
        renewal_threshold_seconds: float,
        clock: Clock = time.time,
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.notifier = notifier
        self.is_refresh_endpoint = is_refresh_endpoint
        self.renewal_threshold_seconds = renewal_threshold_seconds
        self.clock = clock

    async def __call__(self, request: PendingRequest) -> PendingRequest:
        """Prepare a request for dispatch.

        Args:
            request: The outbound request; mutated in place.

        Returns:
            The same request, ready to send.

        Raises:
            DecodeError: If the stored token is malformed (request not sent).
            RefreshFailure: If the proactive refresh failed (request not sent).
            NoTokenError: If the token vanished before the refresh started.
        """
        token = self.store.get()
        if token is None:
            # Login and other public endpoints need no credential.
            request.drop_bearer()
            return request

        try:
            claims = self.store.decode(token)
        except DecodeError as e:
            logging.error(f"💥 Stored token could not be decoded: {str(e)}")
            self.store.clear()
            await self.notifier.token_removed()
            await self.notifier.notify(INVALID_TOKEN_REASON)
            raise

        remaining = claims.remaining_seconds(self.clock())
        if (
            remaining < self.renewal_threshold_seconds
            and not self.is_refresh_endpoint(request)
            and not request.already_retried
        ):
            logging.info(
                f"⏳ Token close to expiry remaining={int(remaining)}s, refreshing before {request.method} {request.url}"
            )
            token = await self.coordinator.refresh()

        request.set_bearer(token)
        return request


class ResponseInterceptor:
    """Recovers from an authorization failure with one refresh-and-replay.

    A request is replayed at most once: the replayed response runs through
    this interceptor again, where ``already_retried`` stops a second attempt.
    """

    def __init__(
        self,
        store: TokenStore,
        coordinator: RefreshCoordinator,
        notifier: SessionNotifier,
        is_refresh_endpoint: IsRefreshEndpoint,
        dispatch: Dispatch,
    ) -> None:
        self.store = store
        self.coordinator = coordinator
        self.notifier = notifier
        self.is_refresh_endpoint = is_refresh_endpoint
        self.dispatch = dispatch

    async def __call__(
        self, request: PendingRequest, response: ApiResponse
    ) -> ApiResponse:
        """Return the final response for a request.

        Args:
            request: The request that produced ``response``.
            response: The response received for it.

        Returns:
            ``response`` unchanged, or the replayed response after a refresh.

        Raises:
            RefreshFailure: If the refresh needed for the replay failed.
            NetworkError: If the replay could not be sent.
        """
        if not response.auth_failure:
            return response

        if self.is_refresh_endpoint(request) or request.already_retried:
            logging.warning(
                f"🚫 Authorization failure not recoverable status={response.status} "
                f"{request.method} {request.url} retried={request.already_retried}"
            )
            if self.store.get() is not None:
                self.store.clear()
                await self.notifier.token_removed()
                await self.notifier.notify(SESSION_EXPIRED_REASON)
            return response

        request.already_retried = True
        current = self.store.get()
        if current is None:
            # Cleared by a concurrent failure; nothing left to refresh.
            await self.notifier.notify(SESSION_EXPIRED_REASON)
            return response

        if request.sent_token is not None and current != request.sent_token:
            # Another request already renewed the token after this one was sent.
            logging.debug(f"🔁 Replaying with already renewed token {request.method} {request.url}")
            token = current
        else:
            logging.info(
                f"🔄 Authorization failure status={response.status}, refreshing and replaying {request.method} {request.url}"
            )
            token = await self.coordinator.refresh()

        request.set_bearer(token)
        replayed = await self.dispatch(request)
        return await self(request, replayed)
