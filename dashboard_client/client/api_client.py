"""Authenticated HTTP client: the single entry point for backend calls."""

from __future__ import annotations

import logging
import time
from typing import Any

import aiohttp

from ..auth_token.client import RenewalClient
from ..auth_token.coordinator import RefreshCoordinator
from ..auth_token.notifier import SessionNotifier
from ..auth_token.store import TokenStore
from ..config import ClientSettings
from .interceptors import Clock, RequestInterceptor, ResponseInterceptor
from .models import ApiResponse, PendingRequest
from .transport import Transport


class ApiClient:
    """Sends requests that authenticate and recover from token expiry on their own.

    Each instance owns its own ``RefreshCoordinator``, so independent clients
    (or tests) never share refresh state. Callers never attach credentials or
    handle authorization failures themselves.

    Example:
        >>> client = ApiClient(session, ClientSettings())
        >>> client.notifier.on_session_expired(lambda reason: print(reason))
        >>> resp = await client.send(PendingRequest("GET", "/products"))
    """

    def __init__(
        self,
        session: aiohttp.ClientSession,
        settings: ClientSettings | None = None,
        *,
        store: TokenStore | None = None,
        notifier: SessionNotifier | None = None,
        clock: Clock = time.time,
    ) -> None:
        """Initialize the client.

        Args:
            session: aiohttp session used for every call, renewal included.
            settings: Client settings; defaults to environment-derived ones.
            store: Token store; defaults to an in-memory store.
            notifier: Session notifier; a fresh one is created if omitted.
            clock: Returns the current POSIX time; drives the expiry heuristic.
        """
        self.settings = settings or ClientSettings.from_env()
        self.store = store or TokenStore(key=self.settings.storage_key)
        self.notifier = notifier or SessionNotifier()
        self.transport = Transport(session, self.settings)
        self.coordinator = RefreshCoordinator(
            self.store, RenewalClient(self.transport), self.notifier
        )
        self.request_interceptor = RequestInterceptor(
            self.store,
            self.coordinator,
            self.notifier,
            self.transport.is_refresh_endpoint,
            renewal_threshold_seconds=self.settings.renewal_threshold_seconds,
            clock=clock,
        )
        self.response_interceptor = ResponseInterceptor(
            self.store,
            self.coordinator,
            self.notifier,
            self.transport.is_refresh_endpoint,
            self.transport.dispatch,
        )

    async def send(self, request: PendingRequest) -> ApiResponse:
        """Send a request through the authentication pipeline.

        Args:
            request: The request to send.

        Returns:
            The final response, of any status.

        Raises:
            DecodeError: The stored token is malformed.
            RefreshFailure: A refresh required by this request failed.
            NetworkError: The request could not be sent.
        """
        prepared = await self.request_interceptor(request)
        response = await self.transport.dispatch(prepared)
        return await self.response_interceptor(prepared, response)

    async def request(self, method: str, url: str, **kwargs: Any) -> ApiResponse:
        """Shorthand for ``send(PendingRequest(method, url, **kwargs))``."""
        return await self.send(PendingRequest(method, url, **kwargs))

    async def login(self, token: str) -> None:
        """Adopt a token issued by the login flow."""
        self.store.set(token)
        logging.info("🔓 Session started")
        await self.notifier.token_updated(token)

    async def logout(self) -> None:
        self.store.clear()
        logging.info("👋 Logged out")
        await self.notifier.token_removed()

    @property
    def token(self) -> str | None:
        return self.store.get()
