"""Single-flight token renewal."""

from __future__ import annotations

import asyncio
import logging

from ..errors.handling import log_error
from ..errors.internal import NoTokenError, RefreshFailure
from .client import RenewalClient
from .notifier import SessionNotifier
from .store import TokenStore

NO_TOKEN_REASON = "No token found. Please log in."
SESSION_EXPIRED_REASON = "Your session has expired. Please log in again."


class RefreshCoordinator:
    """Guarantees at most one renewal call in flight per client.

    The first caller of ``refresh()`` becomes the leader and starts the renewal
    in a task owned by the coordinator; callers arriving while it is in flight
    queue a future and receive the same outcome. ``in_flight`` is checked and
    set before the first ``await``, which on a single event loop makes it a
    sufficient mutex.

    Cancelling a caller only abandons that caller's wait. The renewal itself
    runs to completion and its outcome (store update, notifications) is
    applied for everyone else.

    Invariants:
        - ``_waiters`` is non-empty only while ``_in_flight`` is True.
        - Every waiter is settled exactly once, in FIFO order, and the queue is
          drained before another refresh can start.
    """

    def __init__(
        self,
        store: TokenStore,
        renewal_client: RenewalClient,
        notifier: SessionNotifier,
    ) -> None:
        self.store = store
        self.renewal_client = renewal_client
        self.notifier = notifier
        self._in_flight = False
        self._waiters: list[asyncio.Future[str]] = []
        self._task: asyncio.Task[str] | None = None

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def waiter_count(self) -> int:
        return len(self._waiters)

    async def refresh(self) -> str:
        """Produce a fresh token, sharing any renewal already in progress.

        Returns:
            The new token.

        Raises:
            NoTokenError: If no token is stored (no network call is made).
            RefreshFailure: If the renewal endpoint rejected the token or failed.
        """
        if self._in_flight:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            self._waiters.append(waiter)
            logging.debug(f"⏳ Joined in-flight token refresh waiters={len(self._waiters)}")
            return await waiter

        self._in_flight = True
        current = self.store.get()
        if current is None:
            error = NoTokenError()
            self._settle(error=error)
            await self.notifier.notify(NO_TOKEN_REASON)
            raise error

        task = asyncio.create_task(self._renew(current))
        self._task = task
        task.add_done_callback(self._on_renewal_done)
        return await asyncio.shield(task)

    async def _renew(self, current: str) -> str:
        try:
            new_token = await self.renewal_client.renew(current)
        except asyncio.CancelledError:
            self._settle(error=RefreshFailure("Token refresh was cancelled"))
            raise
        except Exception as e:  # noqa: BLE001
            failure = (
                e
                if isinstance(e, RefreshFailure)
                else RefreshFailure(f"Unexpected token refresh error: {type(e).__name__}")
            )
            log_error("Token refresh failed", failure, level=logging.WARNING)
            self.store.clear()
            self._settle(error=failure)
            await self.notifier.token_removed()
            await self.notifier.notify(SESSION_EXPIRED_REASON)
            if failure is e:
                raise
            raise failure from e

        self.store.set(new_token)
        self._settle(token=new_token)
        await self.notifier.token_updated(new_token)
        return new_token

    def _on_renewal_done(self, task: asyncio.Task[str]) -> None:
        if self._task is task:
            self._task = None
        if task.cancelled():
            return
        # Mark the outcome retrieved when the leader stopped waiting for it.
        exc = task.exception()
        if exc is not None:
            logging.debug(f"🔚 Token refresh task finished with {type(exc).__name__}")

    def _settle(
        self, *, token: str | None = None, error: BaseException | None = None
    ) -> None:
        """Resolve or reject every queued waiter and reset the state."""
        waiters, self._waiters = self._waiters, []
        self._in_flight = False
        for waiter in waiters:
            if waiter.done():
                continue
            if error is not None:
                waiter.set_exception(error)
            else:
                waiter.set_result(token)
        if waiters:
            logging.debug(
                f"📣 Settled refresh waiters count={len(waiters)} outcome={'error' if error else 'token'}"
            )
