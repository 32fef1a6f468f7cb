"""Session event subscriptions (session expired, token removed, token updated)."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable
from typing import Any

Unsubscribe = Callable[[], None]


class SessionNotifier:
    """Delivers session lifecycle events to the surrounding application.

    Handlers may be plain callables or coroutine functions. They run in
    registration order and are awaited inline, so once ``notify`` returns every
    handler has observed the event. A failing handler is logged and skipped.

    The token must already be cleared before ``notify`` is called, so handlers
    can assume "no token" is the current state.
    """

    def __init__(self) -> None:
        self._session_expired_hooks: list[Callable[[str], Any]] = []
        self._token_removed_hooks: list[Callable[[], Any]] = []
        self._token_updated_hooks: list[Callable[[str], Any]] = []

    def on_session_expired(self, hook: Callable[[str], Any]) -> Unsubscribe:
        """Register a handler called with a human-readable reason."""
        return self._subscribe(self._session_expired_hooks, hook)

    def on_token_removed(self, hook: Callable[[], Any]) -> Unsubscribe:
        return self._subscribe(self._token_removed_hooks, hook)

    def on_token_updated(self, hook: Callable[[str], Any]) -> Unsubscribe:
        """Register a handler called with the newly stored token."""
        return self._subscribe(self._token_updated_hooks, hook)

    async def notify(self, reason: str) -> None:
        """Signal that the session is gone."""
        logging.warning(f"🔒 Session expired reason={reason}")
        await self._fire(self._session_expired_hooks, "session_expired", reason)

    async def token_removed(self) -> None:
        await self._fire(self._token_removed_hooks, "token_removed")

    async def token_updated(self, token: str) -> None:
        await self._fire(self._token_updated_hooks, "token_updated", token)

    @staticmethod
    def _subscribe(hooks: list[Any], hook: Callable[..., Any]) -> Unsubscribe:
        if not callable(hook):
            raise TypeError("hook must be callable")
        hooks.append(hook)

        def _unsubscribe() -> None:
            # Idempotent: a second call is a no-op.
            try:
                hooks.remove(hook)
            except ValueError:
                pass

        return _unsubscribe

    @staticmethod
    async def _fire(hooks: list[Any], category: str, *args: Any) -> None:
        # Snapshot so a handler may unsubscribe itself while firing.
        for hook in list(hooks):
            try:
                result = hook(*args)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:  # noqa: BLE001
                logging.warning(
                    f"⚠️ Session hook error category={category} type={type(e).__name__} error={str(e)}"
                )
