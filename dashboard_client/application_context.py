"""Central application context for shared async resources."""

from __future__ import annotations

import asyncio
import logging
from types import TracebackType

import aiohttp

from .api.service import ApiService
from .auth_token.notifier import SessionNotifier
from .auth_token.persistence import JsonFileBackend, KeyValueBackend, MemoryBackend
from .auth_token.store import TokenStore
from .client.api_client import ApiClient
from .config import ClientSettings


class ApplicationContext:
    """Holds the HTTP session and the authenticated client built on top of it."""

    # Class / instance attribute type declarations (helps mypy)
    session: aiohttp.ClientSession | None
    client: ApiClient | None
    api: ApiService | None
    _lock: asyncio.Lock

    def __init__(self, settings: ClientSettings) -> None:
        self.settings = settings
        self.session = None
        self.client = None
        self.api = None
        self._lock = asyncio.Lock()

    # ------------------------- Construction ------------------------- #
    @classmethod
    async def create(
        cls,
        settings: ClientSettings | None = None,
        *,
        backend: KeyValueBackend | None = None,
        notifier: SessionNotifier | None = None,
    ) -> ApplicationContext:
        """Create and initialize a new ApplicationContext instance.

        Args:
            settings: Client settings; read from the environment when omitted.
            backend: Token persistence backend; derived from settings when omitted.
            notifier: Session notifier to reuse; a fresh one otherwise.

        Returns:
            A fully initialized ApplicationContext instance.
        """
        ctx = cls(settings or ClientSettings.from_env())
        logging.debug("🧪 Creating application context")
        ctx.session = aiohttp.ClientSession()
        logging.debug("🔗 HTTP session created")
        store = TokenStore(backend or ctx._default_backend(), key=ctx.settings.storage_key)
        ctx.client = ApiClient(ctx.session, ctx.settings, store=store, notifier=notifier)
        ctx.api = ApiService(ctx.client)
        return ctx

    def _default_backend(self) -> KeyValueBackend:
        if self.settings.token_store_file:
            logging.debug(f"💾 Token store file={self.settings.token_store_file}")
            return JsonFileBackend(self.settings.token_store_file)
        return MemoryBackend()

    # --------------------------- Lifecycle -------------------------- #
    async def shutdown(self) -> None:
        """Close the HTTP session and drop the client.

        Safe to call more than once.
        """
        async with self._lock:
            logging.info("🔻 Application context shutdown initiated")
            await self._close_http_session()
            self.client = None
            self.api = None
            logging.info("✅ Application context shutdown complete")

    async def _close_http_session(self) -> None:
        """Close the HTTP session gracefully."""
        if not self.session:
            return
        try:
            await self.session.close()
        except (aiohttp.ClientError, OSError, ValueError) as e:
            logging.error(f"💥 Error closing HTTP session: {str(e)}")
        finally:
            self.session = None

    async def __aenter__(self) -> ApplicationContext:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.shutdown()
