"""Authenticated HTTP client layer for the CRUD dashboard.

Typical use::

    async with await ApplicationContext.create() as ctx:
        ctx.client.notifier.on_session_expired(redirect_to_login)
        await ctx.client.login(token_from_login_form)
        products = await ctx.api.get("/products")
"""

from .api.service import ApiService
from .application_context import ApplicationContext
from .auth_token.notifier import SessionNotifier
from .auth_token.persistence import JsonFileBackend, MemoryBackend
from .auth_token.store import TokenStore
from .client.api_client import ApiClient
from .client.models import ApiResponse, PendingRequest
from .config import ClientSettings

__all__ = [
    "ApiClient",
    "ApiResponse",
    "ApiService",
    "ApplicationContext",
    "ClientSettings",
    "JsonFileBackend",
    "MemoryBackend",
    "PendingRequest",
    "SessionNotifier",
    "TokenStore",
]
