"""Persisted token access and claim decoding."""

from __future__ import annotations

import logging

import jwt

from ..constants import TOKEN_STORAGE_KEY
from ..errors.internal import DecodeError
from ..logging_config import mask_token
from .persistence import KeyValueBackend, MemoryBackend
from .types import TokenClaims


class TokenStore:
    """Sole owner of the persisted token value.

    Every read goes to the backend so a write is visible to all later
    ``get()`` calls, including ones made through another store instance
    sharing the same backend.
    """

    def __init__(
        self,
        backend: KeyValueBackend | None = None,
        key: str = TOKEN_STORAGE_KEY,
    ) -> None:
        """Initialize the store.

        Args:
            backend: Key/value backend; defaults to an in-memory one.
            key: Well-known key the token lives under.
        """
        self.backend = backend if backend is not None else MemoryBackend()
        self.key = key

    def get(self) -> str | None:
        token = self.backend.get_item(self.key)
        return token or None

    def set(self, token: str) -> None:
        if not isinstance(token, str) or not token:
            raise ValueError("token must be a non-empty string")
        self.backend.set_item(self.key, token)
        logging.debug(f"🔑 Token stored token={mask_token(token)}")

    def clear(self) -> None:
        self.backend.remove_item(self.key)
        logging.debug("🗑️ Token cleared")

    @staticmethod
    def decode(token: str) -> TokenClaims:
        """Read the ``exp`` and ``sub`` claims without network access.

        The signature is not verified: the claims only drive the client-side
        renewal heuristic.

        Args:
            token: Encoded JWT.

        Returns:
            Decoded claims.

        Raises:
            DecodeError: If the token is not a JWT or carries no numeric ``exp``.
        """
        try:
            payload = jwt.decode(token, options={"verify_signature": False})
        except jwt.PyJWTError as e:
            raise DecodeError(f"Token could not be decoded: {e}") from e
        exp = payload.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, int | float):
            raise DecodeError("Token has no numeric exp claim")
        sub = payload.get("sub")
        try:
            return TokenClaims.from_exp(exp, sub if isinstance(sub, str) else None)
        except (OverflowError, OSError, ValueError) as e:
            raise DecodeError(f"Token exp claim out of range: {exp}") from e
