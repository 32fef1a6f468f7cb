"""Shared types for the auth_token package."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True)
class TokenClaims:
    """Claims read from a token without verifying its signature.

    Used only as a client-side renewal heuristic; the backend remains the
    authority on whether a token is valid.

    Attributes:
        expiry: Expiry instant (``exp`` claim) as an aware UTC datetime.
        subject: The ``sub`` claim, if present.
    """

    expiry: datetime
    subject: str | None = None

    @classmethod
    def from_exp(cls, exp: float, subject: str | None = None) -> TokenClaims:
        return cls(datetime.fromtimestamp(exp, UTC), subject)

    def remaining_seconds(self, now: float) -> float:
        """Seconds until expiry relative to a POSIX timestamp (negative once expired)."""
        return self.expiry.timestamp() - now
