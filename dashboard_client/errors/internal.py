"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the request pipeline and
the token lifecycle. Only raise these inside application/network boundaries –
never directly surface raw aiohttp / JSON errors to callers; wrap them instead.

Classes:
  InternalError         – Base for all internal errors.
  NetworkError          – Transport failures (connection errors, timeouts).
  ParsingError          – Response parsing / schema validation issues.
  SessionError          – Base for errors that end or block the session.
  NoTokenError          – Refresh attempted with nothing stored.
  DecodeError           – Stored token is malformed or unparsable.
  RefreshFailure        – Renewal endpoint rejected the request or failed.
  HttpStatusError       – Non-2xx response surfaced to a caller.
  AuthorizationFailure  – Non-2xx response signalling an invalid credential.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..client.models import ApiResponse


class InternalError(Exception):
    """Base class for all internal application errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised for network or transport layer errors.

    This includes connection resets, DNS failures and timeouts raised while
    talking to the backend.
    """


class ParsingError(InternalError):
    """Exception raised for response parsing or schema validation errors."""


class SessionError(InternalError):
    """Base class for failures that leave the client without a usable token."""


class NoTokenError(SessionError):
    """Raised when a refresh is requested but no token is stored."""

    def __init__(self, message: str = "No token found for refresh.") -> None:
        super().__init__(message)


class DecodeError(SessionError):
    """Raised when the stored token cannot be decoded into claims."""


class RefreshFailure(SessionError):
    """Raised when the renewal endpoint rejects the token or cannot be reached.

    Args:
        message: Descriptive error message.
        status: HTTP status returned by the renewal endpoint, if any.
    """

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message, data={"status": status})
        self.status = status


class HttpStatusError(InternalError):
    """Exception raised for a non-2xx response.

    Args:
        response: The buffered response that failed.
    """

    def __init__(self, response: ApiResponse) -> None:
        super().__init__(
            f"Request failed with status code {response.status}",
            data={"url": response.url, "method": response.method},
        )
        self.response = response

    @property
    def status(self) -> int:
        return self.response.status


class AuthorizationFailure(HttpStatusError):
    """Non-2xx response indicating an invalid or expired credential."""


__all__ = [
    "InternalError",
    "NetworkError",
    "ParsingError",
    "SessionError",
    "NoTokenError",
    "DecodeError",
    "RefreshFailure",
    "HttpStatusError",
    "AuthorizationFailure",
]
