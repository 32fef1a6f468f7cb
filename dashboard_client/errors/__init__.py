"""Error types and error-logging helpers."""

from .internal import (
    AuthorizationFailure,
    DecodeError,
    HttpStatusError,
    InternalError,
    NetworkError,
    NoTokenError,
    ParsingError,
    RefreshFailure,
    SessionError,
)

__all__ = [
    "AuthorizationFailure",
    "DecodeError",
    "HttpStatusError",
    "InternalError",
    "NetworkError",
    "NoTokenError",
    "ParsingError",
    "RefreshFailure",
    "SessionError",
]
