from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

import aiohttp

from ..logging_config import log_structured_error
from .internal import (
    AuthorizationFailure,
    HttpStatusError,
    InternalError,
    NetworkError,
    ParsingError,
    SessionError,
)

T = TypeVar("T")


def categorize_error(error: BaseException) -> str:
    """Map an exception to the category used in structured logs."""
    if isinstance(error, NetworkError | OSError | ConnectionError | TimeoutError):
        return "network"
    if isinstance(error, AuthorizationFailure):
        return "auth"
    if isinstance(error, SessionError):
        return "session"
    if isinstance(error, HttpStatusError):
        return "http"
    if isinstance(error, ParsingError):
        return "parsing"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: Exception,
    context: dict = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level forwarded to the structured logger.
    """
    log_structured_error(
        error_type=categorize_error(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
        level=level,
    )


async def handle_transport_error(
    operation: Callable[[], Awaitable[T]], context: str
) -> T:
    """Run a transport operation, wrapping aiohttp/OS failures in NetworkError.

    Args:
        operation: The async operation to execute.
        context: Descriptive context (e.g. "GET http://host/products").

    Returns:
        The result of the operation if successful.

    Raises:
        NetworkError: On timeouts, connection failures and other aiohttp client errors.
    """
    try:
        return await operation()
    except TimeoutError as e:
        error_context = {"operation": context, "timestamp": time.time()}
        log_error(f"Request timed out in {context}", e, context=error_context, level=logging.WARNING)
        raise NetworkError(f"Request timeout in {context}", data=error_context) from e
    except (aiohttp.ClientError, OSError) as e:
        error_context = {"operation": context, "timestamp": time.time()}
        if hasattr(e, "status"):
            error_context["http_status"] = e.status
        log_error(f"Transport failure in {context}", e, context=error_context, level=logging.WARNING)
        raise NetworkError(
            f"Network connectivity issue in {context}. Check that the API is reachable. Error: {str(e)}",
            data=error_context,
        ) from e
