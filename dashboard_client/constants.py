"""
Configuration constants for the dashboard API client

This module contains the configurable defaults used by the authenticated client.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


# Backend location
DASHBOARD_API_BASE_URL = _get_env_str(
    "DASHBOARD_API_BASE_URL", "http://127.0.0.1:8000"
)  # Base URL every relative request path is resolved against
REFRESH_ENDPOINT_PATH = _get_env_str(
    "REFRESH_ENDPOINT_PATH", "/auth/refresh-token"
)  # Renewal endpoint (POST, bearer-authenticated, empty body)

# Token lifecycle
TOKEN_RENEWAL_THRESHOLD_SECONDS = _get_env_float(
    "TOKEN_RENEWAL_THRESHOLD_SECONDS", 30.0
)  # Renew proactively when fewer than this many seconds remain
TOKEN_STORAGE_KEY = _get_env_str(
    "TOKEN_STORAGE_KEY", "token"
)  # Well-known key the token is persisted under
TOKEN_STORE_FILE = os.getenv(
    "TOKEN_STORE_FILE", ""
)  # JSON key/value file; empty keeps the token in memory only

# Network/HTTP constants
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_int(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30
)  # Default HTTP request timeout
AUTH_FAILURE_STATUS = _get_env_int(
    "AUTH_FAILURE_STATUS", 401
)  # Status that signals an invalid or expired credential
