from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator

from .. import constants


class ClientSettings(BaseModel):
    """Settings for one authenticated API client.

    Attributes:
        base_url: Backend root that relative request paths resolve against.
        refresh_path: Path of the token renewal endpoint.
        renewal_threshold_seconds: Renew proactively when fewer seconds remain.
        storage_key: Key the token is persisted under.
        token_store_file: JSON file backing the token store; None keeps it in memory.
        request_timeout_seconds: Total timeout applied to every HTTP call.
        auth_failure_statuses: Response statuses treated as an expired credential.
    """

    base_url: str = constants.DASHBOARD_API_BASE_URL
    refresh_path: str = constants.REFRESH_ENDPOINT_PATH
    renewal_threshold_seconds: float = Field(
        default=constants.TOKEN_RENEWAL_THRESHOLD_SECONDS, ge=0
    )
    storage_key: str = Field(default=constants.TOKEN_STORAGE_KEY, min_length=1)
    token_store_file: str | None = constants.TOKEN_STORE_FILE or None
    request_timeout_seconds: float = Field(
        default=constants.HTTP_REQUEST_TIMEOUT_SECONDS, gt=0
    )
    auth_failure_statuses: frozenset[int] = frozenset({constants.AUTH_FAILURE_STATUS})

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Strip whitespace and the trailing slash; require an http(s) scheme."""
        stripped = v.strip().rstrip("/")
        if not stripped.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return stripped

    @field_validator("refresh_path")
    @classmethod
    def validate_refresh_path(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("refresh_path must not be empty")
        return stripped if stripped.startswith("/") else f"/{stripped}"

    @field_validator("token_store_file", mode="before")
    @classmethod
    def validate_token_store_file(cls, v: Any) -> str | None:
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("auth_failure_statuses")
    @classmethod
    def validate_auth_failure_statuses(cls, v: frozenset[int]) -> frozenset[int]:
        if not v:
            raise ValueError("auth_failure_statuses must not be empty")
        for status in v:
            if not 400 <= status < 500:
                raise ValueError(f"auth failure status {status} is not a 4xx code")
        return v

    @classmethod
    def from_env(cls, **overrides: Any) -> ClientSettings:
        """Build settings from the current environment plus explicit overrides.

        The environment is read at call time, so variables exported after
        import are honoured.
        """
        values: dict[str, Any] = {
            "base_url": constants._get_env_str(
                "DASHBOARD_API_BASE_URL", constants.DASHBOARD_API_BASE_URL
            ),
            "refresh_path": constants._get_env_str(
                "REFRESH_ENDPOINT_PATH", constants.REFRESH_ENDPOINT_PATH
            ),
            "renewal_threshold_seconds": constants._get_env_float(
                "TOKEN_RENEWAL_THRESHOLD_SECONDS",
                constants.TOKEN_RENEWAL_THRESHOLD_SECONDS,
            ),
            "storage_key": constants._get_env_str(
                "TOKEN_STORAGE_KEY", constants.TOKEN_STORAGE_KEY
            ),
            "token_store_file": constants._get_env_str(
                "TOKEN_STORE_FILE", constants.TOKEN_STORE_FILE
            ),
            "request_timeout_seconds": constants._get_env_int(
                "HTTP_REQUEST_TIMEOUT_SECONDS", constants.HTTP_REQUEST_TIMEOUT_SECONDS
            ),
            "auth_failure_statuses": frozenset(
                {constants._get_env_int("AUTH_FAILURE_STATUS", constants.AUTH_FAILURE_STATUS)}
            ),
        }
        values.update(overrides)
        return cls.model_validate(values)

    @property
    def refresh_url(self) -> str:
        return f"{self.base_url}{self.refresh_path}"

    def resolve(self, url: str) -> str:
        """Resolve a request path against base_url; absolute URLs pass through.

        Args:
            url: Absolute URL or path such as ``/products`` or ``products``.

        Returns:
            Absolute URL string.
        """
        if url.startswith(("http://", "https://")):
            return url
        return f"{self.base_url}/{url.lstrip('/')}"
