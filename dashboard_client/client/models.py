"""Request and response value objects flowing through the pipeline."""

from __future__ import annotations

import json as jsonlib
from dataclasses import dataclass, field
from typing import Any

from aiohttp import hdrs
from multidict import CIMultiDict

from ..errors.internal import AuthorizationFailure, HttpStatusError, ParsingError

AUTHORIZATION_HEADER = hdrs.AUTHORIZATION


@dataclass
class PendingRequest:
    """An outbound call as it travels through the interceptors.

    Attributes:
        method: HTTP method, upper-cased.
        url: Absolute URL or a path relative to the client's base URL.
        headers: Request headers, case-insensitive; the credential header is
            managed by the client.
        params: Query parameters.
        json: JSON-serialisable body.
        data: Raw or form body (mutually exclusive with ``json``).
        already_retried: Set once the request has been replayed after an
            authorization failure; such a request is never replayed again.
        sent_token: Credential attached when the request was last dispatched.
    """

    method: str
    url: str
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    params: dict[str, Any] | None = None
    json: Any = None
    data: Any = None
    already_retried: bool = False
    sent_token: str | None = None

    def __post_init__(self) -> None:
        self.method = self.method.upper()
        self.headers = CIMultiDict(self.headers or {})
        if self.json is not None and self.data is not None:
            raise ValueError("json and data cannot both be set")

    def set_bearer(self, token: str) -> None:
        self.headers[AUTHORIZATION_HEADER] = f"Bearer {token}"
        self.sent_token = token

    def drop_bearer(self) -> None:
        self.headers.popall(AUTHORIZATION_HEADER, None)
        self.sent_token = None

    @property
    def authorization(self) -> str | None:
        return self.headers.get(AUTHORIZATION_HEADER)


@dataclass
class ApiResponse:
    """A fully buffered HTTP response.

    Attributes:
        status: HTTP status code.
        body: Raw response body.
        headers: Response headers, case-insensitive and multi-valued.
        url: Final request URL.
        method: Request method.
        auth_failure: True when the status signals an invalid credential.
    """

    status: int
    body: bytes = b""
    headers: CIMultiDict[str] = field(default_factory=CIMultiDict)
    url: str = ""
    method: str = "GET"
    auth_failure: bool = False

    def __post_init__(self) -> None:
        self.headers = CIMultiDict(self.headers or {})

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON; an empty body yields None.

        Raises:
            ParsingError: If the body is not valid JSON.
        """
        if not self.body.strip():
            return None
        try:
            return jsonlib.loads(self.body)
        except ValueError as e:
            raise ParsingError(
                f"Invalid JSON from {self.method} {self.url}",
                data={"status": self.status},
            ) from e

    def raise_for_status(self) -> None:
        """Raise for a non-2xx status.

        Raises:
            AuthorizationFailure: If the response is an authorization failure.
            HttpStatusError: For any other non-2xx status.
        """
        if self.ok:
            return
        if self.auth_failure:
            raise AuthorizationFailure(self)
        raise HttpStatusError(self)
