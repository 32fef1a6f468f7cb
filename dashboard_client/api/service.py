"""Thin JSON helpers over the authenticated client used by the dashboard screens.

Wraps the four verbs the CRUD views need. If a screen needs something more
specific, prefer adding a focused method here over sprinkling raw request
logic across callers.
"""

from __future__ import annotations

from typing import Any

from ..client.api_client import ApiClient
from ..client.models import PendingRequest
from ..errors.handling import log_error
from ..errors.internal import InternalError


class ApiService:
    """JSON-in/JSON-out access to backend endpoints.

    Every method sends through ``ApiClient`` (so authentication and refresh are
    handled there), raises for non-2xx responses, and returns the decoded body.
    Failures are logged with the URL before being re-raised.
    """

    def __init__(self, client: ApiClient):
        """Initialize the service.

        Args:
            client: The authenticated client to send through.

        Raises:
            ValueError: If client is not provided.
        """
        if not client:
            raise ValueError("ApiClient required")
        self._client = client

    async def get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Fetch a resource.

        Args:
            url: Endpoint path or absolute URL.
            params: Query parameters.

        Returns:
            Decoded JSON body (None for an empty body).

        Raises:
            HttpStatusError: For a non-2xx response.
            AuthorizationFailure: If the credential was rejected and could not be renewed.
            InternalError: For transport, parsing or session failures.

        Example:
            >>> products = await service.get("/products/filter/", {"limit": 10, "offset": 0})
        """
        request = PendingRequest("GET", url, params=params or None)
        return await self._call(request, f"Error fetching data from {url}")

    async def post(self, url: str, data: Any = None) -> Any:
        request = PendingRequest("POST", url, json=data if data is not None else {})
        return await self._call(request, f"Error posting data to {url}")

    async def put(self, url: str, data: Any = None) -> Any:
        request = PendingRequest("PUT", url, json=data if data is not None else {})
        return await self._call(request, f"Error updating data at {url}")

    async def delete(self, url: str, data: Any = None) -> Any:
        """Delete a resource; a non-empty ``data`` is sent as the JSON body."""
        request = PendingRequest("DELETE", url, json=data or None)
        return await self._call(request, f"Error deleting data from {url}")

    async def _call(self, request: PendingRequest, failure_message: str) -> Any:
        if request.method != "GET":
            request.headers.setdefault("Content-Type", "application/json")
        try:
            response = await self._client.send(request)
            response.raise_for_status()
            return response.json()
        except InternalError as e:
            log_error(failure_message, e, context={"method": request.method})
            raise
