"""aiohttp transport that dispatches a PendingRequest and buffers the reply."""

from __future__ import annotations

import logging

import aiohttp
from multidict import CIMultiDict

from ..config import ClientSettings
from ..errors.handling import handle_transport_error
from .models import ApiResponse, PendingRequest


class Transport:
    """Sends requests over a shared aiohttp session.

    The response body is read inside the ``async with`` block so the returned
    ``ApiResponse`` outlives the connection and can be inspected or replayed
    against freely.
    """

    def __init__(self, session: aiohttp.ClientSession, settings: ClientSettings):
        """Initialize the transport.

        Args:
            session: The aiohttp session used for every request.
            settings: Client settings (base URL, timeout, auth failure statuses).

        Raises:
            ValueError: If session is not provided.
        """
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self.settings = settings
        self._timeout = aiohttp.ClientTimeout(total=settings.request_timeout_seconds)

    async def dispatch(self, request: PendingRequest) -> ApiResponse:
        """Perform one HTTP exchange.

        Args:
            request: The request to send, headers already final.

        Returns:
            The buffered response, whatever its status.

        Raises:
            NetworkError: On connection failures and timeouts.
        """
        url = self.settings.resolve(request.url)

        async def _perform_request() -> ApiResponse:
            async with self._session.request(
                request.method,
                url,
                headers=request.headers,
                params=request.params,
                json=request.json,
                data=request.data,
                timeout=self._timeout,
            ) as resp:
                body = await resp.read()
                logging.debug(
                    f"🌐 {request.method} {url} status={resp.status} "
                    f"content-type={resp.headers.get('content-type', 'none')} bytes={len(body)}"
                )
                return ApiResponse(
                    status=resp.status,
                    body=body,
                    headers=CIMultiDict(resp.headers),
                    url=url,
                    method=request.method,
                    auth_failure=resp.status in self.settings.auth_failure_statuses,
                )

        return await handle_transport_error(_perform_request, f"{request.method} {url}")

    def is_refresh_endpoint(self, request: PendingRequest) -> bool:
        return self.settings.resolve(request.url).split("?", 1)[0] == self.settings.refresh_url
