"""HTTP client for the token renewal endpoint."""

from __future__ import annotations

import logging

from ..client.models import PendingRequest
from ..client.transport import Transport
from ..errors.internal import NetworkError, ParsingError, RefreshFailure
from ..logging_config import mask_token


class RenewalClient:
    """Exchanges the current token for a new one.

    Issues ``POST <base>/auth/refresh-token`` with the current token as a
    bearer credential and an empty body. Every failure mode (non-2xx status,
    malformed body, transport error or timeout) is reported as a
    ``RefreshFailure``.
    """

    def __init__(self, transport: Transport):
        """Initialize the renewal client.

        Args:
            transport: Transport used for the renewal call.
        """
        self.transport = transport

    async def renew(self, current_token: str) -> str:
        """Renew a token.

        Args:
            current_token: The token being replaced.

        Returns:
            The new access token.

        Raises:
            RefreshFailure: If the renewal endpoint rejected the request or failed.
        """
        request = PendingRequest("POST", self.transport.settings.refresh_url)
        request.set_bearer(current_token)
        logging.info(f"🔄 Requesting token renewal token={mask_token(current_token)}")
        try:
            resp = await self.transport.dispatch(request)
        except NetworkError as e:
            logging.warning(f"💥 Network error during token renewal: {str(e)}")
            raise RefreshFailure(f"Network error during token renewal: {e}") from e

        if not resp.ok:
            logging.warning(f"❌ Token renewal rejected status={resp.status}")
            raise RefreshFailure(
                f"HTTP {resp.status} during token renewal", status=resp.status
            )
        try:
            payload = resp.json()
        except ParsingError as e:
            raise RefreshFailure(
                "Unparsable token renewal response", status=resp.status
            ) from e
        new_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not isinstance(new_token, str) or not new_token:
            raise RefreshFailure(
                "Missing access_token in renewal response", status=resp.status
            )
        logging.info(f"✅ Token renewed token={mask_token(new_token)}")
        return new_token
