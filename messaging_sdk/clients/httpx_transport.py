import logging
from typing import Any, Optional

import httpx

from messaging_sdk.clients.base_transport import BaseTransport, TransportResponse
from messaging_sdk.exceptions import AuthRejected, ConnectionFailed, TransportTimeout

logger = logging.getLogger(__name__)


class HttpxTransport(BaseTransport):
    """Transport using httpx with bearer-key authentication."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: float = 30.0,
        http_transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http_transport = http_transport

    async def execute(
        self, method: str, path: str, body: Any = None
    ) -> TransportResponse:
        """Send one request. Status codes other than 401/403 are returned."""
        url = f"{self.base_url}/{path.lstrip('/')}"
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }
        if body is not None:
            headers["Content-Type"] = "application/json"

        logger.debug("Request: %s %s", method, url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.http_transport
            ) as client:
                response = await client.request(
                    method, url, json=body, headers=headers
                )
        except httpx.TimeoutException as e:
            logger.warning("Timeout calling %s %s", method, url)
            raise TransportTimeout(f"{method} {url} timed out") from e
        except httpx.TransportError as e:
            logger.warning("Connection to %s failed: %s", url, e)
            raise ConnectionFailed(f"{method} {url} failed: {e}") from e

        logger.debug("Status Code: %s", response.status_code)
        if response.status_code in (401, 403):
            raise AuthRejected(response.status_code)

        return TransportResponse(
            status=response.status_code,
            body=self._decode_body(response),
            headers=dict(response.headers),
        )

    def _decode_body(self, response: httpx.Response) -> Any:
        """JSON when possible, raw text otherwise, None when empty."""
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text
