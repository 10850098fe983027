"""
HTTP transport shared by the remote service adapters.
"""

import asyncio
import logging
from typing import Any

import httpx

from .exceptions import GatewayError

logger = logging.getLogger(__name__)


class ServiceClient:
    """
    JSON-over-HTTP client for the embedding, vector and rerank services.

    Transport errors and 5xx responses are retried with exponential backoff.
    Client errors (4xx) are raised immediately.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the underlying httpx client."""
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"

            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def request(
        self,
        method: str,
        path: str,
        json: dict[str, Any] | None = None,
        service: str = "service",
    ) -> Any:
        """Send a request and return the decoded JSON body.

        Raises:
            GatewayError: On transport failure, error status or a body that
                is not JSON
        """
        client = self._get_client()
        attempt = 0

        while True:
            try:
                response = await client.request(method, path, json=json)
            except httpx.TransportError as e:
                last_error = GatewayError(service, f"{method} {path} failed: {e}")
            else:
                if response.status_code < 400:
                    if not response.content:
                        return None
                    try:
                        return response.json()
                    except ValueError as e:
                        raise GatewayError(service, f"invalid JSON from {path}: {e}") from e

                last_error = GatewayError(
                    service,
                    f"{method} {path} returned HTTP {response.status_code}",
                    status_code=response.status_code,
                )
                if response.status_code < 500:
                    raise last_error

            attempt += 1
            if attempt >= self.retry_attempts:
                raise last_error

            delay = self.retry_delay * (2 ** (attempt - 1))
            logger.warning(f"{last_error}; retrying in {delay:.2f}s")
            await asyncio.sleep(delay)
