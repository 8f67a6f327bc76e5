"""HTTP client for delivering queued operations.

This module provides:
- DeliveryClient: Async httpx client that sends one JSON payload to its
  endpoint and raises DeliveryError on any non-2xx or transport failure

Whether a failure is worth retrying is decided by the caller's RetryPolicy
from DeliveryError.status_code.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from kiosksync.client.sync.types import DeliveryError, QueueItem
from kiosksync.core.config import SyncConfig

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Content-Type": "application/json"}


class DeliveryClient:
    """Async HTTP client for queue deliveries.

    No authentication header is added: callers embed tokens in the payload
    when the endpoint needs them.
    """

    def __init__(
        self,
        config: SyncConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the delivery client.

        Args:
            config: Sync configuration (base URL, timeout, SSL).
            transport: Optional httpx transport (used by tests).
        """
        self._config = config
        self._client = httpx.AsyncClient(
            base_url=config.server_url,
            timeout=config.timeout,
            verify=config.verify_ssl,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> DeliveryClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, *args: object) -> None:
        """Context manager exit."""
        await self.close()

    async def send(self, method: str, url: str, payload: dict[str, Any]) -> Any:
        """Send one JSON payload.

        Args:
            method: HTTP method.
            url: Absolute URL, or path relative to the configured server.
            payload: Request body.

        Returns:
            Decoded JSON response, or the response text if it is not JSON.

        Raises:
            DeliveryError: On transport errors or non-2xx responses.
        """
        try:
            response = await self._client.request(
                method,
                url,
                json=payload,
                headers=JSON_HEADERS,
            )
        except httpx.RequestError as e:
            raise DeliveryError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            raise DeliveryError(
                f"HTTP {response.status_code}: {response.reason_phrase}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError:
            return response.text

    async def deliver(self, item: QueueItem) -> Any:
        """Deliver a queued item to its endpoint.

        Raises:
            DeliveryError: If the delivery failed.
        """
        logger.debug("Delivering %s %s (%s %s)", item.operation, item.id, item.method, item.url)
        return await self.send(item.method, item.url, item.payload)
