"""Tests for the delivery HTTP client."""

from __future__ import annotations

import json

import httpx
import pytest

from kiosksync.client.api import DeliveryClient
from kiosksync.client.sync.types import DeliveryError, QueueItem
from kiosksync.core.config import SyncConfig


def make_config(server_url: str = "http://test", **kwargs: object) -> SyncConfig:
    """Create a SyncConfig for testing."""
    return SyncConfig(server_url=server_url, **kwargs)  # type: ignore[arg-type]


class TestSend:
    """Tests for DeliveryClient.send."""

    @pytest.mark.asyncio
    async def test_posts_json(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should send the payload as a JSON body."""
        httpx_mock.add_response(url="http://test/sync", method="POST", json={"id": 9})

        async with DeliveryClient(make_config()) as client:
            result = await client.send("POST", "/sync", {"uid": "U1"})

        assert result == {"id": 9}
        request = httpx_mock.get_request()
        assert request.headers["Content-Type"] == "application/json"
        assert "Authorization" not in request.headers
        assert json.loads(request.content) == {"uid": "U1"}

    @pytest.mark.asyncio
    async def test_absolute_url(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should allow URLs outside the configured server."""
        httpx_mock.add_response(url="http://other.test/hook", method="PUT", text="ok")

        async with DeliveryClient(make_config()) as client:
            result = await client.send("PUT", "http://other.test/hook", {})

        assert result == "ok"

    @pytest.mark.asyncio
    async def test_server_error(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should raise a retryable DeliveryError on 5xx."""
        httpx_mock.add_response(url="http://test/sync", status_code=500)

        async with DeliveryClient(make_config()) as client:
            with pytest.raises(DeliveryError) as exc_info:
                await client.send("POST", "/sync", {})

        assert str(exc_info.value) == "HTTP 500: Internal Server Error"
        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    async def test_client_error_retryable_by_default(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        httpx_mock.add_response(url="http://test/sync", status_code=400)

        async with DeliveryClient(make_config()) as client:
            with pytest.raises(DeliveryError) as exc_info:
                await client.send("POST", "/sync", {})

        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_client_error_carries_status(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should report the 4xx status regardless of the retry configuration."""
        httpx_mock.add_response(url="http://test/sync", status_code=404)

        async with DeliveryClient(make_config(retry_client_errors=False)) as client:
            with pytest.raises(DeliveryError) as exc_info:
                await client.send("POST", "/sync", {})

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_transport_error(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        """Should wrap transport failures."""
        httpx_mock.add_exception(httpx.ConnectError("Connection refused"))

        async with DeliveryClient(make_config()) as client:
            with pytest.raises(DeliveryError, match="ConnectError: Connection refused") as exc_info:
                await client.send("POST", "/sync", {})

        assert exc_info.value.status_code is None


class TestDeliver:
    """Tests for DeliveryClient.deliver."""

    @pytest.mark.asyncio
    async def test_uses_item_method_and_url(self, httpx_mock) -> None:  # type: ignore[no-untyped-def]
        httpx_mock.add_response(url="http://test/enroll", method="PATCH", json={})
        item = QueueItem.create("enrollment", {"uid": "U1"}, "/enroll", method="patch")

        async with DeliveryClient(make_config()) as client:
            await client.deliver(item)

        assert json.loads(httpx_mock.get_request().content) == {"uid": "U1"}
