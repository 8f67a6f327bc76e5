"""Shared fixtures for sync queue tests.

Provides a fake reachability probe and an in-process HTTP server (an
httpx.MockTransport handler) so the manager can be exercised end to end
without network access.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import httpx
import pytest

from kiosksync.client.api import DeliveryClient
from kiosksync.client.state import QueueStore
from kiosksync.client.sync.events import SyncEvent
from kiosksync.client.sync.manager import SyncQueueManager
from kiosksync.client.sync.operations import OperationRegistry
from kiosksync.client.sync.reachability import NetworkState, ReachabilityMonitor
from kiosksync.client.sync.retry import RetryPolicy
from kiosksync.core.config import SyncConfig

SERVER_URL = "http://kiosk.test"


class FakeProbe:
    """Reachability probe returning a scripted state."""

    def __init__(self, online: bool = True) -> None:
        self.state = NetworkState(is_connected=online, is_internet_reachable=online)
        self.calls = 0
        self.closed = False

    def set_online(self, online: bool) -> None:
        self.state = NetworkState(is_connected=online, is_internet_reachable=online)

    async def fetch(self) -> NetworkState:
        self.calls += 1
        return self.state

    async def close(self) -> None:
        self.closed = True


class FakeServer:
    """MockTransport handler answering by request path.

    statuses maps a path to an HTTP status; 0 simulates a connection error.
    Unlisted paths answer 200. Set gate to hold requests until it is set.
    """

    def __init__(self) -> None:
        self.statuses: dict[str, int] = {}
        self.requests: list[httpx.Request] = []
        self.gate: asyncio.Event | None = None

    @property
    def paths(self) -> list[str]:
        return [r.url.path for r in self.requests]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        status = self.statuses.get(request.url.path, 200)
        if status == 0:
            raise httpx.ConnectError("Connection refused", request=request)
        return httpx.Response(status, json={"ok": status < 400})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)


@dataclass
class Harness:
    """A manager wired to fakes, plus everything needed to inspect it."""

    manager: SyncQueueManager
    monitor: ReachabilityMonitor
    probe: FakeProbe
    server: FakeServer
    store: QueueStore
    client: DeliveryClient
    db_path: Path
    events: list[SyncEvent] = field(default_factory=list)

    def go_online(self) -> None:
        self.probe.set_online(True)
        self.monitor.report(self.probe.state)

    def go_offline(self) -> None:
        self.probe.set_online(False)
        self.monitor.report(self.probe.state)


HarnessFactory = Callable[..., contextlib.AbstractAsyncContextManager[Harness]]


@pytest.fixture
def server() -> FakeServer:
    return FakeServer()


@pytest.fixture
def make_harness(tmp_path: Path, server: FakeServer) -> HarnessFactory:
    """Factory for initialized managers; shut down when the block exits."""

    @contextlib.asynccontextmanager
    async def factory(
        online: bool = True,
        max_retries: int = 3,
        retry_client_errors: bool = True,
        registry: OperationRegistry | None = None,
        db_name: str = "state.db",
        **kwargs: Any,
    ) -> AsyncIterator[Harness]:
        config = SyncConfig(server_url=SERVER_URL, max_retries=max_retries)
        policy = RetryPolicy(max_retries=max_retries, retry_client_errors=retry_client_errors)
        db_path = tmp_path / db_name
        store = QueueStore(db_path)
        probe = FakeProbe(online=online)
        monitor = ReachabilityMonitor(probe, interval=3600)
        client = DeliveryClient(config, transport=server.transport())
        manager = SyncQueueManager(
            store,
            monitor,
            client,
            registry=registry,
            policy=policy,
            **kwargs,
        )
        harness = Harness(
            manager=manager,
            monitor=monitor,
            probe=probe,
            server=server,
            store=store,
            client=client,
            db_path=db_path,
        )
        manager.subscribe(harness.events.append)
        await manager.initialize()
        try:
            yield harness
        finally:
            await manager.shutdown()

    return factory
