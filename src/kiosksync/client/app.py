"""Application composition root.

This module wires the sync components together:
    SyncConfig ─► QueueStore, ReachabilityMonitor(HttpProbe), DeliveryClient
                       └──────────────► SyncQueueManager ◄── AttendanceRecorder

Usage:
    async with create_app(config, state_path) as app:
        await app.recorder.record("U1", "nfc")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType

import httpx

from kiosksync.client.api import DeliveryClient
from kiosksync.client.attendance import AttendanceRecorder
from kiosksync.client.state import QueueStore
from kiosksync.client.sync.manager import SyncQueueManager
from kiosksync.client.sync.operations import OperationRegistry
from kiosksync.client.sync.reachability import HttpProbe, ReachabilityMonitor, ReachabilityProbe
from kiosksync.client.sync.retry import RetryPolicy
from kiosksync.core.config import SyncConfig

logger = logging.getLogger(__name__)


@dataclass
class KioskApp:
    """All long-lived services of one kiosk process."""

    config: SyncConfig
    store: QueueStore
    monitor: ReachabilityMonitor
    client: DeliveryClient
    manager: SyncQueueManager
    recorder: AttendanceRecorder

    async def start(self) -> bool:
        """Initialize the manager. Returns whether the device is online."""
        return await self.manager.initialize()

    async def stop(self) -> None:
        await self.manager.shutdown()

    async def __aenter__(self) -> KioskApp:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.stop()


def create_app(
    config: SyncConfig,
    state_path: Path | str,
    probe: ReachabilityProbe | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    registry: OperationRegistry | None = None,
) -> KioskApp:
    """Build the kiosk services from configuration.

    Args:
        config: Sync configuration.
        state_path: SQLite file holding the queue state.
        probe: Reachability probe (defaults to a HEAD request on probe_url).
        transport: httpx transport for deliveries (used by tests).
        registry: Operation registry (defaults to the built-in kinds).
    """
    policy = RetryPolicy(
        max_retries=config.max_retries,
        retry_client_errors=config.retry_client_errors,
    )
    store = QueueStore(state_path)
    monitor = ReachabilityMonitor(
        probe or HttpProbe.from_config(config),
        interval=config.probe_interval,
    )
    client = DeliveryClient(config, transport=transport)
    manager = SyncQueueManager(
        store,
        monitor,
        client,
        registry=registry or OperationRegistry.default(),
        policy=policy,
        abandoned_limit=config.abandoned_limit,
    )
    recorder = AttendanceRecorder(manager, client, config)
    logger.debug("Created kiosk app with state at %s", state_path)
    return KioskApp(
        config=config,
        store=store,
        monitor=monitor,
        client=client,
        manager=manager,
        recorder=recorder,
    )
