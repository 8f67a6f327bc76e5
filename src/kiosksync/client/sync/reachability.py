"""Network reachability monitoring.

This module provides:
- NetworkState: Link-level connection plus confirmed internet access
- HttpProbe: Probes reachability with a HEAD request
- ReachabilityMonitor: Tracks the online boolean and emits transitions

The monitor polls its probe every probe_interval seconds. Platform hooks
(or tests) can also push observations with report(). Only transitions are
emitted; flapping connectivity is forwarded as-is, without debouncing.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import httpx

from kiosksync.client.sync.events import EventBus, NetworkChanged
from kiosksync.core.config import DEFAULT_PROBE_INTERVAL, SyncConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NetworkState:
    """One connectivity observation."""

    is_connected: bool
    is_internet_reachable: bool

    @property
    def online(self) -> bool:
        """Online requires both a connection and internet access."""
        return self.is_connected and self.is_internet_reachable


class ReachabilityProbe(Protocol):
    """Anything that can observe the current network state."""

    async def fetch(self) -> NetworkState:
        """Observe the current network state."""
        ...

    async def close(self) -> None:
        """Release resources."""
        ...


class HttpProbe:
    """Reachability probe using a HEAD request.

    Any HTTP response means the device is connected; a 2xx/3xx response
    means the internet is reachable. Connection failures mean disconnected.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        verify_ssl: bool = True,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=verify_ssl,
            transport=transport,
        )

    @classmethod
    def from_config(cls, config: SyncConfig) -> HttpProbe:
        return cls(
            config.probe_url,
            timeout=min(config.timeout, 10.0),
            verify_ssl=config.verify_ssl,
        )

    async def fetch(self) -> NetworkState:
        try:
            response = await self._client.head(self._url)
        except (httpx.ConnectError, httpx.ConnectTimeout):
            return NetworkState(is_connected=False, is_internet_reachable=False)
        except httpx.RequestError as e:
            logger.debug(f"Reachability probe failed: {e}")
            return NetworkState(is_connected=True, is_internet_reachable=False)
        return NetworkState(
            is_connected=True,
            is_internet_reachable=response.status_code < 400,
        )

    async def close(self) -> None:
        await self._client.aclose()


class ReachabilityMonitor:
    """Tracks whether the device is online.

    Usage:
        monitor = ReachabilityMonitor(HttpProbe(url))
        unsubscribe = monitor.subscribe(lambda event: print(event.online))
        online = await monitor.probe()
        monitor.start()
        ...
        await monitor.stop()
    """

    def __init__(
        self,
        probe: ReachabilityProbe,
        interval: float = DEFAULT_PROBE_INTERVAL,
    ) -> None:
        self._probe = probe
        self._interval = interval
        self._online = False
        self._observed = False
        self._events: EventBus[NetworkChanged] = EventBus("reachability")
        self._task: asyncio.Task[None] | None = None

    @property
    def online(self) -> bool:
        """Last known online status."""
        return self._online

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def subscribe(self, callback: Callable[[NetworkChanged], None]) -> Callable[[], None]:
        """Subscribe to online/offline transitions."""
        return self._events.subscribe(callback)

    async def probe(self) -> bool:
        """Probe once and record the result as the current status.

        The first probe sets the starting value without emitting an event.
        """
        state = await self._probe.fetch()
        if not self._observed:
            self._observed = True
            self._online = state.online
            logger.info("Initial network status: %s", "online" if self._online else "offline")
            return self._online
        self.report(state)
        return self._online

    def report(self, state: NetworkState) -> None:
        """Record an observation and emit an event if the status changed."""
        online = state.online
        self._observed = True
        if online == self._online:
            return
        self._online = online
        logger.info("Network status changed: %s", "online" if online else "offline")
        self._events.notify(NetworkChanged(online=online))

    def start(self) -> None:
        """Start polling in the running event loop."""
        if self.running:
            logger.warning("ReachabilityMonitor already running")
            return
        self._task = asyncio.get_running_loop().create_task(
            self._poll(), name="ReachabilityMonitor"
        )

    async def stop(self) -> None:
        """Stop polling and close the probe."""
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        await self._probe.close()
        self._events.clear()

    async def _poll(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            try:
                await self.probe()
            except Exception:
                logger.exception("Reachability probe raised")
