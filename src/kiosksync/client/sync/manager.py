"""Offline sync queue manager.

This module provides:
- SyncQueueManager: Buffers operations that could not reach the server,
  drains them when connectivity returns, and reports results to listeners

State machine:
    IDLE ──sync_all() while online──► DRAINING ──pass completes──► IDLE

    sync_all() while DRAINING or offline is rejected immediately with a
    SyncRejection; it is never queued or retried.

Delivery model:
    At-least-once, no ordering guarantee across passes. Within one pass,
    items are attempted sequentially in the order of a snapshot taken when
    the pass starts; items enqueued mid-pass wait for the next pass. A failed
    item consumes one retry; once its retries reach max_retries it is
    evicted from the queue and recorded as abandoned.

Persistence:
    The queue is loaded once by initialize() and written back after every
    add, successful removal and eviction. Items loaded with their retries
    already spent (max_retries was lowered) are abandoned right away.
    Storage errors are logged and never raised to callers.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from kiosksync.client.sync.events import (
    EventBus,
    NetworkChanged,
    SyncCompleted,
    SyncEvent,
    SyncStarted,
)
from kiosksync.client.sync.operations import OperationRegistry
from kiosksync.client.sync.retry import RetryPolicy
from kiosksync.client.sync.types import (
    AbandonedItem,
    DeliveryError,
    ItemError,
    OfflineError,
    QueueItem,
    QueueStatus,
    SyncRejection,
    SyncResult,
    utc_now_iso,
)
from kiosksync.core.config import DEFAULT_ABANDONED_LIMIT
from kiosksync.core.types import ItemStatus, RejectReason, SyncState

if TYPE_CHECKING:
    from pydantic import BaseModel

    from kiosksync.client.api import DeliveryClient
    from kiosksync.client.state import QueueStore
    from kiosksync.client.sync.reachability import ReachabilityMonitor

logger = logging.getLogger(__name__)

STORAGE_ERRORS: tuple[type[Exception], ...] = (sqlite3.Error, OSError)


class SyncQueueManager:
    """Offline-first queue of pending deliveries.

    Usage:
        manager = SyncQueueManager(store, monitor, client)
        online = await manager.initialize()
        unsubscribe = manager.subscribe(print)

        item_id = await manager.enqueue("attendance", payload, "/sync")
        result = await manager.sync_all()

        await manager.shutdown()
    """

    def __init__(
        self,
        store: QueueStore,
        monitor: ReachabilityMonitor,
        client: DeliveryClient,
        registry: OperationRegistry | None = None,
        policy: RetryPolicy | None = None,
        abandoned_limit: int = DEFAULT_ABANDONED_LIMIT,
    ) -> None:
        """Initialize the manager. Call initialize() before using it.

        Args:
            store: Persistent slots for the queue and sync status.
            monitor: Reachability monitor driving auto-sync.
            client: HTTP client used to deliver items.
            registry: Payload models per operation kind. Defaults to an empty
                registry, which treats every payload as an opaque JSON object.
            policy: Retry budget and error classification.
            abandoned_limit: Maximum abandoned items kept for inspection.
        """
        self._store = store
        self._monitor = monitor
        self._client = client
        self._registry = registry or OperationRegistry()
        self._policy = policy or RetryPolicy()
        self._abandoned_limit = abandoned_limit

        self._queue: list[QueueItem] = []
        self._state = SyncState.IDLE
        self._online = False
        self._initialized = False

        self._events: EventBus[SyncEvent] = EventBus("sync")
        self._unsubscribe_monitor: Callable[[], None] | None = None
        self._background: set[asyncio.Task[Any]] = set()
        self._save_lock = asyncio.Lock()

    # === Lifecycle ===

    async def initialize(self) -> bool:
        """Load the persisted queue and start watching connectivity.

        Never raises: on failure the manager assumes it is online so that
        the kiosk keeps working.

        Returns:
            Whether the device is online.
        """
        if self._initialized:
            logger.warning("SyncQueueManager already initialized")
            return self._online
        self._initialized = True

        try:
            await self._load_queue()
            await self._abandon_exhausted()
            self._unsubscribe_monitor = self._monitor.subscribe(self._on_network_changed)
            self._online = await self._monitor.probe()
            self._monitor.start()
        except Exception:
            logger.exception("Sync manager initialization failed, assuming online")
            self._online = True

        logger.info(
            "Offline sync initialized: %s, %d queued item(s)",
            "online" if self._online else "offline",
            len(self._queue),
        )
        return self._online

    async def shutdown(self) -> None:
        """Stop monitoring, wait for running drains and release resources."""
        if self._unsubscribe_monitor:
            self._unsubscribe_monitor()
            self._unsubscribe_monitor = None
        await self._monitor.stop()
        await self.wait_for_background_syncs()
        await self._client.close()
        self._store.close()
        self._events.clear()
        logger.debug("Sync manager shut down")

    async def wait_for_background_syncs(self) -> None:
        """Wait for drains scheduled by enqueue() or reconnection."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # === Events ===

    def subscribe(self, callback: Callable[[SyncEvent], None]) -> Callable[[], None]:
        """Subscribe to NetworkChanged, SyncStarted and SyncCompleted events.

        Returns:
            A function that removes the subscriber.
        """
        return self._events.subscribe(callback)

    def _on_network_changed(self, event: NetworkChanged) -> None:
        was_online = self._online
        self._online = event.online
        self._events.notify(event)

        if not was_online and self._online:
            logger.info("Connection restored, syncing %d queued item(s)", len(self._queue))
            self._schedule_sync()

    def _schedule_sync(self) -> None:
        """Start a drain in the background (best effort)."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, skipping background sync")
            return
        task = loop.create_task(self._background_sync())
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _background_sync(self) -> None:
        try:
            result = await self.sync_all()
        except Exception:
            logger.exception("Background sync failed")
            return
        if isinstance(result, SyncRejection):
            logger.debug("Background sync skipped: %s", result.reason.value)

    # === Queue ===

    async def enqueue(
        self,
        operation: str,
        payload: dict[str, Any] | BaseModel,
        url: str,
        method: str = "POST",
    ) -> str:
        """Add an operation to the queue.

        If online, a drain is started right away; if one is already running
        the new item waits for the next drain.

        Args:
            operation: Operation kind (e.g. "attendance").
            payload: Request body, validated against the registered model.
            url: Delivery URL.
            method: HTTP method.

        Returns:
            The new item's id.

        Raises:
            InvalidPayloadError: If the payload does not match its model.
            UnknownOperationError: If the kind is unknown to a strict registry.
        """
        data = self._registry.validate(operation, payload)
        item = QueueItem.create(operation, data, url, method)
        self._queue.append(item)
        await self._save_queue()
        logger.info("Queued %s %s (queue size: %d)", operation, item.id, len(self._queue))

        if self._online:
            self._schedule_sync()
        return item.id

    def get_queue_status(self) -> QueueStatus:
        """Snapshot of queue counters."""
        return QueueStatus(
            total=len(self._queue),
            pending=sum(1 for i in self._queue if i.status == ItemStatus.PENDING),
            failed=sum(1 for i in self._queue if i.status == ItemStatus.FAILED),
            syncing=self._state == SyncState.DRAINING,
        )

    def get_queue_items(self) -> list[QueueItem]:
        """Copies of the queued items, in queue order."""
        return [QueueItem.from_dict(item.to_dict()) for item in self._queue]

    async def remove_queue_item(self, item_id: str) -> bool:
        """Remove one item without delivering it.

        Returns:
            True if the item was in the queue.
        """
        before = len(self._queue)
        self._queue = [i for i in self._queue if i.id != item_id]
        if len(self._queue) == before:
            return False
        await self._save_queue()
        logger.info("Removed queue item %s", item_id)
        return True

    async def clear_queue(self) -> int:
        """Drop every queued item without delivering it.

        Returns:
            Number of items removed.
        """
        count = len(self._queue)
        self._queue = []
        await self._save_queue()
        logger.info("Cleared %d item(s) from sync queue", count)
        return count

    # === Status ===

    @property
    def state(self) -> SyncState:
        return self._state

    def check_online_status(self) -> bool:
        """Last known online status, without probing."""
        return self._online

    async def get_last_sync_status(self) -> dict[str, Any] | None:
        """The persisted {timestamp, results} of the last drain, or None."""
        try:
            return await asyncio.to_thread(self._store.load_last_sync)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to load last sync status: {e}")
            return None

    async def get_abandoned_items(self) -> list[AbandonedItem]:
        """Items evicted after exhausting retries, oldest first."""
        try:
            raw = await asyncio.to_thread(self._store.load_abandoned)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to load abandoned items: {e}")
            return []
        items = []
        for entry in raw:
            try:
                items.append(AbandonedItem.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed abandoned entry: {e}")
        return items

    async def clear_abandoned(self) -> int:
        """Forget abandoned items.

        Returns:
            Number of records removed.
        """
        items = await self.get_abandoned_items()
        async with self._save_lock:
            await self._persist("abandoned items", self._store.save_abandoned, [])
        return len(items)

    # === Synchronization ===

    async def sync_all(self) -> SyncResult | SyncRejection:
        """Run one drain pass over the queue.

        Returns:
            The pass results, or a SyncRejection if a pass is already running
            or the device is offline.
        """
        if self._state == SyncState.DRAINING:
            return SyncRejection(RejectReason.SYNC_IN_PROGRESS)
        if not self._online:
            return SyncRejection(RejectReason.OFFLINE)

        self._state = SyncState.DRAINING
        results = SyncResult()
        try:
            self._events.notify(SyncStarted())
            abandoned = await self._drain(list(self._queue), results)

            await self._save_queue()
            await self._save_last_sync(results)
            if abandoned:
                await self._save_abandoned(abandoned)
        finally:
            self._state = SyncState.IDLE

        logger.info(
            "Sync pass finished: %d/%d succeeded, %d failed (%d left in queue)",
            results.succeeded,
            results.total,
            results.failed,
            len(self._queue),
        )
        self._events.notify(SyncCompleted(results=results))
        return results

    async def force_sync(self) -> SyncResult | SyncRejection:
        """Run a drain pass on explicit user request.

        Raises:
            OfflineError: If the device is offline.
        """
        if not self._online:
            raise OfflineError()
        return await self.sync_all()

    async def _drain(self, snapshot: list[QueueItem], results: SyncResult) -> list[AbandonedItem]:
        """Attempt every eligible snapshot item once, in order."""
        abandoned: list[AbandonedItem] = []

        for item in snapshot:
            if not item.is_eligible(self._policy.max_retries):
                continue
            # Removed by an admin call while an earlier item was in flight
            if not any(i.id == item.id for i in self._queue):
                continue

            results.total += 1
            try:
                await self._client.deliver(item)
            except DeliveryError as e:
                permanent = self._policy.is_permanent(e.status_code)
                record = self._record_failure(item, str(e), permanent, results)
            except Exception as e:
                logger.exception("Unexpected error delivering %s", item.id)
                record = self._record_failure(item, str(e) or type(e).__name__, False, results)
            else:
                self._queue = [i for i in self._queue if i.id != item.id]
                results.succeeded += 1
                logger.debug("Delivered %s %s", item.operation, item.id)
                continue

            if record:
                abandoned.append(record)

        return abandoned

    def _record_failure(
        self,
        item: QueueItem,
        error: str,
        permanent: bool,
        results: SyncResult,
    ) -> AbandonedItem | None:
        """Update a failed item; evict it if it will never be retried."""
        item.mark_failed(error)
        results.failed += 1
        results.errors.append(ItemError(id=item.id, operation=item.operation, error=error))

        if permanent:
            reason = f"permanent failure: {error}"
        elif self._policy.is_exhausted(item.retry_count):
            reason = f"max retries ({self._policy.max_retries}) exceeded: {error}"
        else:
            logger.warning(
                "Delivery of %s %s failed (attempt %d/%d): %s",
                item.operation,
                item.id,
                item.retry_count,
                self._policy.max_retries,
                error,
            )
            return None

        self._queue = [i for i in self._queue if i.id != item.id]
        logger.warning("Abandoning %s %s: %s", item.operation, item.id, reason)
        return AbandonedItem(item=item, abandoned_at=utc_now_iso(), reason=reason)

    # === Persistence ===

    async def _persist(self, what: str, func: Callable[..., None], *args: Any) -> None:
        try:
            await asyncio.to_thread(func, *args)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to save {what}: {e}")

    async def _load_queue(self) -> None:
        try:
            raw = await asyncio.to_thread(self._store.load_queue)
        except STORAGE_ERRORS as e:
            logger.error(f"Failed to load sync queue: {e}")
            raw = []

        items = []
        for entry in raw:
            try:
                items.append(QueueItem.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping malformed queue entry: {e}")
        self._queue = items

    async def _abandon_exhausted(self) -> None:
        """Evict loaded items whose retries are already spent.

        Happens when max_retries was lowered since the items last failed.
        """
        exhausted = [i for i in self._queue if self._policy.is_exhausted(i.retry_count)]
        if not exhausted:
            return

        reason = f"max retries ({self._policy.max_retries}) exceeded"
        records = []
        for item in exhausted:
            logger.warning("Abandoning %s %s on load: %s", item.operation, item.id, reason)
            detail = f"{reason}: {item.last_error}" if item.last_error else reason
            records.append(AbandonedItem(item=item, abandoned_at=utc_now_iso(), reason=detail))

        evicted = {i.id for i in exhausted}
        self._queue = [i for i in self._queue if i.id not in evicted]
        await self._save_queue()
        await self._save_abandoned(records)

    async def _save_queue(self) -> None:
        async with self._save_lock:
            data = [item.to_dict() for item in self._queue]
            await self._persist("sync queue", self._store.save_queue, data)

    async def _save_last_sync(self, results: SyncResult) -> None:
        status = {"timestamp": utc_now_iso(), "results": results.to_dict()}
        async with self._save_lock:
            await self._persist("last sync status", self._store.save_last_sync, status)

    async def _save_abandoned(self, new_items: list[AbandonedItem]) -> None:
        async with self._save_lock:
            try:
                existing = await asyncio.to_thread(self._store.load_abandoned)
            except STORAGE_ERRORS as e:
                logger.error(f"Failed to load abandoned items: {e}")
                existing = []
            combined = existing + [a.to_dict() for a in new_items]
            if len(combined) > self._abandoned_limit:
                combined = combined[-self._abandoned_limit:]
            await self._persist("abandoned items", self._store.save_abandoned, combined)
