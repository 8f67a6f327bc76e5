"""Shared types and dataclasses for the offline sync queue.

This module provides:
- SyncError, OfflineError, DeliveryError: Exception classes
- InvalidPayloadError, UnknownOperationError: Enqueue validation errors
- QueueItem: One buffered operation awaiting delivery
- SyncResult, ItemError: Summary of one drain pass
- SyncRejection: Returned when sync_all() does no work
- QueueStatus: Point-in-time queue counters
- AbandonedItem: Dead-letter record for evicted items
"""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from kiosksync.core.types import ItemStatus, RejectReason


class SyncError(Exception):
    """Base exception for sync errors."""


class OfflineError(SyncError):
    """Operation requires connectivity but the device is offline."""

    def __init__(self, message: str = "Cannot sync while offline") -> None:
        super().__init__(message)


class DeliveryError(SyncError):
    """Delivering a queued item to its endpoint failed.

    Attributes:
        status_code: HTTP status if a response was received, None on
            transport errors.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class InvalidPayloadError(SyncError):
    """Payload does not match the model registered for its operation kind."""


class UnknownOperationError(SyncError):
    """Operation kind is not registered and the registry is strict."""


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string."""
    return datetime.now(timezone.utc).isoformat()


def generate_item_id() -> str:
    """Generate a queue item id: millisecond timestamp plus random suffix."""
    return f"{int(time.time() * 1000)}-{secrets.token_hex(4)}"


@dataclass
class QueueItem:
    """One buffered operation awaiting delivery.

    Attributes:
        id: Unique id assigned at enqueue time.
        timestamp: Creation time (ISO-8601).
        operation: Operation kind (e.g. "attendance").
        payload: JSON object sent as the request body.
        url: Delivery URL (absolute, or relative to the configured server).
        method: HTTP method.
        retry_count: Number of failed delivery attempts so far.
        status: PENDING until the first failure, then FAILED.
        last_error: Message of the last failure (only when FAILED).
    """

    id: str
    timestamp: str
    operation: str
    payload: dict[str, Any]
    url: str
    method: str = "POST"
    retry_count: int = 0
    status: ItemStatus = ItemStatus.PENDING
    last_error: str | None = None

    @classmethod
    def create(
        cls,
        operation: str,
        payload: dict[str, Any],
        url: str,
        method: str = "POST",
    ) -> QueueItem:
        """Create a new pending item with a fresh id and timestamp."""
        return cls(
            id=generate_item_id(),
            timestamp=utc_now_iso(),
            operation=operation,
            payload=payload,
            url=url,
            method=method.upper(),
        )

    def is_eligible(self, max_retries: int) -> bool:
        """Check if a drain pass should attempt this item."""
        if self.status == ItemStatus.PENDING:
            return True
        return self.status == ItemStatus.FAILED and self.retry_count < max_retries

    def mark_failed(self, error: str) -> None:
        """Record one failed delivery attempt."""
        self.retry_count += 1
        self.status = ItemStatus.FAILED
        self.last_error = error

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON shape."""
        data: dict[str, Any] = {
            "id": self.id,
            "timestamp": self.timestamp,
            "operation": self.operation,
            "payload": self.payload,
            "url": self.url,
            "method": self.method,
            "retry_count": self.retry_count,
            "status": self.status.value,
        }
        if self.last_error is not None:
            data["last_error"] = self.last_error
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> QueueItem:
        """Create from the persisted JSON shape.

        Raises:
            KeyError: If a required key is missing.
            ValueError: If status is not a known value.
        """
        return cls(
            id=str(data["id"]),
            timestamp=data["timestamp"],
            operation=data["operation"],
            payload=data.get("payload") or {},
            url=data["url"],
            method=data.get("method", "POST"),
            retry_count=int(data.get("retry_count", 0)),
            status=ItemStatus(data.get("status", ItemStatus.PENDING.value)),
            last_error=data.get("last_error"),
        )


@dataclass
class ItemError:
    """A failed delivery within one drain pass."""

    id: str
    operation: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "operation": self.operation, "error": self.error}


@dataclass
class SyncResult:
    """Result of one drain pass."""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: list[ItemError] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """A pass that ran is always a success, even if items failed."""
        return True

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted/event JSON shape."""
        return {
            "total": self.total,
            "succeeded": self.succeeded,
            "failed": self.failed,
            "errors": [e.to_dict() for e in self.errors],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncResult:
        return cls(
            total=data.get("total", 0),
            succeeded=data.get("succeeded", 0),
            failed=data.get("failed", 0),
            errors=[ItemError(**e) for e in data.get("errors", [])],
        )


@dataclass(frozen=True)
class SyncRejection:
    """Returned by sync_all() when it refuses to run."""

    reason: RejectReason

    @property
    def success(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        return {"success": False, "reason": self.reason.value}


@dataclass(frozen=True)
class QueueStatus:
    """Point-in-time snapshot of the queue."""

    total: int
    pending: int
    failed: int
    syncing: bool

    def to_dict(self) -> dict[str, int | bool]:
        return {
            "total": self.total,
            "pending": self.pending,
            "failed": self.failed,
            "syncing": self.syncing,
        }


@dataclass
class AbandonedItem:
    """A queue item that will never be delivered.

    Attributes:
        item: The item as it was when evicted.
        abandoned_at: Eviction time (ISO-8601).
        reason: Why the item was abandoned.
    """

    item: QueueItem
    abandoned_at: str
    reason: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "item": self.item.to_dict(),
            "abandoned_at": self.abandoned_at,
            "reason": self.reason,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AbandonedItem:
        return cls(
            item=QueueItem.from_dict(data["item"]),
            abandoned_at=data["abandoned_at"],
            reason=data.get("reason", ""),
        )
