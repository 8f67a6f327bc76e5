"""Offline synchronization queue.

Architecture:
    ReachabilityMonitor ─transitions─► SyncQueueManager ─► DeliveryClient
                                              │
                                  QueueStore (persisted slots)

Components:
- **ReachabilityMonitor**: Tracks the online boolean, emits transitions
- **SyncQueueManager**: Owns the queue, drives drain passes, notifies listeners
- **EventBus**: Isolated multicast of NetworkChanged/SyncStarted/SyncCompleted
- **OperationRegistry**: Typed payload models per operation kind
- **RetryPolicy**: Retry budget and permanent-failure classification
- **resolve_conflict**: Server/local record reconciliation strategies

All public symbols are re-exported here.
"""

from kiosksync.client.sync.conflict import ConflictStrategy, resolve_conflict
from kiosksync.client.sync.events import (
    EventBus,
    NetworkChanged,
    SyncCompleted,
    SyncEvent,
    SyncStarted,
)
from kiosksync.client.sync.manager import SyncQueueManager
from kiosksync.client.sync.operations import (
    ATTENDANCE,
    ENROLLMENT,
    AttendancePayload,
    EnrollmentPayload,
    Location,
    OperationRegistry,
)
from kiosksync.client.sync.reachability import (
    HttpProbe,
    NetworkState,
    ReachabilityMonitor,
    ReachabilityProbe,
)
from kiosksync.client.sync.retry import RetryPolicy
from kiosksync.client.sync.types import (
    AbandonedItem,
    DeliveryError,
    InvalidPayloadError,
    ItemError,
    OfflineError,
    QueueItem,
    QueueStatus,
    SyncError,
    SyncRejection,
    SyncResult,
    UnknownOperationError,
)

__all__ = [
    # Conflict
    "ConflictStrategy",
    "resolve_conflict",
    # Events
    "EventBus",
    "NetworkChanged",
    "SyncCompleted",
    "SyncEvent",
    "SyncStarted",
    # Manager
    "SyncQueueManager",
    # Operations
    "ATTENDANCE",
    "ENROLLMENT",
    "AttendancePayload",
    "EnrollmentPayload",
    "Location",
    "OperationRegistry",
    # Reachability
    "HttpProbe",
    "NetworkState",
    "ReachabilityMonitor",
    "ReachabilityProbe",
    # Retry
    "RetryPolicy",
    # Types
    "AbandonedItem",
    "DeliveryError",
    "InvalidPayloadError",
    "ItemError",
    "OfflineError",
    "QueueItem",
    "QueueStatus",
    "SyncError",
    "SyncRejection",
    "SyncResult",
    "UnknownOperationError",
]
