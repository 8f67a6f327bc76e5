"""Core module - Shared configuration and types."""

from kiosksync.core.config import (
    DEFAULT_ABANDONED_LIMIT,
    DEFAULT_ATTENDANCE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROBE_INTERVAL,
    DEFAULT_PROBE_URL,
    SyncConfig,
)
from kiosksync.core.types import ItemStatus, RejectReason, SyncState

__all__ = [
    # Config
    "DEFAULT_ABANDONED_LIMIT",
    "DEFAULT_ATTENDANCE_URL",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_PROBE_INTERVAL",
    "DEFAULT_PROBE_URL",
    "SyncConfig",
    # Types
    "ItemStatus",
    "RejectReason",
    "SyncState",
]
