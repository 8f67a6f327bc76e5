"""Shared types for kiosksync.

This module defines enums used across the queue manager, the store and the CLI.
"""

from __future__ import annotations

from enum import Enum


class SyncState(str, Enum):
    """State of the sync queue manager.

    Only one drain pass may run at a time: the manager is DRAINING while a
    pass is in progress and IDLE otherwise.
    """

    IDLE = "idle"
    DRAINING = "draining"


class ItemStatus(str, Enum):
    """Status of a queued operation.

    Delivered items are removed from the queue, so there is no "succeeded".
    """

    PENDING = "pending"
    FAILED = "failed"


class RejectReason(str, Enum):
    """Why a sync_all() call did no work."""

    SYNC_IN_PROGRESS = "sync_in_progress"
    OFFLINE = "offline"
