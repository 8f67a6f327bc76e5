"""Event bus for sync notifications.

This module provides:
- EventBus: Ordered multicast of events to subscriber callbacks
- NetworkChanged, SyncStarted, SyncCompleted: Events sent by the manager

Each subscriber call is isolated: if one subscriber raises, the error is
logged and the remaining subscribers are still notified.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from kiosksync.client.sync.types import SyncResult

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class NetworkChanged:
    """Reachability changed."""

    online: bool

    def to_message(self) -> dict[str, Any]:
        return {"online": self.online}


@dataclass(frozen=True)
class SyncStarted:
    """A drain pass began."""

    def to_message(self) -> dict[str, Any]:
        return {"syncStarted": True}


@dataclass(frozen=True)
class SyncCompleted:
    """A drain pass finished."""

    results: SyncResult

    def to_message(self) -> dict[str, Any]:
        return {"syncCompleted": True, "results": self.results.to_dict()}


SyncEvent = Union[NetworkChanged, SyncStarted, SyncCompleted]


class EventBus(Generic[T]):
    """Ordered list of subscriber callbacks.

    Usage:
        bus: EventBus[SyncEvent] = EventBus()
        unsubscribe = bus.subscribe(lambda event: print(event))
        bus.notify(SyncStarted())
        unsubscribe()
    """

    def __init__(self, name: str = "events") -> None:
        self._name = name
        self._subscribers: list[Callable[[T], None]] = []
        self._lock = threading.Lock()

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Add a subscriber.

        Args:
            callback: Called with every event, in registration order.

        Returns:
            A function that removes this subscriber. Calling it twice is harmless.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def notify(self, event: T) -> None:
        """Send an event to every current subscriber synchronously."""
        with self._lock:
            subscribers = list(self._subscribers)

        for callback in subscribers:
            try:
                callback(event)
            except Exception:
                logger.exception("%s subscriber %r failed on %r", self._name, callback, event)

    def clear(self) -> None:
        """Remove all subscribers."""
        with self._lock:
            self._subscribers.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscribers)
