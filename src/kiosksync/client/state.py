"""Persistent state for the offline sync queue.

This module provides:
- QueueStore: SQLite key-value slots for the queue, the last sync status
  and abandoned items

Architecture:
    Each slot holds one JSON document and is overwritten as a whole on
    every write. The store does not validate item shape: it returns whatever
    the manager serialized. Missing or corrupt slots read as empty.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

QUEUE_KEY = "offline_sync_queue"
SYNC_STATUS_KEY = "last_sync_status"
ABANDONED_KEY = "abandoned_operations"


class QueueStore:
    """SQLite-based key-value store for sync queue state."""

    def __init__(self, db_path: Path | str) -> None:
        """Open (or create) the state database.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        self._db_path = db_path
        if str(db_path) != ":memory:":
            self._db_path = Path(db_path)
            self._db_path.parent.mkdir(parents=True, exist_ok=True)

        # Slots are read and written from worker threads
        self._lock = threading.RLock()

        self._conn = sqlite3.connect(
            str(self._db_path),
            check_same_thread=False,
            isolation_level=None,  # Autocommit mode
        )
        self._conn.row_factory = sqlite3.Row
        if str(db_path) != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL")

        self._conn.execute("""
            CREATE TABLE IF NOT EXISTS sync_state (
                key TEXT PRIMARY KEY,
                value TEXT
            )
        """)

    @property
    def path(self) -> Path | str:
        return self._db_path

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            self._conn.close()

    # === Raw slots ===

    def get_state(self, key: str) -> str | None:
        """Get the raw value of a slot."""
        with self._lock:
            cursor = self._conn.execute(
                "SELECT value FROM sync_state WHERE key = ?",
                (key,),
            )
            row = cursor.fetchone()
        return row["value"] if row else None

    def set_state(self, key: str, value: str) -> None:
        """Overwrite the raw value of a slot."""
        with self._lock:
            self._conn.execute(
                "INSERT OR REPLACE INTO sync_state (key, value) VALUES (?, ?)",
                (key, value),
            )

    def delete_state(self, key: str) -> None:
        """Remove a slot."""
        with self._lock:
            self._conn.execute("DELETE FROM sync_state WHERE key = ?", (key,))

    def _load_json(self, key: str) -> Any:
        raw = self.get_state(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring corrupt {key} slot in {self._db_path}")
            return None

    def _load_list(self, key: str) -> list[dict[str, Any]]:
        data = self._load_json(key)
        if not isinstance(data, list):
            if data is not None:
                logger.warning(f"Ignoring {key} slot: expected a list, got {type(data).__name__}")
            return []
        return data

    # === Queue ===

    def load_queue(self) -> list[dict[str, Any]]:
        """Read the serialized queue; empty if absent or unparsable."""
        return self._load_list(QUEUE_KEY)

    def save_queue(self, items: list[dict[str, Any]]) -> None:
        """Overwrite the serialized queue."""
        self.set_state(QUEUE_KEY, json.dumps(items))

    # === Last sync status ===

    def load_last_sync(self) -> dict[str, Any] | None:
        """Read the last sync status ({timestamp, results}) or None."""
        data = self._load_json(SYNC_STATUS_KEY)
        return data if isinstance(data, dict) else None

    def save_last_sync(self, status: dict[str, Any]) -> None:
        """Overwrite the last sync status."""
        self.set_state(SYNC_STATUS_KEY, json.dumps(status))

    # === Abandoned items ===

    def load_abandoned(self) -> list[dict[str, Any]]:
        """Read abandoned items, oldest first."""
        return self._load_list(ABANDONED_KEY)

    def save_abandoned(self, items: list[dict[str, Any]]) -> None:
        """Overwrite abandoned items."""
        self.set_state(ABANDONED_KEY, json.dumps(items))
