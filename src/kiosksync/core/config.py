"""Shared configuration classes for kiosksync.

This module defines the configuration used by the queue manager, the
reachability monitor and the delivery client.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Any

DEFAULT_MAX_RETRIES = 3
DEFAULT_PROBE_URL = "https://www.google.com"
DEFAULT_PROBE_INTERVAL = 5.0  # seconds
DEFAULT_ABANDONED_LIMIT = 200
DEFAULT_ATTENDANCE_URL = "/attendance/api/sync"


@dataclass
class SyncConfig:
    """Configuration for the offline sync queue.

    Attributes:
        server_url: Base URL used to resolve relative item URLs (e.g. "/sync").
            Empty means item URLs must be absolute.
        probe_url: URL hit with HEAD to decide internet reachability.
        probe_interval: Seconds between reachability probes.
        timeout: Request timeout in seconds for deliveries and probes.
        verify_ssl: Whether to verify SSL certificates (default True).
        max_retries: Failed deliveries allowed before an item is abandoned.
        retry_client_errors: Whether 4xx responses consume retries like any
            other failure (True) or abandon the item at once (False).
        abandoned_limit: Maximum number of abandoned items kept for inspection.
        device_id: Identifier of this kiosk, sent with attendance records.
        device_model: Hardware model of this kiosk.
        attendance_url: Endpoint receiving attendance records.
    """

    server_url: str = ""
    probe_url: str = DEFAULT_PROBE_URL
    probe_interval: float = DEFAULT_PROBE_INTERVAL
    timeout: float = 30.0
    verify_ssl: bool = True
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_client_errors: bool = True
    abandoned_limit: int = DEFAULT_ABANDONED_LIMIT
    device_id: str = "kiosk"
    device_model: str = ""
    attendance_url: str = DEFAULT_ATTENDANCE_URL

    def __post_init__(self) -> None:
        """Normalize URLs and validate limits."""
        self.server_url = self.server_url.rstrip("/")
        if self.max_retries < 1:
            raise ValueError(f"max_retries must be >= 1, got {self.max_retries}")
        if self.probe_interval <= 0:
            raise ValueError(f"probe_interval must be > 0, got {self.probe_interval}")

    @property
    def is_secure(self) -> bool:
        """Check if the server uses HTTPS."""
        return self.server_url.startswith("https://")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """Create from a config file dictionary, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return asdict(self)
