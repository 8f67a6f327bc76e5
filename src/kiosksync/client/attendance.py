"""Attendance recording for the kiosk.

This module provides:
- AttendanceRecorder: Delivers an attendance record directly when online,
  and queues it for later delivery when offline or when delivery fails
- AttendanceOutcome: What happened to a recorded event
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from kiosksync.client.sync.operations import ATTENDANCE, AttendancePayload, Location
from kiosksync.client.sync.types import DeliveryError

if TYPE_CHECKING:
    from kiosksync.client.api import DeliveryClient
    from kiosksync.client.sync.manager import SyncQueueManager
    from kiosksync.core.config import SyncConfig

logger = logging.getLogger(__name__)


@dataclass
class AttendanceOutcome:
    """Result of recording one attendance event.

    Attributes:
        delivered: The server accepted the record immediately.
        queued: The record is waiting in the offline queue.
        item_id: Queue item id when queued.
        response: Server response when delivered.
        error: Delivery error that caused the record to be queued.
    """

    delivered: bool
    queued: bool
    item_id: str | None = None
    response: Any = None
    error: str | None = None


class AttendanceRecorder:
    """Records attendance events through the offline sync queue.

    Usage:
        recorder = AttendanceRecorder(manager, client, config)
        outcome = await recorder.record("U1", "fingerprint", user_name="Ada")
    """

    def __init__(
        self,
        manager: SyncQueueManager,
        client: DeliveryClient,
        config: SyncConfig,
    ) -> None:
        self._manager = manager
        self._client = client
        self._config = config

    def build_payload(
        self,
        uid: str,
        method: str,
        user_name: str | None = None,
        user_role: str | None = None,
        location: tuple[float, float] | None = None,
        **extra: Any,
    ) -> AttendancePayload:
        """Build the attendance record sent to the server."""
        latitude, longitude = location or (0.0, 0.0)
        return AttendancePayload(
            uid=uid,
            device_id=self._config.device_id,
            type=method,
            user_name=user_name,
            user_role=user_role,
            location=Location(latitude=latitude, longitude=longitude),
            device_model=self._config.device_model or None,
            **extra,
        )

    async def record(
        self,
        uid: str,
        method: str,
        user_name: str | None = None,
        user_role: str | None = None,
        location: tuple[float, float] | None = None,
        **extra: Any,
    ) -> AttendanceOutcome:
        """Record an attendance event.

        Args:
            uid: User identifier.
            method: Capture method (fingerprint, nfc, barcode, face).
            user_name: Display name.
            user_role: Role shown on the kiosk.
            location: (latitude, longitude) of the device.
            **extra: Additional fields sent with the record.

        Raises:
            pydantic.ValidationError: If the fields do not form a valid record.
        """
        payload = self.build_payload(uid, method, user_name, user_role, location, **extra)
        url = self._config.attendance_url

        if not self._manager.check_online_status():
            item_id = await self._manager.enqueue(ATTENDANCE, payload, url)
            logger.info("Offline: queued attendance for %s (%s)", uid, item_id)
            return AttendanceOutcome(delivered=False, queued=True, item_id=item_id)

        body = payload.model_dump(mode="json", exclude_none=True)
        try:
            response = await self._client.send("POST", url, body)
        except DeliveryError as e:
            logger.warning(f"Direct attendance delivery for {uid} failed, queueing: {e}")
            item_id = await self._manager.enqueue(ATTENDANCE, payload, url)
            return AttendanceOutcome(
                delivered=False,
                queued=True,
                item_id=item_id,
                error=str(e),
            )

        logger.info("Recorded attendance for %s via %s", uid, method)
        return AttendanceOutcome(delivered=True, queued=False, response=response)
