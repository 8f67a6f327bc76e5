"""Typed payloads for queued operations.

This module provides:
- AttendancePayload, EnrollmentPayload: Pydantic models for built-in kinds
- OperationRegistry: Maps operation kinds to payload models

Payloads are validated at enqueue time so shape mismatches surface when the
kiosk records an event, not after the record has sat in the queue for hours.
The queue itself still stores plain JSON objects.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from kiosksync.client.sync.types import (
    InvalidPayloadError,
    UnknownOperationError,
    utc_now_iso,
)

logger = logging.getLogger(__name__)

ATTENDANCE = "attendance"
ENROLLMENT = "enrollment"

CaptureMethod = Literal["fingerprint", "nfc", "barcode", "face"]


class Location(BaseModel):
    """Device location when the event was captured."""

    latitude: float = 0.0
    longitude: float = 0.0


class AttendancePayload(BaseModel):
    """Body of an attendance record."""

    model_config = ConfigDict(extra="allow")

    uid: str
    device_id: str
    timestamp: str = Field(default_factory=utc_now_iso)
    type: CaptureMethod
    user_name: str | None = None
    user_role: str | None = None
    location: Location = Field(default_factory=Location)
    device_model: str | None = None


class EnrollmentPayload(BaseModel):
    """Body of a user enrollment."""

    model_config = ConfigDict(extra="allow")

    uid: str
    user_name: str
    user_role: str | None = None
    method: CaptureMethod


class OperationRegistry:
    """Registry of operation kinds and their payload models.

    Attributes:
        strict: If True, enqueueing an unregistered kind is an error.
            Otherwise unregistered kinds pass through as opaque JSON objects.
    """

    def __init__(self, strict: bool = False) -> None:
        self.strict = strict
        self._models: dict[str, type[BaseModel]] = {}

    @classmethod
    def default(cls, strict: bool = False) -> OperationRegistry:
        """Registry with the built-in kiosk operation kinds."""
        registry = cls(strict=strict)
        registry.register(ATTENDANCE, AttendancePayload)
        registry.register(ENROLLMENT, EnrollmentPayload)
        return registry

    def register(self, kind: str, model: type[BaseModel]) -> None:
        """Register (or replace) the payload model for an operation kind."""
        if kind in self._models:
            logger.debug("Replacing payload model for %s", kind)
        self._models[kind] = model

    def is_registered(self, kind: str) -> bool:
        return kind in self._models

    @property
    def kinds(self) -> list[str]:
        return sorted(self._models)

    def validate(self, kind: str, payload: dict[str, Any] | BaseModel) -> dict[str, Any]:
        """Validate a payload and return its JSON form.

        Args:
            kind: Operation kind.
            payload: A dict or an instance of the registered model.

        Returns:
            JSON-compatible dictionary to store in the queue.

        Raises:
            InvalidPayloadError: If the payload does not match the model or
                cannot be stored as JSON.
            UnknownOperationError: If the kind is unregistered and strict.
        """
        model = self._models.get(kind)
        if model is None:
            if self.strict:
                raise UnknownOperationError(f"Unsupported operation: {kind}")
            if not isinstance(payload, (dict, BaseModel)):
                raise InvalidPayloadError(
                    f"Payload for {kind} must be a JSON object, got {type(payload).__name__}"
                )
            try:
                if isinstance(payload, BaseModel):
                    return payload.model_dump(mode="json")
                return dict(json.loads(json.dumps(payload, allow_nan=False)))
            except (TypeError, ValueError) as e:
                raise InvalidPayloadError(f"Payload for {kind} is not JSON serializable: {e}") from e

        try:
            if isinstance(payload, model):
                instance = payload
            elif isinstance(payload, BaseModel):
                instance = model.model_validate(payload.model_dump())
            else:
                instance = model.model_validate(payload)
        except ValidationError as e:
            raise InvalidPayloadError(f"Invalid {kind} payload: {e}") from e

        try:
            return instance.model_dump(mode="json", exclude_none=True)
        except ValueError as e:
            # Extra fields holding values pydantic cannot serialize
            raise InvalidPayloadError(f"Payload for {kind} is not JSON serializable: {e}") from e
