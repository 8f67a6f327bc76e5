"""Conflict resolution between server and local versions of a record.

This module provides:
- ConflictStrategy: Named resolution strategies
- resolve_conflict: Pick (or merge) a record under a strategy

The automatic sync path never calls these: the server accepts whatever is
delivered. They are available to callers that fetch server state and need
to reconcile it with a locally edited record.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class ConflictStrategy(str, Enum):
    """How to choose between a server and a local record."""

    SERVER_WINS = "server_wins"
    LOCAL_WINS = "local_wins"
    MERGE = "merge"
    NEWER_WINS = "newer_wins"


def _parse_timestamp(value: Any) -> datetime:
    """Parse a record timestamp; missing or unparsable values count as epoch.

    Accepts ISO-8601 strings, datetimes and epoch milliseconds. Booleans are
    not timestamps, and numbers outside the platform's datetime range count
    as epoch too.
    """
    if value is None or value == "" or isinstance(value, bool):
        return EPOCH
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Out of range timestamp {value!r}, treating as epoch")
            return EPOCH
    else:
        try:
            parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        except ValueError:
            logger.debug(f"Unparsable timestamp {value!r}, treating as epoch")
            return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def resolve_conflict(
    server_data: dict[str, Any],
    local_data: dict[str, Any],
    strategy: ConflictStrategy | str = ConflictStrategy.SERVER_WINS,
) -> dict[str, Any]:
    """Choose between two versions of the same record.

    Args:
        server_data: Record as known by the server.
        local_data: Record as edited locally.
        strategy: Strategy name; unknown names fall back to server_wins.

    Returns:
        The chosen record, or a new merged record for "merge".
    """
    try:
        strategy = ConflictStrategy(strategy)
    except ValueError:
        logger.warning(f"Unknown conflict strategy {strategy!r}, using server_wins")
        strategy = ConflictStrategy.SERVER_WINS

    if strategy == ConflictStrategy.LOCAL_WINS:
        return local_data

    if strategy == ConflictStrategy.MERGE:
        return {
            **server_data,
            **local_data,
            "_merged": True,
            "_merged_at": datetime.now(timezone.utc).isoformat(),
        }

    if strategy == ConflictStrategy.NEWER_WINS:
        server_time = _parse_timestamp(server_data.get("timestamp"))
        local_time = _parse_timestamp(local_data.get("timestamp"))
        # Ties go to the server
        return local_data if local_time > server_time else server_data

    return server_data
