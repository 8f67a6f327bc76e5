"""Tests for conflict resolution strategies."""

from __future__ import annotations

from datetime import datetime

import pytest

from kiosksync.client.sync.conflict import ConflictStrategy, resolve_conflict

SERVER = {"id": 1, "name": "server", "role": "staff", "timestamp": "2024-05-01T08:00:00Z"}
LOCAL = {"id": 1, "name": "local", "timestamp": "2024-05-01T09:00:00Z"}


class TestResolveConflict:
    """Tests for resolve_conflict."""

    def test_server_wins(self) -> None:
        assert resolve_conflict(SERVER, LOCAL, ConflictStrategy.SERVER_WINS) is SERVER

    def test_local_wins(self) -> None:
        assert resolve_conflict(SERVER, LOCAL, "local_wins") is LOCAL

    def test_default_is_server_wins(self) -> None:
        assert resolve_conflict(SERVER, LOCAL) is SERVER

    def test_unknown_strategy_falls_back(self) -> None:
        """Should use server_wins for unrecognized names."""
        assert resolve_conflict(SERVER, LOCAL, "coin_flip") is SERVER

    def test_merge(self) -> None:
        """Should overlay local fields on server fields and tag the result."""
        merged = resolve_conflict(SERVER, LOCAL, ConflictStrategy.MERGE)

        assert merged["name"] == "local"
        assert merged["role"] == "staff"
        assert merged["timestamp"] == LOCAL["timestamp"]
        assert merged["_merged"] is True
        assert datetime.fromisoformat(merged["_merged_at"]).tzinfo is not None
        assert "_merged" not in SERVER
        assert "_merged" not in LOCAL

    def test_newer_wins_local(self) -> None:
        assert resolve_conflict(SERVER, LOCAL, ConflictStrategy.NEWER_WINS) is LOCAL

    def test_newer_wins_server(self) -> None:
        assert resolve_conflict(LOCAL, SERVER, ConflictStrategy.NEWER_WINS) is LOCAL

    def test_newer_wins_tie_goes_to_server(self) -> None:
        local = {**SERVER, "name": "local"}
        assert resolve_conflict(SERVER, local, ConflictStrategy.NEWER_WINS) is SERVER

    @pytest.mark.parametrize("missing", [None, "", "not a date"])
    def test_newer_wins_missing_timestamp_is_epoch(self, missing: object) -> None:
        """Should treat a missing or unparsable timestamp as the oldest."""
        local = {"id": 1, "timestamp": missing}
        assert resolve_conflict(SERVER, local, ConflictStrategy.NEWER_WINS) is SERVER
        assert resolve_conflict(local, SERVER, ConflictStrategy.NEWER_WINS) is SERVER

    def test_newer_wins_epoch_millis(self) -> None:
        """Should compare numeric timestamps as epoch milliseconds."""
        server = {"timestamp": 1_714_550_400_000}
        local = {"timestamp": "2024-05-01T08:00:01+00:00"}
        assert resolve_conflict(server, local, ConflictStrategy.NEWER_WINS) is local

    def test_newer_wins_naive_timestamp_as_utc(self) -> None:
        server = {"timestamp": "2024-05-01T08:00:00"}
        local = {"timestamp": "2024-05-01T07:59:59+00:00"}
        assert resolve_conflict(server, local, ConflictStrategy.NEWER_WINS) is server

    @pytest.mark.parametrize("extreme", [10**20, -(10**20), float("nan"), float("inf")])
    def test_newer_wins_out_of_range_number_is_epoch(self, extreme: object) -> None:
        """Should treat numbers outside the datetime range as the oldest."""
        local = {"id": 1, "timestamp": extreme}
        assert resolve_conflict(SERVER, local, ConflictStrategy.NEWER_WINS) is SERVER
        assert resolve_conflict(local, SERVER, ConflictStrategy.NEWER_WINS) is SERVER

    def test_newer_wins_boolean_is_not_a_timestamp(self) -> None:
        """Should not read True as one millisecond past the epoch."""
        server = {"timestamp": 0}
        local = {"timestamp": True}
        assert resolve_conflict(server, local, ConflictStrategy.NEWER_WINS) is server
