"""Tests for core configuration classes."""

from __future__ import annotations

import pytest

from kiosksync.core.config import (
    DEFAULT_ATTENDANCE_URL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PROBE_URL,
    SyncConfig,
)


class TestSyncConfig:
    """Tests for SyncConfig class."""

    def test_defaults(self) -> None:
        """Should have sensible defaults."""
        config = SyncConfig()
        assert config.server_url == ""
        assert config.probe_url == DEFAULT_PROBE_URL
        assert config.timeout == 30.0
        assert config.verify_ssl is True
        assert config.max_retries == DEFAULT_MAX_RETRIES == 3
        assert config.retry_client_errors is True
        assert config.attendance_url == DEFAULT_ATTENDANCE_URL

    def test_url_trailing_slash_removed(self) -> None:
        """Should strip trailing slash from server URL."""
        config = SyncConfig(server_url="https://example.com/")
        assert config.server_url == "https://example.com"

    def test_is_secure(self) -> None:
        assert SyncConfig(server_url="https://example.com").is_secure
        assert not SyncConfig(server_url="http://example.com").is_secure

    @pytest.mark.parametrize("max_retries", [0, -1])
    def test_invalid_max_retries(self, max_retries: int) -> None:
        with pytest.raises(ValueError, match="max_retries"):
            SyncConfig(max_retries=max_retries)

    def test_invalid_probe_interval(self) -> None:
        with pytest.raises(ValueError, match="probe_interval"):
            SyncConfig(probe_interval=0)

    def test_from_dict_ignores_unknown_keys(self) -> None:
        """Should load config files written by newer versions."""
        config = SyncConfig.from_dict(
            {"server_url": "http://kiosk.test/", "max_retries": 5, "theme": "dark"}
        )
        assert config.server_url == "http://kiosk.test"
        assert config.max_retries == 5

    def test_dict_round_trip(self) -> None:
        config = SyncConfig(server_url="http://kiosk.test", device_id="k-1", verify_ssl=False)
        assert SyncConfig.from_dict(config.to_dict()) == config
