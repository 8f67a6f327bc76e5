"""Tests for sync notifications."""

import subprocess
from unittest.mock import MagicMock, patch

from kiosksync.client.notifications import (
    Notification,
    NotificationType,
    SyncNotifier,
    build_sync_notifications,
    send_notification,
)
from kiosksync.client.sync.events import NetworkChanged, SyncCompleted, SyncStarted
from kiosksync.client.sync.types import SyncResult


class TestNotification:
    """Tests for Notification dataclass."""

    def test_notification_default_type(self) -> None:
        """Should default to INFO type."""
        notif = Notification(title="Title", message="Message")
        assert notif.type == NotificationType.INFO


class TestBuildSyncNotifications:
    """Tests for sync result summaries."""

    def test_success_only(self) -> None:
        notifications = build_sync_notifications(SyncResult(total=3, succeeded=3))

        assert len(notifications) == 1
        assert notifications[0].message == "Synced 3 record(s)"
        assert notifications[0].type == NotificationType.SUCCESS

    def test_mixed(self) -> None:
        """Should report successes and failures separately."""
        notifications = build_sync_notifications(SyncResult(total=3, succeeded=1, failed=2))

        assert [n.message for n in notifications] == [
            "Synced 1 record(s)",
            "Failed to sync 2 record(s)",
        ]
        assert notifications[1].type == NotificationType.ERROR

    def test_empty_pass(self) -> None:
        assert build_sync_notifications(SyncResult()) == []


class TestSyncNotifier:
    """Tests for the SyncNotifier subscriber."""

    def test_sync_completed(self) -> None:
        send = MagicMock(return_value=True)
        notifier = SyncNotifier(send=send)

        notifier(SyncCompleted(results=SyncResult(total=2, succeeded=2)))

        send.assert_called_once()
        assert send.call_args[0][0].message == "Synced 2 record(s)"

    def test_offline(self) -> None:
        """Should warn that records will be queued."""
        send = MagicMock(return_value=True)
        SyncNotifier(send=send)(NetworkChanged(online=False))

        notification = send.call_args[0][0]
        assert "offline" in notification.message
        assert notification.type == NotificationType.WARNING

    def test_online(self) -> None:
        send = MagicMock(return_value=True)
        SyncNotifier(send=send)(NetworkChanged(online=True))

        assert "Connection restored" in send.call_args[0][0].message

    def test_sync_started_ignored(self) -> None:
        send = MagicMock(return_value=True)
        SyncNotifier(send=send)(SyncStarted())

        send.assert_not_called()


class TestSendNotification:
    """Tests for send_notification."""

    @patch("kiosksync.client.notifications.subprocess.run")
    @patch("kiosksync.client.notifications.platform.system", return_value="Linux")
    def test_linux(self, mock_system: MagicMock, mock_run: MagicMock) -> None:
        """Should call notify-send with critical urgency for errors."""
        result = send_notification(
            Notification(title="T", message="M", type=NotificationType.ERROR)
        )

        assert result is True
        args = mock_run.call_args[0][0]
        assert args[0] == "notify-send"
        assert args[args.index("--urgency") + 1] == "critical"
        assert args[-2:] == ["T", "M"]

    @patch("kiosksync.client.notifications.subprocess.run")
    @patch("kiosksync.client.notifications.platform.system", return_value="Darwin")
    def test_macos_escapes_quotes(self, mock_system: MagicMock, mock_run: MagicMock) -> None:
        result = send_notification(Notification(title='Say "hi"', message="M"))

        assert result is True
        args = mock_run.call_args[0][0]
        assert args[:2] == ["osascript", "-e"]
        assert 'with title "Say \\"hi\\""' in args[2]

    @patch("kiosksync.client.notifications.subprocess.run", side_effect=FileNotFoundError)
    @patch("kiosksync.client.notifications.platform.system", return_value="Linux")
    def test_falls_back_to_log(self, mock_system: MagicMock, mock_run: MagicMock) -> None:
        """Should return False when notify-send is missing."""
        assert send_notification(Notification(title="T", message="M")) is False

    @patch("kiosksync.client.notifications.subprocess.run")
    @patch("kiosksync.client.notifications.platform.system", return_value="Windows")
    def test_unsupported_platform(self, mock_system: MagicMock, mock_run: MagicMock) -> None:
        assert send_notification(Notification(title="T", message="M")) is False
        mock_run.assert_not_called()

    @patch(
        "kiosksync.client.notifications.subprocess.run",
        side_effect=subprocess.CalledProcessError(1, "osascript"),
    )
    @patch("kiosksync.client.notifications.platform.system", return_value="Darwin")
    def test_macos_failure(self, mock_system: MagicMock, mock_run: MagicMock) -> None:
        assert send_notification(Notification(title="T", message="M")) is False
