"""User-facing notifications for sync results.

This module provides:
- Native OS notifications (macOS notification center, Linux notify-send)
- Fallback to the log if notifications are unavailable
- SyncNotifier: Manager subscriber that turns sync events into notifications
"""

from __future__ import annotations

import logging
import platform
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto

from kiosksync.client.sync.events import NetworkChanged, SyncCompleted, SyncEvent
from kiosksync.client.sync.types import SyncResult

logger = logging.getLogger(__name__)

APP_NAME = "KioskSync"


class NotificationType(Enum):
    """Type of notification."""

    INFO = auto()
    SUCCESS = auto()
    WARNING = auto()
    ERROR = auto()


@dataclass
class Notification:
    """Represents a notification to display."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO


def _notify_macos(notification: Notification) -> bool:
    """Send notification on macOS using osascript."""
    try:
        title = notification.title.replace('"', '\\"')
        message = notification.message.replace('"', '\\"')

        script = f'display notification "{message}" with title "{title}"'
        subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            check=True,
        )
        return True
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"macOS notification failed: {e}")
        return False


def _notify_linux(notification: Notification) -> bool:
    """Send notification on Linux using notify-send."""
    urgency = "critical" if notification.type == NotificationType.ERROR else "normal"
    try:
        subprocess.run(
            [
                "notify-send",
                "--urgency", urgency,
                "--app-name", APP_NAME,
                notification.title,
                notification.message,
            ],
            capture_output=True,
            check=True,
        )
        return True
    except FileNotFoundError:
        logger.debug("notify-send not found")
        return False
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug(f"Linux notification failed: {e}")
        return False


def send_notification(notification: Notification) -> bool:
    """Send a system notification, logging it if no notifier is available.

    Returns:
        True if a native notification was sent.
    """
    system = platform.system()

    sent = False
    if system == "Darwin":
        sent = _notify_macos(notification)
    elif system == "Linux":
        sent = _notify_linux(notification)

    if not sent:
        level = logging.WARNING if notification.type == NotificationType.ERROR else logging.INFO
        logger.log(level, "%s: %s", notification.title, notification.message)
    return sent


def build_sync_notifications(results: SyncResult) -> list[Notification]:
    """Summaries of a drain pass: one for successes, one for failures."""
    notifications = []
    if results.succeeded > 0:
        notifications.append(Notification(
            title=f"{APP_NAME} - Sync Complete",
            message=f"Synced {results.succeeded} record(s)",
            type=NotificationType.SUCCESS,
        ))
    if results.failed > 0:
        notifications.append(Notification(
            title=f"{APP_NAME} - Sync Failed",
            message=f"Failed to sync {results.failed} record(s)",
            type=NotificationType.ERROR,
        ))
    return notifications


class SyncNotifier:
    """Subscriber that notifies the user about connectivity and sync results.

    Usage:
        manager.subscribe(SyncNotifier())
    """

    def __init__(self, send: Callable[[Notification], bool] = send_notification) -> None:
        self._send = send

    def __call__(self, event: SyncEvent) -> None:
        if isinstance(event, SyncCompleted):
            for notification in build_sync_notifications(event.results):
                self._send(notification)
        elif isinstance(event, NetworkChanged):
            if event.online:
                self._send(Notification(
                    title=f"{APP_NAME} - Online",
                    message="Connection restored. Syncing queued records.",
                ))
            else:
                self._send(Notification(
                    title=f"{APP_NAME} - Offline",
                    message="You are offline. Attendance will be queued.",
                    type=NotificationType.WARNING,
                ))
