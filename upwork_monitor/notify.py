"""Outbound side effects: desktop notifications, recovery pages, UI broadcasts."""
from __future__ import annotations

import threading
import webbrowser
from abc import ABC, abstractmethod
from typing import Callable

from upwork_monitor.log import get_logger

log = get_logger(__name__)

APP_NAME = "Upwork Job Monitor"


class Notifier(ABC):
    @abstractmethod
    def create(self, notification_id: str, title: str, message: str, priority: int = 0) -> None:
        """Show one notification. May raise; callers isolate failures."""


class DesktopNotifier(Notifier):
    """System notification via plyer. The notification id is the job URL,
    which is appended to the message so it can be opened from the toast."""

    def __init__(self, timeout: int = 10) -> None:
        self.timeout = timeout

    def create(self, notification_id: str, title: str, message: str, priority: int = 0) -> None:
        from plyer import notification

        # Longer toast for urgent notifications; plyer has no priority field.
        timeout = self.timeout * 2 if priority >= 2 else self.timeout
        notification.notify(
            title=title[:63],
            message=f"{message}\n{notification_id}"[:255],
            app_name=APP_NAME,
            timeout=timeout,
        )
        log.debug("Desktop notification sent: %s", notification_id)


class LogNotifier(Notifier):
    def create(self, notification_id: str, title: str, message: str, priority: int = 0) -> None:
        log.info("%s %s | %s", title, message.replace("\n", " | "), notification_id)


def build_notifier(kind: str) -> Notifier:
    if kind == "desktop":
        return DesktopNotifier()
    if kind == "log":
        return LogNotifier()
    raise ValueError(f"Unknown notifications setting {kind!r} (expected 'desktop' or 'log')")


class RecoveryOpener:
    """Opens a page in the user's browser so they can log in again."""

    def __init__(self, enabled: bool = True, opener: Callable[[str], bool] | None = None) -> None:
        self.enabled = enabled
        self._open = opener or webbrowser.open_new_tab

    def open(self, url: str) -> bool:
        if not self.enabled:
            log.warning("Recovery tab disabled, log in manually: %s", url)
            return False
        try:
            opened = bool(self._open(url))
        except Exception as exc:
            log.warning("Could not open recovery page %s: %s", url, exc)
            return False
        if not opened:
            log.warning("No browser available to open %s", url)
        return opened


Listener = Callable[[], None]


class StateBroadcaster:
    """Fire-and-forget 'state changed, re-read storage' signal."""

    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self) -> int:
        """Call every listener; returns how many succeeded."""
        with self._lock:
            listeners = list(self._listeners)
        if not listeners:
            log.debug("No UI listeners, skipping state update broadcast")
            return 0
        delivered = 0
        for listener in listeners:
            try:
                listener()
                delivered += 1
            except Exception as exc:
                log.warning("State update listener failed: %s", exc)
        return delivered
