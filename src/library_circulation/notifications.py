"""
Notification delivery for reservation releases.

The reservation queue only knows *who* to tell; how the message travels is
somebody else's job. A notifier is any callable taking a
:class:`~library_circulation.models.Notification`. Two are provided:

- ``LoggingNotifier`` writes each notice to the log
- ``NotificationLog`` keeps every notice in memory (served by the
  ``library://patrons/{member_id}/notifications`` resource) and can forward
  to another notifier
"""

import logging
import threading
from collections.abc import Callable

from .models.circulation import Notification

logger = logging.getLogger(__name__)

Notifier = Callable[[Notification], None]


class LoggingNotifier:
    """Deliver notifications as log lines."""

    def __init__(self, level: int = logging.INFO):
        self.level = level

    def __call__(self, notification: Notification) -> None:
        logger.log(
            self.level,
            "Notification sent to %s for item %s: %s",
            notification.member_id,
            notification.item_id,
            notification.message,
        )


class NotificationLog:
    """In-memory record of delivered notifications.

    Notices are recorded only once the forwarded delivery has succeeded.
    """

    def __init__(self, forward_to: Notifier | None = None):
        self._forward_to = forward_to
        self._sent: list[Notification] = []
        self._lock = threading.Lock()

    def __call__(self, notification: Notification) -> None:
        if self._forward_to is not None:
            self._forward_to(notification)
        with self._lock:
            self._sent.append(notification)

    def __len__(self) -> int:
        return len(self._sent)

    @property
    def sent(self) -> list[Notification]:
        with self._lock:
            return list(self._sent)

    def for_member(self, member_id: str) -> list[Notification]:
        return [n for n in self.sent if n.member_id == member_id]

    def for_item(self, item_id: str) -> list[Notification]:
        return [n for n in self.sent if n.item_id == item_id]

    def clear(self) -> None:
        with self._lock:
            self._sent.clear()
