"""
Reservation queue: members waiting on items, and who gets told on release.

Reservations are a waitlist layered on top of availability, not a lock: the
queue never checks whether an item is currently held, and reserving an
available item is allowed. The queue stores member ids only; delivery goes
through the injected notifier so the queue never holds references to
members or to the coordinator that drives it.

Two release styles are offered and the coordinator picks one per policy:

- ``notify_all`` tells every waiting member and empties the queue
  (broadcast waitlist; the next checkout wins)
- ``offer_to_head`` notifies the first reachable member so the caller can
  keep the item for them, leaving the rest in order (priority hold)

A notifier that raises never costs anyone their place: the failure is
logged and that member stays queued.
"""

import logging
from collections import OrderedDict
from datetime import datetime

from .exceptions import require_id
from .models.circulation import Notification, ReservationEntry
from .notifications import LoggingNotifier, Notifier

logger = logging.getLogger(__name__)


class ReservationQueue:
    def __init__(self, notifier: Notifier | None = None) -> None:
        self._notifier: Notifier = notifier or LoggingNotifier()
        # item id -> member id -> entry; insertion order is queue order
        self._queues: dict[str, OrderedDict[str, ReservationEntry]] = {}

    def reserve(self, item_id: str, member_id: str) -> bool:
        """Append a member to an item's queue.

        Returns:
            False if the member is already waiting on the item
        """
        require_id(item_id, "Item ID")
        require_id(member_id, "Member ID")

        queue = self._queues.setdefault(item_id, OrderedDict())
        if member_id in queue:
            logger.info("Member %s already has a reservation for item %s", member_id, item_id)
            return False

        queue[member_id] = ReservationEntry(
            item_id=item_id, member_id=member_id, reserved_at=datetime.now()
        )
        logger.info(
            "Item %s reserved for member %s (position %d)", item_id, member_id, len(queue)
        )
        return True

    def cancel(self, item_id: str, member_id: str) -> bool:
        """Remove one member from an item's queue, keeping everyone else's order."""
        require_id(item_id, "Item ID")
        require_id(member_id, "Member ID")

        queue = self._queues.get(item_id)
        if not queue or member_id not in queue:
            return False

        del queue[member_id]
        if not queue:
            del self._queues[item_id]
        logger.info("Reservation for item %s cancelled by member %s", item_id, member_id)
        return True

    def release_head(self, item_id: str) -> str | None:
        """Pop the first waiting member, or None when nobody is waiting."""
        require_id(item_id, "Item ID")

        queue = self._queues.get(item_id)
        if not queue:
            return None

        member_id, _ = queue.popitem(last=False)
        if not queue:
            del self._queues[item_id]
        return member_id

    def notify(self, item_id: str, member_id: str, message: str) -> bool:
        """Deliver one notification through the configured notifier.

        Returns:
            False if the notifier raised; the failure is logged
        """
        try:
            self._notifier(Notification(member_id=member_id, item_id=item_id, message=message))
        except Exception:
            logger.exception("Failed to notify member %s about item %s", member_id, item_id)
            return False
        return True

    def notify_all(self, item_id: str, message: str) -> list[str]:
        """Notify every member waiting on an item, then clear its queue.

        Each member is notified once. Members whose delivery failed stay
        queued, ahead of anyone who reserved since, so the next release
        reaches them.

        Returns:
            The notified member ids in queue order
        """
        require_id(item_id, "Item ID")

        queue = self._queues.pop(item_id, None)
        if not queue:
            logger.debug("No reservations for item %s", item_id)
            return []

        notified: list[str] = []
        undelivered: list[ReservationEntry] = []
        for member_id, entry in queue.items():
            if self.notify(item_id, member_id, message):
                notified.append(member_id)
            else:
                undelivered.append(entry)

        self._requeue_front(item_id, undelivered)
        logger.info("Notified %d member(s) that item %s is available", len(notified), item_id)
        return notified

    def offer_to_head(self, item_id: str, message: str) -> str | None:
        """Pop and notify the first member who can be reached.

        Members whose delivery fails go back to the front of the queue in
        their original order.

        Returns:
            The notified member id, or None if nobody was reached
        """
        require_id(item_id, "Item ID")

        undelivered: list[ReservationEntry] = []
        notified = None
        queue = self._queues.get(item_id)
        while queue:
            member_id, entry = queue.popitem(last=False)
            if self.notify(item_id, member_id, message):
                notified = member_id
                break
            undelivered.append(entry)

        if queue is not None and not queue:
            del self._queues[item_id]
        self._requeue_front(item_id, undelivered)
        return notified

    def _requeue_front(self, item_id: str, entries: list[ReservationEntry]) -> None:
        if not entries:
            return
        restored = OrderedDict((e.member_id, e) for e in entries)
        for member_id, entry in self._queues.get(item_id, {}).items():
            restored.setdefault(member_id, entry)
        self._queues[item_id] = restored
        logger.warning(
            "%d reservation(s) for item %s kept after failed delivery", len(entries), item_id
        )

    def discard_item(self, item_id: str) -> int:
        """Drop an item's whole queue without notifying anyone."""
        queue = self._queues.pop(item_id, None)
        return len(queue) if queue else 0

    # === Queries ===

    def is_reserved(self, item_id: str) -> bool:
        if not item_id:
            return False
        return bool(self._queues.get(item_id))

    def count(self, item_id: str) -> int:
        if not item_id:
            return 0
        return len(self._queues.get(item_id, ()))

    def queue(self, item_id: str) -> list[str]:
        """Member ids waiting on an item, first in line first."""
        if not item_id:
            return []
        return list(self._queues.get(item_id, ()))

    def entries(self, item_id: str) -> list[ReservationEntry]:
        if not item_id:
            return []
        return list(self._queues.get(item_id, {}).values())

    def position(self, item_id: str, member_id: str) -> int | None:
        """1-based queue position, or None if the member is not waiting."""
        waiting = self.queue(item_id)
        if member_id not in waiting:
            return None
        return waiting.index(member_id) + 1

    def reservations_for(self, member_id: str) -> list[str]:
        """Item ids a member is waiting on."""
        return [item_id for item_id, q in self._queues.items() if member_id in q]
