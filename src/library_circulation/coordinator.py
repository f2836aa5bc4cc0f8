"""
Circulation coordinator: checkout and return across ledger, members and queue.

Per item the coordinator runs a small state machine::

    Available --checkout(m)--> Held(m) --return(m)--> Available
                                                  \\-> ReservedFor(head)   (priority policy)

Ordering of a checkout is fixed: validate identifiers and member, acquire
the hold, append to borrowing history, then drop the member's own
reservation for the item. If the history append fails the hold is rolled
back, including a priority hold kept for the member, so a failed checkout
leaves the item and the queue as they were.

On return the ledger release and the reservation fan-out run under the same
lock, so no other checkout or reserve call can slip in between "item marked
available" and "waiters notified".

Return values follow the error taxonomy in :mod:`library_circulation.exceptions`:
``False`` means a normal business refusal, an exception means the call was
wrong or would break an invariant.
"""

import logging
import threading

from .catalog import BorrowingHistorySink
from .exceptions import UnknownItemError, UnknownMemberError, require_id
from .ledger import AvailabilityLedger
from .members import MemberRegistry
from .models.circulation import ReservationPolicy, ReturnReceipt
from .models.patron import Member
from .observability import trace_circulation
from .reservations import ReservationQueue

logger = logging.getLogger(__name__)

DEFAULT_AVAILABILITY_MESSAGE = "The book you reserved is now available!"


class CirculationCoordinator:
    def __init__(
        self,
        ledger: AvailabilityLedger,
        members: MemberRegistry,
        reservations: ReservationQueue,
        history: BorrowingHistorySink | None = None,
        policy: ReservationPolicy = ReservationPolicy.BROADCAST,
        availability_message: str = DEFAULT_AVAILABILITY_MESSAGE,
    ):
        self.ledger = ledger
        self.members = members
        self.reservations = reservations
        self.history = history
        self.policy = ReservationPolicy(policy)
        self.availability_message = availability_message
        self._lock = threading.RLock()

    # === Registration ===

    def register_item(self, item_id: str) -> None:
        with self._lock:
            self.ledger.register_item(item_id)

    def deregister_item(self, item_id: str) -> None:
        """Stop circulating an item; refused while someone holds it.

        Pending reservations for the item are dropped without notice.
        """
        with self._lock:
            self.ledger.deregister_item(item_id)
            dropped = self.reservations.discard_item(item_id)
            if dropped:
                logger.info("Dropped %d reservation(s) for removed item %s", dropped, item_id)

    def register_member(self, member: Member) -> Member:
        with self._lock:
            return self.members.register(member)

    def _require_member(self, member_id: str) -> None:
        require_id(member_id, "Member ID")
        if not self.members.exists(member_id):
            logger.warning("Member with ID %s not found", member_id)
            raise UnknownMemberError(member_id)

    def _require_item(self, item_id: str) -> None:
        require_id(item_id, "Item ID")
        if not self.ledger.is_tracked(item_id):
            logger.warning("Item with ID %s not found", item_id)
            raise UnknownItemError(item_id)

    # === Circulation ===

    def checkout(self, item_id: str, member_id: str) -> bool:
        """Lend an item to a member.

        Returns:
            True if the member now holds the item, False if someone else holds
            it or it is being kept for another member

        Raises:
            InvalidIdentifierError: If either id is blank
            UnknownMemberError: If the member is not registered
            UnknownItemError: If the item is not tracked
        """
        require_id(item_id, "Item ID")
        self._require_member(member_id)

        with self._lock, trace_circulation("checkout", item_id=item_id, member_id=member_id) as span:
            self._require_item(item_id)

            kept_for = self.ledger.get(item_id).reserved_for
            if not self.ledger.acquire(item_id, member_id):
                span.set_attribute("circulation.outcome", "unavailable")
                return False

            if self.history is not None:
                try:
                    self.history.append_borrowing_history(member_id, item_id)
                except Exception:
                    logger.exception(
                        "Borrowing history update failed; rolling back checkout of %s by %s",
                        item_id,
                        member_id,
                    )
                    self.ledger.release(item_id, member_id)
                    if kept_for:
                        self.ledger.reserve_for(item_id, kept_for)
                    raise

            self.reservations.cancel(item_id, member_id)
            span.set_attribute("circulation.outcome", "checked_out")
            logger.info("Item %s checked out by %s", item_id, member_id)
            return True

    def return_item(self, item_id: str, member_id: str) -> bool:
        """Take an item back and hand it on to the reservation queue.

        Returns:
            False if the member does not currently hold the item (double
            return, wrong member)
        """
        return self.process_return(item_id, member_id).returned

    def process_return(self, item_id: str, member_id: str) -> ReturnReceipt:
        """Like :meth:`return_item`, reporting who was told about the release."""
        require_id(item_id, "Item ID")
        self._require_member(member_id)

        with self._lock, trace_circulation("return", item_id=item_id, member_id=member_id) as span:
            self._require_item(item_id)

            if not self.ledger.release(item_id, member_id):
                span.set_attribute("circulation.outcome", "not_holder")
                return ReturnReceipt(item_id=item_id, member_id=member_id, returned=False)

            logger.info("Item %s returned by %s", item_id, member_id)
            notified = self._offer_to_waiting(item_id)
            span.set_attribute("circulation.outcome", "returned")
            span.set_attribute("circulation.notified", len(notified))
            return ReturnReceipt(
                item_id=item_id,
                member_id=member_id,
                returned=True,
                notified=notified,
                reserved_for=self.ledger.get(item_id).reserved_for,
            )

    def _offer_to_waiting(self, item_id: str) -> list[str]:
        if self.policy == ReservationPolicy.PRIORITY:
            head = self.reservations.offer_to_head(item_id, self.availability_message)
            if head is None:
                return []
            self.ledger.reserve_for(item_id, head)
            logger.info("Item %s is being kept for %s", item_id, head)
            return [head]

        return self.reservations.notify_all(item_id, self.availability_message)

    # === Reservations ===

    def reserve(self, item_id: str, member_id: str) -> bool:
        """Put a member on an item's waitlist; False if already waiting."""
        require_id(item_id, "Item ID")
        self._require_member(member_id)

        with self._lock, trace_circulation("reserve", item_id=item_id, member_id=member_id) as span:
            self._require_item(item_id)
            reserved = self.reservations.reserve(item_id, member_id)
            span.set_attribute("circulation.outcome", "reserved" if reserved else "duplicate")
            return reserved

    def cancel_reservation(self, item_id: str, member_id: str) -> bool:
        """Withdraw a reservation.

        Under the priority policy, cancelling after the item was kept for
        the member passes it on to the next in line.
        """
        require_id(item_id, "Item ID")
        self._require_member(member_id)

        with self._lock, trace_circulation(
            "cancel_reservation", item_id=item_id, member_id=member_id
        ) as span:
            self._require_item(item_id)

            record = self.ledger.get(item_id)
            if record is not None and record.reserved_for == member_id:
                self.ledger.clear_reservation(item_id)
                self._offer_to_waiting(item_id)
                span.set_attribute("circulation.outcome", "released_hold")
                return True

            cancelled = self.reservations.cancel(item_id, member_id)
            span.set_attribute("circulation.outcome", "cancelled" if cancelled else "not_waiting")
            return cancelled

    # === Queries ===

    def is_available(self, item_id: str) -> bool:
        return self.ledger.is_available(item_id)

    def holder_of(self, item_id: str) -> str | None:
        return self.ledger.holder_of(item_id)

    def reserved_for(self, item_id: str) -> str | None:
        record = self.ledger.get(item_id)
        return record.reserved_for if record else None

    def list_available(self) -> list[str]:
        with self._lock:
            return self.ledger.list_available()

    def list_held(self) -> list[str]:
        with self._lock:
            return self.ledger.list_held()

    def items_held_by(self, member_id: str) -> list[str]:
        with self._lock:
            return self.ledger.items_held_by(member_id)

    def is_reserved(self, item_id: str) -> bool:
        return self.reservations.is_reserved(item_id)

    def reservation_count(self, item_id: str) -> int:
        return self.reservations.count(item_id)

    def reservation_queue(self, item_id: str) -> list[str]:
        with self._lock:
            return self.reservations.queue(item_id)
