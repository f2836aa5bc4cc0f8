"""Tests for the circulation coordinator.

1. Checkout and return transitions
2. Reservation fan-out on return (broadcast and priority policies)
3. Validation ordering and the error taxonomy
4. Rollback when borrowing history cannot be written
5. Notifiers that fail during a release
6. Concurrent callers
"""

import threading

import pytest

from library_circulation.coordinator import CirculationCoordinator
from library_circulation.exceptions import (
    InvalidIdentifierError,
    ItemCurrentlyHeldError,
    UnknownItemError,
    UnknownMemberError,
)
from library_circulation.ledger import AvailabilityLedger
from library_circulation.members import MemberRegistry
from library_circulation.models import Member, Notification, ReservationPolicy
from library_circulation.reservations import ReservationQueue

MESSAGE = "The book you reserved is now available!"


class TestCheckoutAndReturn:
    def test_round_trip(self, coordinator, catalog):
        assert coordinator.checkout("X", "A") is True
        assert coordinator.holder_of("X") == "A"
        assert coordinator.is_available("X") is False

        assert coordinator.return_item("X", "A") is True
        assert coordinator.is_available("X") is True
        assert coordinator.holder_of("X") is None
        assert catalog.borrowed_isbns("A") == ["X"]

    def test_double_checkout_is_refused(self, coordinator):
        assert coordinator.checkout("X", "A") is True
        assert coordinator.checkout("X", "A") is False
        assert coordinator.checkout("X", "B") is False
        assert coordinator.holder_of("X") == "A"

    def test_refused_checkout_does_not_touch_history(self, coordinator, catalog):
        coordinator.checkout("X", "A")
        coordinator.checkout("X", "B")

        assert catalog.borrowed_isbns("B") == []

    def test_return_of_unheld_item(self, coordinator):
        assert coordinator.return_item("X", "A") is False

    def test_return_by_wrong_member(self, coordinator):
        coordinator.checkout("X", "A")

        assert coordinator.return_item("X", "B") is False
        assert coordinator.holder_of("X") == "A"

    def test_double_return(self, coordinator):
        coordinator.checkout("X", "A")

        assert coordinator.return_item("X", "A") is True
        assert coordinator.return_item("X", "A") is False

    def test_history_keeps_repeat_checkouts(self, coordinator, catalog):
        for _ in range(2):
            coordinator.checkout("X", "A")
            coordinator.return_item("X", "A")

        assert catalog.borrowed_isbns("A") == ["X", "X"]

    def test_member_can_hold_several_items(self, coordinator):
        coordinator.checkout("X", "A")
        coordinator.checkout("Y", "A")

        assert sorted(coordinator.items_held_by("A")) == ["X", "Y"]
        assert coordinator.list_available() == []
        assert sorted(coordinator.list_held()) == ["X", "Y"]


class TestValidation:
    def test_unknown_member(self, coordinator):
        with pytest.raises(UnknownMemberError):
            coordinator.checkout("X", "Z")

    def test_blank_member_is_not_unknown_member(self, coordinator):
        with pytest.raises(InvalidIdentifierError) as exc_info:
            coordinator.checkout("X", "")

        assert not isinstance(exc_info.value, UnknownMemberError)
        assert "Member ID cannot be null or empty" in str(exc_info.value)

    def test_blank_item(self, coordinator):
        with pytest.raises(InvalidIdentifierError):
            coordinator.checkout("  ", "A")
        with pytest.raises(InvalidIdentifierError):
            coordinator.return_item(None, "A")

    def test_unknown_item(self, coordinator):
        with pytest.raises(UnknownItemError):
            coordinator.checkout("nope", "A")
        with pytest.raises(UnknownItemError):
            coordinator.reserve("nope", "A")

    def test_member_checked_before_item(self, coordinator):
        with pytest.raises(UnknownMemberError):
            coordinator.checkout("nope", "Z")

    def test_unknown_member_cannot_reserve(self, coordinator):
        with pytest.raises(UnknownMemberError):
            coordinator.reserve("X", "Z")
        assert coordinator.reservation_count("X") == 0

    def test_invalid_identifier_is_a_value_error(self, coordinator):
        with pytest.raises(ValueError):
            coordinator.reserve("X", "")


class TestRegistration:
    def test_register_member_through_coordinator(self, coordinator):
        coordinator.register_member(Member(member_id="D", name="Dana"))
        assert coordinator.checkout("X", "D") is True

    def test_deregister_held_item_is_refused(self, coordinator):
        coordinator.checkout("X", "A")

        with pytest.raises(ItemCurrentlyHeldError):
            coordinator.deregister_item("X")
        assert coordinator.holder_of("X") == "A"

    def test_deregister_drops_waiting_list_silently(self, coordinator, notifications):
        coordinator.reserve("X", "B")

        coordinator.deregister_item("X")

        assert coordinator.is_reserved("X") is False
        assert len(notifications) == 0
        with pytest.raises(UnknownItemError):
            coordinator.checkout("X", "A")


class TestBroadcastPolicy:
    def test_reserve_while_held_then_notify_on_return(self, coordinator, notifications):
        assert coordinator.checkout("X", "A") is True
        assert coordinator.reserve("X", "B") is True
        assert coordinator.is_reserved("X") is True

        assert coordinator.return_item("X", "A") is True

        assert coordinator.is_available("X") is True
        assert coordinator.is_reserved("X") is False
        assert [(n.member_id, n.item_id, n.message) for n in notifications.sent] == [
            ("B", "X", MESSAGE)
        ]

    def test_fan_out_notifies_each_member_once(self, coordinator, notifications):
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")

        coordinator.return_item("X", "A")

        assert [n.member_id for n in notifications.for_item("X")] == ["B", "C"]
        assert coordinator.reservation_count("X") == 0

    def test_first_notified_member_to_checkout_wins(self, coordinator):
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")
        coordinator.return_item("X", "A")

        assert coordinator.checkout("X", "C") is True
        assert coordinator.checkout("X", "B") is False

    def test_return_without_waiters_sends_nothing(self, coordinator, notifications):
        coordinator.checkout("X", "A")
        coordinator.return_item("X", "A")

        assert len(notifications) == 0

    def test_refused_return_does_not_notify(self, coordinator, notifications):
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")

        coordinator.return_item("X", "C")

        assert len(notifications) == 0
        assert coordinator.reservation_queue("X") == ["B"]

    def test_reserve_available_item_is_allowed(self, coordinator):
        assert coordinator.reserve("X", "A") is True
        assert coordinator.is_available("X") is True

    def test_duplicate_reservation(self, coordinator):
        assert coordinator.reserve("X", "B") is True
        assert coordinator.reserve("X", "B") is False
        assert coordinator.reservation_count("X") == 1

    def test_checkout_drops_own_reservation(self, coordinator):
        coordinator.reserve("X", "A")
        coordinator.reserve("X", "B")

        assert coordinator.checkout("X", "A") is True
        assert coordinator.reservation_queue("X") == ["B"]

    def test_cancel_keeps_order_of_others(self, coordinator, notifications):
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")

        assert coordinator.cancel_reservation("X", "B") is True
        assert coordinator.cancel_reservation("X", "B") is False

        coordinator.return_item("X", "A")
        assert [n.member_id for n in notifications.sent] == ["C"]


class TestPriorityPolicy:
    def test_head_is_kept_the_item(self, priority_coordinator, notifications):
        coordinator = priority_coordinator
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")

        coordinator.return_item("X", "A")

        assert [n.member_id for n in notifications.sent] == ["B"]
        assert coordinator.reserved_for("X") == "B"
        assert coordinator.reservation_queue("X") == ["C"]
        assert coordinator.checkout("X", "C") is False
        assert coordinator.checkout("X", "B") is True
        assert coordinator.reserved_for("X") is None

    def test_next_in_line_after_head_returns(self, priority_coordinator, notifications):
        coordinator = priority_coordinator
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")
        coordinator.return_item("X", "A")
        coordinator.checkout("X", "B")

        coordinator.return_item("X", "B")

        assert [n.member_id for n in notifications.sent] == ["B", "C"]
        assert coordinator.reserved_for("X") == "C"

    def test_cancelling_kept_item_passes_it_on(self, priority_coordinator, notifications):
        coordinator = priority_coordinator
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")
        coordinator.return_item("X", "A")

        assert coordinator.cancel_reservation("X", "B") is True

        assert coordinator.reserved_for("X") == "C"
        assert [n.member_id for n in notifications.sent] == ["B", "C"]

    def test_cancelling_last_kept_item_frees_it(self, priority_coordinator):
        coordinator = priority_coordinator
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.return_item("X", "A")

        coordinator.cancel_reservation("X", "B")

        assert coordinator.reserved_for("X") is None
        assert coordinator.checkout("X", "A") is True

    def test_no_waiters_leaves_item_free(self, priority_coordinator, notifications):
        priority_coordinator.checkout("X", "A")
        priority_coordinator.return_item("X", "A")

        assert priority_coordinator.reserved_for("X") is None
        assert len(notifications) == 0


class _FailingHistory:
    def append_borrowing_history(self, member_id: str, item_id: str) -> None:
        raise RuntimeError("history store unavailable")


class TestHistoryRollback:
    def test_failed_history_write_releases_hold(self, ledger, members, reservations):
        coordinator = CirculationCoordinator(
            ledger=ledger,
            members=members,
            reservations=reservations,
            history=_FailingHistory(),
        )
        coordinator.register_item("X")
        coordinator.reserve("X", "B")

        with pytest.raises(RuntimeError, match="history store unavailable"):
            coordinator.checkout("X", "A")

        assert coordinator.is_available("X") is True
        assert coordinator.holder_of("X") is None
        assert coordinator.reservation_queue("X") == ["B"]

    def test_without_history_sink(self):
        registry = MemberRegistry()
        registry.register(Member(member_id="A", name="Alice"))
        coordinator = CirculationCoordinator(
            ledger=AvailabilityLedger(), members=registry, reservations=ReservationQueue()
        )
        coordinator.register_item("X")

        assert coordinator.checkout("X", "A") is True


    def test_failed_checkout_keeps_own_reservation(self, ledger, members, reservations):
        coordinator = CirculationCoordinator(
            ledger=ledger,
            members=members,
            reservations=reservations,
            history=_FailingHistory(),
        )
        coordinator.register_item("X")
        coordinator.reserve("X", "A")
        coordinator.reserve("X", "B")

        with pytest.raises(RuntimeError):
            coordinator.checkout("X", "A")

        assert coordinator.reservation_queue("X") == ["A", "B"]

    def test_failed_checkout_restores_priority_hold(self, ledger, members, notifications):
        history = _FlakyHistory()
        coordinator = CirculationCoordinator(
            ledger=ledger,
            members=members,
            reservations=ReservationQueue(notifier=notifications),
            history=history,
            policy=ReservationPolicy.PRIORITY,
        )
        coordinator.register_item("Z")
        coordinator.checkout("Z", "A")
        coordinator.reserve("Z", "B")
        coordinator.return_item("Z", "A")
        assert coordinator.reserved_for("Z") == "B"

        history.failing = True
        with pytest.raises(RuntimeError):
            coordinator.checkout("Z", "B")

        assert coordinator.reserved_for("Z") == "B"
        assert coordinator.is_available("Z") is True
        assert coordinator.checkout("Z", "C") is False

        history.failing = False
        assert coordinator.checkout("Z", "B") is True


class _FlakyHistory:
    def __init__(self) -> None:
        self.failing = False

    def append_borrowing_history(self, member_id: str, item_id: str) -> None:
        if self.failing:
            raise RuntimeError("history store unavailable")


class _UnreachableMembers:
    """Notifier that cannot reach some members."""

    def __init__(self, *unreachable: str) -> None:
        self.unreachable = set(unreachable)
        self.delivered: list[str] = []

    def __call__(self, notification: Notification) -> None:
        if notification.member_id in self.unreachable:
            raise ConnectionError(f"cannot reach {notification.member_id}")
        self.delivered.append(notification.member_id)


class TestNotificationFailures:
    @pytest.fixture
    def notifier(self) -> _UnreachableMembers:
        return _UnreachableMembers("B")

    def _coordinator(self, ledger, members, notifier, policy=ReservationPolicy.BROADCAST):
        coordinator = CirculationCoordinator(
            ledger=ledger,
            members=members,
            reservations=ReservationQueue(notifier=notifier),
            policy=policy,
        )
        coordinator.register_item("X")
        return coordinator

    def test_broadcast_reaches_everyone_else(self, ledger, members, notifier):
        coordinator = self._coordinator(ledger, members, notifier)
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")

        receipt = coordinator.process_return("X", "A")

        assert receipt.returned is True
        assert receipt.notified == ["C"]
        assert notifier.delivered == ["C"]
        assert coordinator.is_available("X") is True
        assert coordinator.reservation_queue("X") == ["B"]

    def test_unreached_member_is_told_on_next_release(self, ledger, members, notifier):
        coordinator = self._coordinator(ledger, members, notifier)
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.return_item("X", "A")

        notifier.unreachable.clear()
        coordinator.checkout("X", "C")
        coordinator.return_item("X", "C")

        assert notifier.delivered == ["B"]
        assert coordinator.is_reserved("X") is False

    def test_priority_skips_to_next_reachable_member(self, ledger, members, notifier):
        coordinator = self._coordinator(ledger, members, notifier, ReservationPolicy.PRIORITY)
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")

        receipt = coordinator.process_return("X", "A")

        assert receipt.returned is True
        assert receipt.reserved_for == "C"
        assert receipt.notified == ["C"]
        assert coordinator.reservation_queue("X") == ["B"]

    def test_priority_with_nobody_reachable_frees_item(self, ledger, members, notifier):
        coordinator = self._coordinator(ledger, members, notifier, ReservationPolicy.PRIORITY)
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")

        assert coordinator.return_item("X", "A") is True

        assert coordinator.reserved_for("X") is None
        assert coordinator.reservation_queue("X") == ["B"]


class TestReturnReceipt:
    def test_receipt_lists_notified_members(self, coordinator):
        coordinator.checkout("X", "A")
        coordinator.reserve("X", "B")
        coordinator.reserve("X", "C")

        receipt = coordinator.process_return("X", "A")

        assert receipt.returned is True
        assert receipt.notified == ["B", "C"]
        assert receipt.reserved_for is None

    def test_refused_return_receipt(self, coordinator):
        receipt = coordinator.process_return("X", "A")

        assert receipt.returned is False
        assert receipt.notified == []

    def test_priority_receipt(self, priority_coordinator):
        priority_coordinator.checkout("X", "A")
        priority_coordinator.reserve("X", "B")

        receipt = priority_coordinator.process_return("X", "A")

        assert receipt.reserved_for == "B"
        assert receipt.notified == ["B"]


class TestConcurrency:
    def test_single_winner_for_concurrent_checkouts(self, coordinator, members):
        for i in range(20):
            members.register(Member(member_id=f"T{i}", name=f"Thread Member {i}"))

        barrier = threading.Barrier(20)
        results: dict[str, bool] = {}

        def attempt(member_id: str) -> None:
            barrier.wait()
            results[member_id] = coordinator.checkout("X", member_id)

        threads = [threading.Thread(target=attempt, args=(f"T{i}",)) for i in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        winners = [member_id for member_id, won in results.items() if won]
        assert len(winners) == 1
        assert coordinator.holder_of("X") == winners[0]

    def test_reserve_during_return_is_never_lost(self, coordinator, notifications, members):
        for i in range(10):
            members.register(Member(member_id=f"R{i}", name=f"Reserver {i}"))
        coordinator.checkout("X", "A")

        barrier = threading.Barrier(11)

        def reserve(member_id: str) -> None:
            barrier.wait()
            coordinator.reserve("X", member_id)

        def give_back() -> None:
            barrier.wait()
            coordinator.return_item("X", "A")

        threads = [threading.Thread(target=reserve, args=(f"R{i}",)) for i in range(10)]
        threads.append(threading.Thread(target=give_back))
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        notified = {n.member_id for n in notifications.sent}
        waiting = set(coordinator.reservation_queue("X"))
        assert notified.isdisjoint(waiting)
        assert notified | waiting == {f"R{i}" for i in range(10)}
