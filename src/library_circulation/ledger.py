"""
Availability ledger: which items are tracked and who holds each one.

The ledger models one physical copy per item, so availability is binary:
an item is either unheld or held by exactly one member. Multi-copy lending
would need a count plus a set of holders per record and is not modelled.

Mutations return ``False`` for routine refusals (already held, not your
item) and raise only for calls that are wrong in themselves (unknown or
blank ids, duplicates) or that would break an invariant (dropping an item
that is out on loan). Read-only queries never raise for unknown ids.
"""

import logging

from .exceptions import (
    DuplicateItemError,
    ItemCurrentlyHeldError,
    UnknownItemError,
    require_id,
)
from .models.circulation import HoldRecord

logger = logging.getLogger(__name__)


class AvailabilityLedger:
    def __init__(self) -> None:
        self._records: dict[str, HoldRecord] = {}

    def _record(self, item_id: str) -> HoldRecord:
        require_id(item_id, "Item ID")
        record = self._records.get(item_id)
        if record is None:
            raise UnknownItemError(item_id)
        return record

    # === Registration ===

    def register_item(self, item_id: str) -> HoldRecord:
        """Start tracking an item as unheld.

        Raises:
            InvalidIdentifierError: If the id is blank
            DuplicateItemError: If the item is already tracked
        """
        require_id(item_id, "Item ID")
        if item_id in self._records:
            raise DuplicateItemError(item_id)

        record = HoldRecord(item_id=item_id)
        self._records[item_id] = record
        logger.debug("Tracking item %s", item_id)
        return record

    def deregister_item(self, item_id: str) -> None:
        """Stop tracking an item.

        Raises:
            UnknownItemError: If the item is not tracked
            ItemCurrentlyHeldError: If a member holds the item
        """
        record = self._record(item_id)
        if record.is_held:
            raise ItemCurrentlyHeldError(item_id, record.holder_id or "")

        del self._records[item_id]
        logger.debug("Stopped tracking item %s", item_id)

    # === Hold transitions ===

    def acquire(self, item_id: str, member_id: str) -> bool:
        """Give the item to ``member_id`` if nobody holds it.

        An item kept for another member after a priority release cannot be
        acquired by anyone else.
        """
        require_id(member_id, "Member ID")
        record = self._record(item_id)

        if record.is_held:
            logger.info("Item %s is already held by %s", item_id, record.holder_id)
            return False
        if record.reserved_for and record.reserved_for != member_id:
            logger.info("Item %s is being kept for %s", item_id, record.reserved_for)
            return False

        record.holder_id = member_id
        record.reserved_for = None
        return True

    def release(self, item_id: str, member_id: str) -> bool:
        """Clear the holder if it is exactly ``member_id``."""
        require_id(member_id, "Member ID")
        record = self._record(item_id)

        if record.holder_id != member_id:
            logger.warning("Member %s does not hold item %s", member_id, item_id)
            return False

        record.holder_id = None
        return True

    def reserve_for(self, item_id: str, member_id: str) -> None:
        """Keep an unheld item for one member."""
        require_id(member_id, "Member ID")
        self._record(item_id).reserved_for = member_id

    def clear_reservation(self, item_id: str) -> None:
        self._record(item_id).reserved_for = None

    # === Queries ===

    def is_tracked(self, item_id: str) -> bool:
        return bool(item_id) and item_id in self._records

    def is_available(self, item_id: str) -> bool:
        """True iff the item is tracked and unheld; unknown ids are unavailable."""
        if not item_id:
            return False
        record = self._records.get(item_id)
        return record is not None and not record.is_held

    def holder_of(self, item_id: str) -> str | None:
        if not item_id:
            return None
        record = self._records.get(item_id)
        return record.holder_id if record else None

    def get(self, item_id: str) -> HoldRecord | None:
        """Return a copy of the hold record, or None if untracked."""
        record = self._records.get(item_id) if item_id else None
        return record.model_copy() if record else None

    def list_available(self) -> list[str]:
        return [item_id for item_id, r in self._records.items() if not r.is_held]

    def list_held(self) -> list[str]:
        return [item_id for item_id, r in self._records.items() if r.is_held]

    def items_held_by(self, member_id: str) -> list[str]:
        if not member_id:
            return []
        return [item_id for item_id, r in self._records.items() if r.holder_id == member_id]

    def __len__(self) -> int:
        return len(self._records)
