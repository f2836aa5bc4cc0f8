"""
Exception hierarchy for circulation operations.

Three kinds of failure are kept apart so callers can tell a bug in the call
from a normal business outcome:

1. **Precondition errors** - empty identifiers, unknown items or members,
   duplicate registrations. Raised, never absorbed.
2. **Expected negative outcomes** - already held, not held by you, duplicate
   reservation. These are *not* exceptions; operations return ``False``.
3. **State conflicts** - refusals that protect an invariant and depend on
   mutable state, such as removing an item somebody is holding.
"""


class CirculationError(Exception):
    """Base exception for circulation operations."""


class PreconditionError(CirculationError):
    """The call itself is invalid."""


class InvalidIdentifierError(PreconditionError, ValueError):
    """Raised when an item or member identifier is missing or empty."""


class NotFoundError(PreconditionError):
    """Raised when an entity is not found."""


class UnknownItemError(NotFoundError):
    """Raised when an item id is not tracked."""

    def __init__(self, item_id: str):
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class UnknownMemberError(NotFoundError):
    """Raised when a member id is not registered."""

    def __init__(self, member_id: str):
        super().__init__(f"Member not found: {member_id}")
        self.member_id = member_id


class DuplicateError(PreconditionError):
    """Raised when attempting to create a duplicate entity."""


class DuplicateItemError(DuplicateError):
    def __init__(self, item_id: str):
        super().__init__(f"Item already exists: {item_id}")
        self.item_id = item_id


class DuplicateMemberError(DuplicateError):
    def __init__(self, member_id: str):
        super().__init__(f"Member already exists: {member_id}")
        self.member_id = member_id


class StateConflictError(CirculationError):
    """The call is well formed but the current state refuses it."""


class ItemCurrentlyHeldError(StateConflictError):
    """Raised when removing an item that is checked out."""

    def __init__(self, item_id: str, holder_id: str):
        super().__init__(f"Cannot remove item {item_id}: currently held by {holder_id}")
        self.item_id = item_id
        self.holder_id = holder_id


def require_id(value: str | None, label: str) -> str:
    """Return ``value`` unchanged or raise if it is missing or blank."""
    if value is None or not isinstance(value, str) or not value.strip():
        raise InvalidIdentifierError(f"{label} cannot be null or empty")
    return value
