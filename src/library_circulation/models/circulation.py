"""
Circulation records for the Library Circulation MCP Server.

- HoldRecord: who, if anyone, currently holds an item
- ReservationEntry: a member waiting on an item
- Notification: what a waiting member is told when the item frees up
- ReservationPolicy: how a release is offered to the waiting members
- ReturnReceipt: result of a return, including who was notified
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class ReservationPolicy(str, Enum):
    """How a returned item is offered to the reservation queue.

    BROADCAST notifies every waiting member and clears the queue; the next
    checkout wins. PRIORITY notifies only the head of the queue and keeps
    the item for that member until they check it out.
    """

    BROADCAST = "broadcast"
    PRIORITY = "priority"


class HoldRecord(BaseModel):
    """Availability state of one item.

    ``holder_id`` is the single current borrower. ``reserved_for`` is only
    set under the priority policy, between a release and the head member's
    checkout.
    """

    item_id: str = Field(..., min_length=1)
    holder_id: str | None = Field(None, description="Member currently holding the item")
    reserved_for: str | None = Field(
        None, description="Member the item is being kept for after a release"
    )

    @property
    def is_held(self) -> bool:
        return bool(self.holder_id)

    model_config = ConfigDict(validate_assignment=True)


class ReservationEntry(BaseModel):
    """One member waiting on one item."""

    item_id: str = Field(..., min_length=1)
    member_id: str = Field(..., min_length=1)
    reserved_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)


class Notification(BaseModel):
    """A delivered availability notice."""

    member_id: str
    item_id: str
    message: str
    sent_at: datetime = Field(default_factory=datetime.now)

    model_config = ConfigDict(frozen=True)


class ReturnReceipt(BaseModel):
    """Outcome of a return: whether it happened and who was told."""

    item_id: str
    member_id: str
    returned: bool
    notified: list[str] = Field(default_factory=list)
    reserved_for: str | None = Field(
        None, description="Member the item is now kept for (priority policy)"
    )

    model_config = ConfigDict(frozen=True)
