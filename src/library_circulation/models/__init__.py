"""
Library Circulation Models.

Pydantic models for the entities the circulation core works with:
- Book: catalog record, one copy per ISBN
- Member: a patron who can borrow and reserve
- Circulation: hold records, reservation entries, notifications
"""

from .book import Book, BookCategory
from .circulation import (
    HoldRecord,
    Notification,
    ReservationEntry,
    ReservationPolicy,
    ReturnReceipt,
)
from .patron import Member

__all__ = [
    "Book",
    "BookCategory",
    "HoldRecord",
    "Member",
    "Notification",
    "ReservationEntry",
    "ReservationPolicy",
    "ReturnReceipt",
]
