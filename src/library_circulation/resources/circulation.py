"""Circulation Resources - Availability and Patron Views

Read-only views of the circulation state.

Resources:
- library://items/available - Items anyone can check out now
- library://items/held - Items out on loan with their holders
- library://items/{item_id}/status - Holder, reservation queue and hold-for marker of one item
- library://patrons/{member_id}/recommendations - Suggested books from borrowing history
- library://patrons/{member_id}/notifications - Availability notices sent to a member
"""

import logging
from typing import Any

from fastmcp.exceptions import ResourceError
from pydantic import BaseModel, Field

from ..library import get_library
from ..models.book import Book

logger = logging.getLogger(__name__)


class ItemStatus(BaseModel):
    """Circulation state of a single item."""

    book: Book
    available: bool
    holder_id: str | None = None
    reserved_for: str | None = None
    reservation_queue: list[str] = Field(default_factory=list)


class HeldItem(BaseModel):
    book: Book
    holder_id: str


async def list_available_handler() -> dict[str, Any]:
    """Returns every book that can be checked out right now.

    Books kept for a member under the priority policy are left out; only
    that member can check them out.
    """
    try:
        library = get_library()
        books = [
            b for b in library.available_books() if not library.coordinator.reserved_for(b.isbn)
        ]
        return {"items": [b.model_dump() for b in books], "total": len(books)}
    except Exception as e:
        logger.exception("Error in items/available resource")
        raise ResourceError(f"Failed to retrieve available items: {e!s}") from e


async def list_held_handler() -> dict[str, Any]:
    """Returns every book currently out on loan, with its holder."""
    try:
        library = get_library()
        held = [
            HeldItem(book=book, holder_id=library.coordinator.holder_of(book.isbn) or "")
            for book in library.borrowed_books()
        ]
        return {"items": [h.model_dump() for h in held], "total": len(held)}
    except Exception as e:
        logger.exception("Error in items/held resource")
        raise ResourceError(f"Failed to retrieve held items: {e!s}") from e


async def get_item_status_handler(item_id: str) -> dict[str, Any]:
    """Returns holder and waitlist for one item."""
    logger.debug("MCP Resource Request - items/%s/status", item_id)

    library = get_library()
    book = library.find_book(item_id) if item_id else None
    if book is None:
        raise ResourceError(f"Item not found: {item_id}")

    coordinator = library.coordinator
    status = ItemStatus(
        book=book,
        available=coordinator.is_available(item_id),
        holder_id=coordinator.holder_of(item_id),
        reserved_for=coordinator.reserved_for(item_id),
        reservation_queue=coordinator.reservation_queue(item_id),
    )
    return status.model_dump()


async def get_recommendations_handler(member_id: str) -> dict[str, Any]:
    """Returns recommended books for a member."""
    library = get_library()
    if not member_id or not library.members.exists(member_id):
        raise ResourceError(f"Member not found: {member_id}")

    books = library.recommend(member_id)
    return {
        "member_id": member_id,
        "recommendations": [b.model_dump() for b in books],
        "based_on_authors": library.recommender.preferred_authors(member_id),
    }


async def get_notifications_handler(member_id: str) -> dict[str, Any]:
    """Returns availability notices delivered to a member."""
    library = get_library()
    if not member_id or not library.members.exists(member_id):
        raise ResourceError(f"Member not found: {member_id}")

    sent = library.notifications.for_member(member_id)
    return {
        "member_id": member_id,
        "notifications": [n.model_dump(mode="json") for n in sent],
        "total": len(sent),
    }


circulation_resources: list[dict[str, Any]] = [
    {
        "uri": "library://items/available",
        "name": "Available Items",
        "description": "Books nobody holds or is being kept for",
        "mime_type": "application/json",
        "handler": list_available_handler,
    },
    {
        "uri": "library://items/held",
        "name": "Held Items",
        "description": "Books out on loan and the member holding each one",
        "mime_type": "application/json",
        "handler": list_held_handler,
    },
    {
        "uri_template": "library://items/{item_id}/status",
        "name": "Item Status",
        "description": "Holder, waitlist and hold-for member of a single item",
        "mime_type": "application/json",
        "handler": get_item_status_handler,
    },
    {
        "uri_template": "library://patrons/{member_id}/recommendations",
        "name": "Patron Recommendations",
        "description": "Books suggested from a member's borrowing history",
        "mime_type": "application/json",
        "handler": get_recommendations_handler,
    },
    {
        "uri_template": "library://patrons/{member_id}/notifications",
        "name": "Patron Notifications",
        "description": "Availability notices delivered to a member",
        "mime_type": "application/json",
        "handler": get_notifications_handler,
    },
]
