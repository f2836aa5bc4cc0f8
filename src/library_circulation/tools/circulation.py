"""
Circulation tools for the Library Circulation MCP Server.

Tools are the operations with side effects:
1. checkout_item: lend an available item to a member
2. return_item: take an item back and notify anyone waiting
3. reserve_item: join an item's waitlist
4. cancel_reservation: leave an item's waitlist

Every handler returns a structured MCP result. Failures come back with
``isError`` set and an ``errorType`` telling the client what kind of
failure it was:

- ``validation``: the arguments did not match the input schema
- ``precondition``: unknown item or member, or another malformed call
- ``refused``: a normal business outcome such as "already checked out"
- ``internal``: anything unexpected
"""

import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import CirculationError, PreconditionError
from ..library import get_library

logger = logging.getLogger(__name__)


def _text(message: str) -> list[dict[str, str]]:
    return [{"type": "text", "text": message}]


def _error(message: str, error_type: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
    response: dict[str, Any] = {
        "isError": True,
        "errorType": error_type,
        "content": _text(message),
    }
    if data is not None:
        response["data"] = data
    return response


def _circulation_error(operation: str, e: CirculationError) -> dict[str, Any]:
    if isinstance(e, PreconditionError):
        logger.info("%s failed - precondition: %s", operation, e)
        return _error(str(e), "precondition")
    logger.info("%s failed - state conflict: %s", operation, e)
    return _error(str(e), "refused")


class CirculationInput(BaseModel):
    """Arguments shared by every circulation tool."""

    item_id: str = Field(
        ...,
        description="Identifier (ISBN) of the item",
        min_length=1,
        max_length=64,
        examples=["9780743273565"],
    )

    member_id: str = Field(
        ...,
        description="Identifier of the member",
        min_length=1,
        max_length=64,
        examples=["M001"],
    )


# =============================================================================
# CHECKOUT
# =============================================================================


async def checkout_item_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Lend an item to a member if nobody else holds it."""
    try:
        params = CirculationInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid checkout parameters: %s", e)
        return _error(f"Invalid checkout parameters: {e}", "validation")

    library = get_library()
    try:
        checked_out = library.checkout(params.item_id, params.member_id)
    except CirculationError as e:
        return _circulation_error("Checkout", e)
    except Exception as e:
        logger.exception("Unexpected error in checkout_item tool")
        return _error(f"An unexpected error occurred: {e!s}", "internal")

    data = {
        "item_id": params.item_id,
        "member_id": params.member_id,
        "checked_out": checked_out,
        "holder_id": library.coordinator.holder_of(params.item_id),
    }

    if not checked_out:
        reserved_for = library.coordinator.reserved_for(params.item_id)
        if reserved_for:
            message = f"Item '{params.item_id}' is being held for another member."
        else:
            message = f"Item '{params.item_id}' is already checked out."
        return _error(message, "refused", {"checkout": data})

    book = library.find_book(params.item_id)
    title = book.title if book else params.item_id
    return {
        "content": _text(
            f"Successfully checked out '{title}' to member '{params.member_id}'."
        ),
        "data": {"checkout": data},
    }


# =============================================================================
# RETURN
# =============================================================================


async def return_item_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Take an item back; waiting members are notified."""
    try:
        params = CirculationInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid return parameters: %s", e)
        return _error(f"Invalid return parameters: {e}", "validation")

    library = get_library()
    try:
        receipt = library.process_return(params.item_id, params.member_id)
    except CirculationError as e:
        return _circulation_error("Return", e)
    except Exception as e:
        logger.exception("Unexpected error in return_item tool")
        return _error(f"An unexpected error occurred: {e!s}", "internal")

    if not receipt.returned:
        return _error(
            f"Member '{params.member_id}' does not hold item '{params.item_id}'.",
            "refused",
            {"return": receipt.model_dump()},
        )

    message = f"Successfully returned item '{params.item_id}'."
    if receipt.reserved_for:
        message += f" Now held for '{receipt.reserved_for}'."
    elif receipt.notified:
        message += f" Notified {len(receipt.notified)} waiting member(s)."

    return {
        "content": _text(message),
        "data": {
            "return": {
                **receipt.model_dump(),
                "available": library.is_available(params.item_id),
            }
        },
    }


# =============================================================================
# RESERVATIONS
# =============================================================================


async def reserve_item_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Add a member to an item's waitlist."""
    try:
        params = CirculationInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid reservation parameters: %s", e)
        return _error(f"Invalid reservation parameters: {e}", "validation")

    library = get_library()
    try:
        reserved = library.reserve(params.item_id, params.member_id)
    except CirculationError as e:
        return _circulation_error("Reservation", e)
    except Exception as e:
        logger.exception("Unexpected error in reserve_item tool")
        return _error(f"An unexpected error occurred: {e!s}", "internal")

    position = library.reservations.position(params.item_id, params.member_id)
    data = {
        "item_id": params.item_id,
        "member_id": params.member_id,
        "reserved": reserved,
        "queue_position": position,
        "total_in_queue": library.coordinator.reservation_count(params.item_id),
    }

    if not reserved:
        return _error(
            f"Member '{params.member_id}' already has a reservation for item '{params.item_id}'.",
            "refused",
            {"reservation": data},
        )

    return {
        "content": _text(
            f"Successfully reserved item '{params.item_id}' for member "
            f"'{params.member_id}'. Queue position: {position}"
        ),
        "data": {"reservation": data},
    }


async def cancel_reservation_handler(arguments: dict[str, Any]) -> dict[str, Any]:
    """Remove a member from an item's waitlist."""
    try:
        params = CirculationInput.model_validate(arguments)
    except ValidationError as e:
        logger.warning("Invalid cancellation parameters: %s", e)
        return _error(f"Invalid cancellation parameters: {e}", "validation")

    library = get_library()
    try:
        cancelled = library.cancel_reservation(params.item_id, params.member_id)
    except CirculationError as e:
        return _circulation_error("Cancellation", e)
    except Exception as e:
        logger.exception("Unexpected error in cancel_reservation tool")
        return _error(f"An unexpected error occurred: {e!s}", "internal")

    data = {"item_id": params.item_id, "member_id": params.member_id, "cancelled": cancelled}
    if not cancelled:
        return _error(
            f"Member '{params.member_id}' has no reservation for item '{params.item_id}'.",
            "refused",
            {"cancellation": data},
        )

    return {
        "content": _text(
            f"Cancelled reservation of item '{params.item_id}' for member '{params.member_id}'."
        ),
        "data": {"cancellation": data},
    }


# =============================================================================
# TOOL REGISTRATION
# =============================================================================

checkout_item = {
    "name": "checkout_item",
    "description": (
        "Check out an item to a member. Succeeds only if nobody holds the item and it is "
        "not being kept for another member."
    ),
    "inputSchema": CirculationInput.model_json_schema(),
    "handler": checkout_item_handler,
}

return_item = {
    "name": "return_item",
    "description": (
        "Return an item held by a member. Members waiting on the item are notified that "
        "it is available."
    ),
    "inputSchema": CirculationInput.model_json_schema(),
    "handler": return_item_handler,
}

reserve_item = {
    "name": "reserve_item",
    "description": (
        "Join the waitlist for an item. The member is notified when the item is returned."
    ),
    "inputSchema": CirculationInput.model_json_schema(),
    "handler": reserve_item_handler,
}

cancel_reservation = {
    "name": "cancel_reservation",
    "description": "Leave the waitlist for an item without affecting anyone else's place.",
    "inputSchema": CirculationInput.model_json_schema(),
    "handler": cancel_reservation_handler,
}
