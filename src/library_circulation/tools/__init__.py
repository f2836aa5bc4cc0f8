"""
MCP Tools for the Library Circulation Server.

Tools are the actions with side effects: checkout, return, and the
reservation waitlist. Each tool is a dictionary with a name, description,
JSON input schema and async handler, registered by the server at startup.
"""

from .circulation import cancel_reservation, checkout_item, reserve_item, return_item

all_tools = [
    checkout_item,
    return_item,
    reserve_item,
    cancel_reservation,
]

__all__ = [
    "all_tools",
    "cancel_reservation",
    "checkout_item",
    "reserve_item",
    "return_item",
]
