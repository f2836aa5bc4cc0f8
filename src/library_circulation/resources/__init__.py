"""Library Circulation MCP Resources Package

Resources are the read-only side of the server: availability lists, the
status of a single item, and per-patron views. State changes go through
tools instead.
"""

from .circulation import circulation_resources

all_resources = circulation_resources

__all__ = [
    "all_resources",
    "circulation_resources",
]
