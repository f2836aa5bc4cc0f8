"""
Library Circulation MCP Server Package.

Tracks the circulation of single-copy items (books) among library members:
who holds each item, who is waiting for it, and who to tell when it comes
back.

Key Components:
- ledger: availability of each item (at most one holder)
- members: member registry
- reservations: per-item waitlists and release notifications
- coordinator: checkout/return state machine over the three above
- catalog, library, branches, recommendations: the collaborators around it
- tools / resources / server: the MCP surface
"""

__version__ = "0.1.0"

from .catalog import Catalog
from .config import CirculationConfig, get_config, reset_config
from .coordinator import CirculationCoordinator
from .ledger import AvailabilityLedger
from .library import Library
from .members import MemberRegistry
from .reservations import ReservationQueue

__all__ = [
    "AvailabilityLedger",
    "Catalog",
    "CirculationConfig",
    "CirculationCoordinator",
    "Library",
    "MemberRegistry",
    "ReservationQueue",
    "__version__",
    "get_config",
    "reset_config",
]
