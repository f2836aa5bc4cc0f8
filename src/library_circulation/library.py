"""
Library facade: one catalog plus its circulation core.

``Library`` wires the catalog, member registry, availability ledger,
reservation queue and coordinator together and is what the MCP tools and
resources talk to. Each branch of a multi-branch system owns one.
"""

import logging

from .catalog import Catalog
from .config import CirculationConfig, get_config
from .coordinator import CirculationCoordinator
from .exceptions import UnknownItemError
from .ledger import AvailabilityLedger
from .members import MemberRegistry
from .models.book import Book
from .models.circulation import ReturnReceipt
from .models.patron import Member
from .notifications import LoggingNotifier, NotificationLog, Notifier
from .recommendations import RecommendationEngine
from .reservations import ReservationQueue

logger = logging.getLogger(__name__)


class Library:
    def __init__(
        self,
        config: CirculationConfig | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self.config = config or get_config()

        self.notifications = NotificationLog(forward_to=notifier or LoggingNotifier())
        self.catalog = Catalog()
        self.members = MemberRegistry()
        self.ledger = AvailabilityLedger()
        self.reservations = ReservationQueue(notifier=self.notifications)
        self.coordinator = CirculationCoordinator(
            ledger=self.ledger,
            members=self.members,
            reservations=self.reservations,
            history=self.catalog,
            policy=self.config.reservation_policy,
            availability_message=self.config.availability_message,
        )
        self.recommender = RecommendationEngine(
            self.catalog, default_limit=self.config.max_recommendations
        )

    # === Books ===

    def add_book(self, book: Book) -> Book:
        """Add a book to the catalog and start circulating it."""
        self.catalog.add_book(book)
        try:
            self.coordinator.register_item(book.isbn)
        except Exception:
            self.catalog.remove_book(book.isbn)
            raise
        return book

    def remove_book(self, isbn: str) -> Book:
        """Withdraw a book; refused while it is checked out."""
        self.coordinator.deregister_item(isbn)
        return self.catalog.remove_book(isbn)

    def find_book(self, isbn: str) -> Book | None:
        return self.catalog.find_book(isbn)

    def get_book(self, isbn: str) -> Book:
        book = self.catalog.find_book(isbn)
        if book is None:
            raise UnknownItemError(isbn)
        return book

    def available_books(self) -> list[Book]:
        return self._books_for(self.coordinator.list_available())

    def borrowed_books(self) -> list[Book]:
        return self._books_for(self.coordinator.list_held())

    def _books_for(self, isbns: list[str]) -> list[Book]:
        books = (self.catalog.find_book(isbn) for isbn in isbns)
        return [b for b in books if b is not None]

    # === Members ===

    def add_member(self, member: Member) -> Member:
        return self.coordinator.register_member(member)

    def find_member(self, member_id: str) -> Member | None:
        return self.members.find(member_id)

    def borrowing_history(self, member_id: str) -> list[Book]:
        return self.catalog.borrowing_history(member_id)

    # === Circulation ===

    def checkout(self, isbn: str, member_id: str) -> bool:
        return self.coordinator.checkout(isbn, member_id)

    def return_item(self, isbn: str, member_id: str) -> bool:
        return self.coordinator.return_item(isbn, member_id)

    def process_return(self, isbn: str, member_id: str) -> ReturnReceipt:
        return self.coordinator.process_return(isbn, member_id)

    def reserve(self, isbn: str, member_id: str) -> bool:
        return self.coordinator.reserve(isbn, member_id)

    def cancel_reservation(self, isbn: str, member_id: str) -> bool:
        return self.coordinator.cancel_reservation(isbn, member_id)

    def is_available(self, isbn: str) -> bool:
        return self.coordinator.is_available(isbn)

    # === Recommendations ===

    def recommend(self, member_id: str, limit: int | None = None) -> list[Book]:
        if not self.members.exists(member_id):
            return []
        return self.recommender.recommend(member_id, limit)


class _LibraryStore:
    """Internal storage for the library served by the MCP server."""

    _instance: Library | None = None


def get_library() -> Library:
    """Get or create the library instance the MCP handlers operate on."""
    if _LibraryStore._instance is None:  # type: ignore[reportPrivateUsage]
        _LibraryStore._instance = Library()  # type: ignore[reportPrivateUsage]
    return _LibraryStore._instance  # type: ignore[reportPrivateUsage]


def set_library(library: Library) -> None:
    _LibraryStore._instance = library  # type: ignore[reportPrivateUsage]


def reset_library() -> None:
    """Discard the shared library (useful for testing)."""
    _LibraryStore._instance = None  # type: ignore[reportPrivateUsage]
