"""Test configuration and fixtures for the Library Circulation MCP Server.

1. Isolated configuration - each test gets its own settings, env vars cleared
2. Fresh in-memory library - no state leaks between tests
3. Recording notifier - tests can assert exactly who was told what
"""

import os
from collections.abc import Generator

import pytest

from library_circulation.catalog import Catalog
from library_circulation.config import CirculationConfig, reset_config
from library_circulation.coordinator import CirculationCoordinator
from library_circulation.ledger import AvailabilityLedger
from library_circulation.library import Library, reset_library, set_library
from library_circulation.members import MemberRegistry
from library_circulation.models import Book, BookCategory, Member, ReservationPolicy
from library_circulation.notifications import NotificationLog
from library_circulation.observability import initialize_observability
from library_circulation.reservations import ReservationQueue

# === Observability ===


@pytest.fixture(scope="session", autouse=True)
def local_tracing() -> None:
    """Configure logfire once, locally, so spans are created but never sent."""
    initialize_observability(
        CirculationConfig(
            observability_enabled=True,
            observability_console=False,
            observability_send=False,
        )
    )


# === Environment Fixtures ===


@pytest.fixture
def clean_env() -> Generator[None, None, None]:
    """Provide an environment without LIBRARY_CIRCULATION_* variables."""
    original_env = os.environ.copy()

    for key in list(os.environ.keys()):
        if key.startswith("LIBRARY_CIRCULATION_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(original_env)


# === Configuration Fixtures ===


@pytest.fixture
def test_config(clean_env) -> Generator[CirculationConfig, None, None]:
    reset_config()

    config = CirculationConfig(
        server_name="test-library-circulation",
        server_version="0.0.1-test",
        debug=True,
        log_level="DEBUG",
        reservation_policy=ReservationPolicy.BROADCAST,
        availability_message="The book you reserved is now available!",
    )

    yield config

    reset_config()


@pytest.fixture
def priority_config(test_config: CirculationConfig) -> CirculationConfig:
    return test_config.model_copy(update={"reservation_policy": ReservationPolicy.PRIORITY})


# === Core Component Fixtures ===


@pytest.fixture
def notifications() -> NotificationLog:
    return NotificationLog()


@pytest.fixture
def ledger() -> AvailabilityLedger:
    return AvailabilityLedger()


@pytest.fixture
def members() -> MemberRegistry:
    registry = MemberRegistry()
    registry.register(Member(member_id="A", name="Alice Reader"))
    registry.register(Member(member_id="B", name="Bob Borrower"))
    registry.register(Member(member_id="C", name="Carol Casual"))
    return registry


@pytest.fixture
def reservations(notifications: NotificationLog) -> ReservationQueue:
    return ReservationQueue(notifier=notifications)


@pytest.fixture
def catalog() -> Catalog:
    catalog = Catalog()
    catalog.add_book(Book(isbn="X", title="Dune", author="Frank Herbert"))
    catalog.add_book(Book(isbn="Y", title="Children of Dune", author="Frank Herbert"))
    return catalog


@pytest.fixture
def coordinator(ledger, members, reservations, catalog) -> CirculationCoordinator:
    """Coordinator with items X and Y registered and members A, B, C."""
    coordinator = CirculationCoordinator(
        ledger=ledger,
        members=members,
        reservations=reservations,
        history=catalog,
    )
    coordinator.register_item("X")
    coordinator.register_item("Y")
    return coordinator


@pytest.fixture
def priority_coordinator(ledger, members, reservations, catalog) -> CirculationCoordinator:
    coordinator = CirculationCoordinator(
        ledger=ledger,
        members=members,
        reservations=reservations,
        history=catalog,
        policy=ReservationPolicy.PRIORITY,
    )
    coordinator.register_item("X")
    coordinator.register_item("Y")
    return coordinator


# === Library Fixtures ===


SAMPLE_BOOKS = [
    Book(
        isbn="9780441172719",
        title="Dune",
        author="Frank Herbert",
        publication_year=1965,
        category=BookCategory.FICTION,
    ),
    Book(
        isbn="9780441104024",
        title="Dune Messiah",
        author="Frank Herbert",
        publication_year=1969,
        category=BookCategory.FICTION,
    ),
    Book(
        isbn="9780132350884",
        title="Clean Code",
        author="Robert C. Martin",
        publication_year=2008,
        category=BookCategory.NON_FICTION,
    ),
    Book(
        isbn="9780198611868",
        title="Oxford Dictionary of English",
        author="Angus Stevenson",
        publication_year=2010,
        category=BookCategory.REFERENCE,
    ),
]


@pytest.fixture
def library(test_config: CirculationConfig, notifications: NotificationLog) -> Library:
    """A library stocked with four books and three members."""
    lib = Library(config=test_config, notifier=notifications)
    for book in SAMPLE_BOOKS:
        lib.add_book(book.model_copy())
    lib.add_member(Member(member_id="M001", name="Alice Reader", email="alice@example.com"))
    lib.add_member(Member(member_id="M002", name="Bob Borrower"))
    lib.add_member(Member(member_id="M003", name="Carol Casual"))
    return lib


@pytest.fixture
def shared_library(library: Library) -> Generator[Library, None, None]:
    """Install ``library`` as the instance MCP handlers operate on."""
    set_library(library)
    yield library
    reset_library()


# === Cleanup Fixtures ===


@pytest.fixture(autouse=True)
def cleanup_after_test():
    yield
    reset_config()
    reset_library()
