"""
Library branches and book transfers between them.

Branches share nothing: each owns an independent :class:`Library`. A
transfer adds the book at the target first and then withdraws it here,
undoing the add if the withdrawal is refused.
"""

import logging

from .config import CirculationConfig
from .exceptions import CirculationError
from .library import Library

logger = logging.getLogger(__name__)


class LibraryBranch:
    def __init__(
        self,
        branch_id: str,
        name: str,
        location: str = "",
        library: Library | None = None,
        config: CirculationConfig | None = None,
    ):
        self.branch_id = branch_id
        self.name = name
        self.location = location
        self.library = library or Library(config=config)

    def transfer_book(self, isbn: str, target: "LibraryBranch") -> bool:
        """Move a book record to another branch.

        Returns:
            False if the book is not here, already exists at the target, or
            is currently checked out
        """
        if target is self or not isbn:
            return False

        book = self.library.find_book(isbn)
        if book is None:
            logger.info("Transfer refused: %s not found at branch %s", isbn, self.branch_id)
            return False

        if not self.library.is_available(isbn):
            logger.info("Transfer refused: %s is checked out at branch %s", isbn, self.branch_id)
            return False

        try:
            target.library.add_book(book.model_copy())
        except CirculationError as e:
            logger.info("Transfer refused by branch %s: %s", target.branch_id, e)
            return False

        try:
            self.library.remove_book(isbn)
        except CirculationError:
            logger.exception("Transfer of %s rolled back", isbn)
            target.library.remove_book(isbn)
            return False

        logger.info("Transferred %s from %s to %s", isbn, self.branch_id, target.branch_id)
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LibraryBranch) and other.branch_id == self.branch_id

    def __hash__(self) -> int:
        return hash(self.branch_id)

    def __repr__(self) -> str:
        return (
            f"LibraryBranch(branch_id={self.branch_id!r}, name={self.name!r}, "
            f"location={self.location!r}, books={len(self.library.catalog)})"
        )
