"""
Catalog: book records, title/author search, and borrowing history.

The catalog owns *what* a book is; the circulation core owns *who has it*.
The coordinator only talks to the catalog through
``append_borrowing_history`` after a successful checkout.
"""

import logging
from typing import Protocol

from .exceptions import DuplicateItemError, UnknownItemError, require_id
from .models.book import Book

logger = logging.getLogger(__name__)


class BorrowingHistorySink(Protocol):
    """Anything the coordinator can report a completed checkout to."""

    def append_borrowing_history(self, member_id: str, item_id: str) -> None: ...


class Catalog:
    def __init__(self) -> None:
        self._books: dict[str, Book] = {}
        self._history: dict[str, list[str]] = {}

    # === Book records ===

    def add_book(self, book: Book) -> Book:
        if book.isbn in self._books:
            raise DuplicateItemError(book.isbn)
        self._books[book.isbn] = book
        logger.info("Added book: %s", book.title)
        return book

    def remove_book(self, isbn: str) -> Book:
        require_id(isbn, "ISBN")
        book = self._books.pop(isbn, None)
        if book is None:
            raise UnknownItemError(isbn)
        logger.info("Removed book with ISBN: %s", isbn)
        return book

    def update_book(self, isbn: str, book: Book) -> Book:
        """Replace a book record. The ISBN of the record itself cannot change."""
        require_id(isbn, "ISBN")
        if isbn not in self._books:
            raise UnknownItemError(isbn)
        if book.isbn != isbn:
            raise ValueError(f"Cannot change ISBN from {isbn} to {book.isbn}")
        self._books[isbn] = book
        logger.info("Updated book with ISBN: %s", isbn)
        return book

    def find_book(self, isbn: str) -> Book | None:
        require_id(isbn, "ISBN")
        return self._books.get(isbn)

    def find_by_title(self, title: str) -> list[Book]:
        """Case-insensitive substring match on the title."""
        needle = require_id(title, "Title").lower()
        return [b for b in self._books.values() if needle in b.title.lower()]

    def find_by_author(self, author: str) -> list[Book]:
        """Case-insensitive substring match on the author."""
        needle = require_id(author, "Author").lower()
        return [b for b in self._books.values() if needle in b.author.lower()]

    def list_books(self) -> list[Book]:
        return list(self._books.values())

    def __contains__(self, isbn: object) -> bool:
        return isbn in self._books

    def __len__(self) -> int:
        return len(self._books)

    # === Borrowing history ===

    def append_borrowing_history(self, member_id: str, item_id: str) -> None:
        require_id(member_id, "Member ID")
        require_id(item_id, "Item ID")
        if item_id not in self._books:
            raise UnknownItemError(item_id)

        self._history.setdefault(member_id, []).append(item_id)
        logger.debug("Added %s to borrowing history of member %s", item_id, member_id)

    def borrowing_history(self, member_id: str) -> list[Book]:
        """Books a member has checked out, oldest first, repeats included.

        Records removed from the catalog since the checkout are skipped.
        """
        return [
            self._books[isbn] for isbn in self._history.get(member_id, []) if isbn in self._books
        ]

    def borrowed_isbns(self, member_id: str) -> list[str]:
        return list(self._history.get(member_id, []))
