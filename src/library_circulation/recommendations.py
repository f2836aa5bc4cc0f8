"""
Book recommendations from borrowing history.

A read-only pass over the catalog: first books by authors the member has
borrowed before, then anything else they have not borrowed, in catalog
order, until the limit is reached.
"""

import logging

from .catalog import Catalog
from .models.book import Book

logger = logging.getLogger(__name__)


class RecommendationEngine:
    def __init__(self, catalog: Catalog, default_limit: int = 5):
        self.catalog = catalog
        self.default_limit = default_limit

    def preferred_authors(self, member_id: str) -> list[str]:
        """Authors in the order the member first borrowed them."""
        authors = [book.author for book in self.catalog.borrowing_history(member_id)]
        return list(dict.fromkeys(authors))

    def recommend(self, member_id: str, limit: int | None = None) -> list[Book]:
        limit = self.default_limit if limit is None else limit
        if not member_id or limit <= 0:
            return []

        borrowed = set(self.catalog.borrowed_isbns(member_id))
        candidates = [b for b in self.catalog.list_books() if b.isbn not in borrowed]

        picks: list[Book] = []
        for author in self.preferred_authors(member_id):
            picks.extend(b for b in candidates if b.author == author and b not in picks)

        picks.extend(b for b in candidates if b not in picks)

        logger.debug("Generated %d recommendation(s) for %s", min(len(picks), limit), member_id)
        return picks[:limit]
