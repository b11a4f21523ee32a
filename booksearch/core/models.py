"""Core data models for books and search responses.

Books are stored in the search backend as flat documents. The search
pipeline reads them back as ScoredBook values carrying only the display
fields plus the relevance score computed from highlighted snippets.

Key components:
- Book: Stored document as indexed by the gateways
- ScoredBook: Display fields of a matched book with its relevance score
- SearchResponse: Ordered page of scored books returned to callers
"""

from datetime import datetime, timezone
from typing import Any

import msgspec


class Book(msgspec.Struct, frozen=True, kw_only=True):
    """A stored book document.

    Immutable so the same instance can be shared between the indexing
    commands and the gateways without defensive copies.
    """

    id: str
    title: str = ""
    author: str = ""
    created_at: datetime | None = None
    released_at: datetime | None = None
    content: str = ""

    def to_fields(self) -> dict[str, Any]:
        """Convert to the field mapping handed to a gateway."""
        return msgspec.to_builtins(self, builtin_types=(datetime,))

    def stamped(self) -> "Book":
        """Return a copy with ``created_at`` set if it was missing."""
        if self.created_at is not None:
            return self
        return msgspec.structs.replace(self, created_at=datetime.now(timezone.utc))


class ScoredBook(msgspec.Struct, frozen=True, kw_only=True):
    """A matched book with its relevance score.

    Identity is the book id: two ScoredBook values with the same id are
    duplicates regardless of score.
    """

    id: str
    title: str = ""
    author: str = ""
    released_at: datetime | None = None
    score: float = 0.0


class SearchResponse(msgspec.Struct, kw_only=True):
    """One page of ranked search results."""

    query: str
    books: list[ScoredBook] = msgspec.field(default_factory=list)
    total: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.books

    @property
    def top_book(self) -> ScoredBook | None:
        """Get the first book on the page."""
        return self.books[0] if self.books else None

    def to_json(self) -> bytes:
        return msgspec.json.encode(self)
