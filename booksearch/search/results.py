"""Merging, ranking, and pagination of scored books."""

from collections.abc import Iterable
from datetime import datetime, timezone
from enum import Enum

from ..core.models import ScoredBook

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class SortOrder(Enum):
    """Sort order options for search results."""

    SCORE = "score"
    TIME_NEW = "time_new"
    TIME_OLD = "time_old"
    ALPHABET = "alphabet"

    @classmethod
    def parse(cls, value: "str | SortOrder | None") -> "SortOrder":
        """Parse a sort key, defaulting to score order.

        Raises:
            ValueError: If the key is not a known sort order
        """
        if value is None or value == "":
            return cls.SCORE
        if isinstance(value, cls):
            return value
        return cls(value)


def remove_duplicates(books: Iterable[ScoredBook]) -> list[ScoredBook]:
    """Drop repeated book ids, keeping the first occurrence of each."""
    seen: set[str] = set()
    unique = []
    for book in books:
        if book.id not in seen:
            seen.add(book.id)
            unique.append(book)
    return unique


def _release_key(book: ScoredBook) -> datetime:
    released = book.released_at
    if released is None:
        return _OLDEST
    if released.tzinfo is None:
        return released.replace(tzinfo=timezone.utc)
    return released


def sort_books(books: list[ScoredBook], order: SortOrder) -> list[ScoredBook]:
    """Return a stably sorted copy of ``books``."""
    sorted_books = books.copy()

    if order == SortOrder.SCORE:
        sorted_books.sort(key=lambda b: b.score, reverse=True)
    elif order == SortOrder.TIME_NEW:
        sorted_books.sort(key=_release_key, reverse=True)
    elif order == SortOrder.TIME_OLD:
        sorted_books.sort(key=_release_key)
    elif order == SortOrder.ALPHABET:
        sorted_books.sort(key=lambda b: b.title)

    return sorted_books


def rank_books(
    books: Iterable[ScoredBook], order: SortOrder, cap: int
) -> list[ScoredBook]:
    """Deduplicate, keep the ``cap`` best by score, then apply ``order``.

    The cap is taken in score order, so alternate orders only rearrange
    the best-scoring books and never change which books are kept.
    """
    by_score = sort_books(remove_duplicates(books), SortOrder.SCORE)[:cap]
    if order == SortOrder.SCORE:
        return by_score
    return sort_books(by_score, order)


def paginate(books: list[ScoredBook], skip: int, take: int) -> list[ScoredBook]:
    return books[skip : skip + take]
