"""Base search gateway interface."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..query import ProximityQuery


@dataclass
class GatewayRequest:
    """Proximity query sent to a gateway, with highlighting on its field."""

    query: ProximityQuery
    limit: int = 1000
    timeout: float | None = None

    @property
    def highlight_field(self) -> str:
        return self.query.field


@dataclass
class Hit:
    """Raw search hit returned by a gateway.

    Attributes:
        book_id: Document identifier
        fields: Stored document fields
        snippets: Highlighted snippets of the queried field
    """

    book_id: str
    fields: dict[str, Any] = field(default_factory=dict)
    snippets: list[str] = field(default_factory=list)


class SearchGateway(ABC):
    """Abstract interface for search backends."""

    @abstractmethod
    def search(self, request: GatewayRequest) -> list[Hit]:
        """Execute an ordered-proximity query.

        Args:
            request: Query, hit limit, and optional time limit

        Returns:
            Hits in backend order, at most ``request.limit``

        Raises:
            BackendError: If the backend fails or times out
        """
        pass

    @abstractmethod
    def get(self, book_id: str) -> dict[str, Any] | None:
        """Fetch a stored document by id.

        Returns:
            Stored fields, or None if no such document exists
        """
        pass

    @abstractmethod
    def index(self, book_id: str, fields: dict[str, Any]) -> None:
        """Index or replace a single document.

        Raises:
            IndexingError: If indexing fails
        """
        pass

    def index_batch(self, documents: list[dict[str, Any]]) -> None:
        """Index multiple documents, each carrying its ``id`` field.

        Raises:
            IndexingError: If a document has no id or indexing fails
        """
        for doc in documents:
            book_id = doc.get("id")
            if not book_id:
                raise IndexingError("Document without id in batch")
            self.index(book_id, doc)

    def update(self, book_id: str, fields: dict[str, Any]) -> None:
        """Merge fields into an existing document.

        Raises:
            IndexingError: If the document does not exist
        """
        existing = self.get(book_id)
        if existing is None:
            raise IndexingError(f"Document not found: {book_id}")
        merged = {**existing, **fields, "id": book_id}
        self.index(book_id, merged)

    @abstractmethod
    def delete(self, book_id: str) -> bool:
        """Delete a document.

        Returns:
            True if the document was deleted, False if not found
        """
        pass

    def commit(self) -> None:
        """Make pending writes visible to searches."""

    @abstractmethod
    def clear(self) -> None:
        """Remove every document."""
        pass

    @abstractmethod
    def ping(self) -> bool:
        """Check whether the backend is reachable."""
        pass

    def get_statistics(self) -> dict[str, Any]:
        return {"backend": type(self).__name__}

    def close(self) -> None:
        """Release backend resources."""

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class SearchError(Exception):
    """Base exception for search-related errors."""


class QueryError(SearchError):
    """Invalid search request, rejected before any backend call."""


class BackendError(SearchError):
    """Search backend unreachable, failing, or too slow."""


class IndexingError(SearchError):
    """Error during document write operations."""


class SearchCancelled(SearchError):
    """Search aborted because the caller cancelled it."""
