"""Elasticsearch search gateway implementation."""

import logging
from typing import Any

from elasticsearch import (
    ApiError,
    Elasticsearch,
    NotFoundError,
    SerializationError,
    TransportError,
)

from .base import BackendError, GatewayRequest, Hit, IndexingError, SearchGateway

logger = logging.getLogger(__name__)

BACKEND_ERRORS = (ApiError, TransportError, SerializationError)


class ElasticsearchGateway(SearchGateway):
    """Gateway sending span queries to an Elasticsearch cluster."""

    def __init__(
        self,
        client: Elasticsearch | None = None,
        url: str = "http://localhost:9200",
        index_name: str = "books",
    ):
        """Initialize Elasticsearch gateway.

        Args:
            client: Preconfigured client (default: one connected to ``url``)
            url: Cluster URL used when no client is given
            index_name: Index holding the book documents
        """
        self.client = client or Elasticsearch(url)
        self.index_name = index_name

    def search(self, request: GatewayRequest) -> list[Hit]:
        """Execute a ``span_near`` query with a plain highlighter."""
        field = request.highlight_field
        client = self.client
        if request.timeout is not None:
            client = client.options(request_timeout=request.timeout)

        try:
            response = client.search(
                index=self.index_name,
                query=request.query.to_dict(),
                size=request.limit,
                track_scores=False,
                highlight={"type": "plain", "fields": {field: {}}},
            )
        except BACKEND_ERRORS as e:
            logger.error(f"Elasticsearch search failed: {e}")
            raise BackendError(f"Elasticsearch search failed: {e}") from e

        try:
            return [
                Hit(
                    book_id=hit["_id"],
                    fields=hit.get("_source") or {},
                    snippets=list((hit.get("highlight") or {}).get(field, [])),
                )
                for hit in response["hits"]["hits"]
            ]
        except (KeyError, TypeError, AttributeError) as e:
            raise BackendError(f"Malformed Elasticsearch response: {e}") from e

    def get(self, book_id: str) -> dict[str, Any] | None:
        try:
            response = self.client.get(index=self.index_name, id=book_id)
        except NotFoundError:
            return None
        except BACKEND_ERRORS as e:
            raise BackendError(f"Failed to fetch {book_id}: {e}") from e
        return {**response["_source"], "id": response["_id"]}

    def index(self, book_id: str, fields: dict[str, Any]) -> None:
        try:
            self.client.index(
                index=self.index_name, id=book_id, document={**fields, "id": book_id}
            )
        except BACKEND_ERRORS as e:
            raise IndexingError(f"Failed to index {book_id}: {e}") from e

    def update(self, book_id: str, fields: dict[str, Any]) -> None:
        try:
            self.client.update(index=self.index_name, id=book_id, doc=fields)
        except NotFoundError as e:
            raise IndexingError(f"Document not found: {book_id}") from e
        except BACKEND_ERRORS as e:
            raise IndexingError(f"Failed to update {book_id}: {e}") from e

    def delete(self, book_id: str) -> bool:
        try:
            self.client.delete(index=self.index_name, id=book_id)
        except NotFoundError:
            return False
        except BACKEND_ERRORS as e:
            raise IndexingError(f"Failed to delete {book_id}: {e}") from e
        return True

    def commit(self) -> None:
        """Refresh the index so recent writes become searchable."""
        try:
            self.client.indices.refresh(index=self.index_name)
        except BACKEND_ERRORS as e:
            raise BackendError(f"Failed to refresh {self.index_name}: {e}") from e

    def clear(self) -> None:
        try:
            self.client.delete_by_query(
                index=self.index_name, query={"match_all": {}}, refresh=True
            )
        except BACKEND_ERRORS as e:
            raise IndexingError(f"Failed to clear {self.index_name}: {e}") from e

    def ping(self) -> bool:
        try:
            return bool(self.client.ping())
        except BACKEND_ERRORS as e:
            logger.debug(f"Elasticsearch ping failed: {e}")
            return False

    def get_statistics(self) -> dict[str, Any]:
        try:
            count = self.client.count(index=self.index_name)["count"]
        except BACKEND_ERRORS as e:
            raise BackendError(f"Failed to count {self.index_name}: {e}") from e
        return {
            "backend": type(self).__name__,
            "index_name": self.index_name,
            "total_documents": count,
        }

    def close(self) -> None:
        self.client.close()
