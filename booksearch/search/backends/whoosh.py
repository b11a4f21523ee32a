"""Whoosh search gateway implementation."""

import logging
import shutil
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from whoosh import fields as whoosh_fields
from whoosh.analysis import StandardAnalyzer
from whoosh.collectors import TimeLimitCollector
from whoosh.highlight import ContextFragmenter, Formatter, get_text, highlight
from whoosh.index import Index, create_in, exists_in, open_dir
from whoosh.query import Every, NullQuery, Query, Term
from whoosh.query.spans import SpanNear2, SpanOr
from whoosh.reading import IndexReader
from whoosh.searching import TimeLimit
from whoosh.writing import IndexWriter

from ..highlighting import EMPHASIS_CLOSE, EMPHASIS_OPEN
from ..query import ProximityQuery
from .base import (
    BackendError,
    GatewayRequest,
    Hit,
    IndexingError,
    SearchGateway,
)

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("title", "author", "content")
DATE_FIELDS = ("created_at", "released_at")


class SnippetFormatter(Formatter):
    """Formats each fragment separately, marking matches with emphasis tags."""

    def __init__(self, open_tag: str = EMPHASIS_OPEN, close_tag: str = EMPHASIS_CLOSE):
        self.open_tag = open_tag
        self.close_tag = close_tag

    def format_token(self, text, token, replace=False):
        return f"{self.open_tag}{get_text(text, token, replace)}{self.close_tag}"

    def format(self, fragments, replace=False) -> list[str]:
        return [self.format_fragment(f, replace=replace) for f in fragments]


class WhooshGateway(SearchGateway):
    """Whoosh-based gateway with persistent disk storage."""

    def __init__(
        self,
        index_dir: Path | None = None,
        create_if_missing: bool = True,
        max_snippets: int = 5,
        fragment_chars: int = 200,
    ):
        """Initialize Whoosh gateway.

        Args:
            index_dir: Directory to store the search index
            create_if_missing: Whether to create index if it doesn't exist
            max_snippets: Maximum highlighted fragments per hit
            fragment_chars: Maximum characters per fragment
        """
        self.index_dir = index_dir or Path.home() / ".cache" / "booksearch" / "index"
        self.max_snippets = max_snippets
        self.fragmenter = ContextFragmenter(maxchars=fragment_chars, surround=40)
        self._index: Index | None = None
        self._writer: IndexWriter | None = None
        self._writer_lock = threading.Lock()

        self.index_dir.mkdir(parents=True, exist_ok=True)

        if create_if_missing or exists_in(str(self.index_dir)):
            self._initialize_index()

    def _initialize_index(self) -> None:
        """Initialize or open the Whoosh index."""
        schema = self._create_schema()

        if exists_in(str(self.index_dir)):
            self._index = open_dir(str(self.index_dir))
            if set(self._index.schema.names()) != set(schema.names()):
                self._recreate_index(schema)
        else:
            self._index = create_in(str(self.index_dir), schema)

    @property
    def schema(self) -> whoosh_fields.Schema | None:
        """Get the current schema."""
        return self._index.schema if self._index else None

    def _create_schema(self) -> whoosh_fields.Schema:
        """Create the book schema."""
        return whoosh_fields.Schema(
            id=whoosh_fields.ID(stored=True, unique=True),
            title=whoosh_fields.TEXT(stored=True, analyzer=StandardAnalyzer()),
            author=whoosh_fields.TEXT(stored=True, analyzer=StandardAnalyzer()),
            content=whoosh_fields.TEXT(stored=True, analyzer=StandardAnalyzer()),
            created_at=whoosh_fields.DATETIME(stored=True),
            released_at=whoosh_fields.DATETIME(stored=True),
        )

    def _recreate_index(self, schema: whoosh_fields.Schema) -> None:
        """Replace an index whose schema no longer matches."""
        logger.warning(f"Schema changed, rebuilding index at {self.index_dir}")
        if self._index:
            self._index.close()

        if self.index_dir.exists():
            shutil.rmtree(self.index_dir)

        self.index_dir.mkdir(parents=True, exist_ok=True)
        self._index = create_in(str(self.index_dir), schema)

    def _require_index(self) -> Index:
        if self._index is None:
            raise BackendError(f"Index not initialized at {self.index_dir}")
        return self._index

    def search(self, request: GatewayRequest) -> list[Hit]:
        """Execute a proximity query with highlighting."""
        index = self._require_index()
        self.commit()

        start_time = time.time()
        query = request.query

        try:
            with index.searcher() as searcher:
                whoosh_query, words = self._convert_query(query, searcher.reader())
                if whoosh_query is NullQuery:
                    return []

                collector = searcher.collector(limit=request.limit)
                if request.timeout is not None:
                    collector = TimeLimitCollector(
                        collector, timelimit=request.timeout, use_alarm=False
                    )
                searcher.search_with_collector(whoosh_query, collector)
                results = collector.results()

                # highlight() keeps stop words, so skipped words are marked too
                analyzer = index.schema[query.field].analyzer
                hits = []
                for result in results:
                    stored = result.fields()
                    snippets = highlight(
                        stored.get(query.field) or "",
                        words,
                        analyzer,
                        self.fragmenter,
                        SnippetFormatter(),
                        top=self.max_snippets,
                    )
                    hits.append(
                        Hit(book_id=stored["id"], fields=stored, snippets=snippets)
                    )
        except TimeLimit as e:
            raise BackendError(
                f"Search timed out after {request.timeout}s: {query.to_string()}"
            ) from e
        except (KeyError, OSError, ValueError) as e:
            raise BackendError(f"Whoosh search failed: {e}") from e

        took_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"{query.to_string()} matched {len(hits)} documents in {took_ms}ms"
        )
        return hits

    def get(self, book_id: str) -> dict[str, Any] | None:
        """Fetch stored fields of one document."""
        index = self._require_index()
        self.commit()

        with index.searcher() as searcher:
            doc = searcher.document(id=book_id)
            return dict(doc) if doc is not None else None

    def index(self, book_id: str, fields: dict[str, Any]) -> None:
        """Index a single document."""
        index = self._require_index()
        doc = self._prepare_document(book_id, fields)

        try:
            with self._writer_lock:
                if self._writer is None:
                    self._writer = index.writer()
                self._writer.update_document(**doc)
        except (OSError, ValueError) as e:
            raise IndexingError(f"Failed to index {book_id}: {e}") from e

    def index_batch(self, documents: list[dict[str, Any]]) -> None:
        """Index multiple documents with one writer."""
        index = self._require_index()
        prepared = []
        for doc in documents:
            book_id = doc.get("id")
            if not book_id:
                raise IndexingError("Document without id in batch")
            prepared.append(self._prepare_document(book_id, doc))

        try:
            with self._writer_lock:
                if self._writer is None:
                    self._writer = index.writer()
                for doc in prepared:
                    self._writer.update_document(**doc)
        except (OSError, ValueError) as e:
            raise IndexingError(f"Batch indexing failed: {e}") from e

    def delete(self, book_id: str) -> bool:
        """Delete document from index."""
        index = self._require_index()

        with self._writer_lock:
            if self._writer is None:
                self._writer = index.writer()
            deleted_count = self._writer.delete_by_term("id", book_id)
            return deleted_count > 0

    def clear(self) -> None:
        """Clear all documents from index."""
        index = self._require_index()
        self.commit()

        with index.writer() as writer:
            writer.delete_by_query(Every())

    def commit(self) -> None:
        """Commit pending changes to index."""
        with self._writer_lock:
            if self._writer is not None:
                self._writer.commit()
                self._writer = None

    def ping(self) -> bool:
        if self._index is None:
            return False
        try:
            with self._index.searcher() as searcher:
                searcher.doc_count()
        except OSError as e:
            logger.debug(f"Whoosh index not readable: {e}")
            return False
        return True

    def get_statistics(self) -> dict[str, Any]:
        """Get index statistics."""
        if not self._index:
            return {"backend": type(self).__name__, "total_documents": 0}

        self.commit()
        with self._index.searcher() as searcher:
            return {
                "backend": type(self).__name__,
                "total_documents": searcher.doc_count(),
                "index_size_mb": self._get_index_size() / (1024 * 1024),
                "index_path": str(self.index_dir),
                "fields": list(self._index.schema.names()),
            }

    def _prepare_document(self, book_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Prepare document for Whoosh indexing."""
        doc: dict[str, Any] = {"id": book_id}

        for field_name in TEXT_FIELDS:
            value = fields.get(field_name)
            doc[field_name] = str(value) if value is not None else ""

        for field_name in DATE_FIELDS:
            value = fields.get(field_name)
            if value is None:
                continue
            if isinstance(value, str):
                try:
                    value = datetime.fromisoformat(value.replace("Z", "+00:00"))
                except ValueError:
                    logger.warning(f"Ignoring unparseable {field_name} on {book_id}")
                    continue
            if not isinstance(value, datetime):
                continue
            if value.tzinfo is not None:
                value = value.astimezone(timezone.utc).replace(tzinfo=None)
            doc[field_name] = value

        return doc

    def _convert_query(
        self, query: ProximityQuery, reader: IndexReader
    ) -> tuple[Query, set[str]]:
        """Convert a proximity query into a Whoosh span query.

        Fuzzy clauses are expanded against the index vocabulary. Whoosh
        measures span distance so that adjacent words are 1 apart, hence
        ``slop + 1``.

        Returns:
            The Whoosh query and the set of words it can match
        """
        clauses, skipped = query.analyze(reader.schema[query.field].analyzer)
        if not clauses:
            return NullQuery, set()

        span_clauses: list[Query] = []
        words: set[str] = set(skipped)

        for clause in clauses:
            if clause.fuzziness:
                expansions = sorted(
                    set(
                        reader.terms_within(
                            query.field, clause.value, clause.fuzziness
                        )
                    )
                )
            else:
                expansions = [clause.value]

            if not expansions:
                return NullQuery, set()

            words.update(expansions)
            terms = [Term(query.field, word) for word in expansions]
            span_clauses.append(terms[0] if len(terms) == 1 else SpanOr(terms))

        if len(span_clauses) == 1:
            return span_clauses[0], words

        whoosh_query = SpanNear2(
            span_clauses, slop=query.slop + 1, ordered=query.in_order
        )
        return whoosh_query, words

    def _get_index_size(self) -> int:
        """Calculate index size in bytes."""
        total_size = 0

        try:
            for file_path in self.index_dir.rglob("*"):
                if file_path.is_file():
                    total_size += file_path.stat().st_size
        except OSError:
            pass

        return total_size

    def close(self) -> None:
        """Close the index and release resources."""
        self.commit()

        if self._index:
            self._index.close()
            self._index = None
