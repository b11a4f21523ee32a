"""In-memory search gateway for testing and lightweight scenarios."""

import logging
import threading
import time
from typing import Any, NamedTuple

from rapidfuzz.distance import Levenshtein
from whoosh.analysis import StandardAnalyzer

from ..highlighting import mark_spans
from ..query import FuzzyClause, ProximityQuery
from .base import GatewayRequest, Hit, IndexingError, SearchGateway

logger = logging.getLogger(__name__)


class IndexedToken(NamedTuple):
    """Analyzed token with its position and character offsets."""

    text: str
    pos: int
    startchar: int
    endchar: int


class MemoryGateway(SearchGateway):
    """In-memory gateway that evaluates proximity queries itself.

    Text is analyzed with Whoosh's StandardAnalyzer, so stop words are
    dropped and positions renumbered exactly as the Whoosh gateway
    indexes them.
    """

    def __init__(self, surround: int = 4, max_snippets: int = 5):
        """Initialize memory gateway.

        Args:
            surround: Tokens of context on each side of a snippet's match
            max_snippets: Maximum snippets returned per hit
        """
        self.documents: dict[str, dict[str, Any]] = {}
        self.analyzer = StandardAnalyzer()
        self.surround = surround
        self.max_snippets = max_snippets
        self._token_cache: dict[tuple[str, str], list[IndexedToken]] = {}
        self._lock = threading.Lock()

    def search(self, request: GatewayRequest) -> list[Hit]:
        """Execute the proximity query against every stored document."""
        start_time = time.time()
        query = request.query

        clauses, skipped = query.analyze(self.analyzer)
        if not clauses:
            logger.debug(f"{query.to_string()} has only stop words")
            return []

        with self._lock:
            documents = list(self.documents.items())

        hits = []
        for book_id, doc in documents:
            if len(hits) >= request.limit:
                break

            text = doc.get(query.field)
            if not isinstance(text, str) or not text:
                continue

            tokens = self._analyze(book_id, query.field, text)
            runs = self._find_runs(tokens, clauses, query.slop)
            if not runs:
                continue

            snippets = [
                self._make_snippet(text, tokens, run, clauses, skipped)
                for run in runs[: self.max_snippets]
            ]
            hits.append(Hit(book_id=book_id, fields=dict(doc), snippets=snippets))

        took_ms = int((time.time() - start_time) * 1000)
        logger.debug(
            f"{query.to_string()} matched {len(hits)} documents in {took_ms}ms"
        )
        return hits

    def get(self, book_id: str) -> dict[str, Any] | None:
        with self._lock:
            doc = self.documents.get(book_id)
            return dict(doc) if doc is not None else None

    def index(self, book_id: str, fields: dict[str, Any]) -> None:
        """Store a document, replacing any previous version."""
        if not book_id:
            raise IndexingError("Cannot index a document without an id")

        with self._lock:
            self.documents[book_id] = {**fields, "id": book_id}
            for key in [key for key in self._token_cache if key[0] == book_id]:
                del self._token_cache[key]

    def delete(self, book_id: str) -> bool:
        with self._lock:
            if book_id not in self.documents:
                return False
            del self.documents[book_id]
            for key in [key for key in self._token_cache if key[0] == book_id]:
                del self._token_cache[key]
            return True

    def clear(self) -> None:
        with self._lock:
            self.documents.clear()
            self._token_cache.clear()

    def ping(self) -> bool:
        return True

    def get_statistics(self) -> dict[str, Any]:
        return {
            "backend": type(self).__name__,
            "total_documents": len(self.documents),
            "cached_fields": len(self._token_cache),
        }

    def _analyze(self, book_id: str, field: str, text: str) -> list[IndexedToken]:
        """Tokenize a field, caching the result per document."""
        key = (book_id, field)
        cached = self._token_cache.get(key)
        if cached is not None:
            return cached

        tokens = [
            IndexedToken(t.text, t.pos, t.startchar, t.endchar)
            for t in self.analyzer(text, positions=True, chars=True)
        ]
        with self._lock:
            self._token_cache[key] = tokens
        return tokens

    def _clause_matches(self, clause: FuzzyClause, word: str) -> bool:
        if clause.fuzziness == 0:
            return word == clause.value
        cutoff = clause.fuzziness
        return Levenshtein.distance(word, clause.value, score_cutoff=cutoff) <= cutoff

    def _find_runs(
        self, tokens: list[IndexedToken], clauses: list[FuzzyClause], slop: int
    ) -> list[list[int]]:
        """Find non-overlapping runs of tokens matching every clause.

        Consecutive clauses must match tokens at most ``slop`` positions
        apart, in clause order.
        """
        runs = []
        i = 0

        while i < len(tokens):
            run = None
            if self._clause_matches(clauses[0], tokens[i].text):
                run = self._extend_run(tokens, clauses, slop, [i])

            if run:
                runs.append(run)
                i = run[-1] + 1
            else:
                i += 1

        return runs

    def _extend_run(
        self,
        tokens: list[IndexedToken],
        clauses: list[FuzzyClause],
        slop: int,
        run: list[int],
    ) -> list[int] | None:
        """Complete a partial run, trying every reachable token per clause."""
        if len(run) == len(clauses):
            return run

        clause = clauses[len(run)]
        previous = tokens[run[-1]].pos
        for j in range(run[-1] + 1, len(tokens)):
            if tokens[j].pos - previous - 1 > slop:
                break
            if self._clause_matches(clause, tokens[j].text):
                extended = self._extend_run(tokens, clauses, slop, run + [j])
                if extended:
                    return extended

        return None

    def _make_snippet(
        self,
        text: str,
        tokens: list[IndexedToken],
        run: list[int],
        clauses: list[FuzzyClause],
        skipped: set[str],
    ) -> str:
        """Render the text around a run, marking every matching word.

        The window reaches out to the neighbouring indexed tokens, so stop
        words next to it are kept. Skipped query words are marked wherever
        they occur in the window.
        """
        first = max(0, run[0] - self.surround)
        last = min(len(tokens) - 1, run[-1] + self.surround)
        start = tokens[first - 1].endchar if first > 0 else 0
        end = tokens[last + 1].startchar if last + 1 < len(tokens) else len(text)
        window = text[start:end]
        indexed = {token.startchar - start for token in tokens[first : last + 1]}

        spans = []
        for token in self.analyzer(window, chars=True, removestops=False):
            if token.startchar in indexed:
                matched = any(self._clause_matches(c, token.text) for c in clauses)
            else:
                matched = token.text in skipped
            if matched:
                spans.append((token.startchar, token.endchar))

        return mark_spans(window, spans).strip()
