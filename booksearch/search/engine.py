"""Search engine: proximity rounds, fallback, scoring, and ranking."""

import logging
import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass

import msgspec

from ..config import SearchSettings
from ..core.models import ScoredBook, SearchResponse
from .backends.base import (
    BackendError,
    GatewayRequest,
    Hit,
    QueryError,
    SearchCancelled,
    SearchError,
    SearchGateway,
)
from .query import build_proximity_query
from .results import SortOrder, paginate, rank_books
from .scoring import SnippetScorer
from .terms import TermSet, split_terms

logger = logging.getLogger(__name__)

# How often a waiting request checks its cancellation token
POLL_INTERVAL = 0.05


@dataclass(frozen=True)
class SearchRound:
    """One backend round-trip of a search request.

    Attributes:
        terms: Terms queried in this round
        is_full_set: Whether every original term is included
        limit: Maximum hits requested from the gateway
    """

    terms: TermSet
    is_full_set: bool
    limit: int


class SearchEngine:
    """Ordered-proximity search over a gateway.

    The engine holds no per-request state, so one instance can serve
    concurrent requests.
    """

    def __init__(
        self,
        gateway: SearchGateway,
        settings: SearchSettings | None = None,
        scorer: SnippetScorer | None = None,
    ):
        """Initialize search engine.

        Args:
            gateway: Backend the rounds are sent to
            settings: Round limits, caps, and timeouts (default: SearchSettings())
            scorer: Snippet scorer (default: SnippetScorer())
        """
        self.gateway = gateway
        self.settings = settings or SearchSettings()
        self.scorer = scorer or SnippetScorer()

    def search(
        self,
        query: str,
        field: str | None = None,
        sort: str | SortOrder | None = None,
        skip: int = 0,
        take: int | None = None,
        cancel: threading.Event | None = None,
    ) -> SearchResponse:
        """Execute a search request.

        The full term set is queried first. When it matches fewer than
        ``min_hits`` books and the query has several terms, every term set
        with one term removed is queried as well, concurrently.

        Args:
            query: Free-text query, split on whitespace
            field: Field to search (default: ``settings.default_field``)
            sort: Presentation order applied after the score cap
            skip: Number of ranked books to skip
            take: Page size (default: ``settings.page_size``)
            cancel: Event that aborts the request when set

        Returns:
            One page of ranked books, with the ranked total

        Raises:
            QueryError: If the request is invalid; no backend call is made
            BackendError: If a round fails or the request times out
            SearchCancelled: If ``cancel`` is set before the request completes
        """
        start_time = time.time()
        terms, order, take = self._validate(query, sort, skip, take)
        field = field or self.settings.default_field

        deadline = None
        if self.settings.timeout is not None:
            deadline = time.monotonic() + self.settings.timeout

        full_round = SearchRound(terms, True, self.settings.full_round_limit)
        books = self._run_rounds([full_round], field, deadline, cancel)
        logger.debug(f"Full-set round for {str(terms)!r} returned {len(books)} books")

        if len(terms) > 1 and len(books) < self.settings.min_hits:
            fallback_rounds = [
                SearchRound(reduced, False, self.settings.fallback_round_limit)
                for reduced in terms.one_term_removed()
            ]
            logger.debug(f"Running {len(fallback_rounds)} fallback rounds")
            books.extend(self._run_rounds(fallback_rounds, field, deadline, cancel))

        ranked = rank_books(books, order, self.settings.score_cap)
        page = paginate(ranked, skip, take)

        took_ms = int((time.time() - start_time) * 1000)
        logger.info(
            f"Search {str(terms)!r} on {field}: {len(ranked)} ranked, "
            f"{len(page)} returned in {took_ms}ms"
        )
        return SearchResponse(query=query, books=page, total=len(ranked))

    def _validate(
        self,
        query: str | None,
        sort: str | SortOrder | None,
        skip: int,
        take: int | None,
    ) -> tuple[TermSet, SortOrder, int]:
        if query is None or not query.strip():
            raise QueryError("Query must not be empty")

        try:
            order = SortOrder.parse(sort)
        except ValueError as e:
            valid = ", ".join(o.value for o in SortOrder)
            raise QueryError(f"Unknown sort order {sort!r}, expected {valid}") from e

        if skip < 0:
            raise QueryError(f"skip must not be negative, got {skip}")

        if take is None:
            take = self.settings.page_size
        if take < 1:
            raise QueryError(f"take must be at least 1, got {take}")

        return split_terms(query), order, take

    def _run_rounds(
        self,
        rounds: list[SearchRound],
        field: str,
        deadline: float | None,
        cancel: threading.Event | None,
    ) -> list[ScoredBook]:
        """Run rounds concurrently and concatenate their books in round order."""
        executor = ThreadPoolExecutor(
            max_workers=min(self.settings.max_workers, len(rounds)),
            thread_name_prefix="booksearch-round",
        )
        try:
            futures = [
                executor.submit(self._run_round, search_round, field, deadline, cancel)
                for search_round in rounds
            ]
            self._wait_for(futures, deadline, cancel)
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        books: list[ScoredBook] = []
        for future in futures:
            books.extend(future.result())
        return books

    def _wait_for(
        self,
        futures: list[Future],
        deadline: float | None,
        cancel: threading.Event | None,
    ) -> None:
        """Block until every round finished, failing fast on the first error."""
        pending = set(futures)

        while pending:
            if cancel is not None and cancel.is_set():
                raise SearchCancelled("Search cancelled by caller")

            wait_time = POLL_INTERVAL
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise BackendError(
                        f"Search timed out after {self.settings.timeout}s"
                    )
                wait_time = min(wait_time, remaining)

            done, pending = wait(
                pending, timeout=wait_time, return_when=FIRST_EXCEPTION
            )
            for future in done:
                error = future.exception()
                if error is None:
                    continue
                if isinstance(error, SearchError):
                    raise error
                logger.error(f"Search round failed: {error}")
                raise BackendError(f"Search round failed: {error}") from error

    def _run_round(
        self,
        search_round: SearchRound,
        field: str,
        deadline: float | None,
        cancel: threading.Event | None,
    ) -> list[ScoredBook]:
        """Query the gateway for one round and score its hits."""
        if cancel is not None and cancel.is_set():
            raise SearchCancelled("Search cancelled by caller")

        timeout = None
        if deadline is not None:
            timeout = deadline - time.monotonic()
            if timeout <= 0:
                raise BackendError(f"Search timed out after {self.settings.timeout}s")

        query = build_proximity_query(search_round.terms, field)
        request = GatewayRequest(query=query, limit=search_round.limit, timeout=timeout)
        hits = self.gateway.search(request)

        books = []
        for hit in hits:
            score = self.scorer.score(
                hit.snippets, search_round.terms, search_round.is_full_set
            )
            book = self._to_book(hit, score)
            if book is not None:
                books.append(book)

        logger.debug(f"{query.to_string()}: {len(hits)} hits, {len(books)} usable")
        return books

    def _to_book(self, hit: Hit, score: float) -> ScoredBook | None:
        """Convert a hit's stored fields, skipping documents that don't decode."""
        try:
            return msgspec.convert(
                {**hit.fields, "id": hit.book_id, "score": score}, ScoredBook
            )
        except msgspec.ValidationError as e:
            logger.warning(f"Skipping malformed document {hit.book_id}: {e}")
            return None
