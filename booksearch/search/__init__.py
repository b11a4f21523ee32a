"""Search pipeline for books.

This module turns a free-text query into ordered-proximity queries,
scores the highlighted snippets each gateway returns, and merges the
rounds into one ranked result page.

Main components:
- SearchEngine: Runs the full-set and fallback rounds
- SnippetScorer: Scores hits from their highlighted snippets
- Gateways (Memory, Whoosh, Elasticsearch) under ``backends``
"""

from .backends import (
    BackendError,
    GatewayRequest,
    Hit,
    IndexingError,
    QueryError,
    SearchCancelled,
    SearchError,
    SearchGateway,
)
from .backends.memory import MemoryGateway
from .distance import approximate_distance
from .engine import SearchEngine, SearchRound
from .highlighting import SnippetParser, SnippetToken
from .query import FuzzyClause, ProximityQuery, build_proximity_query
from .results import SortOrder, paginate, rank_books, remove_duplicates
from .scoring import ScoreBaseline, SnippetScorer
from .terms import SearchTerm, TermSet, max_fuzziness, split_terms

__all__ = [
    "BackendError",
    "FuzzyClause",
    "GatewayRequest",
    "Hit",
    "IndexingError",
    "MemoryGateway",
    "ProximityQuery",
    "QueryError",
    "ScoreBaseline",
    "SearchCancelled",
    "SearchEngine",
    "SearchError",
    "SearchGateway",
    "SearchRound",
    "SearchTerm",
    "SnippetParser",
    "SnippetScorer",
    "SnippetToken",
    "SortOrder",
    "TermSet",
    "approximate_distance",
    "build_proximity_query",
    "max_fuzziness",
    "paginate",
    "rank_books",
    "remove_duplicates",
    "split_terms",
]
