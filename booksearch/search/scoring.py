"""Relevance scoring from highlighted snippets.

A hit is scored by the best snippet that contains a complete in-order
run of the round's terms. Each unmarked token inside the run costs
``max_terms`` points, and each matched word costs its approximate edit
distance to the query term, scaled by that term's fuzziness allowance.

Full-set rounds score on a higher baseline than rounds with one term
removed, so the best full match always outranks the best partial match.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .distance import approximate_distance
from .highlighting import SnippetParser
from .terms import TermSet

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreBaseline:
    """Scoring constants for one query round.

    Attributes:
        max_terms: Gap penalty per unmarked token
        max_score: Score of a contiguous, exact match of every term
    """

    max_terms: int
    max_score: float

    @classmethod
    def for_round(cls, count: int, is_full_set: bool) -> "ScoreBaseline":
        """Compute the baseline for a round matching ``count`` terms.

        Full-set rounds use ``count + 1`` as the term weight and add a
        headroom equal to their own ceiling. For a query of n terms the
        full-set maximum is 2((n+1)^2 + 1), strictly above the partial
        maximum (n-1)^2 + 1.
        """
        max_terms = count + 1 if is_full_set else count
        ceiling = max_terms * max_terms + 1
        max_score = ceiling + ceiling if is_full_set else ceiling
        return cls(max_terms=max_terms, max_score=float(max_score))


class SnippetScorer:
    """Scores hits by the highlighted snippets a backend returned."""

    def __init__(self, parser: SnippetParser | None = None):
        self.parser = parser or SnippetParser()

    def score(
        self, snippets: Iterable[str] | None, terms: TermSet, is_full_set: bool
    ) -> float:
        """Score one hit for one round.

        Stops reading snippets as soon as one reaches the maximum score.

        Args:
            snippets: Highlighted snippets of the hit's matched field
            terms: Term set the round queried with
            is_full_set: Whether the round used every original term

        Returns:
            Best snippet score, or 0.0 if no snippet completed a run
        """
        if not terms or snippets is None:
            return 0.0

        baseline = ScoreBaseline.for_round(len(terms), is_full_set)
        current_max = 0.0

        for snippet in snippets:
            candidate = self.score_snippet(snippet, terms, baseline)
            if candidate is None or candidate <= current_max:
                continue
            current_max = candidate
            if current_max == baseline.max_score:
                break

        return current_max

    def score_snippet(
        self, snippet: str, terms: TermSet, baseline: ScoreBaseline
    ) -> float | None:
        """Score a single snippet.

        Returns:
            Snippet score, or None if the snippet does not contain a
            complete run of all terms
        """
        count = len(terms)
        word_num = 0
        gaps = 0
        total_fuzzy = 0.0

        for token in self.parser.tokens(snippet):
            if not token.is_match:
                if word_num > 0:
                    gaps += 1
                continue

            term = terms[word_num]
            allowance = term.max_fuzziness
            if allowance:
                distance = approximate_distance(token.matched_text, term.text)
                total_fuzzy += distance / allowance

            word_num += 1
            if word_num == count:
                break

        if word_num < count:
            logger.debug(f"Discarding incomplete run ({word_num}/{count}): {snippet!r}")
            return None

        return baseline.max_score - gaps * baseline.max_terms - total_fuzzy
