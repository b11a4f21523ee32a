"""Ordered-proximity query construction.

A ProximityQuery is backend-neutral: gateways translate it into their
own query objects. ``to_dict`` renders the Elasticsearch span query body.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable

from .terms import SearchTerm, TermSet

DEFAULT_SLOP = 1


@dataclass(frozen=True)
class FuzzyClause:
    """Fuzzy match of one term within the proximity query."""

    value: str
    fuzziness: int

    @classmethod
    def for_term(cls, term: SearchTerm) -> "FuzzyClause":
        return cls(value=term.text, fuzziness=term.max_fuzziness)

    def to_dict(self, field: str) -> dict[str, Any]:
        return {
            "span_multi": {
                "match": {
                    "fuzzy": {
                        field: {
                            "fuzziness": str(self.fuzziness),
                            "value": self.value,
                        }
                    }
                }
            }
        }


@dataclass(frozen=True)
class ProximityQuery:
    """Terms that must occur in order, at most ``slop`` tokens apart.

    Attributes:
        field: Document field to match against
        clauses: One fuzzy clause per term, in term order
        slop: Maximum number of unmatched tokens between consecutive terms
        in_order: Whether clauses must match in the given order
    """

    field: str
    clauses: tuple[FuzzyClause, ...]
    slop: int = DEFAULT_SLOP
    in_order: bool = True

    @property
    def terms(self) -> list[str]:
        return [clause.value for clause in self.clauses]

    def analyze(
        self, analyzer: Callable[[str], Iterable[Any]]
    ) -> tuple[list[FuzzyClause], set[str]]:
        """Run clause values through the analyzer a field was indexed with.

        A value the analyzer removes entirely, such as a stop word, cannot
        match an indexed token and is returned as a skipped word. A value
        split into several tokens becomes one clause per token.

        Returns:
            Clauses to match against the index and the skipped words
        """
        clauses: list[FuzzyClause] = []
        skipped: set[str] = set()
        for clause in self.clauses:
            tokens = [token.text for token in analyzer(clause.value)]
            if not tokens:
                skipped.add(clause.value.lower())
                continue
            clauses.extend(replace(clause, value=token) for token in tokens)
        return clauses, skipped

    def to_dict(self) -> dict[str, Any]:
        """Render as an Elasticsearch ``span_near`` query."""
        return {
            "span_near": {
                "clauses": [clause.to_dict(self.field) for clause in self.clauses],
                "slop": self.slop,
                "in_order": self.in_order,
            }
        }

    def to_string(self) -> str:
        parts = [
            f"{c.value}~{c.fuzziness}" if c.fuzziness else c.value
            for c in self.clauses
        ]
        return f'{self.field}:"{" ".join(parts)}"~{self.slop}'


def build_proximity_query(
    terms: TermSet, field: str, slop: int = DEFAULT_SLOP
) -> ProximityQuery:
    """Build an ordered proximity query over one field.

    Args:
        terms: Terms in query order
        field: Target field name
        slop: Gap tolerance between consecutive terms

    Returns:
        ProximityQuery with one clause per term, in the same order

    Raises:
        ValueError: If the term set is empty
    """
    if not terms:
        raise ValueError("Cannot build a proximity query without terms")

    return ProximityQuery(
        field=field,
        clauses=tuple(FuzzyClause.for_term(term) for term in terms),
        slop=slop,
        in_order=True,
    )
