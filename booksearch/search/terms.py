"""Search terms and the per-term fuzziness policy."""

from collections.abc import Iterator
from dataclasses import dataclass


def max_fuzziness(term: str) -> int:
    """Get the maximum edit distance tolerated for a term.

    Short terms must match exactly; longer terms tolerate more typos.

    Args:
        term: Search term

    Returns:
        0 for terms shorter than 4 characters, 1 for 4-7, 2 for 8 or more
    """
    length = len(term)
    if length >= 8:
        return 2
    elif length >= 4:
        return 1
    return 0


@dataclass(frozen=True)
class SearchTerm:
    """A single whitespace-delimited token from the query."""

    text: str

    @property
    def max_fuzziness(self) -> int:
        return max_fuzziness(self.text)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class TermSet:
    """Ordered sequence of search terms.

    Order matters: proximity queries match the terms in sequence.
    """

    terms: tuple[SearchTerm, ...] = ()

    @classmethod
    def from_texts(cls, texts: list[str] | tuple[str, ...]) -> "TermSet":
        return cls(tuple(SearchTerm(text) for text in texts))

    def __len__(self) -> int:
        return len(self.terms)

    def __iter__(self) -> Iterator[SearchTerm]:
        return iter(self.terms)

    def __getitem__(self, index: int) -> SearchTerm:
        return self.terms[index]

    @property
    def texts(self) -> list[str]:
        return [term.text for term in self.terms]

    def without(self, index: int) -> "TermSet":
        """Return a copy with the term at ``index`` removed.

        The remaining terms keep their relative order.

        Raises:
            IndexError: If index is out of range
        """
        if not 0 <= index < len(self.terms):
            raise IndexError(f"term index {index} out of range")
        return TermSet(self.terms[:index] + self.terms[index + 1 :])

    def one_term_removed(self) -> list["TermSet"]:
        """Get every term set with exactly one term removed, by index."""
        return [self.without(i) for i in range(len(self.terms))]

    def __str__(self) -> str:
        return " ".join(self.texts)


def split_terms(query: str) -> TermSet:
    """Split a raw query string into an ordered term set."""
    return TermSet.from_texts(query.split())
