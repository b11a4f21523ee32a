"""Approximate edit distance between a highlighted word and a query term.

This only answers whether two words are identical, one edit apart, or
further. One edit means a single substitution, insertion, deletion, or
adjacent transposition, each detected by an explicit positional check.
Anything else saturates at 2, which is also the largest fuzziness any
term is queried with.
"""

MAX_DISTANCE = 2


def approximate_distance(matched: str, query: str) -> int:
    """Estimate the edit distance between two words, case-insensitively.

    Args:
        matched: Word the backend highlighted
        query: Search term that produced the match

    Returns:
        0 if equal, 1 if a single edit explains the difference, else 2
    """
    word = matched.lower()
    term = query.lower()
    diff = len(word) - len(term)

    if diff == 0:
        if word == term:
            return 0
        if _one_substitution(word, term) or _one_transposition(word, term):
            return 1
        return MAX_DISTANCE

    if diff == 1:
        return 1 if _one_deletion(word, term) else MAX_DISTANCE

    if diff == -1:
        return 1 if _one_deletion(term, word) else MAX_DISTANCE

    return MAX_DISTANCE


def _one_substitution(a: str, b: str) -> bool:
    """Check whether equal-length words differ at exactly one position."""
    for i in range(len(a)):
        if a[:i] + a[i + 1 :] == b[:i] + b[i + 1 :]:
            return True
    return False


def _one_transposition(a: str, b: str) -> bool:
    """Check whether swapping one adjacent pair turns ``a`` into ``b``."""
    for i in range(len(a) - 1):
        if (
            a[i] == b[i + 1]
            and a[i + 1] == b[i]
            and a[:i] == b[:i]
            and a[i + 2 :] == b[i + 2 :]
        ):
            return True
    return False


def _one_deletion(longer: str, shorter: str) -> bool:
    """Check whether deleting one character of ``longer`` yields ``shorter``."""
    for i in range(len(longer)):
        if longer[:i] + longer[i + 1 :] == shorter:
            return True
    return False
