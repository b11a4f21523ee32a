"""Parsing of highlighted snippets returned by search backends.

Backends mark matched text with an open/close tag pair, e.g.
``the <em>old</em> <em>man</em> and the <em>sea</em>``. The markup
grammar is flat: plain text interleaved with marked spans. Parsing
produces segments first and then whitespace-delimited tokens, each of
which knows which part of it was marked.
"""

import re
from dataclasses import dataclass

EMPHASIS_OPEN = "<em>"
EMPHASIS_CLOSE = "</em>"


@dataclass(frozen=True)
class Segment:
    """Run of snippet text that is either inside or outside a marked span."""

    text: str
    is_match: bool = False


@dataclass(frozen=True)
class SnippetToken:
    """Whitespace-delimited token of a snippet.

    Attributes:
        text: Full token text with markup removed
        matched_text: Part of the token inside marked spans
    """

    text: str
    matched_text: str = ""

    @property
    def is_match(self) -> bool:
        return bool(self.matched_text)


class SnippetParser:
    """Tokenizer for highlighted snippets.

    Unbalanced markup is tolerated: a close tag outside a marked span is
    dropped, a repeated open tag inside one is ignored, and an unclosed
    span runs to the end of the snippet.
    """

    def __init__(
        self, open_tag: str = EMPHASIS_OPEN, close_tag: str = EMPHASIS_CLOSE
    ):
        if not open_tag or not close_tag or open_tag == close_tag:
            raise ValueError("Open and close tags must be distinct and non-empty")
        self.open_tag = open_tag
        self.close_tag = close_tag
        self._markup = re.compile(f"({re.escape(open_tag)}|{re.escape(close_tag)})")

    def segments(self, snippet: str) -> list[Segment]:
        """Split a snippet into plain and marked segments."""
        segments: list[Segment] = []
        inside = False

        for part in self._markup.split(snippet):
            if part == self.open_tag:
                inside = True
            elif part == self.close_tag:
                inside = False
            elif part:
                if segments and segments[-1].is_match == inside:
                    segments[-1] = Segment(segments[-1].text + part, inside)
                else:
                    segments.append(Segment(part, inside))

        return segments

    def tokens(self, snippet: str) -> list[SnippetToken]:
        """Split a snippet into whitespace-delimited tokens."""
        tokens: list[SnippetToken] = []
        text: list[str] = []
        matched: list[str] = []

        for segment in self.segments(snippet):
            for char in segment.text:
                if char.isspace():
                    if text:
                        tokens.append(SnippetToken("".join(text), "".join(matched)))
                        text, matched = [], []
                    continue
                text.append(char)
                if segment.is_match:
                    matched.append(char)

        if text:
            tokens.append(SnippetToken("".join(text), "".join(matched)))

        return tokens


def mark_spans(
    text: str,
    spans: list[tuple[int, int]],
    open_tag: str = EMPHASIS_OPEN,
    close_tag: str = EMPHASIS_CLOSE,
) -> str:
    """Wrap character ranges of ``text`` in emphasis tags.

    Args:
        text: Plain text
        spans: (start, end) character offsets; overlapping spans are skipped

    Returns:
        Text with each span marked
    """
    parts = []
    position = 0
    for start, end in sorted(spans):
        if start < position or end > len(text) or start >= end:
            continue
        parts.append(text[position:start])
        parts.append(f"{open_tag}{text[start:end]}{close_tag}")
        position = end
    parts.append(text[position:])
    return "".join(parts)
