"""
Word-boundary keyword patterns.

A keyword only matches as a whole word or phrase: "will" matches "Will" and
"will." but not "willing" or "downwill". Words inside a multi-word keyword
match across any run of whitespace, so "estate planning" also matches text
that was wrapped onto a new line between the two words.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional

from .models import KeywordEntry


@dataclass(frozen=True)
class KeywordPattern:
    """A dictionary entry with its compiled pattern."""
    entry: KeywordEntry
    pattern: re.Pattern

    @property
    def keyword(self) -> str:
        return self.entry.keyword

    def search(self, text: str, pos: int = 0) -> Optional[re.Match]:
        """Find the first whole-word occurrence at or after pos."""
        return self.pattern.search(text, pos)


def compile_keyword(keyword: str, case_sensitive: bool = False) -> re.Pattern:
    """
    Compile a keyword into a word-boundary pattern.

    Args:
        keyword: Keyword phrase.
        case_sensitive: Whether matching respects case.

    Returns:
        Compiled pattern whose group 0 is the matched text.
    """
    words = keyword.split()
    if not words:
        raise ValueError("Cannot compile an empty keyword")
    body = r"\s+".join(re.escape(word) for word in words)
    flags = 0 if case_sensitive else re.IGNORECASE
    return re.compile(r"(?<!\w)" + body + r"(?!\w)", flags)


class KeywordMatcher:
    """Compiled patterns for a keyword dictionary, in priority order."""

    def __init__(self, entries: Iterable[KeywordEntry], case_sensitive: bool = False) -> None:
        self.case_sensitive = case_sensitive
        self.patterns: list[KeywordPattern] = [
            KeywordPattern(entry=entry, pattern=compile_keyword(entry.keyword, case_sensitive))
            for entry in entries
        ]

    def __iter__(self) -> Iterator[KeywordPattern]:
        return iter(self.patterns)

    def __len__(self) -> int:
        return len(self.patterns)

    @property
    def keywords(self) -> list[str]:
        return [p.keyword for p in self.patterns]
