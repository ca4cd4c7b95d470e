"""
Data models for the WillsX auto-linker.

This module defines the value types passed between the keyword dictionary,
the annotation engine and its callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


@dataclass(frozen=True)
class KeywordEntry:
    """A keyword phrase and the URL it links to."""
    keyword: str
    url: str

    def __post_init__(self) -> None:
        """Normalize and validate the entry."""
        object.__setattr__(self, "keyword", self.keyword.strip())
        object.__setattr__(self, "url", self.url.strip())
        if not self.keyword:
            raise ValueError("keyword must be a non-empty string")
        if not self.url:
            raise ValueError(f"url for keyword '{self.keyword}' must be a non-empty string")

    @property
    def word_count(self) -> int:
        """Number of words in the keyword phrase."""
        return len(self.keyword.split())


@dataclass(frozen=True)
class InsertedLink:
    """A link inserted by one annotation pass."""
    keyword: str  # Dictionary keyword that matched
    url: str
    text: str  # Matched text as it appears in the content


class SkipReason(str, Enum):
    """Why an annotation pass returned the content untouched."""
    ALREADY_LINKED = "already-linked"
    DISABLED = "disabled"
    EMPTY_CONTENT = "empty-content"
    EMPTY_DICTIONARY = "empty-dictionary"
    NO_BUDGET = "no-budget"
    PARSE_ERROR = "parse-error"
    SCOPE = "scope"


@dataclass
class AnnotationResult:
    """Result of running the auto-linker over one document."""
    markup: str
    links: list[InsertedLink] = field(default_factory=list)
    skipped_reason: Optional[SkipReason] = None
    budget_exhausted: bool = False

    @property
    def links_inserted(self) -> int:
        """Number of links inserted."""
        return len(self.links)

    @property
    def was_skipped(self) -> bool:
        """Check if annotation was skipped entirely."""
        return self.skipped_reason is not None

    def keyword_counts(self) -> dict[str, int]:
        """Count inserted links per keyword."""
        counts: dict[str, int] = {}
        for link in self.links:
            counts[link.keyword] = counts.get(link.keyword, 0) + 1
        return counts
