# -*- coding: utf-8 -*-
"""
Exclusion zones and link quotas for one annotation pass.

- RuleEngine decides whether a node may be entered at all. An ineligible
  element is skipped together with its whole subtree.
- QuotaTracker holds the per-document and per-keyword link counts for a
  single invocation and decides whether another link is allowed.

Neither keeps state across documents: a fresh AnnotationState is created
for every pass.
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from .config import LinkerSettings
from .document import ElementNode, MarkupNode, Node, TextNode

ANCHOR_TAG = "a"

# Non-content elements that are never linked, whatever the settings say
ALWAYS_EXCLUDED_TAGS = frozenset({"script", "style", "textarea", "template", "noscript", "title"})


@dataclass
class AnnotationState:
    """Link counts for one document."""
    total_links_inserted: int = 0
    per_keyword_counts: dict[str, int] = field(default_factory=dict)


class QuotaTracker:
    """Enforces max_links_per_post and max_links_per_keyword."""

    def __init__(self, settings: LinkerSettings, state: Optional[AnnotationState] = None) -> None:
        self.settings = settings
        self.state = state if state is not None else AnnotationState()

    def count_for(self, keyword: str) -> int:
        """Links inserted so far for a keyword."""
        return self.state.per_keyword_counts.get(keyword, 0)

    @property
    def budget_exhausted(self) -> bool:
        """Check if the per-document quota is spent. Never true when unlimited."""
        if self.settings.is_unlimited:
            return False
        return self.state.total_links_inserted >= self.settings.max_links_per_post

    def can_link(self, keyword: str) -> bool:
        """Check if one more link for keyword is within both quotas."""
        if self.count_for(keyword) >= self.settings.max_links_per_keyword:
            return False
        return not self.budget_exhausted

    def can_link_any(self, keywords: Iterable[str]) -> bool:
        """Check if at least one keyword still has headroom."""
        return any(self.can_link(keyword) for keyword in keywords)

    def record_link(self, keyword: str) -> None:
        """Count one inserted link."""
        self.state.total_links_inserted += 1
        self.state.per_keyword_counts[keyword] = self.count_for(keyword) + 1


class RuleEngine:
    """Decides which nodes the annotation walk may enter."""

    def __init__(self, settings: LinkerSettings) -> None:
        self.settings = settings
        self.excluded_tags = settings.excluded_tag_names | ALWAYS_EXCLUDED_TAGS

    def is_excluded_tag(self, tag: str) -> bool:
        """Check if an element with this tag starts an exclusion zone."""
        if tag in self.excluded_tags:
            return True
        return self.settings.exclude_existing_links and tag == ANCHOR_TAG

    def is_node_eligible(self, node: Node, ancestor_chain: Sequence[ElementNode] = ()) -> bool:
        """
        Check if a node may be visited.

        Args:
            node: Node under consideration.
            ancestor_chain: The node's element ancestors, outermost first.

        Returns:
            False for excluded elements, raw or non-text markup, and anything
            below an excluded element or (when exclude_existing_links) an
            existing anchor.
        """
        if isinstance(node, MarkupNode):
            return False
        if isinstance(node, TextNode):
            if node.raw:
                return False
        elif isinstance(node, ElementNode):
            if not node.is_root and self.is_excluded_tag(node.tag):
                return False
        else:
            return False

        return not any(self.is_excluded_tag(ancestor.tag) for ancestor in ancestor_chain)
