# -*- coding: utf-8 -*-
"""
Keyword auto-linking engine.

Scans rendered post/page content for configured keyword phrases and wraps
them in links to the configured URLs:

1. Parse the markup into a document tree, leaving it alone if it already
   holds links this dictionary would have inserted
2. Walk the tree depth-first, never entering headings, existing links or
   other excluded elements
3. In each text node, try keywords in dictionary order; each match splits
   the node into [prefix, <a>, suffix] and scanning continues in the suffix
4. Stop early once the per-document link quota is spent
5. Serialize the tree

Auto-linking is an enhancement on top of content that must render, so
nothing here fails the page: configuration and parse problems give back the
original markup unchanged.

Usage:
    linker = AutoLinker(settings, dictionary)
    html = linker.process_content(html, scope="post")
"""

import logging
from typing import Iterable, Optional

from .config import LinkerSettings
from .document import (
    DocumentParseError,
    ElementNode,
    Node,
    TextNode,
    create_element,
    find_all,
    parse,
    serialize,
    text_content,
    unwrap,
)
from .matcher import KeywordMatcher
from .models import AnnotationResult, InsertedLink, KeywordEntry, SkipReason
from .rules import ANCHOR_TAG, QuotaTracker, RuleEngine

logger = logging.getLogger(__name__)


class AutoLinker:
    """
    Inserts keyword links into content markup.

    An AutoLinker holds only read-only configuration; every call to
    annotate() keeps its link counts in a fresh AnnotationState, so one
    instance can serve many documents.

    Parameters
    ----------
    settings : LinkerSettings, optional
        Quotas, exclusion zones and link attributes. Defaults apply if omitted.
    dictionary : iterable of KeywordEntry
        Keywords in priority order.
    """

    def __init__(
        self,
        settings: Optional[LinkerSettings] = None,
        dictionary: Iterable[KeywordEntry] = (),
    ) -> None:
        self.settings = settings or LinkerSettings()
        self.dictionary: list[KeywordEntry] = list(dictionary)
        self.matcher = KeywordMatcher(self.dictionary, case_sensitive=self.settings.case_sensitive)
        self.rules = RuleEngine(self.settings)

    def process_content(self, markup: str, scope: Optional[str] = None) -> str:
        """
        Content filter entry point: return markup with keyword links added.

        Args:
            markup: Rendered content.
            scope: Content type being rendered (post, page, ...). Content
                outside eligible_content_scopes is returned untouched.

        Returns:
            Annotated markup, or the input unchanged if nothing was linked.
        """
        return self.annotate(markup, scope=scope).markup

    def annotate(self, markup: str, scope: Optional[str] = None) -> AnnotationResult:
        """
        Run one annotation pass and report what was done.

        Args:
            markup: Rendered content.
            scope: Optional content type, checked against eligible_content_scopes.

        Returns:
            AnnotationResult with the output markup and the inserted links.
        """
        if not self.settings.enabled:
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.DISABLED)
        if not self.settings.is_scope_eligible(scope):
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.SCOPE)
        if not isinstance(markup, str) or not markup.strip():
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.EMPTY_CONTENT)
        if not self.matcher.patterns:
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.EMPTY_DICTIONARY)

        tracker = QuotaTracker(self.settings)
        if not tracker.can_link_any(self.matcher.keywords):
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.NO_BUDGET)

        try:
            root = parse(markup)
        except DocumentParseError as e:
            logger.warning(f"Skipping auto-linking: {e}")
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.PARSE_ERROR)

        if self.settings.exclude_existing_links and self._is_own_output(markup, root):
            logger.debug("Content already holds auto-inserted links; leaving it unchanged")
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.ALREADY_LINKED)

        links: list[InsertedLink] = []
        exhausted = self._walk(root, tracker, links)

        if not links:
            return AnnotationResult(markup=markup)

        try:
            output = serialize(root)
        except Exception:
            logger.warning("Skipping auto-linking: failed to serialize annotated content", exc_info=True)
            return AnnotationResult(markup=markup, skipped_reason=SkipReason.PARSE_ERROR)

        logger.info(f"Auto-linker inserted {len(links)} links")
        return AnnotationResult(markup=output, links=links, budget_exhausted=exhausted)

    def _inserted_anchors(self, root: ElementNode) -> list[ElementNode]:
        """Find anchors identical to ones this linker would insert."""
        found = []
        for anchor in find_all(root, ANCHOR_TAG):
            text = text_content(anchor)
            for keyword_pattern in self.matcher:
                url = keyword_pattern.entry.url
                if anchor.attrs == self.settings.anchor_attributes(url) and keyword_pattern.pattern.fullmatch(text):
                    found.append(anchor)
                    break
        return found

    def _is_own_output(self, markup: str, root: ElementNode) -> bool:
        """
        Check if markup is what this linker already produced.

        Anchors that look inserted are unwrapped in a fresh copy of the
        document, and the copy is annotated again. The markup is our own
        output only if that reproduces it exactly. Author links that merely
        look alike do not match, and the document is linked as usual.
        """
        if not self._inserted_anchors(root):
            return False

        candidate = parse(markup)
        for anchor in self._inserted_anchors(candidate):
            unwrap(anchor)

        links: list[InsertedLink] = []
        self._walk(candidate, QuotaTracker(self.settings), links)
        return bool(links) and serialize(candidate) == serialize(root)

    def _walk(self, root: ElementNode, tracker: QuotaTracker, links: list[InsertedLink]) -> bool:
        """
        Depth-first, pre-order walk that annotates eligible text nodes.

        Each element's children are snapshotted when the element is visited,
        so the nodes spliced in while annotating are never visited.

        Returns:
            True if the walk stopped because the link budget ran out.
        """
        # (node, element ancestors outermost first)
        stack: list[tuple[Node, tuple[ElementNode, ...]]] = [
            (child, ()) for child in reversed(list(root.children))
        ]

        while stack:
            node, ancestor_chain = stack.pop()
            try:
                if not self.rules.is_node_eligible(node, ancestor_chain):
                    continue
                if isinstance(node, TextNode):
                    if self._annotate_text(node, tracker, links):
                        logger.debug("Auto-linker budget exhausted; stopping traversal")
                        return True
                elif isinstance(node, ElementNode):
                    chain = ancestor_chain + (node,)
                    stack.extend((child, chain) for child in reversed(list(node.children)))
            except Exception:
                logger.warning(f"Skipping {node.kind.value} node after auto-linker error", exc_info=True)

        return False

    def _annotate_text(self, node: TextNode, tracker: QuotaTracker, links: list[InsertedLink]) -> bool:
        """
        Link keyword occurrences inside one text node.

        Keywords are tried in dictionary order. After a match the text
        before it and the new anchor are never rescanned; the next keyword
        is searched for in the remaining suffix only.

        Returns:
            True if the link budget is now spent.
        """
        parent = node.parent
        if parent is None:
            return False

        current: Optional[TextNode] = node
        for keyword_pattern in self.matcher:
            if current is None:
                break
            keyword = keyword_pattern.keyword
            if not tracker.can_link(keyword):
                continue

            match = keyword_pattern.search(current.content)
            if match is None:
                continue

            text = current.content
            prefix, matched, suffix = text[:match.start()], match.group(0), text[match.end():]

            anchor = create_element(
                ANCHOR_TAG,
                self.settings.anchor_attributes(keyword_pattern.entry.url),
                text=matched,
            )
            replacements: list[Node] = []
            if prefix:
                replacements.append(TextNode(prefix))
            replacements.append(anchor)
            suffix_node = TextNode(suffix) if suffix else None
            if suffix_node is not None:
                replacements.append(suffix_node)

            parent.replace_child(current, replacements)
            tracker.record_link(keyword)
            links.append(InsertedLink(keyword=keyword, url=keyword_pattern.entry.url, text=matched))
            logger.debug(f"Linked '{matched}' -> {keyword_pattern.entry.url}")

            if tracker.budget_exhausted or not tracker.can_link_any(self.matcher.keywords):
                return True
            current = suffix_node

        return False


def autolink(
    markup: str,
    settings: Optional[LinkerSettings] = None,
    dictionary: Iterable[KeywordEntry] = (),
    scope: Optional[str] = None,
) -> str:
    """
    Add keyword links to markup in one call.

    Args:
        markup: Rendered content.
        settings: Auto-linker settings (defaults if omitted).
        dictionary: Keyword entries in priority order.
        scope: Optional content type.

    Returns:
        Annotated markup.
    """
    return AutoLinker(settings, dictionary).process_content(markup, scope=scope)
