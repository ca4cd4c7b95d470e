# -*- coding: utf-8 -*-
"""
Document model for rendered content markup.

Content arrives from the CMS as an HTML fragment. It is parsed with
BeautifulSoup into a small mutable tree of our own:

- ElementNode: tag name, attribute map, ordered children
- TextNode: character data (raw inside <script>/<style>)
- MarkupNode: comments, doctypes and other declarations, kept verbatim

The tree is edited by splicing child lists and written back out with
serialize(). Nodes that were not inserted by the caller keep their tag,
attribute values and child order.

Usage:
    root = parse(html)
    ... mutate root ...
    html = serialize(root)
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, Optional, Union

from bs4 import BeautifulSoup, CData, Comment, Declaration, Doctype, ProcessingInstruction, Tag
from bs4.element import NavigableString

from .config import AutoLinkerError


class DocumentParseError(AutoLinkerError):
    """Raised when markup cannot be parsed, even permissively."""
    pass


class NodeKind(Enum):
    """Discriminator for document nodes."""
    ELEMENT = "element"
    TEXT = "text"
    MARKUP = "markup"


# Name of the synthetic root element; it has no tags of its own on output
ROOT_TAG = "#document"

# Elements that never have content or an end tag
VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# Elements whose text content is written without entity escaping
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

DEFAULT_PARSER = "lxml"

# Parsed with body already open, so lxml keeps leading text, scripts and
# styles in place instead of moving them into <head> or wrapping them in <p>
FRAGMENT_PREFIX = "<html><body>"

# Attributes written without a value when their value is empty
BOOLEAN_ATTRIBUTES = frozenset({
    "allowfullscreen", "async", "autofocus", "autoplay", "checked", "controls",
    "default", "defer", "disabled", "formnovalidate", "hidden", "inert",
    "ismap", "itemscope", "loop", "multiple", "muted", "nomodule", "novalidate",
    "open", "playsinline", "readonly", "required", "reversed", "selected",
})


@dataclass(eq=False)
class TextNode:
    """Character data."""
    content: str
    raw: bool = False  # Inside <script>/<style>: written verbatim
    parent: Optional["ElementNode"] = field(default=None, repr=False)

    kind = NodeKind.TEXT


@dataclass(eq=False)
class MarkupNode:
    """Comment, doctype, CDATA or processing instruction, kept as source text."""
    markup: str
    parent: Optional["ElementNode"] = field(default=None, repr=False)

    kind = NodeKind.MARKUP


@dataclass(eq=False)
class ElementNode:
    """An element with attributes and ordered children.

    The parent link is a lookup convenience only; the children list owns
    its nodes.
    """
    tag: str
    attrs: dict[str, str] = field(default_factory=dict)
    children: list["Node"] = field(default_factory=list)
    parent: Optional["ElementNode"] = field(default=None, repr=False)

    kind = NodeKind.ELEMENT

    @property
    def is_root(self) -> bool:
        """Check if this is the synthetic document root."""
        return self.tag == ROOT_TAG

    def append(self, node: "Node") -> "Node":
        """Append a child, taking it over from any previous parent."""
        if node.parent is not None:
            node.parent.remove(node)
        node.parent = self
        self.children.append(node)
        return node

    def index_of(self, child: "Node") -> int:
        """Find the position of a child by identity.

        Raises:
            ValueError: If the node is not a child of this element.
        """
        for i, candidate in enumerate(self.children):
            if candidate is child:
                return i
        raise ValueError(f"node is not a child of <{self.tag}>")

    def remove(self, child: "Node") -> None:
        """Detach a child."""
        del self.children[self.index_of(child)]
        child.parent = None

    def replace_child(self, old: "Node", replacements: list["Node"]) -> None:
        """Replace one child with a sequence of nodes, in place."""
        index = self.index_of(old)
        for node in replacements:
            node.parent = self
        self.children[index:index + 1] = replacements
        old.parent = None


Node = Union[ElementNode, TextNode, MarkupNode]


def create_root() -> ElementNode:
    """Create an empty document root."""
    return ElementNode(tag=ROOT_TAG)


def create_element(tag: str, attrs: Optional[dict[str, str]] = None, text: Optional[str] = None) -> ElementNode:
    """Create an element, optionally holding a single text child."""
    element = ElementNode(tag=tag.lower(), attrs=dict(attrs or {}))
    if text:
        element.append(TextNode(text))
    return element


def ancestors(node: Node) -> Iterator[ElementNode]:
    """Yield the ancestors of a node, nearest first, excluding the root."""
    parent = node.parent
    while parent is not None and not parent.is_root:
        yield parent
        parent = parent.parent


def iter_nodes(root: ElementNode) -> Iterator[Node]:
    """Yield every node below root in document order (pre-order)."""
    stack: list[Node] = list(reversed(root.children))
    while stack:
        node = stack.pop()
        yield node
        if isinstance(node, ElementNode):
            stack.extend(reversed(node.children))


def find_all(root: ElementNode, tag: str) -> list[ElementNode]:
    """Find all elements with the given tag name."""
    tag = tag.lower()
    return [n for n in iter_nodes(root) if isinstance(n, ElementNode) and n.tag == tag]


def text_content(node: Node) -> str:
    """Concatenate the text below a node."""
    if isinstance(node, TextNode):
        return node.content
    if isinstance(node, MarkupNode):
        return ""
    return "".join(n.content for n in iter_nodes(node) if isinstance(n, TextNode))


def unwrap(element: ElementNode) -> None:
    """Replace an element with its children, merging text that ends up adjacent."""
    parent = element.parent
    if parent is None:
        raise ValueError(f"<{element.tag}> has no parent")
    children = list(element.children)
    element.children = []
    parent.replace_child(element, children)

    merged: list[Node] = []
    for child in parent.children:
        previous = merged[-1] if merged else None
        if (
            isinstance(child, TextNode)
            and isinstance(previous, TextNode)
            and not child.raw
            and not previous.raw
        ):
            previous.content += child.content
            child.parent = None
        else:
            merged.append(child)
    parent.children = merged


# =============================================================================
# PARSING
# =============================================================================

def parse(markup: str, features: str = DEFAULT_PARSER) -> ElementNode:
    """
    Parse an HTML fragment into a document tree.

    Parsing is permissive: unbalanced or unknown tags produce a best-effort
    tree rather than an error. The lxml builder applies HTML's implied end
    tags, so "<p>a<p>b" gives two sibling paragraphs as a browser would.

    Args:
        markup: HTML source.
        features: BeautifulSoup tree builder to use.

    Returns:
        The synthetic root element holding the fragment's top-level nodes.

    Raises:
        DocumentParseError: If the markup is not a string or the parser
            gives up on it.
    """
    if not isinstance(markup, str):
        raise DocumentParseError(f"Markup must be a string, got {type(markup).__name__}")

    try:
        # Keep class/rel etc. as the original strings instead of token lists
        soup = BeautifulSoup(FRAGMENT_PREFIX + markup, features, multi_valued_attributes=None)
    except Exception as e:
        raise DocumentParseError(f"Failed to parse markup: {e}") from e

    root = create_root()
    # Iterative copy so deeply nested markup cannot exhaust the call stack
    body = soup.find("body")
    pending: list[tuple[Tag, ElementNode]] = [(body if body is not None else soup, root)]
    while pending:
        source, target = pending.pop()
        for child in source.contents:
            if isinstance(child, Tag):
                element = ElementNode(tag=child.name, attrs=_copy_attrs(child))
                target.append(element)
                pending.append((child, element))
            elif isinstance(child, NavigableString):
                target.append(_convert_string(child, target))

    return root


def _copy_attrs(tag: Tag) -> dict[str, str]:
    """Copy a tag's attributes as plain strings."""
    attrs: dict[str, str] = {}
    for name, value in tag.attrs.items():
        if value is None:
            value = ""
        elif isinstance(value, (list, tuple)):
            value = " ".join(value)
        attrs[name] = str(value)
    return attrs


def _convert_string(string: NavigableString, parent: ElementNode) -> Node:
    """Convert a BeautifulSoup string into a text or markup node."""
    text = str(string)
    if isinstance(string, Comment):
        return MarkupNode(f"<!--{text}-->")
    if isinstance(string, CData):
        return MarkupNode(f"<![CDATA[{text}]]>")
    if isinstance(string, ProcessingInstruction):
        return MarkupNode(f"<?{text}>")
    if isinstance(string, Doctype):
        return MarkupNode(f"<!DOCTYPE {text}>")
    if isinstance(string, Declaration):
        return MarkupNode(f"<!{text}>")
    return TextNode(text, raw=parent.tag in RAW_TEXT_ELEMENTS)


# =============================================================================
# SERIALIZATION
# =============================================================================

def serialize(root: ElementNode) -> str:
    """
    Write a document tree back out as HTML.

    Attribute values and child order are written as held in the tree.
    Text is escaped for &, < and >, and U+00A0 is written as &nbsp;. Raw
    text is written verbatim. Empty boolean attributes are written bare.

    Args:
        root: The tree to serialize. A synthetic root contributes no tags.

    Returns:
        HTML string.
    """
    parts: list[str] = []
    # (node, is_end_tag) entries; children pushed in reverse to pop in order
    stack: list[tuple[Node, bool]] = [(root, False)]

    while stack:
        node, is_end_tag = stack.pop()

        if is_end_tag:
            parts.append(f"</{node.tag}>")
            continue

        if isinstance(node, TextNode):
            parts.append(node.content if node.raw else escape_text(node.content))
        elif isinstance(node, MarkupNode):
            parts.append(node.markup)
        else:
            if not node.is_root:
                is_void = node.tag in VOID_ELEMENTS and not node.children
                parts.append(_start_tag(node, is_void))
                if is_void:
                    continue
                stack.append((node, True))
            for child in reversed(node.children):
                stack.append((child, False))

    return "".join(parts)


def _start_tag(element: ElementNode, is_void: bool) -> str:
    """Render an element's start tag."""
    attrs = "".join(_attribute(name, value) for name, value in element.attrs.items())
    return f"<{element.tag}{attrs}{'/' if is_void else ''}>"


def _attribute(name: str, value: str) -> str:
    if not value and name in BOOLEAN_ATTRIBUTES:
        return f" {name}"
    return f' {name}="{escape_attribute(value)}"'


def escape_text(text: str) -> str:
    """Escape character data for HTML output."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace("\xa0", "&nbsp;")


def escape_attribute(value: str) -> str:
    """Escape a double-quoted attribute value."""
    return escape_text(value).replace('"', "&quot;")
