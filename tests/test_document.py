"""Tests for the document model."""

import pytest

from willsx_autolinker.document import (
    DocumentParseError,
    ElementNode,
    MarkupNode,
    NodeKind,
    TextNode,
    ancestors,
    create_element,
    create_root,
    escape_attribute,
    escape_text,
    find_all,
    iter_nodes,
    parse,
    serialize,
    text_content,
    unwrap,
)


class TestParse:
    """Tests for parsing markup into a tree."""

    def test_basic_structure(self):
        """Test that elements, attributes and text are converted."""
        root = parse('<p class="intro">Hello <strong>world</strong></p>')

        assert root.is_root
        paragraph = root.children[0]
        assert isinstance(paragraph, ElementNode)
        assert paragraph.tag == "p"
        assert paragraph.attrs == {"class": "intro"}
        assert isinstance(paragraph.children[0], TextNode)
        assert paragraph.children[0].content == "Hello "
        assert paragraph.children[1].tag == "strong"
        assert paragraph.children[0].parent is paragraph

    def test_multi_valued_attributes_kept_as_strings(self):
        """Test that class and rel keep their original spacing."""
        root = parse('<a class="btn  primary" rel="nofollow noopener" href="/x">x</a>')

        anchor = root.children[0]
        assert anchor.attrs["class"] == "btn  primary"
        assert anchor.attrs["rel"] == "nofollow noopener"

    def test_comment_becomes_markup_node(self):
        """Test that comments are kept as markup nodes."""
        root = parse("<!-- more --><p>text</p>")

        assert isinstance(root.children[0], MarkupNode)
        assert root.children[0].markup == "<!-- more -->"
        assert root.children[0].kind is NodeKind.MARKUP

    def test_script_text_is_raw(self):
        """Test that script content is marked raw."""
        root = parse("<script>if (a < b) {}</script>")

        script_text = root.children[0].children[0]
        assert script_text.raw is True
        assert script_text.content == "if (a < b) {}"

    def test_nested_markup(self):
        """Test parsing nested block elements."""
        depth = 100
        html = "<div>" * depth + "estate planning" + "</div>" * depth

        root = parse(html)

        assert len(find_all(root, "div")) == depth
        assert serialize(root) == html

    def test_implied_paragraph_end_tags(self):
        """Test that an unclosed <p> is closed by the next one."""
        root = parse("<p>intro<p>estate planning here")

        assert [child.tag for child in root.children] == ["p", "p"]
        assert serialize(root) == "<p>intro</p><p>estate planning here</p>"

    def test_implied_list_item_end_tags(self):
        """Test that an unclosed <li> is closed by the next one."""
        root = parse("<ul><li>one<li>two</ul>")

        items = root.children[0].children
        assert [item.tag for item in items] == ["li", "li"]
        assert serialize(root) == "<ul><li>one</li><li>two</li></ul>"

    def test_leading_text_and_script_stay_in_place(self):
        """Test that fragment content is not moved or wrapped."""
        html = "Intro text <script>var a = 1;</script><p>body</p>"

        root = parse(html)

        assert isinstance(root.children[0], TextNode)
        assert serialize(root) == html

    def test_non_string_rejected(self):
        """Test that non-string input raises DocumentParseError."""
        with pytest.raises(DocumentParseError, match="must be a string"):
            parse(None)

    def test_empty_markup(self):
        """Test that empty markup gives an empty root."""
        root = parse("")

        assert root.children == []
        assert serialize(root) == ""


class TestSerialize:
    """Tests for writing the tree back out."""

    @pytest.mark.parametrize(
        "html",
        [
            "<p>Plain paragraph.</p>",
            '<p class="a" id="b" data-x="1">text</p>',
            "<ul><li>one</li><li>two</li></ul>",
            "<p>Tom &amp; Jerry &lt;3</p>",
            "<!-- note --><p>after</p>",
            '<p>line<br/>break<img src="/a.png" alt=""/></p>',
            "<script>var x = 1 < 2 && 3 > 2;</script>",
        ],
    )
    def test_round_trip(self, html):
        """Test that normalized markup serializes back unchanged."""
        assert serialize(parse(html)) == html

    def test_deep_tree_serializes_iteratively(self):
        """Test that very deep trees do not hit the recursion limit."""
        depth = 5000
        root = create_root()
        parent = root
        for _ in range(depth):
            parent = parent.append(create_element("div"))
        parent.append(TextNode("estate planning"))

        assert serialize(root) == "<div>" * depth + "estate planning" + "</div>" * depth
        assert len(find_all(root, "div")) == depth

    def test_non_breaking_space_kept_as_reference(self):
        """Test that &nbsp; survives the round trip."""
        html = "<p>Tom&nbsp;Jones&#8217; will</p>"

        assert serialize(parse(html)) == "<p>Tom&nbsp;Jones’ will</p>"

    def test_boolean_attributes(self):
        """Test that boolean attributes are written without a value."""
        html = '<input type="checkbox" checked disabled><img src="/a.png" alt="">'

        assert serialize(parse(html)) == '<input type="checkbox" checked disabled/><img src="/a.png" alt=""/>'

    def test_void_element_normalized(self):
        """Test that void elements are written self-closing."""
        assert serialize(parse("<p>a<br>b</p>")) == "<p>a<br/>b</p>"

    def test_attribute_escaping(self):
        """Test that quotes in attribute values are escaped."""
        root = create_root()
        root.append(create_element("a", {"title": 'say "hi" & bye'}, text="x"))

        assert serialize(root) == '<a title="say &quot;hi&quot; &amp; bye">x</a>'

    def test_escape_helpers(self):
        """Test the escaping helpers."""
        assert escape_text("a < b & c > d") == "a &lt; b &amp; c &gt; d"
        assert escape_attribute('"x"') == "&quot;x&quot;"


class TestTreeEditing:
    """Tests for mutating the tree."""

    def test_replace_child(self):
        """Test splicing a text node into several nodes."""
        root = parse("<p>before estate planning after</p>")
        paragraph = root.children[0]
        text = paragraph.children[0]

        anchor = create_element("a", {"href": "/e"}, text="estate planning")
        paragraph.replace_child(text, [TextNode("before "), anchor, TextNode(" after")])

        assert serialize(root) == '<p>before <a href="/e">estate planning</a> after</p>'
        assert text.parent is None
        assert all(child.parent is paragraph for child in paragraph.children)

    def test_replace_child_uses_identity(self):
        """Test that equal-looking siblings are told apart."""
        root = parse("<p>x</p><p>x</p>")
        second = root.children[1]

        assert root.index_of(second) == 1

    def test_index_of_unknown_child(self):
        """Test that looking up a non-child raises ValueError."""
        root = create_root()

        with pytest.raises(ValueError):
            root.index_of(TextNode("orphan"))

    def test_unwrap_merges_text(self):
        """Test that unwrapping an anchor joins the surrounding text."""
        root = parse('<p>before <a href="/e">estate planning</a> after<br>end</p>')
        paragraph = root.children[0]

        unwrap(paragraph.children[1])

        assert isinstance(paragraph.children[0], TextNode)
        assert paragraph.children[0].content == "before estate planning after"
        assert paragraph.children[1].tag == "br"
        assert serialize(root) == "<p>before estate planning after<br/>end</p>"

    def test_unwrap_detached_element(self):
        """Test that an element without a parent cannot be unwrapped."""
        with pytest.raises(ValueError):
            unwrap(create_element("a"))

    def test_append_moves_node(self):
        """Test that appending a node detaches it from its old parent."""
        root = parse("<div><span>a</span></div><section></section>")
        div, section = root.children
        span = div.children[0]

        section.append(span)

        assert div.children == []
        assert section.children == [span]
        assert span.parent is section


class TestTraversalHelpers:
    """Tests for tree helpers."""

    def test_iter_nodes_document_order(self):
        """Test pre-order iteration."""
        root = parse("<div><p>a</p><p>b</p></div>")

        kinds = [n.tag if isinstance(n, ElementNode) else n.content for n in iter_nodes(root)]

        assert kinds == ["div", "p", "a", "p", "b"]

    def test_ancestors_nearest_first(self):
        """Test that ancestors stop at the root."""
        root = parse("<div><p><em>x</em></p></div>")
        text = root.children[0].children[0].children[0].children[0]

        assert [a.tag for a in ancestors(text)] == ["em", "p", "div"]

    def test_text_content(self):
        """Test text concatenation below a node."""
        root = parse("<p>estate <em>planning</em><!-- c --></p>")

        assert text_content(root.children[0]) == "estate planning"
