"""Tests for the tree builder.

Covers sibling building, node dispatch, tag and text parsing, every error
path and the explicit-stack handling of deep nesting.
"""

import logging

import pytest

from tagtree.character.scanner import Scanner
from tagtree.shared.config import TreeConfig
from tagtree.shared.errors import (
    MalformedTag,
    NestingTooDeep,
    StrayClosingTag,
    TagMismatch,
    UnexpectedEndOfInput,
)
from tagtree.shared.result import DiagnosticSeverity
from tagtree.tree.builder import ParseResult, TreeBuilder, build_tree
from tagtree.tree.nodes import Node


def element(name, *children):
    return Node.element(name, children)


def text(content):
    return Node.text_node(content)


class TestBuildSiblings:
    """Test parsing well-formed documents."""

    def test_nested_elements_and_text(self) -> None:
        nodes = build_tree("<a>hello<b>world</b></a>")

        assert nodes == [element("a", text("hello"), element("b", text("world")))]

    def test_empty_input(self) -> None:
        assert build_tree("") == []

    def test_whitespace_only_input(self) -> None:
        assert build_tree(" \n\t ") == []

    def test_surrounding_whitespace_trimmed(self) -> None:
        assert build_tree("  <a>  hi  </a>  ") == [element("a", text("hi"))]

    def test_interior_whitespace_preserved(self) -> None:
        assert build_tree("<p>two  words\nhere </p>") == [element("p", text("two  words\nhere"))]

    def test_empty_element(self) -> None:
        assert build_tree("<a></a>") == [element("a")]

    def test_bare_text_document(self) -> None:
        assert build_tree("just text") == [text("just text")]

    def test_multiple_roots(self) -> None:
        nodes = build_tree("<a></a> middle <b>x</b>")

        assert nodes == [element("a"), text("middle"), element("b", text("x"))]

    def test_names_are_bare(self) -> None:
        [node] = build_tree("<section></section>")
        assert node.tag_name == "section"

    def test_names_taken_verbatim(self) -> None:
        """Anything up to '>' is the name, spaces included."""
        [node] = build_tree("<my tag></my tag>")
        assert node.tag_name == "my tag"

    def test_text_never_contains_open_angle(self) -> None:
        nodes = build_tree("<a>x<b>y</b>z</a>")
        texts = [n.text for n in nodes[0].iter_descendants() if n.is_text]

        assert texts == ["x", "y", "z"]
        assert all("<" not in t for t in texts)

    def test_build_siblings_stops_at_closing_tag(self) -> None:
        builder = TreeBuilder.from_text("x <b></b></a>tail")
        nodes = builder.build_siblings()

        assert nodes == [text("x"), element("b")]
        assert builder.scanner.remaining == "</a>tail"


class TestParseNodeAndTag:
    """Test single-node entry points."""

    def test_parse_node_dispatches_to_tag(self) -> None:
        builder = TreeBuilder.from_text("<a>hi</a>rest")

        assert builder.parse_node() == element("a", text("hi"))
        assert builder.scanner.remaining == "rest"

    def test_parse_node_dispatches_to_text(self) -> None:
        builder = TreeBuilder.from_text("  hi  <a></a>")

        assert builder.parse_node() == text("hi")
        assert builder.scanner.peek() == "<"

    def test_parse_node_at_end(self) -> None:
        with pytest.raises(UnexpectedEndOfInput):
            TreeBuilder.from_text("").parse_node()

    def test_parse_tag_requires_open_angle(self) -> None:
        with pytest.raises(MalformedTag) as exc_info:
            TreeBuilder.from_text("abc").parse_tag()

        assert exc_info.value.expected == "<"
        assert exc_info.value.found == "a"

    def test_parse_text_may_be_empty(self) -> None:
        builder = TreeBuilder(Scanner("   <a>"))
        assert builder.parse_text() == text("")


class TestParseErrors:
    """Test every malformed-input failure."""

    def test_tag_mismatch(self) -> None:
        with pytest.raises(TagMismatch) as exc_info:
            build_tree("<a><b></a></b>")

        error = exc_info.value
        assert error.expected == "b"
        assert error.found == "a"
        assert error.position.offset == 6
        assert error.position.column == 7

    def test_missing_closing_tag(self) -> None:
        with pytest.raises(UnexpectedEndOfInput) as exc_info:
            build_tree("<a>hello")

        assert exc_info.value.expected == "</a>"
        assert exc_info.value.position.offset == 8

    def test_missing_inner_closing_tag(self) -> None:
        with pytest.raises(UnexpectedEndOfInput) as exc_info:
            build_tree("<a><b></b>")
        assert exc_info.value.expected == "</a>"

    def test_unterminated_opening_tag(self) -> None:
        with pytest.raises(UnexpectedEndOfInput) as exc_info:
            build_tree("<a")
        assert exc_info.value.expected == ">"

    def test_unterminated_closing_tag(self) -> None:
        with pytest.raises(UnexpectedEndOfInput) as exc_info:
            build_tree("<a></a")
        assert exc_info.value.expected == ">"

    def test_trailing_open_angle(self) -> None:
        with pytest.raises(UnexpectedEndOfInput):
            build_tree("<a>x<")

    def test_closing_name_with_space_mismatches(self) -> None:
        with pytest.raises(TagMismatch) as exc_info:
            build_tree("<a></ a>")
        assert exc_info.value.found == " a"

    def test_error_position_on_later_line(self) -> None:
        with pytest.raises(TagMismatch) as exc_info:
            build_tree("<a>\n  <b>\n  </c>\n</a>")

        assert exc_info.value.position.line == 3
        assert exc_info.value.position.column == 3

    def test_no_partial_tree_on_error(self) -> None:
        builder = TreeBuilder.from_text("<a></a><b>")
        with pytest.raises(UnexpectedEndOfInput):
            builder.build_document()


class TestStrayClosingTag:
    """Test closing tags at the document root."""

    def test_strict_root_raises(self) -> None:
        with pytest.raises(StrayClosingTag) as exc_info:
            build_tree("<a></a></x>rest")

        assert exc_info.value.found == "x"
        assert exc_info.value.position.offset == 7

    def test_lone_closing_tag(self) -> None:
        with pytest.raises(StrayClosingTag):
            build_tree("</x>")

    def test_lenient_root_keeps_parsed_prefix(self, caplog) -> None:
        config = TreeConfig(strict_root=False)
        builder = TreeBuilder.from_text("<a>x</a></b>trailing", config=config)

        with caplog.at_level(logging.WARNING, logger="tagtree.tree.builder"):
            document = builder.build_document()

        assert document.nodes == (element("a", text("x")),)
        assert document.ignored_trailing_input == "</b>trailing"
        assert any("Stray closing tag" in r.getMessage() for r in caplog.records)

    def test_lenient_without_stray_tag(self) -> None:
        builder = TreeBuilder.from_text("<a></a>", config=TreeConfig(strict_root=False))
        assert builder.build_document().ignored_trailing_input is None


class TestNestingDepth:
    """Test the configurable depth limit and deep inputs."""

    @staticmethod
    def nested(depth: int) -> str:
        return "<d>" * depth + "leaf" + "</d>" * depth

    def test_within_limit(self) -> None:
        builder = TreeBuilder.from_text(self.nested(3), config=TreeConfig(max_depth=3))
        assert builder.build_document().max_depth == 3

    def test_exceeds_limit(self) -> None:
        with pytest.raises(NestingTooDeep) as exc_info:
            build_tree("<a><b><c></c></b></a>", config=TreeConfig(max_depth=2))

        assert exc_info.value.limit == 2
        assert exc_info.value.tag_name == "c"
        assert exc_info.value.position.offset == 6

    def test_default_limit(self) -> None:
        with pytest.raises(NestingTooDeep):
            build_tree(self.nested(1001))

    def test_parse_tag_honours_limit(self) -> None:
        builder = TreeBuilder.from_text("<a><b></b></a>", config=TreeConfig(max_depth=1))
        with pytest.raises(NestingTooDeep):
            builder.parse_tag()

    def test_deeper_than_recursion_limit(self) -> None:
        """Unbounded depth parses without touching the Python call stack."""
        depth = 20000
        builder = TreeBuilder.from_text(self.nested(depth), config=TreeConfig(max_depth=None))
        document = builder.build_document()

        assert document.max_depth == depth
        assert document.total_elements == depth
        assert document.total_text_nodes == 1


class TestEmptyTextElision:
    """Test the elide_empty_text option."""

    def test_disabled_by_default(self) -> None:
        assert TreeConfig().elide_empty_text is False

    def test_parsed_documents_have_no_empty_text(self) -> None:
        """Whitespace is skipped before dispatch, so text is never empty."""
        document = TreeBuilder.from_text("<a>   <b> </b>   </a>").build_document()
        assert document.total_text_nodes == 0


class TestParseResult:
    """Test the ParseResult container."""

    def test_defaults(self) -> None:
        result = ParseResult()

        assert result.success is True
        assert result.nodes == []
        assert result.node_count == 0
        assert result.element_count == 0
        assert result.has_errors() is False

    def test_diagnostics_by_severity(self) -> None:
        result = ParseResult(correlation_id="cid")
        result.add_diagnostic(DiagnosticSeverity.WARNING, "careful", "tree_builder")
        result.add_diagnostic(DiagnosticSeverity.ERROR, "broken", "tree_builder")

        warnings = result.get_diagnostics_by_severity(DiagnosticSeverity.WARNING)
        assert [d.message for d in warnings] == ["careful"]
        assert warnings[0].correlation_id == "cid"
        assert result.has_errors() is True

    def test_raise_for_error(self) -> None:
        error = TagMismatch("b", "a")
        result = ParseResult(success=False, error=error)

        with pytest.raises(TagMismatch):
            result.raise_for_error()

    def test_raise_for_error_on_success(self) -> None:
        ParseResult().raise_for_error()

    def test_summary_includes_error(self) -> None:
        result = ParseResult(success=False, error=TagMismatch("b", "a"), source="<string>")
        summary = result.summary()

        assert summary["success"] is False
        assert summary["error"]["kind"] == "tag_mismatch"
        assert summary["source"] == "<string>"
