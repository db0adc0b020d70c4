"""Tests for tree rendering and round-tripping."""

import json

import pytest

from tagtree.shared.config import DEFAULT_MAX_DEPTH, OutputConfig, TreeConfig
from tagtree.tree.builder import TreeBuilder, build_tree
from tagtree.tree.nodes import Document, Node
from tagtree.tree.render import OutputFormat, TreeRenderer, to_markup, to_pretty

SAMPLE = "<a>hello<b>world</b></a>"

ROUND_TRIP_INPUTS = [
    "",
    "plain text",
    "<a></a>",
    SAMPLE,
    "  <a>  hi  </a>  ",
    "<html><head><title>Page</title></head><body><p>one</p><p>two  words</p></body></html>",
    "<a>x</a> between <b><c></c>tail</b>",
    "<ul>\n  <li>first</li>\n  <li>second <em>item</em> here</li>\n</ul>",
]


class TestMarkup:
    """Test canonical markup output."""

    def test_sample(self):
        assert to_markup(build_tree(SAMPLE)) == SAMPLE

    def test_whitespace_dropped(self):
        assert to_markup(build_tree("  <a>  hi  </a>  ")) == "<a>hi</a>"

    def test_single_node(self):
        assert to_markup(Node.element("a", [Node.text_node("x")])) == "<a>x</a>"

    def test_empty(self):
        assert to_markup([]) == ""

    @pytest.mark.parametrize("source", ROUND_TRIP_INPUTS)
    def test_round_trip(self, source):
        """Canonical markup re-parses to an equal tree."""
        tree = build_tree(source)
        assert build_tree(to_markup(tree)) == tree

    def test_deep_tree(self):
        """Rendering does not recurse per nesting level."""
        depth = 5000
        source = "<d>" * depth + "</d>" * depth
        document = TreeBuilder.from_text(
            source, config=TreeConfig(max_depth=None)
        ).build_document()

        assert to_markup(document) == source
        assert to_pretty(document).count("\n") == 2 * depth - 2


class TestPretty:
    """Test indented markup output."""

    def test_sample(self):
        assert to_pretty(build_tree(SAMPLE)) == (
            "<a>\n"
            "  hello\n"
            "  <b>world</b>\n"
            "</a>"
        )

    def test_empty_element_inline(self):
        assert to_pretty(build_tree("<a><b></b></a>")) == "<a>\n  <b></b>\n</a>"

    def test_custom_indent(self):
        output = to_pretty(build_tree("<a><b></b><c></c></a>"), indent="\t")
        assert output == "<a>\n\t<b></b>\n\t<c></c>\n</a>"

    def test_multiple_roots(self):
        assert to_pretty(build_tree("<a></a>text")) == "<a></a>\ntext"

    @pytest.mark.parametrize("source", ROUND_TRIP_INPUTS)
    def test_round_trip(self, source):
        """Indented markup re-parses to an equal tree."""
        tree = build_tree(source)
        assert build_tree(to_pretty(tree)) == tree


class TestJson:
    """Test JSON output."""

    def test_structure(self):
        output = TreeRenderer().render(build_tree(SAMPLE), OutputFormat.JSON)

        assert json.loads(output) == [{
            "element": "a",
            "children": [
                {"text": "hello"},
                {"element": "b", "children": [{"text": "world"}]},
            ],
        }]

    def test_non_ascii_kept(self):
        output = TreeRenderer().render(build_tree("<p>café</p>"), "json")
        assert "café" in output

    def test_compact(self):
        renderer = TreeRenderer(OutputConfig(json_indent=None))
        assert renderer.render(build_tree("<a></a>"), "json") == '[{"element": "a", "children": []}]'

    @pytest.mark.parametrize("json_indent", [None, 0, 2, 4])
    @pytest.mark.parametrize("source", ROUND_TRIP_INPUTS + ['<q>say "hi"\\</q>'])
    def test_matches_json_module(self, source, json_indent):
        tree = build_tree(source)
        renderer = TreeRenderer(OutputConfig(json_indent=json_indent))

        expected = json.dumps(
            [node.to_dict() for node in tree], indent=json_indent, ensure_ascii=False
        )
        assert renderer.render(tree, "json") == expected

    def test_default_depth_limit(self):
        """Rendering does not recurse per nesting level."""
        source = "<d>" * DEFAULT_MAX_DEPTH + "x" + "</d>" * DEFAULT_MAX_DEPTH
        output = TreeRenderer().render(build_tree(source), OutputFormat.JSON)

        assert output.startswith('[\n  {\n    "element": "d",\n    "children": [\n')
        assert output.count('"element": "d"') == DEFAULT_MAX_DEPTH
        assert '"text": "x"' in output
        assert output.endswith("}\n]")


class TestOutline:
    """Test the debugging outline."""

    def test_sample(self):
        output = TreeRenderer().render(build_tree(SAMPLE), OutputFormat.OUTLINE)

        assert output.splitlines() == [
            "Element('a', children=2)",
            "  Text('hello')",
            "  Element('b', children=1)",
            "    Text('world')",
        ]


class TestTreeRenderer:
    """Test renderer input handling."""

    def test_default_format_from_config(self):
        renderer = TreeRenderer(OutputConfig(default_format="outline"))
        assert renderer.render(Node.element("a")) == "Element('a', children=0)"

    def test_accepts_document(self):
        document = Document(nodes=tuple(build_tree(SAMPLE)))
        assert TreeRenderer().render(document) == SAMPLE

    def test_format_name_string(self):
        assert TreeRenderer().render(build_tree(SAMPLE), "markup") == SAMPLE

    def test_unknown_format(self):
        with pytest.raises(ValueError):
            TreeRenderer().render(build_tree(SAMPLE), "yaml")
