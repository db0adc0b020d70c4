"""Tests for the integration adapters.

Covers conversion between parse results and ElementTree, lxml, BeautifulSoup
and pandas, plus the adapter registry.
"""

import xml.etree.ElementTree as ET

import pytest

from tagtree.api import parse_string
from tagtree.api.adapters import (
    AdapterMetadata,
    AdapterRegistry,
    AdapterType,
    BeautifulSoupAdapter,
    ConversionResult,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    get_adapters_by_type,
    list_available_adapters,
)
from tagtree.shared.config import ParserConfig
from tagtree.shared.result import DiagnosticSeverity
from tagtree.tree.builder import ParseResult
from tagtree.tree.nodes import Node

SAMPLE = "<a>hello<b>world</b></a>"
MIXED = "<a>x<b>y</b>z</a>"


class StubAdapter(IntegrationAdapter):
    """Adapter with no target library, for registry tests."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="stub",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="none",
            description="Stub adapter",
        )

    def is_available(self) -> bool:
        return True

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        return ConversionResult(True, None, parse_result, 0.0)

    def from_target(self, target_data):
        return ConversionResult(True, None, target_data, 0.0)


class TestElementTreeAdapter:
    """Test conversion to and from xml.etree.ElementTree."""

    def test_is_available(self):
        assert ElementTreeAdapter().is_available() is True

    def test_to_target_wraps_forest(self):
        result = ElementTreeAdapter().to_target(parse_string(SAMPLE))

        assert result.success is True
        root = result.converted_data
        assert root.tag == "document"
        assert ET.tostring(root, encoding="unicode") == f"<document>{SAMPLE}</document>"
        assert result.metadata["element_count"] == 2

    def test_text_after_element_becomes_tail(self):
        root = ElementTreeAdapter().to_target(parse_string(MIXED)).converted_data

        a = root[0]
        assert a.text == "x"
        assert a[0].text == "y"
        assert a[0].tail == "z"

    def test_root_text_and_multiple_roots(self):
        root = ElementTreeAdapter().to_target(
            parse_string("hi<a></a>mid<b></b>")
        ).converted_data

        assert root.text == "hi"
        assert [child.tag for child in root] == ["a", "b"]
        assert root[0].tail == "mid"

    def test_custom_wrapper_tag(self):
        adapter = ElementTreeAdapter(wrapper_tag="root")
        root = adapter.to_target(parse_string(SAMPLE)).converted_data
        assert root.tag == "root"

    def test_round_trip(self):
        adapter = ElementTreeAdapter()
        original = parse_string(MIXED)
        element = adapter.to_target(original).converted_data

        back = adapter.from_target(element)

        assert back.success is True
        assert isinstance(back.converted_data, ParseResult)
        assert back.converted_data.nodes == original.nodes

    def test_from_target_trims_and_drops_blank_text(self):
        element = ET.fromstring("<r>\n  <a> hi </a>\n</r>")

        result = ElementTreeAdapter().from_target(element)

        assert result.converted_data.nodes == [Node.element("a", [Node.text_node("hi")])]
        assert result.metadata["original_tag"] == "r"

    def test_from_target_drops_attributes_with_warning(self):
        element = ET.fromstring('<r><x k="1">t</x></r>')

        result = ElementTreeAdapter().from_target(element)

        assert result.success is True
        assert result.converted_data.nodes == [Node.element("x", [Node.text_node("t")])]
        assert result.warnings == ["Dropped attributes of <x>"]
        assert result.diagnostics[0].severity == DiagnosticSeverity.WARNING

    def test_from_target_skips_comments_but_keeps_tail(self):
        root = ET.Element("r")
        comment = ET.Comment("note")
        comment.tail = "after"
        root.append(comment)

        result = ElementTreeAdapter().from_target(root)

        assert result.converted_data.nodes == [Node.text_node("after")]
        assert len(result.warnings) == 1

    def test_from_target_rejects_non_element(self):
        result = ElementTreeAdapter().from_target("not an element")

        assert result.success is False
        assert result.converted_data is None
        assert result.diagnostics[0].severity == DiagnosticSeverity.ERROR

    def test_failed_parse_result_is_rejected(self):
        result = ElementTreeAdapter().to_target(parse_string("<a>"))

        assert result.success is False
        assert result.errors == ["ParseResult is not successful or has no document"]

    def test_deep_tree(self):
        depth = 3000
        text = "<d>" * depth + "</d>" * depth
        adapter = ElementTreeAdapter()
        parsed = parse_string(text, config=ParserConfig().override(tree__max_depth=None))

        element = adapter.to_target(parsed).converted_data
        back = adapter.from_target(element).converted_data

        assert back.document.max_depth == depth

    def test_performance_stats(self):
        adapter = ElementTreeAdapter()
        assert adapter.get_performance_stats() == {}

        adapter.to_target(parse_string(SAMPLE))

        stats = adapter.get_performance_stats()
        assert stats["count"] == 1
        assert stats["total_ms"] >= 0


class TestLxmlAdapter:
    """Test conversion to and from lxml.etree."""

    def test_to_target(self):
        etree = pytest.importorskip("lxml.etree")

        result = LxmlAdapter().to_target(parse_string(SAMPLE))

        assert result.success is True
        assert etree.tostring(result.converted_data, encoding="unicode") == (
            f"<document>{SAMPLE}</document>"
        )

    def test_round_trip(self):
        pytest.importorskip("lxml.etree")
        adapter = LxmlAdapter()
        original = parse_string(MIXED)

        back = adapter.from_target(adapter.to_target(original).converted_data)

        assert back.converted_data.nodes == original.nodes

    def test_invalid_name_is_an_error_result(self):
        pytest.importorskip("lxml.etree")

        result = LxmlAdapter().to_target(parse_string("<a b></a b>"))

        assert result.success is False
        assert result.errors[0].startswith("Failed to convert to lxml")

    def test_from_target_skips_comments(self):
        etree = pytest.importorskip("lxml.etree")
        element = etree.fromstring("<r>a<!--c--><b>t</b></r>")

        result = LxmlAdapter().from_target(element)

        assert result.converted_data.nodes == [
            Node.text_node("a"),
            Node.element("b", [Node.text_node("t")]),
        ]
        assert result.warnings == ["Dropped a comment or processing instruction"]


class TestBeautifulSoupAdapter:
    """Test conversion to and from BeautifulSoup."""

    def test_to_target(self):
        pytest.importorskip("bs4")

        result = BeautifulSoupAdapter().to_target(parse_string(SAMPLE))

        assert result.success is True
        assert str(result.converted_data) == SAMPLE

    def test_round_trip(self):
        pytest.importorskip("bs4")
        adapter = BeautifulSoupAdapter()
        original = parse_string("top" + MIXED + "<c></c>")

        back = adapter.from_target(adapter.to_target(original).converted_data)

        assert back.success is True
        assert back.converted_data.nodes == original.nodes

    def test_from_target_drops_comments_and_attributes(self):
        bs4 = pytest.importorskip("bs4")
        soup = bs4.BeautifulSoup('<p class="x">a<!--c--><i>b</i></p>', "html.parser")

        result = BeautifulSoupAdapter().from_target(soup)

        assert result.converted_data.nodes == [
            Node.element("p", [Node.text_node("a"), Node.element("i", [Node.text_node("b")])])
        ]
        assert result.warnings == ["Dropped attributes of <p>", "Dropped Comment"]

    def test_from_target_rejects_non_tag(self):
        pytest.importorskip("bs4")

        result = BeautifulSoupAdapter().from_target("<a></a>")

        assert result.success is False


class TestPandasAdapter:
    """Test conversion to and from pandas DataFrames."""

    def test_to_target_rows(self):
        pytest.importorskip("pandas")

        result = PandasAdapter().to_target(parse_string(SAMPLE))

        df = result.converted_data
        assert result.success is True
        assert list(df.columns) == ["depth", "kind", "tag", "text", "path", "child_count"]
        assert list(df["kind"]) == ["element", "text", "element", "text"]
        assert list(df["depth"]) == [0, 1, 1, 2]
        assert list(df["path"]) == ["/a", "/a", "/a/b", "/a/b"]
        assert list(df["child_count"]) == [2, 0, 1, 0]
        assert result.metadata["row_count"] == 4

    def test_root_text_path(self):
        pytest.importorskip("pandas")

        df = PandasAdapter().to_target(parse_string("hi<a></a>")).converted_data

        assert list(df["path"]) == ["/", "/a"]

    def test_round_trip(self):
        pytest.importorskip("pandas")
        adapter = PandasAdapter()
        original = parse_string("<r>" + MIXED + "<c>d</c></r>tail")

        back = adapter.from_target(adapter.to_target(original).converted_data)

        assert back.success is True
        assert back.converted_data.nodes == original.nodes

    def test_missing_columns(self):
        pd = pytest.importorskip("pandas")

        result = PandasAdapter().from_target(pd.DataFrame({"depth": [0]}))

        assert result.success is False
        assert result.errors == ["DataFrame is missing columns: kind, tag, text"]

    def test_skipped_depth(self):
        pd = pytest.importorskip("pandas")
        df = pd.DataFrame([{"depth": 1, "kind": "element", "tag": "a", "text": None}])

        result = PandasAdapter().from_target(df)

        assert result.success is False
        assert "depth 1" in result.errors[0]

    def test_unknown_kind(self):
        pd = pytest.importorskip("pandas")
        df = pd.DataFrame([{"depth": 0, "kind": "comment", "tag": None, "text": "x"}])

        result = PandasAdapter().from_target(df)

        assert result.success is False

    def test_rejects_non_dataframe(self):
        pytest.importorskip("pandas")

        result = PandasAdapter().from_target([1, 2, 3])

        assert result.success is False


class TestAdapterRegistry:
    """Test adapter lookup and registration."""

    def test_get_builtin_adapter(self):
        adapter = get_adapter("elementtree", correlation_id="abc")

        assert isinstance(adapter, ElementTreeAdapter)
        assert adapter.correlation_id == "abc"

    def test_unknown_adapter(self):
        assert get_adapter("nope") is None

    def test_list_available(self):
        names = [metadata.name for metadata in list_available_adapters()]
        assert "elementtree" in names

    def test_by_type(self):
        assert "elementtree" in get_adapters_by_type(AdapterType.XML_LIBRARY)
        assert "elementtree" not in get_adapters_by_type(AdapterType.DATA_FRAME)

    def test_register_custom_adapter(self):
        registry = AdapterRegistry()
        registry.register(StubAdapter)

        assert isinstance(registry.get_adapter("stub"), StubAdapter)
        assert registry.get_adapters_by_type(AdapterType.DATA_FRAME) == ["stub"]

    def test_unavailable_adapter_is_not_returned(self):
        class MissingAdapter(StubAdapter):
            def is_available(self) -> bool:
                return False

        registry = AdapterRegistry()
        registry.register(MissingAdapter)

        assert registry.get_adapter("stub") is None
        assert registry.list_available_adapters() == []
