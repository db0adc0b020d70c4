"""Integration adapters for exchanging trees with other document libraries.

Each adapter converts a successful ``ParseResult`` into a target library's
representation and converts that representation back into a ``ParseResult``.
Element/text interleaving is preserved in both directions: ElementTree-style
``text``/``tail`` strings, BeautifulSoup strings and one DataFrame row per
node all map onto tagtree text nodes.

Attributes, comments and processing instructions have no tagtree equivalent;
they are dropped on the way in and reported as warnings.

Text read back by the ElementTree, lxml and BeautifulSoup adapters follows
the parser's text rule: each ``text``, ``tail`` or string is trimmed at both
edges and blank runs are dropped. Whitespace-significant text in a foreign
tree therefore does not survive ``from_target`` unchanged.
"""

import importlib.util
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple, Type

from tagtree.shared import DiagnosticEntry, DiagnosticSeverity, get_logger
from tagtree.tree import Document, Node, ParseResult

DEFAULT_WRAPPER_TAG = "document"
DATAFRAME_COLUMNS = ["depth", "kind", "tag", "text", "path", "child_count"]


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # ElementTree, lxml, BeautifulSoup
    DATA_FRAME = auto()      # pandas


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    adapter_type: AdapterType
    target_library: str
    description: str


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


def _append_text(target: List[Node], text: Optional[str]) -> None:
    """Append trimmed ``text`` as a text node unless it is blank."""
    if text and text.strip():
        target.append(Node.text_node(text.strip()))


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters."""

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)
        self._conversion_times: List[float] = []

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library is installed."""

    @abstractmethod
    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Convert a successful ParseResult to the target representation."""

    @abstractmethod
    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a target representation to a ParseResult."""

    def get_performance_stats(self) -> Dict[str, float]:
        """Summary of conversion times recorded by this adapter."""
        times = self._conversion_times
        if not times:
            return {}
        return {
            "count": len(times),
            "average_ms": sum(times) / len(times),
            "min_ms": min(times),
            "max_ms": max(times),
            "total_ms": sum(times),
        }

    def _require_document(
        self,
        parse_result: ParseResult,
        start_time: float
    ) -> Optional[ConversionResult]:
        if not parse_result.success or parse_result.document is None:
            return self._create_error_result(
                "ParseResult is not successful or has no document",
                parse_result,
                (time.time() - start_time) * 1000,
            )
        return None

    def _success(
        self,
        converted: Any,
        original: Any,
        start_time: float,
        warnings: Optional[List[str]] = None,
        metadata: Optional[Dict[str, Any]] = None
    ) -> ConversionResult:
        processing_time = (time.time() - start_time) * 1000
        self._conversion_times.append(processing_time)
        warnings = warnings or []
        for warning in warnings:
            self._logger.warning(warning, extra={"adapter": self.metadata.name})
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=original,
            conversion_time_ms=processing_time,
            warnings=warnings,
            metadata=metadata or {},
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.WARNING,
                    message=warning,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id,
                )
                for warning in warnings
            ],
        )

    def _wrap_forest(self, nodes: Sequence[Node], source: str) -> ParseResult:
        """Package converted nodes the way the parse functions do."""
        document = Document(nodes=tuple(nodes), correlation_id=self.correlation_id)
        result = ParseResult(
            document=document,
            success=True,
            source=source,
            correlation_id=self.correlation_id,
        )
        result.performance.nodes_built = document.node_count
        return result

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(error_message, extra={"adapter": self.metadata.name})
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id,
                )
            ],
        )


class _EtreeStyleAdapter(IntegrationAdapter):
    """Shared conversion for libraries with ElementTree's text/tail model."""

    module_name = ""

    def __init__(
        self,
        correlation_id: Optional[str] = None,
        wrapper_tag: str = DEFAULT_WRAPPER_TAG
    ) -> None:
        super().__init__(correlation_id)
        self.wrapper_tag = wrapper_tag

    def is_available(self) -> bool:
        return importlib.util.find_spec(self.module_name.split(".")[0]) is not None

    @abstractmethod
    def _element_factory(self) -> Callable[[str], Any]:
        """Return the target library's element constructor."""

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Convert to an element named ``wrapper_tag`` holding the root forest."""
        start_time = time.time()
        error = self._require_document(parse_result, start_time)
        if error is not None:
            return error

        try:
            root = self._build(parse_result.document.nodes, self._element_factory())
        except ValueError as e:
            # lxml rejects names that are not valid XML names
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                parse_result,
                (time.time() - start_time) * 1000,
            )

        return self._success(
            root,
            parse_result,
            start_time,
            metadata={"element_count": parse_result.element_count},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert an element's content (text, children, tails) to a forest."""
        start_time = time.time()
        if not hasattr(target_data, "tag") or not hasattr(target_data, "tail"):
            return self._create_error_result(
                f"Target data is not a valid {self.metadata.target_library} element",
                target_data,
                (time.time() - start_time) * 1000,
            )

        warnings: List[str] = []
        nodes = self._read(target_data, warnings)
        result = self._wrap_forest(nodes, f"<{self.metadata.name}>")
        return self._success(
            result,
            target_data,
            start_time,
            warnings=warnings,
            metadata={"original_tag": target_data.tag},
        )

    def _build(self, nodes: Sequence[Node], make_element: Callable[[str], Any]) -> Any:
        root = make_element(self.wrapper_tag)
        stack: List[Tuple[Any, Sequence[Node]]] = [(root, nodes)]
        while stack:
            parent, children = stack.pop()
            last = None
            for child in children:
                if child.is_text:
                    if last is None:
                        parent.text = (parent.text or "") + child.text
                    else:
                        last.tail = (last.tail or "") + child.text
                    continue
                element = make_element(child.tag_name)
                parent.append(element)
                last = element
                stack.append((element, child.children))
        return root

    def _read(self, container: Any, warnings: List[str]) -> List[Node]:
        forest: List[Node] = []
        _append_text(forest, container.text)
        frames: List[Tuple[Any, List[Node], Any]] = [(container, forest, iter(container))]
        while frames:
            element, children, pending = frames[-1]
            child = next(pending, None)
            if child is None:
                frames.pop()
                if frames:
                    parent_children = frames[-1][1]
                    parent_children.append(Node.element(element.tag, children))
                    _append_text(parent_children, element.tail)
                continue

            if not isinstance(child.tag, str):
                # Comments and processing instructions
                warnings.append("Dropped a comment or processing instruction")
                _append_text(children, child.tail)
                continue
            if child.attrib:
                warnings.append(f"Dropped attributes of <{child.tag}>")

            grandchildren: List[Node] = []
            _append_text(grandchildren, child.text)
            frames.append((child, grandchildren, iter(child)))
        return forest


class ElementTreeAdapter(_EtreeStyleAdapter):
    """Adapter for xml.etree.ElementTree."""

    module_name = "xml.etree.ElementTree"

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="elementtree",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="xml.etree.ElementTree",
            description="Conversion between ParseResult and ElementTree elements",
        )

    def _element_factory(self) -> Callable[[str], Any]:
        import xml.etree.ElementTree as ET
        return ET.Element


class LxmlAdapter(_EtreeStyleAdapter):
    """Adapter for lxml.etree."""

    module_name = "lxml"

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="lxml",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            description="Conversion between ParseResult and lxml.etree elements",
        )

    def _element_factory(self) -> Callable[[str], Any]:
        from lxml import etree
        return etree.Element


class BeautifulSoupAdapter(IntegrationAdapter):
    """Adapter for BeautifulSoup documents."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="beautifulsoup",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="beautifulsoup4",
            description="Conversion between ParseResult and BeautifulSoup",
        )

    def is_available(self) -> bool:
        return importlib.util.find_spec("bs4") is not None

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Build a BeautifulSoup document tag by tag; names keep their case."""
        start_time = time.time()
        error = self._require_document(parse_result, start_time)
        if error is not None:
            return error

        from bs4 import BeautifulSoup, NavigableString

        soup = BeautifulSoup("", "html.parser")
        stack: List[Tuple[Any, Sequence[Node]]] = [(soup, parse_result.document.nodes)]
        while stack:
            parent, children = stack.pop()
            for child in children:
                if child.is_text:
                    parent.append(NavigableString(child.text))
                    continue
                tag = soup.new_tag(child.tag_name)
                parent.append(tag)
                stack.append((tag, child.children))

        return self._success(
            soup,
            parse_result,
            start_time,
            metadata={"element_count": parse_result.element_count},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert a BeautifulSoup document or tag's contents to a forest."""
        start_time = time.time()
        from bs4 import NavigableString, Tag

        if not isinstance(target_data, Tag):
            return self._create_error_result(
                "Target data is not a BeautifulSoup document or tag",
                target_data,
                (time.time() - start_time) * 1000,
            )

        warnings: List[str] = []
        forest: List[Node] = []
        frames: List[Tuple[Any, List[Node], Any]] = [
            (target_data, forest, iter(target_data.contents))
        ]
        while frames:
            tag, children, pending = frames[-1]
            child = next(pending, None)
            if child is None:
                frames.pop()
                if frames:
                    frames[-1][1].append(Node.element(tag.name, children))
                continue

            if isinstance(child, Tag):
                if child.attrs:
                    warnings.append(f"Dropped attributes of <{child.name}>")
                frames.append((child, [], iter(child.contents)))
            elif type(child) is NavigableString:
                _append_text(children, str(child))
            else:
                warnings.append(f"Dropped {type(child).__name__}")

        result = self._wrap_forest(forest, "<beautifulsoup>")
        return self._success(result, target_data, start_time, warnings=warnings)


class PandasAdapter(IntegrationAdapter):
    """Adapter for pandas DataFrames: one row per node in document order."""

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="pandas",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            description="Conversion between ParseResult and a node-per-row DataFrame",
        )

    def is_available(self) -> bool:
        return importlib.util.find_spec("pandas") is not None

    def to_target(self, parse_result: ParseResult) -> ConversionResult:
        """Flatten the document into rows with ``DATAFRAME_COLUMNS``.

        ``depth`` is 0 for root-level nodes; ``path`` is the slash-joined
        chain of enclosing element names.
        """
        start_time = time.time()
        error = self._require_document(parse_result, start_time)
        if error is not None:
            return error

        import pandas as pd

        rows = []
        stack: List[Tuple[Node, int, str]] = [
            (node, 0, "") for node in reversed(parse_result.document.nodes)
        ]
        while stack:
            node, depth, parent_path = stack.pop()
            if node.is_text:
                rows.append({
                    "depth": depth, "kind": "text", "tag": None,
                    "text": node.text, "path": parent_path or "/", "child_count": 0,
                })
                continue
            path = f"{parent_path}/{node.tag_name}"
            rows.append({
                "depth": depth, "kind": "element", "tag": node.tag_name,
                "text": None, "path": path, "child_count": len(node.children),
            })
            for child in reversed(node.children):
                stack.append((child, depth + 1, path))

        df = pd.DataFrame(rows, columns=DATAFRAME_COLUMNS)
        return self._success(
            df,
            parse_result,
            start_time,
            metadata={"row_count": len(df), "columns": list(df.columns)},
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Rebuild a forest from ``depth``, ``kind``, ``tag`` and ``text`` rows."""
        start_time = time.time()
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            return self._create_error_result(
                "Target data is not a pandas DataFrame",
                target_data,
                (time.time() - start_time) * 1000,
            )
        missing = [c for c in ("depth", "kind", "tag", "text") if c not in target_data.columns]
        if missing:
            return self._create_error_result(
                f"DataFrame is missing columns: {', '.join(missing)}",
                target_data,
                (time.time() - start_time) * 1000,
            )

        forest: List[Node] = []
        open_elements: List[Tuple[str, List[Node]]] = []

        def close_one() -> None:
            tag_name, children = open_elements.pop()
            target = open_elements[-1][1] if open_elements else forest
            target.append(Node.element(tag_name, children))

        for position, row in enumerate(target_data.itertuples(index=False)):
            depth = int(row.depth)
            if depth < 0 or depth > len(open_elements):
                return self._create_error_result(
                    f"Row {position} has depth {depth} with only "
                    f"{len(open_elements)} open elements",
                    target_data,
                    (time.time() - start_time) * 1000,
                )
            while len(open_elements) > depth:
                close_one()

            if row.kind == "element":
                open_elements.append((str(row.tag), []))
            elif row.kind == "text":
                target = open_elements[-1][1] if open_elements else forest
                target.append(Node.text_node("" if pd.isna(row.text) else str(row.text)))
            else:
                return self._create_error_result(
                    f"Row {position} has unknown kind {row.kind!r}",
                    target_data,
                    (time.time() - start_time) * 1000,
                )
        while open_elements:
            close_one()

        result = self._wrap_forest(forest, "<pandas>")
        return self._success(
            result,
            target_data,
            start_time,
            metadata={"row_count": len(target_data)},
        )


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name."""
        with self._lock:
            self._adapters[adapter_class().metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get a new adapter instance, or None if unknown or unavailable."""
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
        if adapter_class is None:
            return None
        instance = adapter_class(correlation_id)
        return instance if instance.is_available() else None

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """Metadata of every registered adapter whose library is installed."""
        with self._lock:
            classes = list(self._adapters.values())
        available = []
        for adapter_class in classes:
            instance = adapter_class()
            if instance.is_available():
                available.append(instance.metadata)
        return available

    def get_adapters_by_type(self, adapter_type: AdapterType) -> List[str]:
        """Names of available adapters of ``adapter_type``."""
        return [
            metadata.name for metadata in self.list_available_adapters()
            if metadata.adapter_type == adapter_type
        ]


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally."""
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance by name."""
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()


def get_adapters_by_type(adapter_type: AdapterType) -> List[str]:
    """Get available adapter names by type."""
    return _adapter_registry.get_adapters_by_type(adapter_type)


for _adapter_class in (ElementTreeAdapter, LxmlAdapter, BeautifulSoupAdapter, PandasAdapter):
    register_adapter(_adapter_class)
