"""Tree building engine for tagtree.

This module turns a flat character stream into nested ``Node`` objects. The
grammar is deliberately small::

    siblings = (whitespace? node)*
    node     = element | text
    element  = "<" name ">" siblings "</" name ">"
    text     = run of characters without "<", trimmed

Nested elements are tracked on an explicit stack of pending elements rather
than on the Python call stack, so nesting depth is bounded only by
``TreeConfig.max_depth``. Any malformed construct raises a ``ParseError``;
there is no partial-tree recovery.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from tagtree.character.scanner import Scanner
from tagtree.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    MalformedClosingTag,
    MalformedTag,
    NestingTooDeep,
    PerformanceMetrics,
    StrayClosingTag,
    TagMismatch,
    TagTreeError,
    TreeConfig,
    UnexpectedEndOfInput,
    get_logger,
)

from .nodes import Document, Node

OPEN_ANGLE = "<"
CLOSE_ANGLE = ">"
SLASH = "/"
CLOSE_TAG_PREFIX = OPEN_ANGLE + SLASH


@dataclass
class _PendingElement:
    """An element whose opening tag has been read but not its closing tag."""

    tag_name: str
    start_offset: int
    children: List[Node] = field(default_factory=list)


class TreeBuilder:
    """Builds node trees from a scanner positioned over markup text.

    The builder consumes its scanner: once a parse method returns or raises,
    the scanner's cursor has moved past whatever was read.

    Examples:
        >>> builder = TreeBuilder.from_text("<a>hello<b>world</b></a>")
        >>> [node.tag_name for node in builder.build_siblings()]
        ['a']
    """

    def __init__(
        self,
        scanner: Scanner,
        config: Optional[TreeConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the tree builder.

        Args:
            scanner: Cursor over the document text; exclusively owned by this builder
            config: Tree building configuration
            correlation_id: Optional correlation ID for request tracking
        """
        self.scanner = scanner
        self.config = config or TreeConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_builder")

    @classmethod
    def from_text(
        cls,
        text: str,
        config: Optional[TreeConfig] = None,
        correlation_id: Optional[str] = None
    ) -> "TreeBuilder":
        return cls(Scanner(text), config=config, correlation_id=correlation_id)

    def build_document(self) -> Document:
        """Parse the whole input into a Document.

        Raises:
            ParseError: The input is not well-formed markup
        """
        start_time = time.time()
        nodes = self.build_siblings()

        ignored_trailing_input = None
        if not self.scanner.at_end:
            # build_siblings only stops early at "</" with nothing open
            offset = self.scanner.offset
            if self.config.strict_root:
                self.scanner.advance()
                self.scanner.advance()
                found = self.scanner.scan_until(CLOSE_ANGLE)
                raise StrayClosingTag(found, self.scanner.position_at(offset))

            ignored_trailing_input = self.scanner.remaining
            self.logger.warning(
                "Stray closing tag at document root, ignoring remaining input",
                extra={
                    "offset": offset,
                    "ignored_characters": len(ignored_trailing_input),
                }
            )

        document = Document(
            nodes=tuple(nodes),
            source_length=len(self.scanner.text),
            ignored_trailing_input=ignored_trailing_input,
            correlation_id=self.correlation_id,
        )

        self.logger.debug(
            "Document tree built",
            extra={
                "root_nodes": len(document.nodes),
                "total_elements": document.total_elements,
                "max_depth": document.max_depth,
                "processing_time_ms": (time.time() - start_time) * 1000,
            }
        )
        return document

    def build_siblings(self) -> List[Node]:
        """Parse sibling nodes until a closing tag or the end of input.

        The closing-tag marker that stops the loop is left unconsumed for the
        enclosing element to validate.
        """
        return self._build(None)

    def parse_node(self) -> Node:
        """Parse one element or text node, chosen by one character of lookahead.

        Raises:
            UnexpectedEndOfInput: No input remains
        """
        char = self.scanner.peek()
        if char is None:
            raise UnexpectedEndOfInput("node", self.scanner.position)
        if char == OPEN_ANGLE:
            return self.parse_tag()
        return self.parse_text()

    def parse_tag(self) -> Node:
        """Parse one complete element, children and closing tag included."""
        pending = self._open_element(depth=1)
        return self._build(pending)[0]

    def parse_text(self) -> Node:
        """Parse a run of text up to the next tag start, trimmed at both edges."""
        content = self.scanner.scan_until(OPEN_ANGLE)
        return Node.text_node(content.strip())

    def _build(self, outer: Optional[_PendingElement]) -> List[Node]:
        """Drive the sibling loop over an explicit stack of open elements.

        With ``outer`` set, returns a one-item list holding the finished outer
        element. Without it, returns the sibling sequence at the current level.
        """
        scanner = self.scanner
        stack: List[_PendingElement] = [outer] if outer is not None else []
        siblings: List[Node] = []

        while True:
            scanner.skip_whitespace()

            if scanner.at_end or scanner.starts_with(CLOSE_TAG_PREFIX):
                if not stack:
                    return siblings
                element = self._close_element(stack.pop())
                if not stack and outer is not None:
                    return [element]
                (stack[-1].children if stack else siblings).append(element)
                continue

            if scanner.peek() == OPEN_ANGLE:
                stack.append(self._open_element(depth=len(stack) + 1))
                continue

            text = self.parse_text()
            if self.config.elide_empty_text and not text.text:
                continue
            (stack[-1].children if stack else siblings).append(text)

    def _open_element(self, depth: int) -> _PendingElement:
        start_offset = self.scanner.offset
        self._expect(OPEN_ANGLE, MalformedTag)
        tag_name = self.scanner.scan_until(CLOSE_ANGLE)
        self._expect(CLOSE_ANGLE, MalformedTag)

        max_depth = self.config.max_depth
        if max_depth is not None and depth > max_depth:
            raise NestingTooDeep(max_depth, tag_name, self.scanner.position_at(start_offset))

        return _PendingElement(tag_name=tag_name, start_offset=start_offset)

    def _close_element(self, pending: _PendingElement) -> Node:
        start_offset = self.scanner.offset
        if self.scanner.at_end:
            raise UnexpectedEndOfInput(
                f"{CLOSE_TAG_PREFIX}{pending.tag_name}{CLOSE_ANGLE}",
                self.scanner.position,
            )

        self._expect(OPEN_ANGLE, MalformedClosingTag)
        self._expect(SLASH, MalformedClosingTag)
        found = self.scanner.scan_until(CLOSE_ANGLE)
        if found != pending.tag_name:
            raise TagMismatch(
                pending.tag_name, found, self.scanner.position_at(start_offset)
            )
        self._expect(CLOSE_ANGLE, MalformedClosingTag)

        return Node.element(pending.tag_name, pending.children)

    def _expect(self, expected: str, error_type: type) -> None:
        """Consume ``expected`` or raise ``error_type`` naming what was found."""
        position_offset = self.scanner.offset
        char = self.scanner.peek()
        if char is None:
            raise UnexpectedEndOfInput(expected, self.scanner.position_at(position_offset))
        if char != expected:
            raise error_type(expected, char, self.scanner.position_at(position_offset))
        self.scanner.advance()


def build_tree(text: str, config: Optional[TreeConfig] = None) -> List[Node]:
    """Parse ``text`` and return its root sibling sequence.

    Raises:
        ParseError: The input is not well-formed markup
    """
    return list(TreeBuilder.from_text(text, config=config).build_document().nodes)


@dataclass
class ParseResult:
    """Outcome of a parse: the document on success, the error otherwise.

    Malformed input never escapes as an exception from the API layer; it is
    carried here as ``error`` together with a diagnostic entry.
    """

    document: Optional[Document] = None
    success: bool = True
    error: Optional[TagTreeError] = None

    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)

    source: Optional[str] = None
    correlation_id: Optional[str] = None

    @property
    def nodes(self) -> List[Node]:
        """Root sibling sequence, empty when parsing failed."""
        if self.document is None:
            return []
        return list(self.document.nodes)

    @property
    def node_count(self) -> int:
        return self.document.node_count if self.document else 0

    @property
    def element_count(self) -> int:
        return self.document.total_elements if self.document else 0

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        position: Optional[Dict[str, int]] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                position=position,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def get_diagnostics_by_severity(
        self,
        severity: DiagnosticSeverity
    ) -> List[DiagnosticEntry]:
        """Get diagnostics of specific severity level."""
        return [diag for diag in self.diagnostics if diag.severity == severity]

    def has_errors(self) -> bool:
        """Check if result contains any error diagnostics."""
        return any(
            diag.severity in (DiagnosticSeverity.ERROR, DiagnosticSeverity.CRITICAL)
            for diag in self.diagnostics
        )

    def raise_for_error(self) -> None:
        """Re-raise the captured error, if any."""
        if self.error is not None:
            raise self.error

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        summary: Dict[str, Any] = {
            "success": self.success,
            "source": self.source,
            "element_count": self.element_count,
            "node_count": self.node_count,
            "max_depth": self.document.max_depth if self.document else 0,
            "processing_time_ms": self.performance.processing_time_ms,
            "characters_processed": self.performance.characters_processed,
            "diagnostics": [diag.to_dict() for diag in self.diagnostics],
        }
        if self.error is not None:
            summary["error"] = self.error.to_details()
        return summary
