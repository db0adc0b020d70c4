"""Core parser API with progressive disclosure for tagtree.

This module provides the main parsing API, from simple module-level functions
to a reusable configured parser class. None of these entry points raise on
malformed markup or unreadable files: failures come back as a ``ParseResult``
with ``success=False``, the captured error and a diagnostic describing the
offending position and the expected and found tokens.
"""

import time
import uuid
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from tagtree.character import DocumentLoader, LoadedDocument, Scanner
from tagtree.shared import (
    DiagnosticSeverity,
    IoFailure,
    ParseError,
    ParserConfig,
    TagTreeError,
    get_logger,
)
from tagtree.tree import ParseResult, TreeBuilder

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion


def _resolve_correlation_id(
    config: ParserConfig, correlation_id: Optional[str]
) -> Optional[str]:
    if correlation_id is None and config.global_.enable_correlation_tracking:
        return str(uuid.uuid4())[:8]
    return correlation_id


def parse(
    input_data: InputType,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse markup from various input sources with automatic type detection.

    Args:
        input_data: Markup as string, bytes, file-like object, or Path
        config: Parser configuration (defaults to ParserConfig())
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult containing the document or the error that stopped parsing

    Examples:
        >>> result = parse('<a>hello<b>world</b></a>')
        >>> result.success
        True
        >>> result.nodes[0].tag_name
        'a'
    """
    config = config or ParserConfig()
    correlation_id = _resolve_correlation_id(config, correlation_id)

    if isinstance(input_data, Path):
        return parse_file(input_data, config=config, correlation_id=correlation_id)
    if isinstance(input_data, str):
        return parse_string(input_data, config=config, correlation_id=correlation_id)
    if isinstance(input_data, bytes):
        return parse_bytes(input_data, config=config, correlation_id=correlation_id)
    if hasattr(input_data, "read"):
        content = input_data.read()
        source = getattr(input_data, "name", "<stream>")
        if isinstance(content, bytes):
            return parse_bytes(
                content, config=config, correlation_id=correlation_id, source=str(source)
            )
        return _parse_text(content, config, correlation_id, source=str(source))

    raise TypeError(f"Unsupported input type: {type(input_data).__name__}")


def parse_string(
    text: str,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Parse markup from a string.

    Examples:
        >>> result = parse_string('<a><b></a></b>')
        >>> result.success
        False
        >>> (result.error.expected, result.error.found)
        ('b', 'a')
    """
    config = config or ParserConfig()
    correlation_id = _resolve_correlation_id(config, correlation_id)
    return _parse_text(text, config, correlation_id, source="<string>")


def parse_bytes(
    data: bytes,
    encoding: Optional[str] = None,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None,
    source: str = "<bytes>"
) -> ParseResult:
    """Decode ``data`` (BOM detection, then UTF-8) and parse it."""
    config = config or ParserConfig()
    correlation_id = _resolve_correlation_id(config, correlation_id)
    start_time = time.time()

    loader = DocumentLoader(config.loader, correlation_id=correlation_id)
    try:
        loaded = loader.decode(data, encoding=encoding, source=source)
    except IoFailure as e:
        return _create_error_result(e, correlation_id, start_time, source)

    return _parse_loaded(loaded, config, correlation_id, source, start_time)


def parse_file(
    file_path: Union[str, Path],
    encoding: Optional[str] = None,
    config: Optional[ParserConfig] = None,
    correlation_id: Optional[str] = None
) -> ParseResult:
    """Load a document from disk and parse it.

    Args:
        file_path: Path to the document (string or Path object)
        encoding: Optional encoding override (BOM detection, then UTF-8 otherwise)
        config: Parser configuration
        correlation_id: Optional correlation ID for request tracking

    Returns:
        ParseResult; a missing or undecodable file gives ``success=False``
        with an ``IoFailure`` error

    Examples:
        >>> result = parse_file('missing.html')
        >>> result.success
        False
        >>> result.error.reason
        'not_found'
    """
    config = config or ParserConfig()
    correlation_id = _resolve_correlation_id(config, correlation_id)
    start_time = time.time()
    source = str(file_path)
    logger = get_logger(__name__, correlation_id, "parse_file")

    logger.info(
        "Starting file parse operation",
        extra={"file_path": source, "encoding_override": encoding}
    )

    loader = DocumentLoader(config.loader, correlation_id=correlation_id)
    try:
        loaded = loader.load(file_path, encoding=encoding)
    except IoFailure as e:
        logger.warning(
            "Document could not be loaded",
            extra={"file_path": source, "reason": e.reason}
        )
        return _create_error_result(e, correlation_id, start_time, source)

    return _parse_loaded(loaded, config, correlation_id, source, start_time)


def _parse_loaded(
    loaded: LoadedDocument,
    config: ParserConfig,
    correlation_id: Optional[str],
    source: str,
    start_time: float
) -> ParseResult:
    result = _parse_text(loaded.text, config, correlation_id, source=source)
    if result.document is not None:
        result.document.encoding = loaded.encoding
    result.add_diagnostic(
        DiagnosticSeverity.INFO,
        f"Document decoded as {loaded.encoding}",
        "document_loader",
        details={
            "encoding": loaded.encoding,
            "bom_detected": loaded.bom_detected,
            "size_bytes": loaded.size_bytes,
        }
    )
    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    return result


def _parse_text(
    text: str,
    config: ParserConfig,
    correlation_id: Optional[str],
    source: str
) -> ParseResult:
    """Run the tree builder over ``text`` and package the outcome."""
    start_time = time.time()
    logger = get_logger(__name__, correlation_id, "parse_text")

    logger.info(
        "Starting parse operation",
        extra={
            "source": source,
            "content_length": len(text),
            "preview": (
                text[:PREVIEW_LENGTH] + "..." if len(text) > PREVIEW_LENGTH else text
            ),
        }
    )

    builder = TreeBuilder(Scanner(text), config=config.tree, correlation_id=correlation_id)
    try:
        document = builder.build_document()
    except ParseError as e:
        logger.warning(
            "Parse failed",
            extra={"source": source, **e.to_details()}
        )
        result = _create_error_result(e, correlation_id, start_time, source)
        result.performance.characters_processed = builder.scanner.offset
        return result

    result = ParseResult(
        document=document,
        success=True,
        source=source,
        correlation_id=correlation_id,
    )
    if document.ignored_trailing_input is not None:
        ignored_offset = len(text) - len(document.ignored_trailing_input)
        result.add_diagnostic(
            DiagnosticSeverity.WARNING,
            "Stray closing tag at document root; remaining input ignored",
            "tree_builder",
            position=builder.scanner.position_at(ignored_offset).to_dict(),
            details={"ignored_characters": len(document.ignored_trailing_input)},
        )

    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    result.performance.characters_processed = len(text)
    result.performance.nodes_built = document.node_count

    logger.info(
        "Parse completed",
        extra={
            "source": source,
            "element_count": document.total_elements,
            "max_depth": document.max_depth,
            "processing_time_ms": result.performance.processing_time_ms,
        }
    )
    return result


def _create_error_result(
    error: TagTreeError,
    correlation_id: Optional[str],
    start_time: float,
    source: Optional[str] = None
) -> ParseResult:
    """Package a load or parse failure as an unsuccessful result."""
    result = ParseResult(
        success=False,
        error=error,
        source=source,
        correlation_id=correlation_id,
    )
    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND

    position = None
    if isinstance(error, ParseError) and error.position is not None:
        position = error.position.to_dict()
    component = "document_loader" if isinstance(error, IoFailure) else "tree_builder"

    result.add_diagnostic(
        DiagnosticSeverity.ERROR,
        str(error),
        component,
        position=position,
        details=error.to_details(),
    )
    return result


class TagTreeParser:
    """Reusable parser holding a configuration and usage statistics.

    Examples:
        >>> parser = TagTreeParser(ParserConfig.lenient())
        >>> parser.parse('<a>x</a></b>trailing').success
        True
        >>> parser.statistics["total_parses"]
        1
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize parser.

        Args:
            config: Parser configuration (defaults to strict)
            correlation_id: Correlation ID applied to every parse
        """
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tagtree_parser")

        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0

    def parse(
        self,
        input_data: InputType,
        config_override: Optional[ParserConfig] = None
    ) -> ParseResult:
        """Parse any supported input with this parser's configuration."""
        result = parse(
            input_data,
            config=config_override or self.config,
            correlation_id=self.correlation_id,
        )
        self._record(result)
        return result

    def parse_file(
        self,
        file_path: Union[str, Path],
        encoding: Optional[str] = None
    ) -> ParseResult:
        result = parse_file(
            file_path,
            encoding=encoding,
            config=self.config,
            correlation_id=self.correlation_id,
        )
        self._record(result)
        return result

    def _record(self, result: ParseResult) -> None:
        self._parse_count += 1
        self._total_processing_time += result.performance.processing_time_ms
        if result.success:
            self._successful_parses += 1

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the configuration used by later parses."""
        self.config = config
        self.logger.info(
            "Parser reconfigured",
            extra={"preset": config.name}
        )

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics."""
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0
