"""Document loading with byte order mark detection.

Reads a whole document into memory and decodes it to text before any parsing
starts. Every failure is reported as an ``IoFailure`` with a machine-readable
reason so callers can tell a missing file from undecodable bytes.
"""

import codecs
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, List, Optional, Tuple, Union

from tagtree.shared.config import LoaderConfig
from tagtree.shared.errors import IoFailure
from tagtree.shared.logging import get_logger

DEFAULT_ENCODING = "utf-8"


@dataclass
class LoadedDocument:
    """Decoded document text plus where it came from.

    Attributes:
        text: Decoded document content with any BOM removed
        encoding: Codec used to decode the bytes
        path: Source path, or None for in-memory bytes
        size_bytes: Size of the raw input
        bom_detected: Whether the encoding came from a byte order mark
    """

    text: str
    encoding: str
    path: Optional[Path] = None
    size_bytes: int = 0
    bom_detected: bool = False


class BOMDetector:
    """Byte Order Mark detection for the Unicode encodings."""

    # Longest first so UTF-32 LE is not mistaken for UTF-16 LE
    BOM_PATTERNS: ClassVar[List[Tuple[bytes, str]]] = [
        (codecs.BOM_UTF32_LE, "utf-32-le"),
        (codecs.BOM_UTF32_BE, "utf-32-be"),
        (codecs.BOM_UTF8, "utf-8"),
        (codecs.BOM_UTF16_LE, "utf-16-le"),
        (codecs.BOM_UTF16_BE, "utf-16-be"),
    ]

    def detect(self, data: bytes) -> Optional[Tuple[str, int]]:
        """Return ``(encoding, bom_length)`` if ``data`` starts with a BOM."""
        for bom_bytes, encoding in self.BOM_PATTERNS:
            if data.startswith(bom_bytes):
                return encoding, len(bom_bytes)
        return None


class DocumentLoader:
    """Reads documents from disk or bytes and decodes them strictly.

    Examples:
        >>> loader = DocumentLoader()
        >>> loader.decode(b"<a>hi</a>").text
        '<a>hi</a>'
    """

    def __init__(
        self,
        config: Optional[LoaderConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.config = config or LoaderConfig()
        self.correlation_id = correlation_id
        self._bom_detector = BOMDetector()
        self.logger = get_logger(__name__, correlation_id, "document_loader")

    def load(self, path: Union[str, Path], encoding: Optional[str] = None) -> LoadedDocument:
        """Read and decode the document at ``path``.

        Args:
            path: File to read
            encoding: Codec override; falls back to the configured encoding,
                then BOM detection, then UTF-8

        Returns:
            LoadedDocument with the decoded text

        Raises:
            IoFailure: The file is missing, unreadable, too large or not text
        """
        path_obj = Path(path)
        source = str(path_obj)

        if not path_obj.exists():
            raise IoFailure(source, "not_found", f"File not found: {source}")
        if not path_obj.is_file():
            raise IoFailure(source, "not_a_file", f"Path is not a file: {source}")

        limit = self.config.max_input_size_bytes
        try:
            if limit is not None and path_obj.stat().st_size > limit:
                raise IoFailure(
                    source,
                    "too_large",
                    f"File exceeds the {limit} byte input limit: {source}",
                )
            with path_obj.open("rb") as file:
                raw_data = file.read()
        except PermissionError as e:
            raise IoFailure(
                source, "permission_denied", f"Permission denied accessing file: {source}"
            ) from e
        except OSError as e:
            raise IoFailure(source, "unreadable", f"Could not read {source}: {e}") from e

        document = self.decode(raw_data, encoding=encoding, source=source)
        document.path = path_obj

        self.logger.debug(
            "Document loaded",
            extra={
                "file_path": source,
                "size_bytes": document.size_bytes,
                "encoding": document.encoding,
                "bom_detected": document.bom_detected,
            }
        )
        return document

    def decode(
        self,
        data: bytes,
        encoding: Optional[str] = None,
        source: str = "<bytes>"
    ) -> LoadedDocument:
        """Decode raw bytes into a LoadedDocument.

        Raises:
            IoFailure: The bytes exceed the size limit or are not valid text
        """
        limit = self.config.max_input_size_bytes
        if limit is not None and len(data) > limit:
            raise IoFailure(
                source, "too_large", f"Input exceeds the {limit} byte input limit"
            )

        chosen = encoding or self.config.encoding
        bom_length = 0
        bom_detected = False
        if chosen is None:
            detected = self._bom_detector.detect(data) if self.config.detect_bom else None
            if detected is not None:
                chosen, bom_length = detected
                bom_detected = True
            else:
                chosen = DEFAULT_ENCODING

        try:
            codecs.lookup(chosen)
        except LookupError as e:
            raise IoFailure(source, "invalid_text", f"Unknown encoding: {chosen}") from e

        try:
            text = data[bom_length:].decode(chosen)
        except UnicodeDecodeError as e:
            raise IoFailure(
                source,
                "invalid_text",
                f"{source} is not valid {chosen} text (byte {e.start})",
            ) from e

        # An explicit utf-8 codec keeps a leading BOM as U+FEFF
        if text.startswith("\ufeff"):
            text = text[1:]

        return LoadedDocument(
            text=text,
            encoding=chosen,
            size_bytes=len(data),
            bom_detected=bom_detected,
        )
