"""Exception hierarchy for tagtree.

Every failure the parser can report is a ``TagTreeError``. Parse failures carry
the ``TextPosition`` of the offending token together with what was expected
and what was found, so the API layer can turn them into diagnostics without
string parsing.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class TextPosition:
    """Position of a character in the input text.

    Attributes:
        offset: 0-based character index into the input
        line: 1-based line number
        column: 1-based column number
    """

    offset: int
    line: int = 1
    column: int = 1

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"

    def to_dict(self) -> Dict[str, int]:
        return {"offset": self.offset, "line": self.line, "column": self.column}


def describe_token(token: Optional[str]) -> str:
    """Render a found/expected token for messages; ``None`` means end of input."""
    if token is None:
        return "end of input"
    if len(token) == 1:
        return repr(token)
    return token


class TagTreeError(Exception):
    """Base exception for all tagtree failures."""

    kind = "error"

    def to_details(self) -> Dict[str, Any]:
        """Structured fields describing the failure."""
        return {"kind": self.kind}


class ParseError(TagTreeError):
    """A document could not be turned into a tree."""

    kind = "parse_error"

    def __init__(self, message: str, position: Optional[TextPosition] = None) -> None:
        self.message = message
        self.position = position
        if position is not None:
            message = f"{message} at {position}"
        super().__init__(message)


class UnexpectedEndOfInput(ParseError):
    """Input ran out where a required character or tag was expected."""

    kind = "unexpected_end_of_input"

    def __init__(self, expected: str, position: Optional[TextPosition] = None) -> None:
        self.expected = expected
        super().__init__(
            f"Unexpected end of input: expected {describe_token(expected)}", position
        )

    def to_details(self) -> Dict[str, Any]:
        return {"kind": self.kind, "expected": self.expected, "found": None}


class MalformedTag(ParseError):
    """A required literal character of an opening tag was absent."""

    kind = "malformed_tag"
    label = "Malformed tag"

    def __init__(
        self,
        expected: str,
        found: Optional[str],
        position: Optional[TextPosition] = None
    ) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            f"{self.label}: expected {describe_token(expected)}, "
            f"found {describe_token(found)}",
            position,
        )

    def to_details(self) -> Dict[str, Any]:
        return {"kind": self.kind, "expected": self.expected, "found": self.found}


class MalformedClosingTag(MalformedTag):
    """A required literal character of a closing tag was absent."""

    kind = "malformed_closing_tag"
    label = "Malformed closing tag"


class StrayClosingTag(ParseError):
    """A closing tag appeared at the document root with nothing open."""

    kind = "stray_closing_tag"

    def __init__(self, found: str, position: Optional[TextPosition] = None) -> None:
        self.expected = None
        self.found = found
        super().__init__(
            f"Stray closing tag </{found}> with no open element", position
        )

    def to_details(self) -> Dict[str, Any]:
        return {"kind": self.kind, "expected": None, "found": self.found}


class TagMismatch(ParseError):
    """A closing tag's name differs from its opening tag's name."""

    kind = "tag_mismatch"

    def __init__(
        self,
        expected: str,
        found: str,
        position: Optional[TextPosition] = None
    ) -> None:
        self.expected = expected
        self.found = found
        super().__init__(
            f"Tag mismatch: expected </{expected}>, found </{found}>", position
        )

    def to_details(self) -> Dict[str, Any]:
        return {"kind": self.kind, "expected": self.expected, "found": self.found}


class NestingTooDeep(ParseError):
    """Element nesting exceeded the configured maximum depth."""

    kind = "nesting_too_deep"

    def __init__(
        self,
        limit: int,
        tag_name: str,
        position: Optional[TextPosition] = None
    ) -> None:
        self.limit = limit
        self.tag_name = tag_name
        super().__init__(
            f"Nesting depth limit of {limit} exceeded by <{tag_name}>", position
        )

    def to_details(self) -> Dict[str, Any]:
        return {"kind": self.kind, "limit": self.limit, "tag": self.tag_name}


class IoFailure(TagTreeError):
    """A document could not be loaded before parsing started.

    ``reason`` is one of ``not_found``, ``not_a_file``, ``permission_denied``,
    ``too_large``, ``invalid_text`` or ``unreadable``.
    """

    kind = "io_failure"

    def __init__(self, path: str, reason: str, message: str) -> None:
        self.path = path
        self.reason = reason
        self.message = message
        super().__init__(message)

    def to_details(self) -> Dict[str, Any]:
        return {"kind": self.kind, "path": self.path, "reason": self.reason}
