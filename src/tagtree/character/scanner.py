"""Cursor over document text with single-character lookahead.

The scanner owns the input string and a forward-only cursor. It never rewinds:
every operation either leaves the cursor where it is or moves it towards the
end of the input, and the cursor never passes ``len(text)``.
"""

from typing import Optional

from tagtree.shared.errors import TextPosition


class Scanner:
    """Forward-only character cursor used by the tree builder.

    Examples:
        >>> scanner = Scanner("<a>hi</a>")
        >>> scanner.advance()
        '<'
        >>> scanner.scan_until(">")
        'a'
        >>> scanner.peek()
        '>'
    """

    def __init__(self, text: str) -> None:
        if not isinstance(text, str):
            raise TypeError("Scanner input must be a string")
        self._text = text
        self._offset = 0

    @property
    def text(self) -> str:
        return self._text

    @property
    def offset(self) -> int:
        """Current cursor index into the text."""
        return self._offset

    @property
    def at_end(self) -> bool:
        return self._offset >= len(self._text)

    @property
    def remaining(self) -> str:
        """Unconsumed input from the cursor to the end."""
        return self._text[self._offset:]

    @property
    def position(self) -> TextPosition:
        """Line and column of the cursor."""
        return self.position_at(self._offset)

    def position_at(self, offset: int) -> TextPosition:
        """Line and column for an arbitrary offset already scanned over."""
        offset = max(0, min(offset, len(self._text)))
        line = self._text.count("\n", 0, offset) + 1
        line_start = self._text.rfind("\n", 0, offset) + 1
        return TextPosition(offset=offset, line=line, column=offset - line_start + 1)

    def peek(self) -> Optional[str]:
        """Return the character at the cursor without consuming it."""
        if self._offset >= len(self._text):
            return None
        return self._text[self._offset]

    def advance(self) -> Optional[str]:
        """Consume and return the character at the cursor.

        Returns ``None`` without moving when the input is exhausted.
        """
        if self._offset >= len(self._text):
            return None
        char = self._text[self._offset]
        self._offset += 1
        return char

    def starts_with(self, prefix: str) -> bool:
        """Check whether the unconsumed input begins with ``prefix``."""
        return self._text.startswith(prefix, self._offset)

    def skip_whitespace(self) -> None:
        """Advance past a maximal run of whitespace characters."""
        text = self._text
        end = len(text)
        offset = self._offset
        while offset < end and text[offset].isspace():
            offset += 1
        self._offset = offset

    def scan_until(self, delimiter: str) -> str:
        """Consume characters up to, not including, ``delimiter``.

        When the delimiter never appears the rest of the input is consumed and
        returned; this is not an error.
        """
        if len(delimiter) != 1:
            raise ValueError("Delimiter must be a single character")
        end = self._text.find(delimiter, self._offset)
        if end == -1:
            end = len(self._text)
        scanned = self._text[self._offset:end]
        self._offset = end
        return scanned

    def __repr__(self) -> str:
        return f"Scanner(offset={self._offset}, length={len(self._text)})"
