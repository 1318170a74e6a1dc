"""
Source Scanner
==============

Single-symbol lookahead over a Brainfuck byte stream.

The scanner reads its input one byte at a time and only ever holds one
pending symbol. Bytes that are not one of the eight operators are
comments: they are discarded as they are read and never reach the
compiler, so "+ +" and "++" scan identically.

Example:
    >>> scanner = SourceScanner(b"+x+.")
    >>> scanner.consume("+"), scanner.consume("+"), scanner.peek()
    (True, True, '.')
"""

import io
from typing import BinaryIO, Optional, Union

from bfcpm.errors import SourceLocation

# The operator alphabet, in no particular order
OPERATORS = frozenset("+-<>.,[]")


class SourceScanner:
    """
    One-symbol lookahead scanner with discard-on-consume semantics.

    Attributes:
        filename: Name used in source locations
    """

    def __init__(self, source: Union[bytes, str, BinaryIO], filename: str = "<input>"):
        """
        Initialize the scanner.

        Args:
            source: Program text as bytes, str, or a binary stream opened
                    for reading. Streams are read lazily, one byte at a time.
            filename: Name reported in source locations
        """
        if isinstance(source, str):
            source = source.encode("latin-1", errors="replace")
        if isinstance(source, (bytes, bytearray)):
            source = io.BytesIO(bytes(source))

        self.filename = filename
        self._stream = source
        self._symbol: Optional[str] = None
        self._symbol_location: Optional[SourceLocation] = None
        self._eof = False

        # Position of the next byte to be read
        self._line = 1
        self._column = 1

    # =========================================================================
    # Lookahead
    # =========================================================================

    def peek(self) -> Optional[str]:
        """
        Return the next operator symbol without consuming it.

        Returns:
            One of "+-<>.,[]", or None at end of input
        """
        while self._symbol is None and not self._eof:
            byte = self._stream.read(1)
            if not byte:
                self._eof = True
                break

            char = chr(byte[0])
            location = SourceLocation(self.filename, self._line, self._column)
            if char == "\n":
                self._line += 1
                self._column = 1
            else:
                self._column += 1

            if char in OPERATORS:
                self._symbol = char
                self._symbol_location = location

        return self._symbol

    def discard(self) -> None:
        """Throw away the pending symbol so the next peek() reads ahead."""
        self.peek()
        self._symbol = None

    def peek_is_one_of(self, symbols: str) -> bool:
        """Return True if the next symbol is any of the characters in symbols."""
        symbol = self.peek()
        return symbol is not None and symbol in symbols

    def consume(self, symbol: str) -> bool:
        """
        Consume the next symbol if it matches.

        Returns:
            True if the symbol was next (and has now been discarded)
        """
        if self.peek() == symbol:
            self.discard()
            return True
        return False

    # =========================================================================
    # State
    # =========================================================================

    @property
    def at_end(self) -> bool:
        """True once every operator symbol has been consumed."""
        return self.peek() is None

    @property
    def location(self) -> SourceLocation:
        """
        Location of the pending symbol, or of end of input if there is none.
        """
        if self.peek() is not None:
            return self._symbol_location
        return SourceLocation(self.filename, self._line, self._column)
