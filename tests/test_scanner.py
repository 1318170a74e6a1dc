# =============================================================================
# test_scanner.py - Source Scanner Tests
# =============================================================================
# Tests for the one-symbol lookahead scanner:
#   - peek / discard / consume semantics
#   - comment bytes skipped transparently
#   - end-of-input detection
#   - source location tracking
# =============================================================================

import io

import pytest

from bfcpm.compiler import SourceScanner, OPERATORS
from bfcpm.errors import SourceLocation


class TestLookahead:
    """Test peek, discard and consume."""

    def test_peek_does_not_consume(self):
        scanner = SourceScanner(b"+-")
        assert scanner.peek() == "+"
        assert scanner.peek() == "+"

    def test_discard_advances(self):
        scanner = SourceScanner(b"+-")
        scanner.discard()
        assert scanner.peek() == "-"

    def test_consume_match(self):
        scanner = SourceScanner(b"[]")
        assert scanner.consume("[") is True
        assert scanner.peek() == "]"

    def test_consume_mismatch_leaves_symbol(self):
        scanner = SourceScanner(b"[]")
        assert scanner.consume("]") is False
        assert scanner.peek() == "["

    def test_peek_is_one_of(self):
        scanner = SourceScanner(b".")
        assert scanner.peek_is_one_of(".,")
        assert not scanner.peek_is_one_of("+-")

    def test_peek_is_one_of_at_end(self):
        scanner = SourceScanner(b"")
        assert not scanner.peek_is_one_of("+-<>.,[]")

    def test_all_operators_recognised(self):
        scanner = SourceScanner(b"+-<>.,[]")
        seen = []
        while not scanner.at_end:
            seen.append(scanner.peek())
            scanner.discard()
        assert seen == list("+-<>.,[]")
        assert set(seen) == OPERATORS


class TestComments:
    """Non-operator bytes are skipped."""

    def test_comment_bytes_skipped(self):
        scanner = SourceScanner(b"hello + world")
        assert scanner.consume("+")
        assert scanner.at_end

    def test_comment_only_source_is_empty(self):
        scanner = SourceScanner(b"This program does nothing\n")
        assert scanner.peek() is None
        assert scanner.at_end

    def test_high_bytes_ignored(self):
        scanner = SourceScanner(bytes([0xFF, 0x00, ord("."), 0x80]))
        assert scanner.consume(".")
        assert scanner.at_end

    def test_str_source(self):
        scanner = SourceScanner("café → ,")
        assert scanner.consume(",")
        assert scanner.at_end


class TestInputSources:
    """Scanner accepts bytes, str and binary streams."""

    def test_stream_source(self):
        scanner = SourceScanner(io.BytesIO(b"x>"))
        assert scanner.consume(">")
        assert scanner.at_end

    def test_bytearray_source(self):
        scanner = SourceScanner(bytearray(b"<"))
        assert scanner.consume("<")

    def test_end_is_sticky(self):
        scanner = SourceScanner(b"")
        assert scanner.peek() is None
        scanner.discard()
        assert scanner.peek() is None


class TestLocations:
    """Source locations for error reporting."""

    def test_first_symbol_location(self):
        scanner = SourceScanner(b"  [", filename="prog.bf")
        assert scanner.location == SourceLocation("prog.bf", 1, 3)

    def test_location_after_newline(self):
        scanner = SourceScanner(b"+\n\n  ]")
        scanner.consume("+")
        assert scanner.location == SourceLocation("<input>", 3, 3)

    def test_location_at_end(self):
        scanner = SourceScanner(b"ab\ncd")
        assert scanner.at_end
        assert scanner.location == SourceLocation("<input>", 2, 3)

    def test_location_str(self):
        assert str(SourceLocation("a.bf", 4, 7)) == "a.bf:4:7"
