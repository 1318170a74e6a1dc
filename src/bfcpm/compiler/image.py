"""
Output Image
============

The append-only byte buffer that becomes the .COM file, plus the fixup
records describing which of its bytes still need an address written in.

Growth
------
The buffer grows in fixed-size chunks (CompilerConfig.growth_chunk)
rather than per byte. Every reallocation is reported through the
optional on_grow callback; the bfc command prints a '+' for each one as
a progress indicator. Growth preserves all existing bytes and their
offsets, so an offset returned by append() stays valid for the life of
the image.

Patching
--------
Forward references are emitted as zero placeholders and described by a
Fixup. They are resolved in one pass once the image is complete, which
keeps patching independent of emission order. patch() only ever
overwrites bytes that already exist; it never changes the length.
"""

import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Callable, Iterable, Optional

logger = logging.getLogger(__name__)


# =============================================================================
# Fixup Records
# =============================================================================

class FixupKind(Enum):
    """What a placeholder address field should end up pointing at."""
    LOOP_EXIT = auto()   # First byte after the loop's closing jump
    CODE_END = auto()    # First byte after the whole image (start of cells)

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")


@dataclass(frozen=True)
class Fixup:
    """
    A 16-bit little-endian address field waiting to be written.

    Attributes:
        offset: Image offset of the field's low byte
        kind: What the field refers to
        target: Image offset the field points at; None for CODE_END,
                whose target is only known when the image is complete
    """
    offset: int
    kind: FixupKind
    target: Optional[int] = None


# =============================================================================
# Output Image
# =============================================================================

class OutputImage:
    """
    Growable byte buffer with offset-returning appends and in-place patches.

    Example:
        >>> image = OutputImage()
        >>> image.append(0xC3)
        0
        >>> image.extend(b"\\x00\\x00")
        1
        >>> image.patch_word(1, 0x0100)
        >>> image.to_bytes()
        b'\\xc3\\x00\\x01'
    """

    def __init__(self, chunk_size: int = 128,
                 on_grow: Optional[Callable[[int], None]] = None):
        """
        Initialize an empty image.

        Args:
            chunk_size: Bytes added to the capacity on each reallocation
            on_grow: Called with the new capacity after every reallocation
        """
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")

        self._chunk_size = chunk_size
        self._on_grow = on_grow
        self._buffer = bytearray()
        self._length = 0
        self.reallocations = 0

    def __len__(self) -> int:
        return self._length

    @property
    def capacity(self) -> int:
        """Bytes currently allocated (always >= len(self))."""
        return len(self._buffer)

    def append(self, byte: int) -> int:
        """
        Append one byte.

        Returns:
            The offset the byte was written at (the length before the append)
        """
        if self._length >= len(self._buffer):
            self._grow()

        offset = self._length
        self._buffer[offset] = byte & 0xFF
        self._length += 1
        return offset

    def extend(self, data: Iterable[int]) -> int:
        """
        Append several bytes.

        Returns:
            The offset of the first byte appended
        """
        start = self._length
        for byte in data:
            self.append(byte)
        return start

    def patch(self, offset: int, byte: int) -> None:
        """
        Overwrite one previously written byte.

        Raises:
            IndexError: If offset has not been written yet
        """
        if not 0 <= offset < self._length:
            raise IndexError(
                f"Patch offset {offset} outside written image (length {self._length})"
            )
        self._buffer[offset] = byte & 0xFF

    def patch_word(self, offset: int, value: int) -> None:
        """Overwrite two bytes at offset with a little-endian 16-bit value."""
        if offset + 1 >= self._length:
            raise IndexError(
                f"Patch offset {offset + 1} outside written image (length {self._length})"
            )
        self.patch(offset, value & 0xFF)
        self.patch(offset + 1, (value >> 8) & 0xFF)

    def to_bytes(self) -> bytes:
        """Return the written bytes (never the unused capacity)."""
        return bytes(self._buffer[:self._length])

    def _grow(self) -> None:
        self._buffer.extend(bytes(self._chunk_size))
        self.reallocations += 1
        logger.debug(f"Output image grown to {len(self._buffer)} bytes")
        if self._on_grow:
            self._on_grow(len(self._buffer))
