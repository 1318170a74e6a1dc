"""
Loop Marker Stack
=================

A bounded stack recording where each still-open loop begins in the
output image. "[" pushes a marker, "]" pops the most recent one, so the
live markers always describe the currently open, properly nested loops.

Both failure modes are fatal for the compilation:
    - pushing past capacity raises LoopNestingOverflowError
    - popping an empty stack raises UnbalancedLoopError
"""

from dataclasses import dataclass
from typing import Optional

from bfcpm.errors import (
    LoopNestingOverflowError,
    SourceLocation,
    UnbalancedLoopError,
)


@dataclass(frozen=True)
class LoopMarker:
    """
    An unresolved loop opening.

    Attributes:
        offset: Image offset of the first byte of the loop-open code
        location: Source location of the "[" (for error messages)
    """
    offset: int
    location: Optional[SourceLocation] = None


class LoopStack:
    """Fixed-capacity LIFO of LoopMarkers."""

    def __init__(self, capacity: int = 1024):
        if capacity < 1:
            raise ValueError(f"capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._markers: list[LoopMarker] = []
        self.max_depth = 0

    def __len__(self) -> int:
        return len(self._markers)

    def __bool__(self) -> bool:
        return bool(self._markers)

    def push(self, marker: LoopMarker) -> None:
        """
        Record a newly opened loop.

        Raises:
            LoopNestingOverflowError: If capacity loops are already open
        """
        if len(self._markers) >= self.capacity:
            raise LoopNestingOverflowError(self.capacity, location=marker.location)
        self._markers.append(marker)
        self.max_depth = max(self.max_depth, len(self._markers))

    def pop(self, location: Optional[SourceLocation] = None) -> LoopMarker:
        """
        Remove and return the innermost open loop.

        Args:
            location: Location of the "]" being matched (for error messages)

        Raises:
            UnbalancedLoopError: If no loop is open
        """
        if not self._markers:
            raise UnbalancedLoopError(
                "unmatched ']'",
                location=location,
                hint="remove the ']' or add a matching '[' before it",
            )
        return self._markers.pop()

    def peek(self) -> Optional[LoopMarker]:
        """Return the innermost open loop without removing it."""
        return self._markers[-1] if self._markers else None
