"""
bfcpm Error Hierarchy
=====================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from BfcError, allowing callers to catch every
compiler, boundary, configuration and emulator error with a single
except clause if desired.

Exception Hierarchy
-------------------
BfcError (base)
├── CompilerError (compilation failed; no image is produced)
│   ├── UnbalancedLoopError - ']' without '[' or '[' never closed
│   ├── LoopNestingOverflowError - loop nesting exceeds the marker stack
│   └── AddressRangeError - generated address does not fit in 16 bits
├── BoundaryError - source unreadable or destination unwritable
├── ConfigError - invalid compiler configuration
└── EmulatorError - the emulator cannot continue running an image

Design Philosophy
-----------------
Every compilation error is fatal. The compiler performs no recovery and
never salvages a partial image: once one of these is raised, the caller
must not write anything to the destination.

Error messages follow this format:
    filename:line:column: error: description
    hint: suggestion for fixing (when available)
"""

from dataclasses import dataclass
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class BfcError(Exception):
    """
    Base exception for all bfcpm errors.

        try:
            compiler.compile_file("hello.bf")
        except BfcError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Source Location Tracking
# =============================================================================

@dataclass(frozen=True)
class SourceLocation:
    """
    A position in source text, used for error reporting.

    Attributes:
        filename: Name of the source file (or "<input>" for in-memory source)
        line: Line number (1-indexed)
        column: Column number (1-indexed)
    """
    filename: str
    line: int
    column: int

    def __str__(self) -> str:
        """Format as 'filename:line:column' for error messages."""
        return f"{self.filename}:{self.line}:{self.column}"


# =============================================================================
# Compiler Exceptions
# =============================================================================

class CompilerError(BfcError):
    """
    Base exception for errors raised while compiling a program.

    Attributes:
        message: The error description
        location: Where in the source the error occurred (optional)
        hint: A suggestion for fixing the error (optional)
    """

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        hint: Optional[str] = None,
    ):
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """
        Format the error message with location and hint.

        Example output:
            hello.bf:3:12: error: unmatched ']'
            hint: remove the ']' or add a matching '[' before it
        """
        if self.location:
            parts = [f"{self.location}: error: {self.message}"]
        else:
            parts = [f"error: {self.message}"]

        if self.hint:
            parts.append(f"hint: {self.hint}")

        return "\n".join(parts)


class UnbalancedLoopError(CompilerError):
    """
    Loop brackets do not pair up.

    Raised for a ']' when no loop is open (marker stack underflow), and
    at end of input when a '[' was never closed.
    """
    pass


class LoopNestingOverflowError(CompilerError):
    """
    Loop nesting exceeds the capacity of the marker stack.

    Attributes:
        capacity: The configured maximum nesting depth
    """

    def __init__(self, capacity: int, location: Optional[SourceLocation] = None):
        self.capacity = capacity
        super().__init__(
            f"loop nesting exceeds maximum depth of {capacity}",
            location=location,
            hint="raise max_loop_depth (bfc --max-depth) or flatten the program",
        )


class AddressRangeError(CompilerError):
    """
    A generated address does not fit in the 16-bit address space.

    Raised when the program image, or the cell region placed after it,
    runs past 0xFFFF once the load base is added.
    """
    pass


# =============================================================================
# Boundary, Configuration and Emulator Exceptions
# =============================================================================

class BoundaryError(BfcError):
    """
    Source could not be read or the image could not be written.

    Attributes:
        path: The file involved
        reason: What went wrong
    """

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class ConfigError(BfcError):
    """Invalid compiler configuration value."""
    pass


class EmulatorError(BfcError):
    """
    The emulator cannot continue.

    Raised for:
    - An opcode outside the emulated instruction subset
    - An unsupported BDOS function
    - Console input exhausted with no EOF byte configured
    - Cycle limit reached before the program returned to CP/M
    """
    pass
