"""
Run-Length Collapser
====================

Reduces a run of cancelling operators to one signed net count before any
code is emitted.

Two operator pairs cancel algebraically:

    "+" / "-"   change the current cell value (counted modulo 256)
    ">" / "<"   move the cell pointer (counted without wrapping)

A run is pure: it is every consecutive symbol drawn from one pair and
ends at the first symbol that is not in the pair. Any mix within a run
cancels, so "+-+" and "++-" both net +1, and a run netting to zero
produces no code at all.
"""

from bfcpm.compiler.scanner import SourceScanner

CELL_PAIR = ("+", "-")
POINTER_PAIR = (">", "<")


def collapse_run(scanner: SourceScanner, up: str, down: str) -> int:
    """
    Consume a pure run of up/down symbols and return the net count.

    Args:
        scanner: Scanner positioned at the start of a possible run
        up: Symbol counted as +1
        down: Symbol counted as -1

    Returns:
        Net signed count (0 if the next symbol is not in the pair)
    """
    count = 0
    while True:
        if scanner.consume(up):
            count += 1
        elif scanner.consume(down):
            count -= 1
        else:
            return count


def collapse_cell_run(scanner: SourceScanner) -> int:
    """Net cell change of the pending "+"/"-" run, modulo 256 (0-255)."""
    return collapse_run(scanner, *CELL_PAIR) & 0xFF


def collapse_pointer_run(scanner: SourceScanner) -> int:
    """Net pointer movement of the pending ">"/"<" run, signed."""
    return collapse_run(scanner, *POINTER_PAIR)
