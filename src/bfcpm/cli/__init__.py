"""
bfcpm Command-Line Interface
============================

This package provides the command-line tools:

- **bfc**: Brainfuck to CP/M .COM compiler
- **cpmrun**: Runs a .COM image in the emulator

Each tool is implemented as a Click-based CLI application.
"""

import logging

__all__ = ["bfc", "cpmrun", "setup_logging"]


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
    )
