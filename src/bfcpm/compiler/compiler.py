"""
Brainfuck Compiler Main Module
==============================

This module provides the main compiler interface. It drives the scanner,
collapser and code generator in one pass:

    Source bytes → Scanner → Collapser → CodeGenerator → .COM image

Usage
-----
Command line:
    $ bfc hello.bf              # writes hello.COM

Programmatic:
    >>> from bfcpm import compile_bf
    >>> image = compile_bf("++++++++[>++++++++<-]>+.")

Driver Loop
-----------
Each iteration handles, in this order:
1. a pure run of "+"/"-", collapsed to one cell change
2. a pure run of ">"/"<", collapsed to one pointer move
3. at most one of ".", ",", "[", "]"

Every symbol is fully processed before the next one is read; nothing is
buffered beyond the scanner's one-symbol lookahead.

Error Handling
--------------
Errors are fatal. No image is returned, and write_com() never leaves a
partial file behind.

Copyright (c) 2026 bfcpm Contributors
"""

import contextlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO, Callable, Optional, Union

from bfcpm.compiler.codegen import CodeGenerator
from bfcpm.compiler.collapser import collapse_cell_run, collapse_pointer_run
from bfcpm.compiler.image import Fixup
from bfcpm.compiler.scanner import SourceScanner
from bfcpm.config import CompilerConfig
from bfcpm.errors import BoundaryError

logger = logging.getLogger(__name__)


@dataclass
class CompilationResult:
    """
    Output of one successful compilation.

    Attributes:
        image: The .COM file contents
        filename: Source name used in diagnostics
        load_base: Address the image must be loaded at
        memory_start: Address of the first cell
        loop_count: Number of loops compiled
        max_depth: Deepest loop nesting seen
        reallocations: Number of times the output buffer grew
        fixups: Address fields written during finalization
    """
    image: bytes
    filename: str
    load_base: int
    memory_start: int
    loop_count: int = 0
    max_depth: int = 0
    reallocations: int = 0
    fixups: list[Fixup] = field(default_factory=list)

    @property
    def size(self) -> int:
        """Image size in bytes."""
        return len(self.image)


class Compiler:
    """
    Single-pass Brainfuck to CP/M .COM compiler.

    Example:
        compiler = Compiler(CompilerConfig(memory_size=4096))
        result = compiler.compile_file("hello.bf")
        write_com("HELLO.COM", result.image)

    Attributes:
        config: Compiler configuration
    """

    def __init__(self, config: Optional[CompilerConfig] = None,
                 on_grow: Optional[Callable[[int], None]] = None):
        """
        Initialize the compiler.

        Args:
            config: Compiler configuration (uses defaults if None)
            on_grow: Called whenever the output buffer is reallocated
        """
        self.config = config or CompilerConfig()
        self.config.validate()
        self._on_grow = on_grow

    def compile(self, source: Union[bytes, str, BinaryIO],
                filename: str = "<input>") -> CompilationResult:
        """
        Compile Brainfuck source.

        Args:
            source: Program text, or a binary stream to read it from
            filename: Source name for error messages

        Returns:
            CompilationResult with the finished image

        Raises:
            UnbalancedLoopError: Brackets do not pair up
            LoopNestingOverflowError: Loops nest deeper than max_loop_depth
            AddressRangeError: The program does not fit in 64K
        """
        scanner = SourceScanner(source, filename)
        codegen = CodeGenerator(self.config, on_grow=self._on_grow)

        codegen.emit_preamble()

        while not scanner.at_end:
            codegen.emit_add(collapse_cell_run(scanner))
            codegen.emit_move(collapse_pointer_run(scanner))

            location = scanner.location
            if scanner.consume("."):
                codegen.emit_output()
            elif scanner.consume(","):
                codegen.emit_input()
            elif scanner.consume("["):
                codegen.open_loop(location)
            elif scanner.consume("]"):
                codegen.close_loop(location)

        image = codegen.finalize()

        result = CompilationResult(
            image=image,
            filename=filename,
            load_base=self.config.load_base,
            memory_start=codegen.memory_start,
            loop_count=codegen.loop_count,
            max_depth=codegen.loops.max_depth,
            reallocations=codegen.image.reallocations,
            fixups=list(codegen.fixups),
        )
        logger.info(
            f"Compiled {filename}: {result.size} bytes, {result.loop_count} loops, "
            f"cells at ${result.memory_start:04X}"
        )
        return result

    def compile_file(self, filepath: Union[str, Path]) -> CompilationResult:
        """
        Compile a Brainfuck source file.

        Raises:
            BoundaryError: If the file cannot be read
            CompilerError: If compilation fails
        """
        path = Path(filepath)
        try:
            with path.open("rb") as stream:
                return self.compile(stream, filename=str(path))
        except OSError as e:
            raise BoundaryError(str(path), f"can't read: {e.strerror or e}") from e


# =============================================================================
# Convenience Functions
# =============================================================================

def compile_bf(source: Union[bytes, str], config: Optional[CompilerConfig] = None) -> bytes:
    """Compile source text and return the .COM image."""
    return Compiler(config).compile(source).image


def compile_file(filepath: Union[str, Path],
                 config: Optional[CompilerConfig] = None) -> CompilationResult:
    """Compile a source file."""
    return Compiler(config).compile_file(filepath)


def default_output_path(source_path: Union[str, Path]) -> Path:
    """
    Derive the .COM filename for a source file.

    The final extension is replaced with ".COM"; a name without one gets
    ".COM" appended. Directories are kept.

        hello.bf      -> hello.COM
        dir/prog      -> dir/prog.COM
        a.b.bf        -> a.b.COM
    """
    path = Path(source_path)
    return path.with_name(path.stem + ".COM")


def write_com(filepath: Union[str, Path], image: bytes) -> None:
    """
    Write an image to disk, byte for byte.

    A file that cannot be opened is left untouched. Once opened, a failed
    or short write removes the partial file.

    Raises:
        BoundaryError: If the file cannot be written in full.
    """
    path = Path(filepath)
    try:
        stream = path.open("wb")
    except OSError as e:
        raise BoundaryError(str(path), f"can't write: {e.strerror or e}") from e

    try:
        with stream:
            written = stream.write(image)
    except OSError as e:
        _discard_partial(path)
        raise BoundaryError(str(path), f"can't write: {e.strerror or e}") from e

    if written != len(image):
        _discard_partial(path)
        raise BoundaryError(
            str(path),
            f"failed to write full output (only wrote {written} of {len(image)} bytes)",
        )

    logger.debug(f"Wrote {len(image)} bytes to {path}")


def _discard_partial(path: Path) -> None:
    with contextlib.suppress(OSError):
        path.unlink(missing_ok=True)
