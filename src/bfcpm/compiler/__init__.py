"""
Brainfuck to CP/M Compiler
==========================

Single-pass compiler from Brainfuck source to a Z80 .COM image.

Main Components
---------------
- **SourceScanner**: One-symbol lookahead, comments skipped
- **collapse_run**: Folds runs of +/- and >/< into net counts
- **OutputImage**: Growable byte buffer with append/patch and fixup records
- **LoopStack**: Bounded stack of open loop markers
- **CodeGenerator**: Z80 instruction selection, loop backpatching,
  preamble and postamble
- **Compiler**: The driver loop tying it all together
"""

from bfcpm.compiler.scanner import SourceScanner, OPERATORS
from bfcpm.compiler.collapser import (
    collapse_run,
    collapse_cell_run,
    collapse_pointer_run,
)
from bfcpm.compiler.image import OutputImage, Fixup, FixupKind
from bfcpm.compiler.loops import LoopStack, LoopMarker
from bfcpm.compiler.codegen import CodeGenerator, LOOP_EXIT_FIELD
from bfcpm.compiler.compiler import (
    Compiler,
    CompilationResult,
    compile_bf,
    compile_file,
    default_output_path,
    write_com,
)

__all__ = [
    # Scanner
    "SourceScanner",
    "OPERATORS",
    # Collapser
    "collapse_run",
    "collapse_cell_run",
    "collapse_pointer_run",
    # Image
    "OutputImage",
    "Fixup",
    "FixupKind",
    # Loop stack
    "LoopStack",
    "LoopMarker",
    # Code generator
    "CodeGenerator",
    "LOOP_EXIT_FIELD",
    # Driver
    "Compiler",
    "CompilationResult",
    "compile_bf",
    "compile_file",
    "default_output_path",
    "write_com",
]
