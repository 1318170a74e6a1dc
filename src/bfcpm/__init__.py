"""
bfcpm - Brainfuck Compiler for CP/M
===================================

This package compiles Brainfuck programs directly into Z80 machine code,
producing .COM files that run on CP/M 2.2 without any runtime support
beyond the BDOS console calls.

The compiler works in a single pass: there is no intermediate
representation. Runs of "+"/"-" and ">"/"<" are folded into single
instructions as they are read, and loop exits are backpatched once the
matching "]" has been seen.

Main Components
---------------
- **compiler**: Scanner, run-length collapser, output image, loop stack,
  Z80 code generator and driver (bfc)
- **disassembler**: Z80 disassembler for listings
- **emulator**: Z80 + CP/M BDOS emulation for running images (cpmrun)
- **cpu**: Z80 instruction definitions shared by all of the above

Quick Start
-----------
Compile a program:
    >>> from bfcpm import Compiler
    >>> result = Compiler().compile("++++++++[>++++++++<-]>+.")
    >>> len(result.image)
    64

Run it:
    >>> from bfcpm.emulator import CPMMachine
    >>> machine = CPMMachine()
    >>> machine.load(result.image)
    >>> machine.run().output
    b'A'

Or use the command-line tools:
    $ bfc hello.bf
    $ cpmrun hello.COM

Copyright (c) 2026 bfcpm Contributors
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from bfcpm.config import CompilerConfig
from bfcpm.compiler import (
    Compiler,
    CompilationResult,
    CodeGenerator,
    OutputImage,
    SourceScanner,
    compile_bf,
    compile_file,
    default_output_path,
    write_com,
)
from bfcpm.errors import (
    BfcError,
    SourceLocation,
    CompilerError,
    UnbalancedLoopError,
    LoopNestingOverflowError,
    AddressRangeError,
    BoundaryError,
    ConfigError,
    EmulatorError,
)

__all__ = [
    "__version__",
    # Configuration
    "CompilerConfig",
    # Compiler
    "Compiler",
    "CompilationResult",
    "CodeGenerator",
    "OutputImage",
    "SourceScanner",
    "compile_bf",
    "compile_file",
    "default_output_path",
    "write_com",
    # Exception hierarchy
    "BfcError",
    "SourceLocation",
    "CompilerError",
    "UnbalancedLoopError",
    "LoopNestingOverflowError",
    "AddressRangeError",
    "BoundaryError",
    "ConfigError",
    "EmulatorError",
]
