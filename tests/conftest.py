"""
Shared pytest fixtures for the bfcpm test suite.

Most tests compile with a small cell memory so that the preamble's
zero-fill loop stays quick under emulation.

Copyright (c) 2026 bfcpm Contributors
"""

import pytest

from bfcpm import Compiler, CompilerConfig
from bfcpm.emulator import CPMMachine


SMALL_MEMORY = 64


@pytest.fixture
def small_config() -> CompilerConfig:
    """Default configuration with a 64-cell memory."""
    return CompilerConfig(memory_size=SMALL_MEMORY)


@pytest.fixture
def compiler(small_config) -> Compiler:
    """Compiler using the small configuration."""
    return Compiler(small_config)


@pytest.fixture
def run_program(compiler):
    """
    Compile and run a program.

    Returns a function (source, console_input=b"") -> (machine, result, compiled).
    """
    def _run(source, console_input: bytes = b"", eof_byte=None):
        compiled = compiler.compile(source)
        machine = CPMMachine(console_input=console_input, eof_byte=eof_byte)
        machine.load(compiled.image)
        result = machine.run(max_cycles=20_000_000)
        return machine, result, compiled

    return _run
