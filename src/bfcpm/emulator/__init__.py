"""
bfcpm Emulator
==============

Runs generated .COM images on an emulated Z80 with a trapped CP/M BDOS,
so compiled programs can be checked without a real CP/M system.

Usage:
    from bfcpm.emulator import CPMMachine

    machine = CPMMachine(console_input=b"hello\\r")
    machine.load(image)
    result = machine.run()
    print(result.output)

Copyright (c) 2026 bfcpm Contributors
"""

from bfcpm.emulator.cpu import Z80, Flags, CPUState, BusProtocol
from bfcpm.emulator.machine import (
    CPMMachine,
    Memory,
    RunResult,
    ExitReason,
    DEFAULT_MAX_CYCLES,
)

__all__ = [
    "Z80",
    "Flags",
    "CPUState",
    "BusProtocol",
    "CPMMachine",
    "Memory",
    "RunResult",
    "ExitReason",
    "DEFAULT_MAX_CYCLES",
]
