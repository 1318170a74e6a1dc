"""
CP/M Machine
============

A minimal CP/M 2.2 environment for running generated .COM images:
64K of flat RAM, a Z80 CPU, and the two BDOS console functions that
generated code calls.

Instead of emulating the BDOS itself, the machine traps execution when
PC reaches the BDOS entry point, performs the call in Python, and
returns to the caller as if a RET had been executed. Reaching the warm
boot address ends the run.

Example:
    >>> machine = CPMMachine(console_input=b"A")
    >>> machine.load(compile_bf(",."))
    >>> result = machine.run()
    >>> result.output
    b'A'

Copyright (c) 2026 bfcpm Contributors
"""

import logging
from collections import deque
from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional

from bfcpm import cpm
from bfcpm.emulator.cpu import Z80
from bfcpm.errors import EmulatorError

logger = logging.getLogger(__name__)

DEFAULT_MAX_CYCLES = 500_000_000

# Stack top handed to the program, as the CCP would below the BDOS
DEFAULT_STACK = 0xFFFE


class ExitReason(Enum):
    """Why a run stopped."""
    WARM_BOOT = auto()   # Program jumped (or returned) to WBOOT
    HALT = auto()        # Program executed HALT


@dataclass
class RunResult:
    """
    Outcome of running a program.

    Attributes:
        output: Every byte written to the console
        cycles: T-states executed
        steps: Instructions executed (BDOS traps not included)
        exit_reason: Why the run stopped
    """
    output: bytes
    cycles: int
    steps: int
    exit_reason: ExitReason


class Memory:
    """Flat 64K RAM."""

    SIZE = 0x10000

    def __init__(self):
        self._data = bytearray(self.SIZE)

    def read(self, address: int) -> int:
        return self._data[address & 0xFFFF]

    def write(self, address: int, value: int) -> None:
        self._data[address & 0xFFFF] = value & 0xFF

    def load(self, address: int, data: bytes) -> None:
        """Copy data into memory starting at address."""
        if address + len(data) > self.SIZE:
            raise EmulatorError(
                f"{len(data)} bytes at ${address:04X} do not fit in memory"
            )
        self._data[address:address + len(data)] = data

    def dump(self, address: int, length: int) -> bytes:
        """Return length bytes starting at address."""
        return bytes(self._data[address:address + length])


class CPMMachine:
    """
    Z80 + RAM + trapped BDOS console.

    Attributes:
        memory: The machine's RAM
        cpu: The Z80 CPU
        output: Console output produced so far
    """

    def __init__(self, console_input: bytes = b"", eof_byte: Optional[int] = None,
                 echo: bool = False, load_base: int = cpm.TPA_BASE,
                 bdos_entry: int = cpm.BDOS, warm_boot: int = cpm.WBOOT):
        """
        Initialize the machine.

        Args:
            console_input: Bytes returned, in order, by console input calls
            eof_byte: Returned once console_input is used up; None makes
                      an exhausted read an error
            echo: Echo console input to the output, as the real BDOS does
            load_base: Where images are loaded and entered
            bdos_entry: Address whose execution is trapped as a BDOS call
            warm_boot: Address whose execution ends the run
        """
        self.memory = Memory()
        self.cpu = Z80(self.memory)
        self.output = bytearray()
        self.load_base = load_base
        self.bdos_entry = bdos_entry
        self.warm_boot = warm_boot
        self.eof_byte = eof_byte
        self.echo = echo
        self._input: deque[int] = deque(console_input)

    def feed_input(self, data: bytes) -> None:
        """Queue more console input."""
        self._input.extend(data)

    def load(self, image: bytes) -> None:
        """
        Load an image at the load base and prepare to enter it.

        The stack holds the warm boot address, so a final RET also ends
        the run.
        """
        self.memory.load(self.load_base, image)
        self.cpu.sp = DEFAULT_STACK
        self.cpu.push_word(self.warm_boot)
        self.cpu.pc = self.load_base
        logger.debug(f"Loaded {len(image)} bytes at ${self.load_base:04X}")

    def run(self, max_cycles: int = DEFAULT_MAX_CYCLES) -> RunResult:
        """
        Run until the program returns to CP/M or halts.

        Raises:
            EmulatorError: On an unsupported opcode or BDOS call, exhausted
                           input, or when max_cycles is reached
        """
        cycles = 0
        steps = 0

        while True:
            pc = self.cpu.pc
            if pc == self.warm_boot:
                reason = ExitReason.WARM_BOOT
                break
            if pc == self.bdos_entry:
                self._bdos_call()
                continue
            if self.cpu.halted:
                reason = ExitReason.HALT
                break
            if cycles >= max_cycles:
                raise EmulatorError(
                    f"Cycle limit of {max_cycles} reached at PC=${pc:04X}"
                )

            cycles += self.cpu.step()
            steps += 1

        logger.debug(f"Run ended ({reason.name}) after {steps} instructions")
        return RunResult(bytes(self.output), cycles, steps, reason)

    def _bdos_call(self) -> None:
        """Perform the BDOS function in C, then return to the caller."""
        function = self.cpu.state.c

        if function == cpm.C_READ:
            if self._input:
                value = self._input.popleft()
            elif self.eof_byte is not None:
                value = self.eof_byte
            else:
                raise EmulatorError("Console input exhausted")
            self.cpu.a = value
            if self.echo:
                self.output.append(value)
        elif function == cpm.C_WRITE:
            self.output.append(self.cpu.state.e)
        else:
            raise EmulatorError(f"Unsupported BDOS function {function}")

        self.cpu.pc = self.cpu.pop_word()

    # ========================================
    # Inspection
    # ========================================

    def read(self, address: int) -> int:
        """Read one byte of memory."""
        return self.memory.read(address)

    def cells(self, start: int, count: int) -> bytes:
        """Return count cells starting at address start."""
        return self.memory.dump(start, count)

    @property
    def pointer(self) -> int:
        """The program's cell pointer (HL)."""
        return self.cpu.hl
