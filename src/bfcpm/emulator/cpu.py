"""
Z80 CPU Emulator (Compiler Subset)
==================================

Executes the Z80 instructions that the compiler emits (see bfcpm.cpu),
which is enough to run any generated image.

Registers:
- 8-bit: A, F (flags), B, C, D, E, H, L
- 16-bit pairs: BC, DE, HL
- 16-bit: SP (stack pointer), PC (program counter)

Flags (F register):
    7  6  5  4  3  2  1  0
    S  Z  -  H  -  PV N  C

Undocumented flag bits 5 and 3 are not modelled.

Copyright (c) 2026 bfcpm Contributors
"""

from dataclasses import dataclass
from enum import IntFlag
from typing import Callable, Optional, Protocol

from bfcpm.errors import EmulatorError


class Flags(IntFlag):
    """Z80 flag register bits."""
    C = 0x01   # Carry
    N = 0x02   # Add/subtract
    PV = 0x04  # Parity/overflow
    H = 0x10   # Half-carry
    Z = 0x40   # Zero
    S = 0x80   # Sign


class BusProtocol(Protocol):
    """
    Protocol defining the memory bus interface.

    The CPU reads and writes all memory through this interface.
    """
    def read(self, address: int) -> int:
        """Read byte from address."""
        ...

    def write(self, address: int, value: int) -> None:
        """Write byte to address."""
        ...


@dataclass
class CPUState:
    """
    Complete CPU state.

    All values are Python ints representing:
    - a, f, b, c, d, e, h, l: 8-bit unsigned (0-255)
    - sp, pc: 16-bit unsigned (0-65535)
    - halted: True after HALT
    """
    a: int = 0
    f: int = 0
    b: int = 0
    c: int = 0
    d: int = 0
    e: int = 0
    h: int = 0
    l: int = 0
    sp: int = 0xFFFF
    pc: int = 0
    halted: bool = False


def _parity(value: int) -> bool:
    """True when value has an even number of set bits."""
    return bin(value & 0xFF).count("1") % 2 == 0


class Z80:
    """
    Z80 CPU emulator for the compiler's instruction subset.

    Instrumentation hooks allow tracing every instruction before it runs.

    Example:
        >>> cpu = Z80(bus)
        >>> cpu.pc = 0x0100
        >>> cycles = cpu.step()
        >>> print(f"A=${cpu.a:02X} HL=${cpu.hl:04X} PC=${cpu.pc:04X}")
    """

    def __init__(self, bus: BusProtocol):
        """
        Initialize CPU with memory bus.

        Args:
            bus: Memory bus implementing BusProtocol
        """
        self.bus = bus
        self.state = CPUState()

        # on_instruction(pc, opcode) -> bool: return False to stop before executing
        self.on_instruction: Optional[Callable[[int, int], bool]] = None

    # ========================================
    # Register Access
    # ========================================

    @property
    def a(self) -> int:
        return self.state.a

    @a.setter
    def a(self, value: int) -> None:
        self.state.a = value & 0xFF

    @property
    def f(self) -> int:
        return self.state.f

    @f.setter
    def f(self, value: int) -> None:
        self.state.f = value & 0xFF

    @property
    def bc(self) -> int:
        return (self.state.b << 8) | self.state.c

    @bc.setter
    def bc(self, value: int) -> None:
        self.state.b = (value >> 8) & 0xFF
        self.state.c = value & 0xFF

    @property
    def de(self) -> int:
        return (self.state.d << 8) | self.state.e

    @de.setter
    def de(self, value: int) -> None:
        self.state.d = (value >> 8) & 0xFF
        self.state.e = value & 0xFF

    @property
    def hl(self) -> int:
        return (self.state.h << 8) | self.state.l

    @hl.setter
    def hl(self, value: int) -> None:
        self.state.h = (value >> 8) & 0xFF
        self.state.l = value & 0xFF

    @property
    def sp(self) -> int:
        return self.state.sp

    @sp.setter
    def sp(self, value: int) -> None:
        self.state.sp = value & 0xFFFF

    @property
    def pc(self) -> int:
        return self.state.pc

    @pc.setter
    def pc(self, value: int) -> None:
        self.state.pc = value & 0xFFFF

    @property
    def halted(self) -> bool:
        return self.state.halted

    # ========================================
    # Flag Access
    # ========================================

    def flag(self, flag: Flags) -> bool:
        """Return True if flag is set."""
        return bool(self.state.f & flag)

    def _set_flag(self, flag: Flags, value: bool) -> None:
        if value:
            self.state.f |= flag
        else:
            self.state.f &= ~flag & 0xFF

    def _set_sz(self, value: int) -> None:
        self._set_flag(Flags.S, bool(value & 0x80))
        self._set_flag(Flags.Z, value == 0)

    # ========================================
    # Memory Access
    # ========================================

    def _fetch_byte(self) -> int:
        value = self.bus.read(self.pc)
        self.pc = self.pc + 1
        return value

    def _fetch_word(self) -> int:
        low = self._fetch_byte()
        return low | (self._fetch_byte() << 8)

    def push_word(self, value: int) -> None:
        """Push a 16-bit value (high byte at the higher address)."""
        self.sp = self.sp - 1
        self.bus.write(self.sp, (value >> 8) & 0xFF)
        self.sp = self.sp - 1
        self.bus.write(self.sp, value & 0xFF)

    def pop_word(self) -> int:
        """Pop a 16-bit value."""
        low = self.bus.read(self.sp)
        self.sp = self.sp + 1
        high = self.bus.read(self.sp)
        self.sp = self.sp + 1
        return low | (high << 8)

    # ========================================
    # ALU Operations
    # ========================================

    def _inc8(self, value: int) -> int:
        """Increment, set S,Z,H,PV, clear N. C unchanged."""
        result = (value + 1) & 0xFF
        self._set_sz(result)
        self._set_flag(Flags.H, (value & 0x0F) == 0x0F)
        self._set_flag(Flags.PV, value == 0x7F)
        self._set_flag(Flags.N, False)
        return result

    def _dec8(self, value: int) -> int:
        """Decrement, set S,Z,H,PV, set N. C unchanged."""
        result = (value - 1) & 0xFF
        self._set_sz(result)
        self._set_flag(Flags.H, (value & 0x0F) == 0x00)
        self._set_flag(Flags.PV, value == 0x80)
        self._set_flag(Flags.N, True)
        return result

    def _add8(self, a: int, b: int) -> int:
        """Add, set all flags."""
        total = a + b
        result = total & 0xFF
        self._set_sz(result)
        self._set_flag(Flags.H, ((a & 0x0F) + (b & 0x0F)) > 0x0F)
        self._set_flag(Flags.PV, ((a ^ result) & (b ^ result) & 0x80) != 0)
        self._set_flag(Flags.N, False)
        self._set_flag(Flags.C, total > 0xFF)
        return result

    def _sub8(self, a: int, b: int) -> int:
        """Subtract, set all flags (also used by CP)."""
        result = (a - b) & 0xFF
        self._set_sz(result)
        self._set_flag(Flags.H, (a & 0x0F) < (b & 0x0F))
        self._set_flag(Flags.PV, ((a ^ b) & (a ^ result) & 0x80) != 0)
        self._set_flag(Flags.N, True)
        self._set_flag(Flags.C, b > a)
        return result

    def _or8(self, a: int, b: int) -> int:
        """OR, set S,Z,PV(parity), clear H,N,C."""
        result = (a | b) & 0xFF
        self._set_sz(result)
        self._set_flag(Flags.H, False)
        self._set_flag(Flags.PV, _parity(result))
        self._set_flag(Flags.N, False)
        self._set_flag(Flags.C, False)
        return result

    def _add16(self, a: int, b: int) -> int:
        """16-bit add, set H,C, clear N. S,Z,PV unchanged."""
        total = a + b
        self._set_flag(Flags.H, ((a & 0x0FFF) + (b & 0x0FFF)) > 0x0FFF)
        self._set_flag(Flags.N, False)
        self._set_flag(Flags.C, total > 0xFFFF)
        return total & 0xFFFF

    # ========================================
    # Execution
    # ========================================

    def step(self) -> int:
        """
        Execute exactly one instruction.

        Returns:
            T-states consumed (0 if the on_instruction hook stopped execution)

        Raises:
            EmulatorError: If the opcode is outside the emulated subset
        """
        if self.state.halted:
            return 4

        if self.on_instruction:
            if not self.on_instruction(self.pc, self.bus.read(self.pc)):
                return 0

        pc = self.pc
        opcode = self._fetch_byte()
        return self._execute_instruction(opcode, pc)

    def _execute_instruction(self, opcode: int, pc: int) -> int:
        """
        Execute a single instruction whose opcode has been fetched.

        Returns:
            T-states consumed
        """
        match opcode:
            # ============================================
            # Control
            # ============================================
            case 0x00:  # NOP
                return 4
            case 0x76:  # HALT
                self.state.halted = True
                return 4

            # ============================================
            # 8-bit Loads
            # ============================================
            case 0x0E:  # LD C,n
                self.state.c = self._fetch_byte()
                return 7
            case 0x1E:  # LD E,n
                self.state.e = self._fetch_byte()
                return 7
            case 0x36:  # LD (HL),n
                self.bus.write(self.hl, self._fetch_byte())
                return 10
            case 0x5E:  # LD E,(HL)
                self.state.e = self.bus.read(self.hl)
                return 7
            case 0x77:  # LD (HL),A
                self.bus.write(self.hl, self.a)
                return 7
            case 0x7A:  # LD A,D
                self.a = self.state.d
                return 4
            case 0x7E:  # LD A,(HL)
                self.a = self.bus.read(self.hl)
                return 7

            # ============================================
            # 16-bit Loads and Stack
            # ============================================
            case 0x01:  # LD BC,nn
                self.bc = self._fetch_word()
                return 10
            case 0x11:  # LD DE,nn
                self.de = self._fetch_word()
                return 10
            case 0x21:  # LD HL,nn
                self.hl = self._fetch_word()
                return 10
            case 0xE5:  # PUSH HL
                self.push_word(self.hl)
                return 11
            case 0xE1:  # POP HL
                self.hl = self.pop_word()
                return 10

            # ============================================
            # Arithmetic and Logic
            # ============================================
            case 0x34:  # INC (HL)
                self.bus.write(self.hl, self._inc8(self.bus.read(self.hl)))
                return 11
            case 0x35:  # DEC (HL)
                self.bus.write(self.hl, self._dec8(self.bus.read(self.hl)))
                return 11
            case 0xC6:  # ADD A,n
                self.a = self._add8(self.a, self._fetch_byte())
                return 7
            case 0xB3:  # OR E
                self.a = self._or8(self.a, self.state.e)
                return 4
            case 0xB7:  # OR A
                self.a = self._or8(self.a, self.a)
                return 4
            case 0xFE:  # CP n
                self._sub8(self.a, self._fetch_byte())
                return 7
            case 0x23:  # INC HL
                self.hl = self.hl + 1
                return 6
            case 0x2B:  # DEC HL
                self.hl = self.hl - 1
                return 6
            case 0x1B:  # DEC DE
                self.de = self.de - 1
                return 6
            case 0x09:  # ADD HL,BC
                self.hl = self._add16(self.hl, self.bc)
                return 11

            # ============================================
            # Jumps, Calls and Returns
            # ============================================
            case 0xC3:  # JP nn
                self.pc = self._fetch_word()
                return 10
            case 0xCA:  # JP Z,nn
                target = self._fetch_word()
                if self.flag(Flags.Z):
                    self.pc = target
                return 10
            case 0xC2:  # JP NZ,nn
                target = self._fetch_word()
                if not self.flag(Flags.Z):
                    self.pc = target
                return 10
            case 0x20:  # JR NZ,e
                disp = self._fetch_byte()
                if not self.flag(Flags.Z):
                    if disp >= 0x80:
                        disp -= 256
                    self.pc = self.pc + disp
                    return 12
                return 7
            case 0xCD:  # CALL nn
                target = self._fetch_word()
                self.push_word(self.pc)
                self.pc = target
                return 17
            case 0xC9:  # RET
                self.pc = self.pop_word()
                return 10

            case _:
                raise EmulatorError(f"Unsupported opcode ${opcode:02X} at ${pc:04X}")
