"""
Z80 Instruction Definitions
===========================

The subset of the Z80 instruction set that the compiler emits, the
disassembler decodes and the emulator executes. Every instruction used
here is also a valid 8080 instruction except JR NZ, so generated code
needs a Z80 (or compatible) CPU.

The Z80 is little-endian: 16-bit operands are stored low byte first.

Operand Kinds
-------------
1. **NONE**: Opcode only (e.g. INC HL -> $23)
2. **IMM8**: 8-bit literal (e.g. ADD A,$05 -> $C6 $05)
3. **IMM16**: 16-bit literal (e.g. LD BC,$1234 -> $01 $34 $12)
4. **ADDR16**: 16-bit absolute address (e.g. JP $0100 -> $C3 $00 $01)
5. **REL8**: Signed displacement from the next instruction
   (e.g. JR NZ,+9 -> $20 $09)

Reference
---------
- Zilog Z80 CPU User Manual (UM0080)

Copyright (c) 2026 bfcpm Contributors
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional


# =============================================================================
# Operand Kind Enumeration
# =============================================================================

class OperandKind(Enum):
    """How the bytes after the opcode are interpreted."""
    NONE = auto()
    IMM8 = auto()
    IMM16 = auto()
    ADDR16 = auto()
    REL8 = auto()

    @property
    def size(self) -> int:
        """Number of operand bytes following the opcode."""
        return {
            OperandKind.NONE: 0,
            OperandKind.IMM8: 1,
            OperandKind.IMM16: 2,
            OperandKind.ADDR16: 2,
            OperandKind.REL8: 1,
        }[self]


# =============================================================================
# Instruction Information
# =============================================================================

@dataclass(frozen=True)
class InstructionInfo:
    """
    Information about one opcode.

    Attributes:
        opcode: The opcode byte
        mnemonic: Assembly text, with "{}" where the operand goes
        operand: How the operand bytes are interpreted
        cycles: T-states (taken path for conditional relative jumps)
    """
    opcode: int
    mnemonic: str
    operand: OperandKind
    cycles: int

    @property
    def size(self) -> int:
        """Total instruction size in bytes."""
        return 1 + self.operand.size

    def __repr__(self) -> str:
        return f"InstructionInfo(opcode=${self.opcode:02X}, mnemonic={self.mnemonic!r})"


# =============================================================================
# Opcode Constants
# =============================================================================
# (HL) means "the byte HL points at", i.e. the current cell.

NOP = 0x00
LD_BC_NN = 0x01
ADD_HL_BC = 0x09
LD_C_N = 0x0E
LD_DE_NN = 0x11
DEC_DE = 0x1B
LD_E_N = 0x1E
JR_NZ_E = 0x20
LD_HL_NN = 0x21
INC_HL = 0x23
DEC_HL = 0x2B
INC_IHL = 0x34
DEC_IHL = 0x35
LD_IHL_N = 0x36
LD_E_IHL = 0x5E
HALT = 0x76
LD_IHL_A = 0x77
LD_A_D = 0x7A
LD_A_IHL = 0x7E
OR_E = 0xB3
OR_A = 0xB7
JP_NZ_NN = 0xC2
JP_NN = 0xC3
ADD_A_N = 0xC6
RET = 0xC9
JP_Z_NN = 0xCA
CALL_NN = 0xCD
POP_HL = 0xE1
PUSH_HL = 0xE5
CP_N = 0xFE


# =============================================================================
# Opcode Table
# =============================================================================
# Key: opcode byte
# Value: InstructionInfo(opcode, mnemonic, operand kind, T-states)
# =============================================================================

def _info(opcode: int, mnemonic: str, operand: OperandKind, cycles: int) -> tuple[int, InstructionInfo]:
    return opcode, InstructionInfo(opcode, mnemonic, operand, cycles)


OPCODE_TABLE: dict[int, InstructionInfo] = dict([
    # Control
    _info(NOP, "NOP", OperandKind.NONE, 4),
    _info(HALT, "HALT", OperandKind.NONE, 4),

    # 8-bit loads
    _info(LD_C_N, "LD C,{}", OperandKind.IMM8, 7),
    _info(LD_E_N, "LD E,{}", OperandKind.IMM8, 7),
    _info(LD_IHL_N, "LD (HL),{}", OperandKind.IMM8, 10),
    _info(LD_E_IHL, "LD E,(HL)", OperandKind.NONE, 7),
    _info(LD_IHL_A, "LD (HL),A", OperandKind.NONE, 7),
    _info(LD_A_D, "LD A,D", OperandKind.NONE, 4),
    _info(LD_A_IHL, "LD A,(HL)", OperandKind.NONE, 7),

    # 16-bit loads and stack
    _info(LD_BC_NN, "LD BC,{}", OperandKind.IMM16, 10),
    _info(LD_DE_NN, "LD DE,{}", OperandKind.IMM16, 10),
    _info(LD_HL_NN, "LD HL,{}", OperandKind.IMM16, 10),
    _info(PUSH_HL, "PUSH HL", OperandKind.NONE, 11),
    _info(POP_HL, "POP HL", OperandKind.NONE, 10),

    # Arithmetic and logic
    _info(INC_IHL, "INC (HL)", OperandKind.NONE, 11),
    _info(DEC_IHL, "DEC (HL)", OperandKind.NONE, 11),
    _info(ADD_A_N, "ADD A,{}", OperandKind.IMM8, 7),
    _info(OR_A, "OR A", OperandKind.NONE, 4),
    _info(OR_E, "OR E", OperandKind.NONE, 4),
    _info(CP_N, "CP {}", OperandKind.IMM8, 7),
    _info(INC_HL, "INC HL", OperandKind.NONE, 6),
    _info(DEC_HL, "DEC HL", OperandKind.NONE, 6),
    _info(DEC_DE, "DEC DE", OperandKind.NONE, 6),
    _info(ADD_HL_BC, "ADD HL,BC", OperandKind.NONE, 11),

    # Jumps, calls and returns
    _info(JP_NN, "JP {}", OperandKind.ADDR16, 10),
    _info(JP_Z_NN, "JP Z,{}", OperandKind.ADDR16, 10),
    _info(JP_NZ_NN, "JP NZ,{}", OperandKind.ADDR16, 10),
    _info(JR_NZ_E, "JR NZ,{}", OperandKind.REL8, 12),
    _info(CALL_NN, "CALL {}", OperandKind.ADDR16, 17),
    _info(RET, "RET", OperandKind.NONE, 10),
])


# =============================================================================
# Lookup and Encoding Helpers
# =============================================================================

def get_instruction_info(opcode: int) -> Optional[InstructionInfo]:
    """Return the InstructionInfo for an opcode, or None if not in the subset."""
    return OPCODE_TABLE.get(opcode)


def encode_instruction(opcode: int, operand: Optional[int] = None) -> bytes:
    """
    Encode one instruction to bytes.

    Args:
        opcode: Opcode byte (must be in OPCODE_TABLE)
        operand: Operand value; 16-bit operands are written little-endian,
                 REL8 operands are signed (-128..127)

    Returns:
        The encoded instruction

    Raises:
        ValueError: If the opcode is unknown, the operand is missing or
                    superfluous, or it does not fit its field
    """
    info = OPCODE_TABLE.get(opcode)
    if info is None:
        raise ValueError(f"Opcode ${opcode:02X} is not in the instruction subset")

    kind = info.operand
    if kind is OperandKind.NONE:
        if operand is not None:
            raise ValueError(f"{info.mnemonic} takes no operand")
        return bytes([opcode])

    if operand is None:
        raise ValueError(f"{info.mnemonic.format('?')} requires an operand")

    if kind is OperandKind.IMM8:
        if not 0 <= operand <= 0xFF:
            raise ValueError(f"8-bit operand out of range: {operand}")
        return bytes([opcode, operand])

    if kind is OperandKind.REL8:
        if not -128 <= operand <= 127:
            raise ValueError(f"relative displacement out of range: {operand}")
        return bytes([opcode, operand & 0xFF])

    if not 0 <= operand <= 0xFFFF:
        raise ValueError(f"16-bit operand out of range: {operand}")
    return bytes([opcode, operand & 0xFF, operand >> 8])
