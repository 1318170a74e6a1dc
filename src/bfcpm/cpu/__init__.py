"""
bfcpm CPU Package
=================

Z80 instruction definitions shared by the code generator (which encodes
instructions), the disassembler (which decodes them) and the emulator
(which executes them), so all three agree on one opcode table.

Usage:
    from bfcpm.cpu import OPCODE_TABLE, encode_instruction, LD_HL_NN

Copyright (c) 2026 bfcpm Contributors
"""

from bfcpm.cpu.z80 import (
    # Core types
    OperandKind,
    InstructionInfo,
    # Master instruction table
    OPCODE_TABLE,
    # Helpers
    get_instruction_info,
    encode_instruction,
    # Opcodes
    NOP,
    LD_BC_NN,
    ADD_HL_BC,
    LD_C_N,
    LD_DE_NN,
    DEC_DE,
    LD_E_N,
    JR_NZ_E,
    LD_HL_NN,
    INC_HL,
    DEC_HL,
    INC_IHL,
    DEC_IHL,
    LD_IHL_N,
    LD_E_IHL,
    HALT,
    LD_IHL_A,
    LD_A_D,
    LD_A_IHL,
    OR_E,
    OR_A,
    JP_NZ_NN,
    JP_NN,
    ADD_A_N,
    RET,
    JP_Z_NN,
    CALL_NN,
    POP_HL,
    PUSH_HL,
    CP_N,
)

__all__ = [
    "OperandKind",
    "InstructionInfo",
    "OPCODE_TABLE",
    "get_instruction_info",
    "encode_instruction",
    "NOP",
    "LD_BC_NN",
    "ADD_HL_BC",
    "LD_C_N",
    "LD_DE_NN",
    "DEC_DE",
    "LD_E_N",
    "JR_NZ_E",
    "LD_HL_NN",
    "INC_HL",
    "DEC_HL",
    "INC_IHL",
    "DEC_IHL",
    "LD_IHL_N",
    "LD_E_IHL",
    "HALT",
    "LD_IHL_A",
    "LD_A_D",
    "LD_A_IHL",
    "OR_E",
    "OR_A",
    "JP_NZ_NN",
    "JP_NN",
    "ADD_A_N",
    "RET",
    "JP_Z_NN",
    "CALL_NN",
    "POP_HL",
    "PUSH_HL",
    "CP_N",
]
