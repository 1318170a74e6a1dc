"""
Z80 Disassembler
================

Disassembles generated images back into readable assembly, for listing
files and debugging. It decodes exactly the instruction subset in
bfcpm.cpu; any other byte is shown as a DB data byte.

Usage:
    disasm = Z80Disassembler()

    # Disassemble a whole image as loaded at $0100
    for instr in disasm.disassemble(image, start_address=0x0100):
        print(instr)

    # Or render it as a listing
    print(disasm.format_listing(image, start_address=0x0100))

Copyright (c) 2026 bfcpm Contributors
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from bfcpm import cpm
from bfcpm.cpu import OPCODE_TABLE, OperandKind


# =============================================================================
# Data Structures
# =============================================================================

@dataclass
class DisassembledInstruction:
    """
    A single disassembled instruction.

    Attributes:
        address: Memory address of the instruction
        opcode: The opcode byte
        mnemonic: Full instruction text (e.g. "JP Z,$0123")
        size: Instruction size in bytes
        raw_bytes: All bytes comprising this instruction
        target: Address referenced by a jump or call, if any
        comment: Optional comment (known addresses, characters)
    """
    address: int
    opcode: int
    mnemonic: str
    size: int
    raw_bytes: bytes
    target: Optional[int] = None
    comment: str = ""

    def __str__(self) -> str:
        """Format as listing line: ADDRESS: BYTES  MNEMONIC ; COMMENT"""
        hex_bytes = " ".join(f"{b:02X}" for b in self.raw_bytes).ljust(8)
        if self.comment:
            return f"${self.address:04X}: {hex_bytes}  {self.mnemonic:<16} ; {self.comment}"
        return f"${self.address:04X}: {hex_bytes}  {self.mnemonic}"


# =============================================================================
# Z80 Disassembler
# =============================================================================

class Z80Disassembler:
    """
    Disassembler for the Z80 subset emitted by the compiler.

    Attributes:
        _symbol_table: Maps addresses to names used in comments
    """

    def __init__(self, symbol_table: Optional[Dict[int, str]] = None):
        """
        Initialize the disassembler.

        Args:
            symbol_table: Extra address names for annotation. CP/M's WBOOT
                          and BDOS entry points are always known.
        """
        self._symbol_table = dict(cpm.KNOWN_ADDRESSES)
        if symbol_table:
            self._symbol_table.update(symbol_table)

    def disassemble_one(self, data: bytes, address: int = 0,
                        offset: int = 0) -> DisassembledInstruction:
        """
        Disassemble a single instruction.

        Args:
            data: Byte buffer containing the instruction
            address: Memory address of the instruction
            offset: Offset into data where the instruction starts

        Raises:
            ValueError: If offset is beyond the data
        """
        if offset >= len(data):
            raise ValueError(f"Offset {offset} beyond data length {len(data)}")

        opcode = data[offset]
        info = OPCODE_TABLE.get(opcode)

        if info is None:
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=f"DB ${opcode:02X}",
                size=1,
                raw_bytes=bytes([opcode]),
                comment="unknown opcode",
            )

        if offset + info.size > len(data):
            partial = bytes(data[offset:])
            return DisassembledInstruction(
                address=address,
                opcode=opcode,
                mnemonic=info.mnemonic.format("???"),
                size=len(partial),
                raw_bytes=partial,
                comment="incomplete instruction",
            )

        raw_bytes = bytes(data[offset:offset + info.size])
        operand_text, target, comment = self._format_operand(
            info.operand, raw_bytes[1:], address, info.size
        )

        return DisassembledInstruction(
            address=address,
            opcode=opcode,
            mnemonic=info.mnemonic.format(operand_text),
            size=info.size,
            raw_bytes=raw_bytes,
            target=target,
            comment=comment,
        )

    def _format_operand(self, kind: OperandKind, operand_bytes: bytes,
                        address: int, size: int) -> Tuple[str, Optional[int], str]:
        """
        Format an operand.

        Returns:
            Tuple of (operand text, referenced address or None, comment)
        """
        if kind is OperandKind.NONE:
            return "", None, ""

        if kind is OperandKind.IMM8:
            value = operand_bytes[0]
            comment = f"'{chr(value)}'" if 0x20 <= value < 0x7F else ""
            return f"${value:02X}", None, comment

        if kind is OperandKind.REL8:
            disp = operand_bytes[0]
            if disp >= 0x80:
                disp -= 256
            target = (address + size + disp) & 0xFFFF
            sign = "+" if disp >= 0 else ""
            return f"${target:04X}", target, f"{sign}{disp}"

        value = operand_bytes[0] | (operand_bytes[1] << 8)
        if kind is OperandKind.ADDR16:
            return f"${value:04X}", value, self._symbol_table.get(value, "")
        return f"${value:04X}", None, ""

    def disassemble(self, data: bytes, start_address: int = 0,
                    count: Optional[int] = None) -> List[DisassembledInstruction]:
        """
        Disassemble a sequence of instructions.

        Args:
            data: Bytes to disassemble (offset 0 is at start_address)
            start_address: Address of the first byte
            count: Maximum number of instructions (None = all of data)
        """
        result = []
        offset = 0
        while offset < len(data) and (count is None or len(result) < count):
            instr = self.disassemble_one(data, start_address + offset, offset)
            result.append(instr)
            offset += instr.size
        return result

    def format_listing(self, data: bytes, start_address: int = 0) -> str:
        """Render data as a listing, one instruction per line."""
        lines = [str(instr) for instr in self.disassemble(data, start_address)]
        end = start_address + len(data)
        lines.append(f"${end:04X}:           ; end of image, {len(data)} bytes")
        return "\n".join(lines) + "\n"
