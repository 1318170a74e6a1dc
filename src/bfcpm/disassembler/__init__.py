"""
bfcpm Disassembler Module
=========================

Disassembly of generated Z80 images, used for bfc listing files and for
inspecting code in tests.

Usage:
    from bfcpm.disassembler import Z80Disassembler

    disasm = Z80Disassembler()
    print(disasm.format_listing(image, start_address=0x0100))

Copyright (c) 2026 bfcpm Contributors
"""

from .z80 import Z80Disassembler, DisassembledInstruction

__all__ = [
    "Z80Disassembler",
    "DisassembledInstruction",
]
