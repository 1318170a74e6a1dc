"""
Z80 Code Generator
==================

Turns Brainfuck operations into Z80 machine code for CP/M, in a single
pass, directly into an OutputImage.

Register Usage
--------------
- HL: the cell pointer, for the whole program
- A:  scratch for cell arithmetic and loop tests
- BC: pointer offsets larger than 3
- C, E: BDOS function number and output byte

Image Layout
------------
```
offset 0    LD   HL,end        ; end = address just past the code
offset 3    LD   DE,memory_size
offset 6    fill: LD (HL),0    ; zero every cell
            INC  HL
            DEC  DE
            LD   A,D
            OR   E
            JP   NZ,fill
offset 15   LD   HL,end        ; cell pointer starts at the first cell
offset 18   ... program ...
            JP   WBOOT         ; return to the CCP
end:        (cells follow the image in memory)
```

Loops
-----
"[" emits LD A,(HL) / OR A / JP Z,exit with a zero placeholder for exit
and pushes the offset of that code on the loop stack. "]" pops it, emits
JP back to the loop head, and records a fixup pointing the placeholder at
the byte after that JP. Fixups are written by finalize(), after the
postamble, together with the two "end" fields of the preamble.

Addresses
---------
Image offset 0 is loaded at config.load_base, so every address written
into the image is load_base + offset, little-endian.
"""

import logging
from typing import Callable, Optional

from bfcpm import cpm
from bfcpm.config import CompilerConfig
from bfcpm.cpu import (
    encode_instruction,
    ADD_A_N,
    ADD_HL_BC,
    CALL_NN,
    CP_N,
    DEC_DE,
    DEC_HL,
    DEC_IHL,
    INC_HL,
    INC_IHL,
    JP_NN,
    JP_NZ_NN,
    JP_Z_NN,
    JR_NZ_E,
    LD_A_D,
    LD_A_IHL,
    LD_BC_NN,
    LD_C_N,
    LD_DE_NN,
    LD_E_IHL,
    LD_E_N,
    LD_HL_NN,
    LD_IHL_A,
    LD_IHL_N,
    OR_A,
    OR_E,
    POP_HL,
    PUSH_HL,
)
from bfcpm.compiler.image import Fixup, FixupKind, OutputImage
from bfcpm.compiler.loops import LoopMarker, LoopStack
from bfcpm.errors import (
    AddressRangeError,
    SourceLocation,
    UnbalancedLoopError,
)

logger = logging.getLogger(__name__)

# Byte offset of the JP Z address field inside the loop-open code
LOOP_EXIT_FIELD = 3

# Pointer moves up to this size use repeated INC HL / DEC HL
SHORT_MOVE_LIMIT = 3


class CodeGenerator:
    """
    Emits Z80 code for Brainfuck operations into an OutputImage.

    Call emit_preamble() first, then one emit_* method per collapsed
    operation, then finalize() to get the finished image.

    Attributes:
        config: Compiler configuration
        image: The image being built
        loops: Marker stack of currently open loops
        fixups: Address fields still to be written by finalize()
        loop_count: Number of loops closed so far
    """

    def __init__(self, config: Optional[CompilerConfig] = None,
                 on_grow: Optional[Callable[[int], None]] = None):
        """
        Initialize the code generator.

        Args:
            config: Compiler configuration (uses defaults if None)
            on_grow: Progress callback forwarded to the OutputImage
        """
        self.config = config or CompilerConfig()
        self.config.validate()
        self.image = OutputImage(self.config.growth_chunk, on_grow=on_grow)
        self.loops = LoopStack(self.config.max_loop_depth)
        self.fixups: list[Fixup] = []
        self.loop_count = 0
        self._finalized = False

    # =========================================================================
    # Emission Primitives
    # =========================================================================

    def emit(self, opcode: int, operand: Optional[int] = None) -> int:
        """
        Append one instruction.

        Returns:
            Image offset of the opcode byte
        """
        return self.image.extend(encode_instruction(opcode, operand))

    def address_of(self, offset: int) -> int:
        """
        Convert an image offset to the run-time address it is loaded at.

        Raises:
            AddressRangeError: If the address does not fit in 16 bits
        """
        address = self.config.load_base + offset
        if address > 0xFFFF:
            raise AddressRangeError(
                f"address ${address:X} of image offset {offset} exceeds $FFFF",
                hint="the program is too large for the 64K address space",
            )
        return address

    def _bdos_call(self, function: int) -> bytes:
        """Encode a BDOS call that preserves the cell pointer."""
        return b"".join([
            encode_instruction(LD_C_N, function),
            encode_instruction(PUSH_HL),
            encode_instruction(CALL_NN, self.config.bdos_entry),
            encode_instruction(POP_HL),
        ])

    # =========================================================================
    # Preamble / Postamble
    # =========================================================================

    def emit_preamble(self) -> None:
        """
        Emit the cell-clearing prologue.

        Both LD HL,end operands are left as placeholders; their CODE_END
        fixups are resolved by finalize().
        """
        if len(self.image):
            raise RuntimeError("Preamble must be the first code in the image")

        start = self.emit(LD_HL_NN, 0)
        self.fixups.append(Fixup(start + 1, FixupKind.CODE_END))
        self.emit(LD_DE_NN, self.config.memory_size)

        fill = self.emit(LD_IHL_N, 0)
        self.emit(INC_HL)
        self.emit(DEC_DE)
        self.emit(LD_A_D)
        self.emit(OR_E)
        self.emit(JP_NZ_NN, self.address_of(fill))

        pointer = self.emit(LD_HL_NN, 0)
        self.fixups.append(Fixup(pointer + 1, FixupKind.CODE_END))

    def emit_postamble(self) -> None:
        """Emit the jump back to the CCP."""
        self.emit(JP_NN, self.config.warm_boot)

    # =========================================================================
    # Cell and Pointer Operations
    # =========================================================================

    def emit_add(self, n: int) -> None:
        """
        Add n (modulo 256) to the current cell.

        INC (HL) / DEC (HL) take 11 T-states against 21 for the general
        load/add/store sequence, so they are used for +1 and -1.
        """
        n &= 0xFF
        if n == 1:
            self.emit(INC_IHL)
        elif n == 0xFF:
            self.emit(DEC_IHL)
        elif n != 0:
            self.emit(LD_A_IHL)
            self.emit(ADD_A_N, n)
            self.emit(LD_IHL_A)

    def emit_move(self, n: int) -> None:
        """
        Move the cell pointer by n cells (negative moves left).

        INC HL / DEC HL take 6 T-states each against 21 for LD BC / ADD HL,
        so moves of up to three cells are unrolled.
        """
        if 0 < abs(n) <= SHORT_MOVE_LIMIT:
            step = INC_HL if n > 0 else DEC_HL
            for _ in range(abs(n)):
                self.emit(step)
        elif n != 0:
            # ADD HL,BC wraps at 64K, so the two's complement offset works
            self.emit(LD_BC_NN, n & 0xFFFF)
            self.emit(ADD_HL_BC)

    # =========================================================================
    # Console I/O
    # =========================================================================

    def emit_output(self) -> None:
        """
        Write the current cell to the console.

        A '\\n' is preceded by '\\r' so the carriage returns to the start
        of the line.
        """
        call = self._bdos_call(cpm.C_WRITE)
        carriage_return = encode_instruction(LD_E_N, cpm.CR) + call

        self.emit(LD_A_IHL)
        self.emit(CP_N, cpm.LF)
        self.emit(JR_NZ_E, len(carriage_return))
        self.image.extend(carriage_return)
        self.emit(LD_E_IHL)
        self.image.extend(call)

    def emit_input(self) -> None:
        """
        Read one console byte into the current cell.

        CP/M line endings are "\\r\\n" and Brainfuck expects "\\n", so a
        '\\r' is thrown away and another byte read in its place.
        """
        call = self._bdos_call(cpm.C_READ)

        self.image.extend(call)
        self.emit(CP_N, cpm.CR)
        self.emit(JR_NZ_E, len(call))
        self.image.extend(call)
        self.emit(LD_IHL_A)

    # =========================================================================
    # Loops
    # =========================================================================

    def open_loop(self, location: Optional[SourceLocation] = None) -> int:
        """
        Emit a loop head whose exit address is not yet known.

        Returns:
            Image offset of the loop head

        Raises:
            LoopNestingOverflowError: If too many loops are open
        """
        head = len(self.image)
        self.loops.push(LoopMarker(head, location))

        self.emit(LD_A_IHL)
        self.emit(OR_A)
        self.emit(JP_Z_NN, 0)

        logger.debug(f"Loop opened at offset {head} (depth {len(self.loops)})")
        return head

    def close_loop(self, location: Optional[SourceLocation] = None) -> Fixup:
        """
        Emit the jump back to the innermost loop head and record its exit.

        Returns:
            The fixup that will point the loop head's JP Z past this jump

        Raises:
            UnbalancedLoopError: If no loop is open
        """
        marker = self.loops.pop(location)
        self.emit(JP_NN, self.address_of(marker.offset))

        fixup = Fixup(marker.offset + LOOP_EXIT_FIELD, FixupKind.LOOP_EXIT,
                      target=len(self.image))
        self.fixups.append(fixup)
        self.loop_count += 1

        logger.debug(
            f"Loop at offset {marker.offset} closed, exit at offset {fixup.target}"
        )
        return fixup

    # =========================================================================
    # Finalization
    # =========================================================================

    def finalize(self) -> bytes:
        """
        Emit the postamble, write every pending address, and return the image.

        Raises:
            UnbalancedLoopError: If a loop is still open
            AddressRangeError: If the image or its cells exceed 64K
        """
        if self._finalized:
            raise RuntimeError("Image has already been finalized")

        if self.loops:
            marker = self.loops.peek()
            raise UnbalancedLoopError(
                f"{len(self.loops)} loop(s) not closed at end of input",
                location=marker.location,
                hint="add the missing ']'",
            )

        self.emit_postamble()
        end = len(self.image)
        end_address = self.address_of(end)
        if end_address + self.config.memory_size > 0x10000:
            raise AddressRangeError(
                f"{self.config.memory_size} cells starting at ${end_address:04X} "
                f"run past $FFFF",
                hint="reduce the memory size (bfc --memory-size)",
            )

        for fixup in self.fixups:
            target = end if fixup.kind is FixupKind.CODE_END else fixup.target
            self.image.patch_word(fixup.offset, self.address_of(target))
            logger.debug(
                f"Fixup at offset {fixup.offset} ({fixup.kind}) -> "
                f"${self.address_of(target):04X}"
            )

        self._finalized = True
        return self.image.to_bytes()

    @property
    def memory_start(self) -> int:
        """Address of the first cell (valid once the image is finalized)."""
        return self.address_of(len(self.image))
