"""
End-to-End Tests
================

Compiles Brainfuck programs and runs the images on the emulated CP/M
machine, checking console output and the final state of the cells.

Copyright (c) 2026 bfcpm Contributors
"""

import pytest

from bfcpm import Compiler, CompilerConfig, compile_bf
from bfcpm.emulator import CPMMachine, ExitReason
from bfcpm.errors import EmulatorError


HELLO_WORLD = (
    "++++++++[>++++[>++>+++>+++>+<<<<-]>+>+>->>+[<]<-]"
    ">>.>---.+++++++..+++.>>.<-.<.+++.------.--------.>>+.>++."
)


# =============================================================================
# Cells and Pointer
# =============================================================================

class TestCells:
    """Cell arithmetic and pointer movement."""

    def test_increment(self, run_program):
        machine, result, compiled = run_program("+++")
        assert machine.read(compiled.memory_start) == 3
        assert machine.pointer == compiled.memory_start
        assert result.exit_reason is ExitReason.WARM_BOOT

    def test_decrement_wraps(self, run_program):
        machine, _, compiled = run_program("-")
        assert machine.read(compiled.memory_start) == 255

    def test_large_run_wraps(self, run_program):
        machine, _, compiled = run_program("+" * 300)
        assert machine.read(compiled.memory_start) == 300 % 256

    def test_pointer_moves(self, run_program):
        machine, _, compiled = run_program(">+>>>>>++<<+")
        start = compiled.memory_start
        assert machine.cells(start, 7) == bytes([0, 1, 0, 0, 1, 0, 2])
        assert machine.pointer == start + 4

    def test_long_move_and_back(self, run_program):
        machine, _, compiled = run_program(">" * 40 + "+" + "<" * 40)
        assert machine.read(compiled.memory_start + 40) == 1
        assert machine.pointer == compiled.memory_start

    @pytest.mark.parametrize("value", [0, 1, 5, 255])
    def test_clear_loop(self, run_program, value):
        machine, _, compiled = run_program("+" * value + "[-]")
        assert machine.read(compiled.memory_start) == 0
        assert machine.pointer == compiled.memory_start

    def test_move_loop(self, run_program):
        machine, _, compiled = run_program("+++++[>++<-]")
        assert machine.cells(compiled.memory_start, 2) == bytes([0, 10])

    def test_nested_loops(self, run_program):
        machine, _, compiled = run_program("+++[>+++[>++<-]<-]")
        assert machine.read(compiled.memory_start + 2) == 18

    def test_cells_are_zeroed_before_start(self, small_config):
        compiled = Compiler(small_config).compile(">")
        machine = CPMMachine()
        for address in range(compiled.memory_start, compiled.memory_start + 65):
            machine.memory.write(address, 0xAA)
        machine.load(compiled.image)
        machine.run()
        assert machine.cells(compiled.memory_start, 64) == bytes(64)
        # cells beyond the configured size are left alone
        assert machine.read(compiled.memory_start + 64) == 0xAA


# =============================================================================
# Console I/O
# =============================================================================

class TestConsole:
    """BDOS console input and output."""

    def test_reference_program(self):
        machine = CPMMachine()
        machine.load(compile_bf("++++++++[>++++++++<-]>+."))
        assert machine.run().output == b"A"

    def test_hello_world(self, run_program):
        _, result, _ = run_program(HELLO_WORLD)
        assert result.output == b"Hello World!\r\n"

    def test_echo_input(self, run_program):
        _, result, _ = run_program(",.", console_input=b"A")
        assert result.output == b"A"

    def test_carriage_return_skipped(self, run_program):
        machine, result, compiled = run_program(",.", console_input=b"\rA")
        assert result.output == b"A"
        assert machine.read(compiled.memory_start) == ord("A")

    def test_newline_output_as_crlf(self, run_program):
        _, result, _ = run_program(",.", console_input=b"\n")
        assert result.output == b"\r\n"

    def test_cat_until_zero(self, run_program):
        _, result, _ = run_program(",[.,]", console_input=b"abc\x00")
        assert result.output == b"abc"

    def test_exhausted_input_is_error(self, run_program):
        with pytest.raises(EmulatorError):
            run_program(",")

    def test_eof_byte(self, run_program):
        _, result, _ = run_program(",.", eof_byte=0x1A)
        assert result.output == b"\x1a"

    def test_bdos_echo(self, small_config):
        machine = CPMMachine(console_input=b"x", echo=True)
        machine.load(compile_bf(",.", small_config))
        assert machine.run().output == b"xx"

    def test_pointer_survives_bdos_calls(self, run_program):
        machine, _, compiled = run_program(">>.<", console_input=b"")
        assert machine.pointer == compiled.memory_start + 1


# =============================================================================
# Machine Behaviour
# =============================================================================

class TestMachine:
    """Run control of the emulated CP/M machine."""

    def test_cycle_limit(self, small_config):
        machine = CPMMachine()
        machine.load(compile_bf("+[]", small_config))
        with pytest.raises(EmulatorError) as exc_info:
            machine.run(max_cycles=10_000)
        assert "Cycle limit" in str(exc_info.value)

    def test_ret_returns_to_cpm(self):
        machine = CPMMachine()
        machine.load(bytes([0xC9]))
        result = machine.run()
        assert result.exit_reason is ExitReason.WARM_BOOT
        assert result.steps == 1

    def test_halt_stops(self):
        machine = CPMMachine()
        machine.load(bytes([0x76]))
        assert machine.run().exit_reason is ExitReason.HALT

    def test_unsupported_bdos_function(self):
        machine = CPMMachine()
        # LD C,9 / CALL 5
        machine.load(bytes([0x0E, 0x09, 0xCD, 0x05, 0x00]))
        with pytest.raises(EmulatorError) as exc_info:
            machine.run()
        assert "BDOS function 9" in str(exc_info.value)

    def test_feed_input(self, small_config):
        machine = CPMMachine()
        machine.feed_input(b"Q")
        machine.load(compile_bf(",.", small_config))
        assert machine.run().output == b"Q"

    def test_image_too_large(self):
        machine = CPMMachine()
        with pytest.raises(EmulatorError):
            machine.load(bytes(0x10000))

    def test_other_load_base(self):
        config = CompilerConfig(load_base=0x4000, memory_size=16)
        machine = CPMMachine(load_base=0x4000)
        machine.load(compile_bf("++++++++[>++++++++<-]>+.", config))
        assert machine.run().output == b"A"
