# =============================================================================
# test_compiler.py - Compiler Driver Tests
# =============================================================================
# Tests for the driver loop, loop balancing, file I/O helpers and the
# compiler configuration.
# =============================================================================

import logging
from pathlib import Path

import pytest

from bfcpm import (
    Compiler,
    CompilerConfig,
    compile_bf,
    compile_file,
    default_output_path,
    write_com,
)
from bfcpm.compiler import FixupKind
from bfcpm.errors import (
    AddressRangeError,
    BoundaryError,
    ConfigError,
    LoopNestingOverflowError,
    SourceLocation,
    UnbalancedLoopError,
)


PREAMBLE_SIZE = 18
SMALL_MEMORY = 64


# =============================================================================
# Driver Loop
# =============================================================================

class TestDriver:
    """Collapsed operations reach the code generator in source order."""

    def test_empty_program(self, compiler):
        result = compiler.compile("")
        assert result.image == bytes([
            0x21, 0x15, 0x01, 0x11, 0x40, 0x00, 0x36, 0x00, 0x23, 0x1B, 0x7A,
            0xB3, 0xC2, 0x06, 0x01, 0x21, 0x15, 0x01, 0xC3, 0x00, 0x00,
        ])
        assert result.memory_start == 0x0115

    def test_comment_only_program_is_empty(self, compiler):
        assert compiler.compile("just words\n").image == compiler.compile("").image

    def test_runs_are_collapsed(self, compiler):
        image = compiler.compile("+++>>>>").image
        assert image[PREAMBLE_SIZE:-3] == bytes([
            0x7E, 0xC6, 0x03, 0x77,      # add 3
            0x01, 0x04, 0x00, 0x09,      # move +4
        ])

    def test_pointer_run_before_cell_run(self, compiler):
        image = compiler.compile(">+").image
        assert image[PREAMBLE_SIZE:-3] == bytes([0x23, 0x34])

    def test_cancelling_runs_emit_nothing(self, compiler):
        empty = compiler.compile("").image
        assert compiler.compile("+-").image == empty
        assert compiler.compile("<>").image == empty
        assert compiler.compile("+" * 256).image == empty

    def test_interleaving_is_irrelevant(self, compiler):
        a = compiler.compile("+++--").image
        b = compiler.compile("+-+-+").image
        c = compiler.compile("+").image
        assert a == b == c

    def test_comments_do_not_split_runs(self, compiler):
        assert compiler.compile("+ one\n+ two").image == compiler.compile("++").image

    def test_consecutive_io_each_emitted(self, compiler):
        single = len(compiler.compile(".").image)
        double = len(compiler.compile("..").image)
        assert double - single == 22

    def test_reference_program_size(self):
        result = Compiler().compile("++++++++[>++++++++<-]>+.")
        assert result.size == 64
        assert result.loop_count == 1
        assert result.max_depth == 1

    def test_accepts_bytes(self, compiler):
        assert compiler.compile(b"+").image == compiler.compile("+").image

    def test_compile_bf_returns_image(self, small_config):
        assert compile_bf("", small_config)[-3:] == bytes([0xC3, 0x00, 0x00])


class TestFixups:
    """Every placeholder is resolved in the finished image."""

    def test_fixups_reported(self, compiler):
        result = compiler.compile("[[]]")
        kinds = [f.kind for f in result.fixups]
        assert kinds.count(FixupKind.CODE_END) == 2
        assert kinds.count(FixupKind.LOOP_EXIT) == 2

    def test_no_zero_placeholders_left(self, compiler):
        result = compiler.compile("[>[-]<-]")
        for fixup in result.fixups:
            word = result.image[fixup.offset] | (result.image[fixup.offset + 1] << 8)
            assert word != 0
            assert word <= result.memory_start

    def test_loop_exits_point_past_their_close(self, compiler):
        result = compiler.compile("[-]")
        exit_fixup = next(f for f in result.fixups if f.kind is FixupKind.LOOP_EXIT)
        address = result.image[exit_fixup.offset] | (result.image[exit_fixup.offset + 1] << 8)
        assert address == 0x0100 + exit_fixup.target
        # the jump back ends right before the exit address
        assert result.image[exit_fixup.target - 3] == 0xC3

    def test_growth_reported(self, small_config):
        calls = []
        small_config.growth_chunk = 8
        Compiler(small_config, on_grow=calls.append).compile("." * 4)
        assert calls == list(range(8, 8 * len(calls) + 1, 8))
        assert len(calls) == 14   # 18 + 4*22 + 3 = 109 bytes


# =============================================================================
# Loop Balancing
# =============================================================================

class TestLoopBalance:
    """Bracket errors are reported with their source location."""

    def test_unmatched_close(self, compiler):
        with pytest.raises(UnbalancedLoopError) as exc_info:
            compiler.compile("+]", filename="bad.bf")
        assert exc_info.value.location == SourceLocation("bad.bf", 1, 2)
        assert "unmatched ']'" in str(exc_info.value)

    def test_unmatched_close_after_balanced(self, compiler):
        with pytest.raises(UnbalancedLoopError) as exc_info:
            compiler.compile("[]\n ]")
        assert exc_info.value.location == SourceLocation("<input>", 2, 2)

    def test_unclosed_open(self, compiler):
        with pytest.raises(UnbalancedLoopError) as exc_info:
            compiler.compile("[")
        assert exc_info.value.location == SourceLocation("<input>", 1, 1)

    def test_unclosed_reports_innermost(self, compiler):
        with pytest.raises(UnbalancedLoopError) as exc_info:
            compiler.compile("[ [")
        assert exc_info.value.location.column == 3
        assert "2 loop(s)" in str(exc_info.value)

    def test_unclosed_outer_after_inner_closed(self, compiler):
        with pytest.raises(UnbalancedLoopError) as exc_info:
            compiler.compile("[[]")
        assert exc_info.value.location.column == 1

    def test_location_is_bracket_not_preceding_run(self, compiler):
        with pytest.raises(UnbalancedLoopError) as exc_info:
            compiler.compile("++>>]")
        assert exc_info.value.location.column == 5

    def test_nesting_at_capacity(self, small_config):
        small_config.max_loop_depth = 4
        result = Compiler(small_config).compile("[[[[]]]]")
        assert result.max_depth == 4

    def test_nesting_overflow(self, small_config):
        small_config.max_loop_depth = 4
        with pytest.raises(LoopNestingOverflowError) as exc_info:
            Compiler(small_config).compile("[[[[[]]]]]")
        assert exc_info.value.capacity == 4
        assert exc_info.value.location.column == 5

    def test_default_capacity(self, compiler):
        result = compiler.compile("[" * 1024 + "]" * 1024)
        assert result.max_depth == 1024
        with pytest.raises(LoopNestingOverflowError):
            compiler.compile("[" * 1025 + "]" * 1025)


class TestAddressRange:
    """Programs must fit in 64K together with their cells."""

    def test_cells_do_not_fit(self):
        with pytest.raises(AddressRangeError):
            Compiler(CompilerConfig(memory_size=0xFFFF)).compile("+")

    def test_largest_memory_that_fits(self):
        # 0x10000 - (0x100 + 21)
        result = Compiler(CompilerConfig(memory_size=0xFEEB)).compile("")
        assert result.memory_start + 0xFEEB == 0x10000


# =============================================================================
# File Helpers
# =============================================================================

class TestFiles:
    """Reading sources and writing .COM files."""

    def test_compile_file(self, tmp_path, small_config):
        source = tmp_path / "prog.bf"
        source.write_bytes(b"+.")
        result = compile_file(source, small_config)
        assert result.filename == str(source)
        assert result.image == compile_bf("+.", small_config)

    def test_compile_missing_file(self, tmp_path):
        with pytest.raises(BoundaryError) as exc_info:
            compile_file(tmp_path / "missing.bf")
        assert "can't read" in str(exc_info.value)
        assert exc_info.value.path.endswith("missing.bf")

    def test_error_locations_use_filename(self, tmp_path, compiler):
        source = tmp_path / "bad.bf"
        source.write_text("]")
        with pytest.raises(UnbalancedLoopError) as exc_info:
            compiler.compile_file(source)
        assert str(exc_info.value).startswith(f"{source}:1:1: error:")

    def test_write_com(self, tmp_path):
        target = tmp_path / "OUT.COM"
        write_com(target, b"\xc3\x00\x00")
        assert target.read_bytes() == b"\xc3\x00\x00"

    def test_write_com_bad_directory(self, tmp_path):
        target = tmp_path / "nowhere" / "OUT.COM"
        with pytest.raises(BoundaryError) as exc_info:
            write_com(target, b"\x00")
        assert "can't write" in str(exc_info.value)
        assert not target.exists()

    def test_write_com_keeps_existing_file_when_open_fails(self, tmp_path, monkeypatch):
        target = tmp_path / "OUT.COM"
        target.write_bytes(b"previous build")

        def refuse(self, *args, **kwargs):
            raise PermissionError(13, "Permission denied")

        monkeypatch.setattr(Path, "open", refuse)
        with pytest.raises(BoundaryError) as exc_info:
            write_com(target, b"\x00")
        monkeypatch.undo()

        assert "can't write: Permission denied" in str(exc_info.value)
        assert target.read_bytes() == b"previous build"

    def test_write_com_to_directory(self, tmp_path):
        target = tmp_path / "OUT.COM"
        target.mkdir()
        with pytest.raises(BoundaryError) as exc_info:
            write_com(target, b"\x00")
        assert "can't write" in str(exc_info.value)
        assert target.is_dir()

    def test_write_com_short_write_removes_file(self, tmp_path, monkeypatch):
        target = tmp_path / "OUT.COM"
        real_open = Path.open

        class ShortStream:
            def __init__(self, stream):
                self._stream = stream

            def __enter__(self):
                return self

            def __exit__(self, *exc):
                self._stream.close()

            def write(self, data):
                return self._stream.write(data[:1])

        monkeypatch.setattr(Path, "open", lambda self, mode: ShortStream(real_open(self, mode)))
        with pytest.raises(BoundaryError) as exc_info:
            write_com(target, b"\xc3\x00\x00")
        monkeypatch.undo()

        assert "only wrote 1 of 3 bytes" in str(exc_info.value)
        assert not target.exists()

    @pytest.mark.parametrize("source,expected", [
        ("hello.bf", "hello.COM"),
        ("prog", "prog.COM"),
        ("a.b.bf", "a.b.COM"),
        ("dir/x.b", "dir/x.COM"),
    ])
    def test_default_output_path(self, source, expected):
        assert default_output_path(source).as_posix() == expected


# =============================================================================
# Configuration
# =============================================================================

class TestConfig:
    """CompilerConfig defaults, validation and environment overrides."""

    def test_defaults(self):
        config = CompilerConfig()
        assert config.load_base == 0x0100
        assert config.memory_size == 30000
        assert config.max_loop_depth == 1024
        assert config.bdos_entry == 5
        assert config.warm_boot == 0

    @pytest.mark.parametrize("field,value", [
        ("memory_size", 0),
        ("memory_size", 0x10000),
        ("max_loop_depth", 0),
        ("growth_chunk", 0),
        ("load_base", 0x10000),
        ("bdos_entry", -1),
    ])
    def test_invalid_values(self, field, value):
        config = CompilerConfig(**{field: value})
        with pytest.raises(ConfigError):
            config.validate()

    def test_compiler_validates(self):
        with pytest.raises(ConfigError):
            Compiler(CompilerConfig(max_loop_depth=0))

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BFCPM_MEMORY_SIZE", "0x100")
        monkeypatch.setenv("BFCPM_MAX_LOOP_DEPTH", "16")
        config = CompilerConfig.from_env()
        assert config.memory_size == 256
        assert config.max_loop_depth == 16
        assert config.growth_chunk == 128

    def test_from_env_ignores_garbage(self, monkeypatch, caplog):
        monkeypatch.setenv("BFCPM_MEMORY_SIZE", "lots")
        with caplog.at_level(logging.WARNING, logger="bfcpm.config"):
            config = CompilerConfig.from_env()
        assert config.memory_size == 30000
        assert "BFCPM_MEMORY_SIZE" in caplog.text

    def test_small_memory_in_preamble(self, compiler):
        image = compiler.compile("").image
        assert image[4] | (image[5] << 8) == SMALL_MEMORY
