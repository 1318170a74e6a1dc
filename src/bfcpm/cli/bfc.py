"""
bfc - Brainfuck Compiler Command-Line Interface
===============================================

Compiles a Brainfuck program into a CP/M .COM file.

Usage Examples
--------------
Basic compilation:
    $ bfc hello.bf                 # writes hello.COM

With output file:
    $ bfc hello.bf -o HELLO.COM

With a disassembly listing:
    $ bfc hello.bf -l hello.lst

Smaller cell memory:
    $ bfc -m 4096 hello.bf

A '+' is printed each time the output buffer grows, as a progress
indicator; -q suppresses it.
"""

from pathlib import Path
from typing import Optional

import click

from bfcpm import __version__
from bfcpm.cli import setup_logging
from bfcpm.cli.errors import handle_cli_exception
from bfcpm.compiler import Compiler, default_output_path, write_com
from bfcpm.config import CompilerConfig
from bfcpm.disassembler import Z80Disassembler
from bfcpm.errors import BoundaryError


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-o", "--output",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Output COM file (default: input with extension .COM)",
)
@click.option(
    "-l", "--listing",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write a disassembly listing of the generated code",
)
@click.option(
    "-m", "--memory-size",
    type=click.IntRange(1, 0xFFFF),
    default=None,
    help="Number of cells zeroed at startup (default: 30000)",
)
@click.option(
    "--max-depth",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum loop nesting depth (default: 1024)",
)
@click.option(
    "-q", "--quiet",
    is_flag=True,
    help="Do not print progress",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="bfc")
def main(
    input_file: Path,
    output: Optional[Path],
    listing: Optional[Path],
    memory_size: Optional[int],
    max_depth: Optional[int],
    quiet: bool,
    verbose: bool,
) -> None:
    """
    Compile Brainfuck source to a CP/M .COM program.

    INPUT_FILE is the Brainfuck source. Every byte other than + - < > . , [ ]
    is a comment.

    \b
    Examples:
        bfc hello.bf                 # Outputs hello.COM
        bfc hello.bf -o out.com      # Specify output file
        bfc -l hello.lst hello.bf    # Also write a listing
    """
    setup_logging(verbose)

    config = CompilerConfig.from_env()
    if memory_size is not None:
        config.memory_size = memory_size
    if max_depth is not None:
        config.max_loop_depth = max_depth

    output_file = output if output is not None else default_output_path(input_file)

    def show_progress(capacity: int) -> None:
        click.echo("+", nl=False)

    try:
        if verbose:
            click.echo(f"Compiling {input_file} -> {output_file}")
            click.echo(f"Cells: {config.memory_size}, max loop depth: {config.max_loop_depth}")

        compiler = Compiler(config, on_grow=None if quiet else show_progress)
        result = compiler.compile_file(input_file)
        write_com(output_file, result.image)

        if listing:
            text = Z80Disassembler().format_listing(result.image, result.load_base)
            try:
                listing.write_text(text)
            except OSError as e:
                raise BoundaryError(str(listing), f"can't write: {e.strerror or e}") from e

    except Exception as e:
        if not quiet:
            click.echo()
        handle_cli_exception(e, verbose)

    if not quiet:
        click.echo()

    if verbose:
        click.echo(
            f"Wrote {result.size} bytes to {output_file} "
            f"({result.loop_count} loops, max depth {result.max_depth}, "
            f"cells at ${result.memory_start:04X})"
        )
        if listing:
            click.echo(f"Listing: {listing}")


if __name__ == "__main__":
    main()
