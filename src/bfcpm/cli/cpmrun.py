"""
cpmrun - Run a CP/M .COM Image in the Emulator
==============================================

Loads a program at $0100 and runs it on the emulated Z80 until it
returns to CP/M. Console output goes to stdout; console input comes from
--input or, if not given, from stdin.

Usage Examples
--------------
    $ cpmrun HELLO.COM
    $ echo "text" | cpmrun REVERSE.COM
    $ cpmrun -i "abc" --eof-byte 0 CAT.COM

Copyright (c) 2026 bfcpm Contributors
"""

from pathlib import Path
from typing import Optional

import click

from bfcpm import __version__
from bfcpm.cli import setup_logging
from bfcpm.cli.errors import handle_cli_exception
from bfcpm.cpm import CTRL_Z
from bfcpm.emulator import CPMMachine, DEFAULT_MAX_CYCLES


@click.command()
@click.argument(
    "com_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "-i", "--input", "console_input",
    default=None,
    help="Console input text (default: read stdin)",
)
@click.option(
    "--eof-byte",
    type=click.IntRange(0, 255),
    default=None,
    help=(
        f"Byte returned once input runs out, e.g. {CTRL_Z} for the CP/M ^Z "
        "convention (default: stop with an error)"
    ),
)
@click.option(
    "--max-cycles",
    type=click.IntRange(min=1),
    default=DEFAULT_MAX_CYCLES,
    show_default=True,
    help="Stop after this many T-states",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="cpmrun")
def main(
    com_file: Path,
    console_input: Optional[str],
    eof_byte: Optional[int],
    max_cycles: int,
    verbose: bool,
) -> None:
    """
    Run COM_FILE in the emulated CP/M environment.
    """
    setup_logging(verbose)

    try:
        if console_input is None:
            data = click.get_binary_stream("stdin").read()
        else:
            try:
                data = console_input.encode("latin-1")
            except UnicodeEncodeError:
                raise click.BadParameter(
                    "must be Latin-1 text", param_hint="'-i' / '--input'"
                )

        machine = CPMMachine(console_input=data, eof_byte=eof_byte)
        machine.load(com_file.read_bytes())
        result = machine.run(max_cycles=max_cycles)
    except Exception as e:
        handle_cli_exception(e, verbose, error_type="Run")

    stdout = click.get_binary_stream("stdout")
    stdout.write(result.output)
    stdout.flush()

    if verbose:
        click.echo(
            f"{result.exit_reason.name.lower()} after {result.steps} instructions, "
            f"{result.cycles} T-states",
            err=True,
        )


if __name__ == "__main__":
    main()
