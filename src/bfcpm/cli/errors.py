"""
CLI Error Reporting
===================

Turns an exception raised by the compiler or emulator into one message on
stderr and a process exit code, so bfc and cpmrun fail the same way.

    CompilerError             printed as-is ("file:line:col: error: ...")   1
    other BfcError            "<Stage> error: ..." or "Error: ..."          1
    bad option, missing file  "Error: ..."                                  2
    anything else             "Internal error: ..." (traceback with -v)     3
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn, Optional

import click

from bfcpm.errors import BfcError, CompilerError


class ExitCode(IntEnum):
    """Process exit codes shared by bfc and cpmrun."""
    SUCCESS = 0
    BUILD_ERROR = 1      # Compile, file boundary or emulation failure
    INVALID_ARGS = 2     # Bad option value or unusable input path
    INTERNAL_ERROR = 3   # Unexpected exception


# Failures caused by how the tool was invoked rather than by the program
USAGE_ERRORS = (click.BadParameter, FileNotFoundError, PermissionError)


def describe_error(error: Exception,
                   error_type: Optional[str] = None) -> tuple[str, ExitCode]:
    """
    Build the stderr message and exit code for an exception.

    Args:
        error: The exception raised by the tool
        error_type: Name of the failing stage for BfcError messages (e.g. "Run")
    """
    if isinstance(error, CompilerError):
        return str(error), ExitCode.BUILD_ERROR

    if isinstance(error, BfcError):
        label = f"{error_type} error" if error_type else "Error"
        return f"{label}: {error}", ExitCode.BUILD_ERROR

    if isinstance(error, USAGE_ERRORS):
        return f"Error: {error}", ExitCode.INVALID_ARGS

    return f"Internal error: {error}", ExitCode.INTERNAL_ERROR


def handle_cli_exception(
    error: Exception,
    verbose: bool = False,
    error_type: Optional[str] = None,
) -> NoReturn:
    """
    Report an exception and exit.

    Raises:
        SystemExit: Always, with the code chosen by describe_error()
    """
    message, code = describe_error(error, error_type)
    click.echo(message, err=True)
    if code is ExitCode.INTERNAL_ERROR and verbose:
        traceback.print_exc()
    sys.exit(code)
