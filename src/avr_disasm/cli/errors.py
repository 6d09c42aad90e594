"""
CLI Error Handling
==================

Provides consistent error reporting and exit codes for the command-line tool.

Copyright (c) 2026 avr-disasm Contributors
"""

import sys
import traceback
from enum import IntEnum
from typing import NoReturn

import click

from avr_disasm.errors import AvrDisasmError


class ExitCode(IntEnum):
    """Standard exit codes for the CLI."""
    SUCCESS = 0
    DISASSEMBLY_ERROR = 1   # Malformed record or undecodable instruction
    INVALID_ARGS = 2        # Invalid arguments or missing files
    INTERNAL_ERROR = 3      # Unexpected internal error


def handle_cli_exception(error: Exception, verbose: bool = False) -> NoReturn:
    """
    Report ``error`` on stderr and exit with the matching exit code.

    Args:
        error: The exception that was raised
        verbose: If True, print the full traceback for internal errors

    Raises:
        SystemExit: Always
    """
    if isinstance(error, AvrDisasmError):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.DISASSEMBLY_ERROR)

    elif isinstance(error, (click.BadParameter, FileNotFoundError, PermissionError)):
        click.echo(f"Error: {error}", err=True)
        sys.exit(ExitCode.INVALID_ARGS)

    else:
        click.echo(f"Internal error: {error}", err=True)
        if verbose:
            traceback.print_exc()
        sys.exit(ExitCode.INTERNAL_ERROR)
