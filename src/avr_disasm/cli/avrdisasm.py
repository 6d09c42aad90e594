"""
avrdisasm - AVR Intel HEX Disassembler Command-Line Interface
=============================================================

This module implements the command-line interface for the AVR
disassembler. Records are taken from the command line, from a file, or
from standard input.

Usage Examples
--------------
Disassemble records given as arguments:
    $ avrdisasm :100000000C945C000C946E000C946E000C946E00CA

Disassemble a whole HEX file:
    $ avrdisasm -f firmware.hex

Read from standard input:
    $ cat firmware.hex | avrdisasm -f -

Dump the parsed records before the listing:
    $ avrdisasm -a :0400000001020304F2

Canonical mnemonics only (add r0, r0 instead of lsl r0):
    $ avrdisasm -f firmware.hex --no-overloads

Keep decoding later runs after an undecodable word:
    $ avrdisasm -f firmware.hex --keep-going

Environment
-----------
AVR_DISASM_OVERLOADS, AVR_DISASM_KEEP_GOING and AVR_DISASM_STRICT_CHECKSUM
set the defaults (see DisassemblerConfig.from_env); flags given on the
command line override them.

Copyright (c) 2026 avr-disasm Contributors
"""

import logging
import sys
from typing import Optional, TextIO, Tuple

import click
from click.core import ParameterSource

from avr_disasm import __version__
from avr_disasm.cli.errors import ExitCode, handle_cli_exception
from avr_disasm.config import DisassemblerConfig
from avr_disasm.disassembler.formatter import format_instruction, format_record_dump
from avr_disasm.errors import AvrDisasmError
from avr_disasm.pipeline import Disassembler


def setup_logging(verbose: bool) -> None:
    """Configure logging based on verbosity."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s" if verbose else "%(message)s",
        stream=sys.stderr,
    )


def _given(ctx: click.Context, name: str) -> bool:
    """True if option ``name`` was passed on the command line."""
    return ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE


# =============================================================================
# CLI Definition
# =============================================================================

@click.command()
@click.pass_context
@click.argument("records", nargs=-1)
@click.option(
    "-f", "--file",
    "hex_file",
    type=click.File("r"),
    default=None,
    help="Read records from an Intel HEX file ('-' for stdin)",
)
@click.option(
    "-a", "--advanced",
    is_flag=True,
    help="Print a dump of every parsed record before the listing",
)
@click.option(
    "--overloads/--no-overloads",
    default=True,
    help="Use pseudo-instruction names such as lsl, clr, sec, breq (default: enabled, env: AVR_DISASM_OVERLOADS)",
)
@click.option(
    "--keep-going",
    is_flag=True,
    help="After a decode error, continue with the next run (env: AVR_DISASM_KEEP_GOING)",
)
@click.option(
    "--strict-checksum",
    is_flag=True,
    help="Reject records whose checksum does not match (env: AVR_DISASM_STRICT_CHECKSUM)",
)
@click.option(
    "-v", "--verbose",
    is_flag=True,
    help="Verbose output",
)
@click.version_option(version=__version__, prog_name="avrdisasm")
def main(
    ctx: click.Context,
    records: Tuple[str, ...],
    hex_file: Optional[TextIO],
    advanced: bool,
    overloads: bool,
    keep_going: bool,
    strict_checksum: bool,
    verbose: bool,
) -> None:
    """
    Disassemble AVR machine code given as Intel HEX records.

    RECORDS are Intel HEX records of the form :LLAAAATT[DD...]CC.
    Records are assembled in the order given.

    Examples:

        # Disassemble two records
        avrdisasm :020000000C945E :020002003400C8

        # Disassemble a file without pseudo-instruction names
        avrdisasm -f firmware.hex --no-overloads
    """
    setup_logging(verbose)

    lines = list(records)
    if hex_file is not None:
        lines.extend(hex_file.read().splitlines())

    if not lines:
        raise click.UsageError("No records given. Pass records as arguments or use --file.")

    try:
        config = DisassemblerConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e))

    # Flags given on the command line override the environment
    if _given(ctx, "overloads"):
        config.overloads_enabled = overloads
    if _given(ctx, "keep_going"):
        config.continue_on_error = keep_going
    if _given(ctx, "strict_checksum"):
        config.strict_checksum = strict_checksum

    disassembler = Disassembler(config)

    try:
        parsed = disassembler.load(lines)
    except AvrDisasmError as e:
        handle_cli_exception(e, verbose)

    if verbose:
        click.echo(f"Records: {len(parsed)}", err=True)
        click.echo(f"Overloads: {'enabled' if config.overloads_enabled else 'disabled'}", err=True)

    if advanced:
        for record in parsed:
            click.echo(format_record_dump(record))
        click.echo()

    # Each line is printed as soon as it is decoded, so output before an
    # error is kept
    try:
        result = disassembler.disassemble_records(
            parsed,
            on_instruction=lambda instr: click.echo(format_instruction(instr)),
        )
    except Exception as e:
        handle_cli_exception(e, verbose)

    for error in result.errors:
        click.echo(f"Error: {error}", err=True)

    if verbose:
        click.echo(f"Instructions disassembled: {len(result.instructions)}", err=True)

    if not result.ok:
        sys.exit(ExitCode.DISASSEMBLY_ERROR)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    main()
