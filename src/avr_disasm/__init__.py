"""
AVR Disassembler - Intel HEX to AVR Assembly Listing
====================================================

This package disassembles AVR 8-bit microcontroller machine code supplied
as Intel HEX records into an address-annotated listing of mnemonics.

Main Components
---------------
- **hexfile**: Intel HEX record parsing and run assembly
    Turns `:LLAAAATT...CC` lines into contiguous runs of 16-bit words

- **disassembler**: AVR instruction decoding
    Ordered bit-pattern table, operand extraction and listing formatting

- **pipeline**: The complete parse → assemble → decode → format pass

- **cli**: The `avrdisasm` command-line tool

Quick Start
-----------
Disassemble records:
    >>> from avr_disasm import Disassembler
    >>> with open("firmware.hex") as f:
    ...     result = Disassembler().disassemble_lines(f)
    >>> for line in result.listing():
    ...     print(line)

Or use the command-line tool:
    $ avrdisasm :100000000C945C000C946E000C946E000C946E00CA
    $ avrdisasm -f firmware.hex --no-overloads

Reference Documentation
-----------------------
- AVR Instruction Set Manual (Microchip DS40002198)
- Intel Hexadecimal Object File Format Specification, Rev. A

Copyright (c) 2026 avr-disasm Contributors
"""

__version__ = "1.0.0"

# =============================================================================
# Public API Exports
# =============================================================================

from avr_disasm.errors import (
    AvrDisasmError,
    RecordField,
    RecordFormatError,
    ChecksumError,
    DecodeError,
    UnknownOpcodeError,
    TruncatedInstructionError,
)
from avr_disasm.config import DisassemblerConfig
from avr_disasm.hexfile import (
    HexRecord,
    RecordRun,
    RecordType,
    RecordAssembler,
    parse_record,
    parse_records,
    parse_file,
    assemble_records,
)
from avr_disasm.disassembler import (
    DecodedInstruction,
    InstructionDecoder,
    WordStream,
    format_instruction,
    format_record_dump,
)
from avr_disasm.pipeline import Disassembler, DisassemblyResult, RunResult

__all__ = [
    "__version__",
    # Errors
    "AvrDisasmError",
    "RecordField",
    "RecordFormatError",
    "ChecksumError",
    "DecodeError",
    "UnknownOpcodeError",
    "TruncatedInstructionError",
    # Configuration
    "DisassemblerConfig",
    # Intel HEX
    "HexRecord",
    "RecordRun",
    "RecordType",
    "RecordAssembler",
    "parse_record",
    "parse_records",
    "parse_file",
    "assemble_records",
    # Decoding
    "DecodedInstruction",
    "InstructionDecoder",
    "WordStream",
    "format_instruction",
    "format_record_dump",
    # Pipeline
    "Disassembler",
    "DisassemblyResult",
    "RunResult",
]
