"""
AVR Disassembler Error Hierarchy
================================

This module defines the exception hierarchy for the whole package.
All exceptions inherit from AvrDisasmError, allowing callers to catch all
disassembler-related errors with a single except clause if desired.

Exception Hierarchy
-------------------
AvrDisasmError (base)
├── RecordFormatError - malformed Intel HEX record
│   └── ChecksumError - checksum mismatch (strict mode only)
└── DecodeError - instruction decoding failure
    ├── UnknownOpcodeError - no table pattern matches a word
    └── TruncatedInstructionError - extension word missing at end of run

Record errors carry the failing field, the source line and its line number
so messages can point at the offending column:

    line 3: error: calculating the address: invalid hex digits '00G0'
        :0200G0000C00F2
             ^
"""

from enum import Enum
from typing import Optional


# =============================================================================
# Base Exception Class
# =============================================================================

class AvrDisasmError(Exception):
    """
    Base exception for all disassembler errors.

        try:
            listing = Disassembler().disassemble_lines(lines)
        except AvrDisasmError as e:
            print(f"Error: {e}")
    """
    pass


# =============================================================================
# Record Parsing Exceptions
# =============================================================================

class RecordField(Enum):
    """The stage of record parsing that failed."""
    BEGINNING_OF_RECORD = "beginning of record"
    CALCULATING_THE_SIZE = "calculating the size"
    CALCULATING_THE_ADDRESS = "calculating the address"
    CALCULATING_INDEX = "calculating index"
    CALCULATING_DATA = "calculating data"
    CALCULATING_CHECKSUM = "calculating checksum"


class RecordFormatError(AvrDisasmError):
    """
    Malformed Intel HEX record.

    Attributes:
        field: Which part of the record could not be parsed
        detail: Human-readable description of the problem
        line: The record text (optional)
        line_number: 1-based line number in the input (optional)
        column: 0-based character offset of the failing field (optional)
    """

    def __init__(
        self,
        field: RecordField,
        detail: str,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.field = field
        self.detail = detail
        self.line = line
        self.line_number = line_number
        self.column = column
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        parts = []

        if self.line_number is not None:
            parts.append(f"line {self.line_number}: error: {self.field.value}: {self.detail}")
        else:
            parts.append(f"error: {self.field.value}: {self.detail}")

        if self.line is not None:
            parts.append(f"    {self.line}")
            if self.column is not None:
                parts.append(" " * (4 + self.column) + "^")

        return "\n".join(parts)

    def with_line_number(self, line_number: int) -> "RecordFormatError":
        """Return a copy of this error tagged with its input line number."""
        return type(self)(
            self.field,
            self.detail,
            line=self.line,
            line_number=line_number,
            column=self.column,
        )


class ChecksumError(RecordFormatError):
    """
    Record checksum does not match the computed value.

    Only raised when strict checksum checking is enabled; by default the
    checksum is parsed and reported but never used to reject input.
    """

    def __init__(
        self,
        expected: int,
        actual: int,
        line: Optional[str] = None,
        line_number: Optional[int] = None,
        column: Optional[int] = None,
    ):
        self.expected = expected
        self.actual = actual
        super().__init__(
            RecordField.CALCULATING_CHECKSUM,
            f"checksum mismatch: record has 0x{actual:02X}, computed 0x{expected:02X}",
            line=line,
            line_number=line_number,
            column=column,
        )

    def with_line_number(self, line_number: int) -> "ChecksumError":
        return ChecksumError(
            self.expected,
            self.actual,
            line=self.line,
            line_number=line_number,
            column=self.column,
        )


# =============================================================================
# Decoding Exceptions
# =============================================================================

class DecodeError(AvrDisasmError):
    """
    Base exception for instruction decoding failures.

    Decoding errors are fatal for the run being decoded: nothing after the
    failing word is emitted for that run.

    Attributes:
        address: Byte address of the failing instruction word
        word: The 16-bit instruction word
    """

    def __init__(self, address: int, word: int, message: str):
        self.address = address
        self.word = word
        super().__init__(message)


class UnknownOpcodeError(DecodeError):
    """No instruction pattern matches the word."""

    def __init__(self, address: int, word: int):
        super().__init__(
            address,
            word,
            f"unknown opcode 0x{word:04X} ({word:016b}) at address {address:#x}",
        )


class TruncatedInstructionError(DecodeError):
    """A two-word instruction is missing its extension word."""

    def __init__(self, address: int, word: int, mnemonic: str):
        self.mnemonic = mnemonic
        super().__init__(
            address,
            word,
            f"truncated instruction '{mnemonic}' (0x{word:04X}) at address {address:#x}: "
            f"extension word missing at end of run",
        )
