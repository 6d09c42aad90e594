"""
Instruction Formatter
=====================

Renders decoded instructions as listing lines:

    0x0: ldi r24, 0xff
    0x2: rjmp .-0x2 ; 0x0
    0x4: jmp 0x68 ; 0x68

The operand helpers in this module are shared with the decode table so that
every operand is spelled the same way wherever it appears.
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from avr_disasm.disassembler.decoder import DecodedInstruction
    from avr_disasm.hexfile.records import HexRecord


# =============================================================================
# Operand Helpers
# =============================================================================

def format_register(number: int) -> str:
    """General purpose register: r0..r31."""
    return f"r{number}"


def format_register_pair(low: int) -> str:
    """Register pair written high half first, e.g. r25:r24."""
    return f"r{low + 1}:r{low}"


def format_hex(value: int) -> str:
    """Immediates and addresses: 0x.."""
    return f"{value:#x}"


def format_relative(offset: int) -> str:
    """
    Relative branch operand from the byte offset to the target.

    The offset is measured from the branch instruction itself, so a branch
    to its own address renders as ``.+0x0``.
    """
    if offset < 0:
        return f".-{-offset:#x}"
    return f".+{offset:#x}"


# =============================================================================
# Listing Lines
# =============================================================================

def format_instruction(instruction: "DecodedInstruction") -> str:
    """
    Format one decoded instruction as a listing line.

    Returns:
        ``"{address:#x}: {mnemonic} {operands}"`` with ``" ; {target:#x}"``
        appended for branches, calls and jumps
    """
    line = f"{instruction.address:#x}: {instruction.mnemonic}"
    if instruction.operands:
        line += " " + ", ".join(instruction.operands)
    if instruction.target is not None:
        line += f" ; {instruction.target:#x}"
    return line


def format_record_dump(record: "HexRecord") -> str:
    """Diagnostic dump of a parsed record (size, address, binary payload)."""
    return record.describe()
