"""
Intel HEX Record Definitions
============================

This module defines the data structures for Intel HEX records and the
contiguous runs they are assembled into.

Record Format
-------------
Each record is one ASCII line:

    :LLAAAATT[DD...]CC

    LL    - byte count (2 hex digits)
    AAAA  - 16-bit load address (4 hex digits)
    TT    - record type (2 hex digits, 00-05)
    DD... - LL data bytes (2*LL hex digits)
    CC    - checksum (2 hex digits), two's complement of the byte sum

Word Order
----------
AVR program memory is organised in 16-bit words stored low byte first.
The parser reads the data bytes as swapped pairs so that each pair, taken
most significant byte first, is the instruction word:

    data "0C 94 34 00"  ->  pairs (0x94, 0x0C), (0x00, 0x34)
                        ->  words 0x940C, 0x0034
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import List, Tuple

from avr_disasm.hexfile.checksum import ChecksumAnalysis, analyze_record_checksum


# =============================================================================
# Enumeration Types
# =============================================================================

class RecordType(IntEnum):
    """Intel HEX record type identifiers."""
    DATA = 0x00
    END_OF_FILE = 0x01
    EXTENDED_SEGMENT_ADDRESS = 0x02
    START_ADDRESS_80X86 = 0x03
    EXTENDED_LINEAR_ADDRESS = 0x04
    LINEAR_ADDRESS = 0x05

    def get_description(self) -> str:
        """Get a human-readable description of the record type."""
        descriptions = {
            RecordType.DATA: "Data",
            RecordType.END_OF_FILE: "End Of File",
            RecordType.EXTENDED_SEGMENT_ADDRESS: "Extended Segment Address",
            RecordType.START_ADDRESS_80X86: "Start Segment Address (80x86)",
            RecordType.EXTENDED_LINEAR_ADDRESS: "Extended Linear Address",
            RecordType.LINEAR_ADDRESS: "Start Linear Address",
        }
        return descriptions[self]


# =============================================================================
# Parsed Record
# =============================================================================

@dataclass(frozen=True)
class HexRecord:
    """
    A single parsed Intel HEX record.

    Attributes:
        address: 16-bit load address from the record header
        record_type: The record type
        payload: Data bytes as swapped pairs; pair[0] is the high byte of
            the little-endian word and pair[1] the low byte
        checksum: The checksum byte as written in the record
    """
    address: int
    record_type: RecordType
    payload: Tuple[Tuple[int, int], ...]
    checksum: int

    @property
    def byte_count(self) -> int:
        """Number of data bytes declared by the record."""
        return len(self.payload) * 2

    @property
    def words(self) -> List[int]:
        """The payload as 16-bit instruction words in ascending order."""
        return [(high << 8) | low for high, low in self.payload]

    @property
    def data(self) -> bytes:
        """The payload bytes in their original record order."""
        return bytes(b for high, low in self.payload for b in (low, high))

    @property
    def end_address(self) -> int:
        """Address one past the last byte of this record."""
        return self.address + self.byte_count

    @property
    def checksum_analysis(self) -> ChecksumAnalysis:
        """Comparison of the stored checksum with the one computed from the record."""
        return analyze_record_checksum(
            self.checksum, self.byte_count, self.address, int(self.record_type), self.data
        )

    @property
    def computed_checksum(self) -> int:
        """The checksum the record should carry."""
        return self.checksum_analysis.calculated_checksum

    @property
    def checksum_valid(self) -> bool:
        """True if the stored checksum matches the computed one."""
        return self.checksum_analysis.is_valid

    def describe(self) -> str:
        """
        Multi-line dump of the record for diagnostic output.

        Example:
            size: 2, address: 0x0, index: DATA,
            data:
                (0b00000010, 0b00000001),
                (0b00000100, 0b00000011),
            checksum: 242
        """
        lines = [
            f"size: {len(self.payload)}, address: {self.address:#x}, "
            f"index: {self.record_type.name},"
        ]
        if self.payload:
            lines.append("data:")
            for high, low in self.payload:
                lines.append(f"    ({high:#010b}, {low:#010b}),")
        lines.append(f"checksum: {self.checksum}")
        return "\n".join(lines)

    def __str__(self) -> str:
        return self.describe()


# =============================================================================
# Assembled Run
# =============================================================================

@dataclass
class RecordRun:
    """
    A maximal contiguous sequence of same-type records.

    Attributes:
        base_address: Byte address of the first word
        record_type: Type shared by every record in the run
        words: Instruction words in ascending address order
        record_count: Number of records merged into this run
    """
    base_address: int
    record_type: RecordType
    words: List[int] = field(default_factory=list)
    record_count: int = 0

    @property
    def end_address(self) -> int:
        """Byte address one past the last word."""
        return self.base_address + 2 * len(self.words)

    def address_of(self, index: int) -> int:
        """Byte address of the word at ``index``."""
        return self.base_address + 2 * index

    def accepts(self, record: HexRecord) -> bool:
        """True if ``record`` continues this run without a gap."""
        return (
            record.record_type == self.record_type
            and record.address == self.end_address
        )

    def append(self, record: HexRecord) -> None:
        """Extend the run with the words of ``record``."""
        self.words.extend(record.words)
        self.record_count += 1

    def __len__(self) -> int:
        return len(self.words)
