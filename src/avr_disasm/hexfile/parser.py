"""
Intel HEX Record Parser
=======================

Parses Intel HEX ASCII lines into HexRecord objects.

Each line is consumed field by field, left to right. The first field that
cannot be read aborts the parse with a RecordFormatError naming that field:

    :  LL  AAAA  TT  DD...  CC
    |  |   |     |   |      +-- CALCULATING_CHECKSUM
    |  |   |     |   +--------- CALCULATING_DATA
    |  |   |     +------------- CALCULATING_INDEX
    |  |   +------------------- CALCULATING_THE_ADDRESS
    |  +----------------------- CALCULATING_THE_SIZE
    +-------------------------- BEGINNING_OF_RECORD

The checksum is parsed but, unless strict checking is requested, a mismatch
is only logged.

Example:
    >>> record = parse_record(":020000000C945E")
    >>> record.words
    [37900]
"""

import logging
import string
from pathlib import Path
from typing import Iterable, Iterator, List, Union

from avr_disasm.errors import ChecksumError, RecordField, RecordFormatError
from avr_disasm.hexfile.records import HexRecord, RecordType

# Logger for this module
logger = logging.getLogger(__name__)

START_CODE = ":"

# Character offsets of the fixed header fields
SIZE_OFFSET = 1
ADDRESS_OFFSET = 3
TYPE_OFFSET = 7
DATA_OFFSET = 9

_HEX_DIGITS = frozenset(string.hexdigits)


def _read_hex(line: str, start: int, length: int, field: RecordField) -> int:
    """
    Read ``length`` hex digits at ``start``.

    Raises:
        RecordFormatError: If the line ends early or the digits are not hex
    """
    text = line[start:start + length]
    if len(text) < length:
        raise RecordFormatError(
            field,
            f"line ends after {len(line)} characters, expected {length} hex digits at offset {start}",
            line=line,
            column=min(start, len(line)),
        )
    if not _HEX_DIGITS.issuperset(text):
        raise RecordFormatError(
            field,
            f"invalid hex digits '{text}'",
            line=line,
            column=start,
        )
    return int(text, 16)


def parse_record(
    line: str,
    strict_checksum: bool = False,
) -> HexRecord:
    """
    Parse one Intel HEX line.

    Args:
        line: The record text; trailing whitespace is ignored
        strict_checksum: Raise ChecksumError when the checksum is wrong

    Returns:
        The parsed HexRecord

    Raises:
        RecordFormatError: If any field cannot be parsed
        ChecksumError: If strict_checksum is set and the checksum is wrong
    """
    line = line.rstrip()

    if not line.startswith(START_CODE):
        raise RecordFormatError(
            RecordField.BEGINNING_OF_RECORD,
            f"record must begin with '{START_CODE}'",
            line=line,
            column=0,
        )

    byte_count = _read_hex(line, SIZE_OFFSET, 2, RecordField.CALCULATING_THE_SIZE)
    address = _read_hex(line, ADDRESS_OFFSET, 4, RecordField.CALCULATING_THE_ADDRESS)
    type_byte = _read_hex(line, TYPE_OFFSET, 2, RecordField.CALCULATING_INDEX)

    try:
        record_type = RecordType(type_byte)
    except ValueError:
        raise RecordFormatError(
            RecordField.CALCULATING_INDEX,
            f"unexpected record type 0x{type_byte:02X}",
            line=line,
            column=TYPE_OFFSET,
        ) from None

    if byte_count % 2:
        raise RecordFormatError(
            RecordField.CALCULATING_DATA,
            f"odd byte count {byte_count} cannot form whole instruction words",
            line=line,
            column=SIZE_OFFSET,
        )

    # Each word is read high byte (offset +2) first, then low byte (offset +0)
    payload = []
    for offset in range(DATA_OFFSET, DATA_OFFSET + byte_count * 2, 4):
        high = _read_hex(line, offset + 2, 2, RecordField.CALCULATING_DATA)
        low = _read_hex(line, offset, 2, RecordField.CALCULATING_DATA)
        payload.append((high, low))

    checksum_offset = DATA_OFFSET + byte_count * 2
    checksum = _read_hex(line, checksum_offset, 2, RecordField.CALCULATING_CHECKSUM)

    if len(line) > checksum_offset + 2:
        logger.debug(f"Ignoring {len(line) - checksum_offset - 2} characters after checksum")

    record = HexRecord(
        address=address,
        record_type=record_type,
        payload=tuple(payload),
        checksum=checksum,
    )

    analysis = record.checksum_analysis
    if not analysis.is_valid:
        if strict_checksum:
            raise ChecksumError(
                expected=analysis.calculated_checksum,
                actual=analysis.stored_checksum,
                line=line,
                column=checksum_offset,
            )
        logger.warning(f"{analysis.message} in record at address {address:#06x}")

    logger.debug(
        f"Parsed {record_type.get_description()} record: {byte_count} bytes at {address:#06x}"
    )
    return record


def iter_records(
    lines: Iterable[str],
    strict_checksum: bool = False,
) -> Iterator[HexRecord]:
    """
    Parse records from an iterable of lines, skipping blank lines.

    Errors are re-raised tagged with the 1-based line number.
    """
    for line_number, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield parse_record(line.strip(), strict_checksum=strict_checksum)
        except RecordFormatError as e:
            raise e.with_line_number(line_number) from None


def parse_records(
    lines: Iterable[str],
    strict_checksum: bool = False,
) -> List[HexRecord]:
    """
    Parse every record in ``lines``.

    Parsing stops at the first malformed record.

    Returns:
        Records in input order
    """
    return list(iter_records(lines, strict_checksum=strict_checksum))


def parse_file(
    filepath: Union[str, Path],
    strict_checksum: bool = False,
) -> List[HexRecord]:
    """
    Read and parse an Intel HEX file from disk.

    Raises:
        FileNotFoundError: If the file doesn't exist
        RecordFormatError: If a record is malformed
    """
    filepath = Path(filepath)
    text = filepath.read_text(encoding="ascii")
    logger.debug(f"Read {filepath} ({len(text)} characters)")
    return parse_records(text.splitlines(), strict_checksum=strict_checksum)
