"""
Intel HEX Checksum Calculations
===============================

The record checksum is the two's complement of the least significant byte
of the sum of every byte in the record (count, both address bytes, type and
data), so that all bytes including the checksum sum to zero modulo 256.

Checksums are read but do not gate input by default: a record with a wrong
checksum is still decoded. `analyze_record_checksum()` produces a report the
parser uses to log a warning, or to raise in strict mode.
"""

from dataclasses import dataclass


@dataclass
class ChecksumAnalysis:
    """
    Result of comparing a stored record checksum with the computed one.

    Attributes:
        is_valid: True if the checksum matches
        stored_checksum: The checksum written in the record
        calculated_checksum: The checksum computed from the record bytes
        message: Human-readable explanation
    """
    is_valid: bool
    stored_checksum: int
    calculated_checksum: int
    message: str = ""


def calculate_record_checksum(
    byte_count: int,
    address: int,
    record_type: int,
    data: bytes,
) -> int:
    """
    Calculate the checksum byte of an Intel HEX record.

    Args:
        byte_count: Number of data bytes
        address: 16-bit load address
        record_type: Record type byte
        data: The data bytes in record order

    Returns:
        The checksum byte (0-255)

    Example:
        >>> calculate_record_checksum(4, 0x0000, 0x00, bytes([1, 2, 3, 4]))
        242
    """
    total = byte_count + (address >> 8) + (address & 0xFF) + record_type + sum(data)
    return (-total) & 0xFF


def analyze_record_checksum(
    stored: int,
    byte_count: int,
    address: int,
    record_type: int,
    data: bytes,
) -> ChecksumAnalysis:
    """
    Compare a stored checksum against the calculated value.

    Returns:
        ChecksumAnalysis describing the comparison
    """
    calculated = calculate_record_checksum(byte_count, address, record_type, data)
    if stored == calculated:
        return ChecksumAnalysis(
            is_valid=True,
            stored_checksum=stored,
            calculated_checksum=calculated,
            message="Checksum valid",
        )
    return ChecksumAnalysis(
        is_valid=False,
        stored_checksum=stored,
        calculated_checksum=calculated,
        message=f"Checksum mismatch: stored 0x{stored:02X}, calculated 0x{calculated:02X}",
    )
