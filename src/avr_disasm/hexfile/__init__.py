"""
Intel HEX Handling
==================

This module reads Intel HEX text and assembles it into contiguous runs of
16-bit AVR instruction words.

Usage:
    from avr_disasm.hexfile import parse_records, assemble_records

    records = parse_records(open("firmware.hex"))
    runs = assemble_records(records)
    for run in runs:
        print(f"{run.base_address:#x}: {len(run)} words")

Copyright (c) 2026 avr-disasm Contributors
"""

from avr_disasm.hexfile.records import HexRecord, RecordRun, RecordType
from avr_disasm.hexfile.parser import (
    parse_record,
    parse_records,
    iter_records,
    parse_file,
)
from avr_disasm.hexfile.assembler import RecordAssembler, assemble_records
from avr_disasm.hexfile.checksum import (
    ChecksumAnalysis,
    analyze_record_checksum,
    calculate_record_checksum,
)

__all__ = [
    "HexRecord",
    "RecordRun",
    "RecordType",
    "parse_record",
    "parse_records",
    "iter_records",
    "parse_file",
    "RecordAssembler",
    "assemble_records",
    "ChecksumAnalysis",
    "analyze_record_checksum",
    "calculate_record_checksum",
]
