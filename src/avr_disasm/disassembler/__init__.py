"""
AVR Disassembler Module
=======================

This module decodes AVR 8-bit instruction words into assembly mnemonics.

Usage:
    from avr_disasm.disassembler import InstructionDecoder, WordStream, format_instruction

    decoder = InstructionDecoder()
    for instr in decoder.iter_decode(WordStream(run)):
        print(format_instruction(instr))

Copyright (c) 2026 avr-disasm Contributors
"""

from .decoder import DecodedInstruction, InstructionDecoder
from .formatter import format_instruction, format_record_dump
from .opcodes import INSTRUCTION_TABLE, build_instruction_table
from .patterns import InstructionPattern, decode_displacement, branch_target
from .stream import WordStream

__all__ = [
    "DecodedInstruction",
    "InstructionDecoder",
    "format_instruction",
    "format_record_dump",
    "INSTRUCTION_TABLE",
    "build_instruction_table",
    "InstructionPattern",
    "decode_displacement",
    "branch_target",
    "WordStream",
]
