"""
AVR Instruction Decoder
=======================

Decodes AVR instruction words pulled from a WordStream into
DecodedInstruction objects.

Decoding one instruction:
    1. Pull the opcode word with `advance()`.
    2. Walk the ordered instruction table; the first entry whose literal
       bits, overload setting and field condition all accept the word wins.
    3. Two-word instructions (lds, sts, jmp, call) pull their extension
       word with a second `advance()`.
    4. The entry's renderer produces the operand strings and, for
       branches, calls and jumps, the absolute target address.

Errors are fatal for the run being decoded. There is no attempt to skip
the bad word and resynchronise:
    - UnknownOpcodeError: no entry matches the word
    - TruncatedInstructionError: the extension word is missing

Usage:
    decoder = InstructionDecoder(overloads_enabled=True)
    stream = WordStream(run)
    for instr in decoder.iter_decode(stream):
        print(format_instruction(instr))

Copyright (c) 2026 avr-disasm Contributors
"""

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

from avr_disasm.disassembler.opcodes import INSTRUCTION_TABLE
from avr_disasm.disassembler.patterns import InstructionFields, InstructionPattern
from avr_disasm.disassembler.stream import WordStream
from avr_disasm.errors import TruncatedInstructionError, UnknownOpcodeError
from avr_disasm.hexfile.records import RecordRun, RecordType

# Logger for this module
logger = logging.getLogger(__name__)


# =============================================================================
# Data Structures
# =============================================================================

@dataclass(frozen=True)
class DecodedInstruction:
    """
    A single decoded AVR instruction.

    Attributes:
        address: Byte address of the first instruction word
        mnemonic: The instruction mnemonic (e.g. "ldi", "rjmp")
        operands: Rendered operand strings in assembly order
        size_words: Instruction length in words (1 or 2)
        target: Absolute byte address for branches, calls and jumps
        raw_words: The instruction words as read from the stream
    """
    address: int
    mnemonic: str
    operands: Tuple[str, ...] = ()
    size_words: int = 1
    target: Optional[int] = None
    raw_words: Tuple[int, ...] = ()

    @property
    def size(self) -> int:
        """Instruction length in bytes."""
        return self.size_words * 2

    def __str__(self) -> str:
        if self.operands:
            return f"{self.mnemonic} {', '.join(self.operands)}"
        return self.mnemonic


# =============================================================================
# Decoder
# =============================================================================

class InstructionDecoder:
    """
    Table-driven AVR instruction decoder.

    Attributes:
        overloads_enabled: Emit pseudo-instruction names (lsl, clr, sec,
            breq, ...) where the operands allow
        table: The ordered decode table
    """

    def __init__(
        self,
        overloads_enabled: bool = True,
        table: Optional[Sequence[InstructionPattern]] = None,
    ):
        self.overloads_enabled = overloads_enabled
        self.table: List[InstructionPattern] = list(table if table is not None else INSTRUCTION_TABLE)

    def find_pattern(self, word: int) -> Optional[InstructionPattern]:
        """
        Return the first table entry that decodes ``word``.

        Returns:
            The matching InstructionPattern, or None if no entry matches
        """
        for pattern in self.table:
            if pattern.matches(word, self.overloads_enabled):
                return pattern
        return None

    def decode(self, stream: WordStream) -> DecodedInstruction:
        """
        Decode the next instruction from ``stream``.

        Args:
            stream: Cursor positioned at an opcode word

        Returns:
            The decoded instruction

        Raises:
            ValueError: If the stream is already exhausted
            UnknownOpcodeError: If no table entry matches the word
            TruncatedInstructionError: If the extension word is missing
        """
        address = stream.address
        word = stream.advance()
        if word is None:
            raise ValueError(f"No word left to decode at address {address:#x}")

        pattern = self.find_pattern(word)
        if pattern is None:
            logger.debug(f"No pattern matches 0x{word:04X} at {address:#x}")
            raise UnknownOpcodeError(address, word)

        raw_words = [word]
        extension = None
        for _ in range(pattern.extension_words):
            extension = stream.advance()
            if extension is None:
                raise TruncatedInstructionError(address, word, pattern.mnemonic)
            raw_words.append(extension)

        match = InstructionFields(
            address=address,
            word=word,
            fields=pattern.extract(word),
            extension=extension,
        )
        operands, target = pattern.render(match)

        return DecodedInstruction(
            address=address,
            mnemonic=pattern.mnemonic,
            operands=tuple(operands),
            size_words=pattern.size_words,
            target=target,
            raw_words=tuple(raw_words),
        )

    def iter_decode(self, stream: WordStream) -> Iterator[DecodedInstruction]:
        """
        Decode instructions until the stream is exhausted.

        Instructions are yielded as soon as they are decoded, so callers
        keep everything emitted before an error.
        """
        while not stream.exhausted:
            yield self.decode(stream)

    def decode_words(
        self,
        words: Sequence[int],
        start_address: int = 0,
    ) -> List[DecodedInstruction]:
        """
        Decode a plain word sequence.

        Convenience wrapper for tests and interactive use.
        """
        run = RecordRun(base_address=start_address, record_type=RecordType.DATA, words=list(words))
        return list(self.iter_decode(WordStream(run)))
