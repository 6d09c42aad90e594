"""
Instruction Word Stream
=======================

A read cursor over the words of one RecordRun.

The decoder pulls the opcode word with `advance()`; two-word instructions
pull their extension word with a second `advance()`. The stream never
modifies the run it reads from.
"""

from typing import Optional

from avr_disasm.hexfile.records import RecordRun


class WordStream:
    """
    Cursor over a run's 16-bit instruction words.

    Attributes:
        run: The run being read (borrowed, never mutated)
        position: Index of the next word to be consumed
    """

    def __init__(self, run: RecordRun):
        self.run = run
        self.position = 0

    @property
    def address(self) -> int:
        """Byte address of the next word."""
        return self.run.address_of(self.position)

    @property
    def exhausted(self) -> bool:
        """True once every word has been consumed."""
        return self.position >= len(self.run.words)

    @property
    def remaining(self) -> int:
        """Number of words not yet consumed."""
        return max(len(self.run.words) - self.position, 0)

    def peek_next(self) -> Optional[int]:
        """Return the next word without consuming it, or None at end of run."""
        if self.exhausted:
            return None
        return self.run.words[self.position]

    def advance(self) -> Optional[int]:
        """Consume and return the next word, or None at end of run."""
        word = self.peek_next()
        if word is not None:
            self.position += 1
        return word

    def __repr__(self) -> str:
        return (
            f"WordStream(base={self.run.base_address:#x}, "
            f"position={self.position}/{len(self.run.words)})"
        )
