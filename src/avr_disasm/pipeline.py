"""
Disassembly Pipeline
====================

Connects the stages into one pass:

    text lines -> parse_records -> assemble_records -> WordStream
               -> InstructionDecoder -> format_instruction -> text lines

All records are parsed and assembled before decoding starts. A malformed
record raises immediately. Decoding then proceeds run by run; a decode
error ends its run, and the outcome of every run is recorded in a RunResult
instead of being raised. By default the pass stops at the first failing
run; with ``continue_on_error`` the remaining runs are still decoded.

Example:
    >>> result = Disassembler().disassemble_lines([":020000000000FE"])
    >>> result.listing()
    ['0x0: nop']
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from avr_disasm.config import DisassemblerConfig
from avr_disasm.disassembler.decoder import DecodedInstruction, InstructionDecoder
from avr_disasm.disassembler.formatter import format_instruction
from avr_disasm.disassembler.stream import WordStream
from avr_disasm.errors import DecodeError
from avr_disasm.hexfile.assembler import assemble_records
from avr_disasm.hexfile.parser import parse_records
from avr_disasm.hexfile.records import HexRecord, RecordRun, RecordType

# Logger for this module
logger = logging.getLogger(__name__)

InstructionCallback = Callable[[DecodedInstruction], None]


# =============================================================================
# Results
# =============================================================================

@dataclass
class RunResult:
    """
    Outcome of decoding one run.

    Attributes:
        run: The run that was decoded
        instructions: Instructions decoded before the run ended or failed
        error: The decode error that ended the run, if any
        skipped: True if the run was not decoded (non-data record type)
    """
    run: RecordRun
    instructions: List[DecodedInstruction] = field(default_factory=list)
    error: Optional[DecodeError] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class DisassemblyResult:
    """
    Outcome of a whole pass.

    Attributes:
        records: The parsed records in input order
        runs: Per-run results for every run that was visited; runs after a
            failure are absent unless continue_on_error is set
    """
    records: List[HexRecord] = field(default_factory=list)
    runs: List[RunResult] = field(default_factory=list)

    @property
    def errors(self) -> List[DecodeError]:
        return [r.error for r in self.runs if r.error is not None]

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def instructions(self) -> List[DecodedInstruction]:
        return [instr for r in self.runs for instr in r.instructions]

    def listing(self) -> List[str]:
        """Formatted listing lines for every decoded instruction."""
        return [format_instruction(instr) for instr in self.instructions]


# =============================================================================
# Disassembler
# =============================================================================

class Disassembler:
    """
    Runs the full parse → assemble → decode → format pass.

    Attributes:
        config: The settings in effect
        decoder: The instruction decoder built from the settings
    """

    def __init__(self, config: Optional[DisassemblerConfig] = None):
        self.config = config or DisassemblerConfig()
        self.decoder = InstructionDecoder(overloads_enabled=self.config.overloads_enabled)

    def load(self, lines: Iterable[str]) -> List[HexRecord]:
        """
        Parse Intel HEX lines.

        Raises:
            RecordFormatError: At the first malformed record
        """
        return parse_records(lines, strict_checksum=self.config.strict_checksum)

    def should_decode(self, run: RecordRun) -> bool:
        """True if ``run`` holds program words to be decoded."""
        return self.config.decode_all_types or run.record_type == RecordType.DATA

    def decode_run(
        self,
        run: RecordRun,
        on_instruction: Optional[InstructionCallback] = None,
    ) -> RunResult:
        """
        Decode one run until it is exhausted or a decode error occurs.

        ``on_instruction`` is called for each instruction as soon as it is
        decoded, before any later error in the same run.
        """
        result = RunResult(run=run)
        stream = WordStream(run)
        try:
            for instr in self.decoder.iter_decode(stream):
                result.instructions.append(instr)
                if on_instruction is not None:
                    on_instruction(instr)
        except DecodeError as e:
            logger.debug(f"Run at {run.base_address:#06x} stopped: {e}")
            result.error = e
        return result

    def disassemble_runs(
        self,
        runs: Iterable[RecordRun],
        on_instruction: Optional[InstructionCallback] = None,
    ) -> List[RunResult]:
        """
        Decode runs in order.

        Returns:
            One RunResult per visited run. Without continue_on_error, the
            list ends at the first failing run.
        """
        results = []
        for run in runs:
            if not self.should_decode(run):
                logger.debug(
                    f"Skipping {run.record_type.get_description()} run at {run.base_address:#06x}"
                )
                results.append(RunResult(run=run, skipped=True))
                continue

            logger.debug(f"Decoding run at {run.base_address:#06x} ({len(run)} words)")
            result = self.decode_run(run, on_instruction)
            results.append(result)

            if result.error is not None and not self.config.continue_on_error:
                break
        return results

    def disassemble_records(
        self,
        records: List[HexRecord],
        on_instruction: Optional[InstructionCallback] = None,
    ) -> DisassemblyResult:
        """Assemble parsed records into runs and decode them."""
        runs = assemble_records(records)
        logger.debug(f"Assembled {len(records)} records into {len(runs)} runs")
        return DisassemblyResult(
            records=records,
            runs=self.disassemble_runs(runs, on_instruction),
        )

    def disassemble_lines(
        self,
        lines: Iterable[str],
        on_instruction: Optional[InstructionCallback] = None,
    ) -> DisassemblyResult:
        """
        Parse, assemble and decode Intel HEX lines.

        Raises:
            RecordFormatError: If a record is malformed (nothing is decoded)
        """
        return self.disassemble_records(self.load(lines), on_instruction)
