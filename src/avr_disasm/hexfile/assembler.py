"""
Intel HEX Record Assembler
==========================

Merges parsed records into maximal contiguous runs.

Records are processed strictly in input order. A record extends the open
run when it has the same record type and starts exactly where the run ends;
anything else starts a new run. Records are never reordered and gaps are
never filled, so two records that would fit together numerically but arrive
out of order still produce separate runs:

    :02000000...  :02000200...  :02000800...   ->  [0x0000-0x0004) [0x0008-0x000A)
"""

import logging
from typing import Iterable, List, Optional

from avr_disasm.hexfile.records import HexRecord, RecordRun

# Logger for this module
logger = logging.getLogger(__name__)


class RecordAssembler:
    """
    Builds the program image as a list of RecordRuns.

    The assembler owns its runs; callers receive the list through `runs`
    once every record has been added.

    Example:
        >>> assembler = RecordAssembler()
        >>> for record in records:
        ...     assembler.add(record)
        >>> for run in assembler.runs:
        ...     print(f"{run.base_address:#x}: {len(run)} words")
    """

    def __init__(self) -> None:
        self._runs: List[RecordRun] = []

    @property
    def runs(self) -> List[RecordRun]:
        """The assembled runs in input order."""
        return self._runs

    @property
    def current_run(self) -> Optional[RecordRun]:
        """The run the next record may extend, if any."""
        return self._runs[-1] if self._runs else None

    def add(self, record: HexRecord) -> RecordRun:
        """
        Add a record, extending the open run or starting a new one.

        Returns:
            The run the record was placed in
        """
        run = self.current_run
        if run is not None and run.accepts(record):
            logger.debug(
                f"Merging {record.record_type.name} record at {record.address:#06x} "
                f"into run at {run.base_address:#06x}"
            )
        else:
            if run is not None:
                logger.debug(
                    f"Run break at {record.address:#06x}: open run is "
                    f"{run.record_type.name} ending at {run.end_address:#06x}"
                )
            run = RecordRun(base_address=record.address, record_type=record.record_type)
            self._runs.append(run)

        run.append(record)
        return run

    def add_all(self, records: Iterable[HexRecord]) -> None:
        """Add records in order."""
        for record in records:
            self.add(record)


def assemble_records(records: Iterable[HexRecord]) -> List[RecordRun]:
    """
    Assemble records into runs.

    Args:
        records: Parsed records in input order

    Returns:
        The minimal list of maximal contiguous same-type runs
    """
    assembler = RecordAssembler()
    assembler.add_all(records)
    return assembler.runs
