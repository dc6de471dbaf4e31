"""Read raw company records from a CSV export of the sheet."""

from __future__ import annotations

import csv
from dataclasses import dataclass
from logging import getLogger
from pathlib import Path
from typing import TYPE_CHECKING

from .layout import record_from_cells

if TYPE_CHECKING:
    from b2bsync.domain.ports import RawRecord, RecordSource

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CsvRecordSource:
    """``RecordSource`` over a CSV file laid out like the sheet, header included."""

    path: Path
    encoding: str = "utf-8-sig"

    def __call__(self) -> list[RawRecord]:
        with self.path.open(newline="", encoding=self.encoding) as handle:
            reader = csv.reader(handle)
            header = next(reader, None)
            if header is None:
                log.warning("%s is empty", self.path)
                return []
            records = [record_from_cells(row) for row in reader]
        log.info("Read %s rows from %s", len(records), self.path)
        return records


if TYPE_CHECKING:
    _source_check: RecordSource = CsvRecordSource(Path("companies.csv"))
