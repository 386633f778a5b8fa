"""CSV / TSV sink."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from dirdigest.errors import SinkError
from dirdigest.sinks.base import RowCounter

if TYPE_CHECKING:
    from dirdigest.pipeline.records import ChecksumRecord

logger = logging.getLogger(__name__)


class DelimitedSink:
    """Streams (path, hex digest) rows to a delimited text file, no header."""

    def __init__(self, output_path: Path, delimiter: str = ","):
        self.output_path = Path(output_path)
        self.delimiter = delimiter
        self._counter = RowCounter()
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self._fh = open(self.output_path, "w", encoding="utf-8", newline="")
        except OSError as e:
            raise SinkError(f"Cannot open {self.output_path}: {e}", path=str(self.output_path), original_error=e)
        self._writer = csv.writer(self._fh, delimiter=delimiter)

    @property
    def rows(self) -> int:
        return self._counter.rows

    def write(self, record: ChecksumRecord) -> int:
        row = self._counter.next_row()
        try:
            self._writer.writerow([record.path, record.hexdigest])
        except (OSError, UnicodeEncodeError) as e:
            raise SinkError(f"Cannot write row {row} ({record.path!r}): {e}", path=record.path, original_error=e)
        return row

    def close(self) -> None:
        try:
            self._fh.close()
        except OSError as e:
            raise SinkError(f"Cannot close {self.output_path}: {e}", path=str(self.output_path), original_error=e)
        logger.info(f"Wrote {self.rows} row(s) to {self.output_path}")
