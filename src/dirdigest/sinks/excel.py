"""Excel workbook sink."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from openpyxl import Workbook
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import IllegalCharacterError

from dirdigest.errors import SinkError
from dirdigest.sinks.base import RowCounter

if TYPE_CHECKING:
    from dirdigest.pipeline.records import ChecksumRecord

logger = logging.getLogger(__name__)

PATH_COLUMN = 1
DIGEST_COLUMN = 2
MAX_COLUMN_WIDTH = 80


class ExcelSink:
    """Writes (path, hex digest) rows to the first sheet of a new workbook.

    No header row: the first record lands on row 1. The workbook is only
    saved on ``close()``.
    """

    def __init__(self, output_path: Path):
        self.output_path = Path(output_path)
        self._wb = Workbook()
        self._ws = self._wb.active
        self._ws.title = "digests"
        self._counter = RowCounter()
        self._widths = {PATH_COLUMN: 0, DIGEST_COLUMN: 0}

    @property
    def rows(self) -> int:
        return self._counter.rows

    def write(self, record: ChecksumRecord) -> int:
        row = self._counter.next_row()
        hexdigest = record.hexdigest
        # lone surrogates from undecodable file names would corrupt the saved workbook
        try:
            record.path.encode("utf-8")
        except UnicodeEncodeError as e:
            raise SinkError(
                f"Cannot store row {row} ({record.path!r}): path is not valid UTF-8",
                path=record.path,
                original_error=e,
            )
        try:
            self._ws.cell(row=row, column=PATH_COLUMN, value=record.path)
            self._ws.cell(row=row, column=DIGEST_COLUMN, value=hexdigest)
        except IllegalCharacterError as e:
            raise SinkError(f"Cannot store row {row} ({record.path!r}): {e}", path=record.path, original_error=e)
        self._widths[PATH_COLUMN] = max(self._widths[PATH_COLUMN], len(record.path))
        self._widths[DIGEST_COLUMN] = max(self._widths[DIGEST_COLUMN], len(hexdigest))
        return row

    def _auto_width(self) -> None:
        for column, width in self._widths.items():
            letter = get_column_letter(column)
            self._ws.column_dimensions[letter].width = min(width + 2, MAX_COLUMN_WIDTH)

    def close(self) -> None:
        self._auto_width()
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self._wb.save(self.output_path)
        except OSError as e:
            raise SinkError(f"Cannot save workbook {self.output_path}: {e}", path=str(self.output_path), original_error=e)
        logger.info(f"Wrote {self.rows} row(s) to {self.output_path}")
