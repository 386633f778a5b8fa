"""Sink protocol and the drain loop that feeds it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Optional, Protocol

from dirdigest.errors import SinkError

if TYPE_CHECKING:
    from dirdigest.pipeline.channel import Channel
    from dirdigest.pipeline.records import ChecksumRecord

logger = logging.getLogger(__name__)


class Sink(Protocol):
    """Anything that persists checksum rows.

    ``write`` assigns the next row index (starting at 1) and returns it.
    ``close`` finalizes the artifact. Both raise ``SinkError`` on failure.
    """

    output_path: Path

    def write(self, record: ChecksumRecord) -> int: ...

    def close(self) -> None: ...


class RowCounter:
    """Row index bookkeeping shared by sink implementations."""

    def __init__(self) -> None:
        self.rows = 0

    def next_row(self) -> int:
        self.rows += 1
        return self.rows


@dataclass
class DrainReport:
    """Outcome of draining the result stream into a sink."""

    rows_written: int = 0
    rows_discarded: int = 0
    error: Optional[SinkError] = None


def drain_into(
    results: Channel[ChecksumRecord],
    sink: Sink,
    on_record: Optional[Callable[[ChecksumRecord], None]] = None,
) -> DrainReport:
    """Consume ``results`` until closed, writing each record to ``sink``.

    After a sink failure the remaining records are discarded but the stream
    is still drained to the end, so producers never block on it. The sink is
    closed once the stream ends, even after a failure upstream.
    """
    report = DrainReport()
    for record in results:
        if report.error is not None:
            report.rows_discarded += 1
            continue
        try:
            sink.write(record)
        except SinkError as e:
            logger.error(f"Sink failed at row {report.rows_written + 1}: {e}")
            report.error = e
            report.rows_discarded += 1
            continue
        report.rows_written += 1
        if on_record is not None:
            on_record(record)

    try:
        sink.close()
    except SinkError as e:
        logger.error(f"Sink failed to finalize {sink.output_path}: {e}")
        if report.error is None:
            report.error = e

    if report.rows_discarded:
        logger.warning(f"Discarded {report.rows_discarded} record(s) after sink failure")
    return report
