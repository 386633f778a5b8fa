"""Output sinks for checksum rows."""

from pathlib import Path

from dirdigest.sinks.base import DrainReport, RowCounter, Sink, drain_into
from dirdigest.sinks.delimited import DelimitedSink
from dirdigest.sinks.excel import ExcelSink

DELIMITERS = {".csv": ",", ".tsv": "\t"}


def create_sink(output_path: Path) -> Sink:
    """Pick a sink from the output suffix; anything not delimited is Excel."""
    output_path = Path(output_path)
    delimiter = DELIMITERS.get(output_path.suffix.lower())
    if delimiter is not None:
        return DelimitedSink(output_path, delimiter=delimiter)
    return ExcelSink(output_path)


__all__ = [
    "DelimitedSink",
    "DrainReport",
    "ExcelSink",
    "RowCounter",
    "Sink",
    "create_sink",
    "drain_into",
]
