"""
dirdigest - parallel content digests for files matching a name pattern.

Walks a directory tree, digests every matching file on a pool of worker
threads and writes (path, digest) rows to a spreadsheet or CSV file.
"""

__version__ = "0.1.0"

from dirdigest.config import PipelineConfig
from dirdigest.pipeline import ChecksumRecord, PipelineResult, run_pipeline

__all__ = [
    "ChecksumRecord",
    "PipelineConfig",
    "PipelineResult",
    "run_pipeline",
]
