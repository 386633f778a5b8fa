"""Three-stage digest pipeline: discovery, worker pool, result closer."""

from dirdigest.pipeline.cancel import CancelScope
from dirdigest.pipeline.channel import Channel
from dirdigest.pipeline.closer import ResultCloser
from dirdigest.pipeline.discovery import PathDiscoverer, walk_files
from dirdigest.pipeline.group import TaskGroup
from dirdigest.pipeline.records import ChecksumRecord, PathRecord
from dirdigest.pipeline.run import PipelineResult, run_pipeline
from dirdigest.pipeline.workers import ChecksumWorkerPool

__all__ = [
    "CancelScope",
    "Channel",
    "ChecksumRecord",
    "ChecksumWorkerPool",
    "PathDiscoverer",
    "PathRecord",
    "PipelineResult",
    "ResultCloser",
    "TaskGroup",
    "run_pipeline",
    "walk_files",
]
