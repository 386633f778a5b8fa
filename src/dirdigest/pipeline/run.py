"""Run orchestration: wire discovery, workers, closer and sink together."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional

from dirdigest.config import PipelineConfig
from dirdigest.errors import PipelineInterrupted, SinkError
from dirdigest.pipeline.cancel import CancelScope
from dirdigest.pipeline.channel import Channel
from dirdigest.pipeline.closer import ResultCloser
from dirdigest.pipeline.discovery import PathDiscoverer
from dirdigest.pipeline.group import TaskGroup
from dirdigest.pipeline.records import ChecksumRecord, PathRecord
from dirdigest.pipeline.workers import ChecksumWorkerPool
from dirdigest.sinks.base import Sink, drain_into

logger = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Summary of one run."""

    rows_written: int = 0
    paths_discovered: int = 0
    worker_counts: Dict[str, int] = field(default_factory=dict)
    elapsed_s: float = 0.0
    error: Optional[BaseException] = None  # first pipeline failure
    sink_error: Optional[SinkError] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.sink_error is None

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "rows_written": self.rows_written,
            "paths_discovered": self.paths_discovered,
            "worker_counts": dict(self.worker_counts),
            "elapsed_s": round(self.elapsed_s, 3),
            "error": str(self.error) if self.error else None,
            "error_type": type(self.error).__name__ if self.error else None,
            "sink_error": str(self.sink_error) if self.sink_error else None,
        }


def run_pipeline(
    config: PipelineConfig,
    sink: Sink,
    on_record: Optional[Callable[[ChecksumRecord], None]] = None,
) -> PipelineResult:
    """Digest every matching file under ``config.directory`` into ``sink``.

    Discovery and the worker pool form one task group sharing a
    ``CancelScope``; the first failure in either cancels the rest and is
    returned as ``result.error``. The calling thread drains the result
    stream into the sink until the closer ends it. Sink failures do not
    cancel the pipeline and are returned separately as ``result.sink_error``.

    Raises:
        KeyboardInterrupt: After cancelling and draining, if interrupted.
        Exception: Anything other than ``SinkError`` raised by the sink, after
            the run has been cancelled and shut down.
    """
    started = time.monotonic()
    scope = CancelScope()
    paths: Channel[PathRecord] = Channel(config.path_buffer, name="path stream")
    results: Channel[ChecksumRecord] = Channel(config.result_buffer, name="result stream")

    # discovery plus one thread per worker
    group = TaskGroup(scope, max_workers=config.workers + 1, name="dirdigest")
    discoverer = PathDiscoverer(config, paths, scope)
    pool = ChecksumWorkerPool(config, paths, results, scope)
    closer = ResultCloser(group, results)

    group.go(discoverer.run, name="discovery")
    pool.start(group)
    closer.start()
    if config.timeout is not None:
        scope.start_timer(config.timeout)

    logger.info(f"Pipeline started: {config.workers} worker(s), pattern '{config.pattern}'")
    try:
        report = drain_into(results, sink, on_record=on_record)
    except BaseException as e:
        if isinstance(e, KeyboardInterrupt):
            scope.cancel(PipelineInterrupted("Interrupted by user"))
        else:
            logger.error(f"Draining results failed with {type(e).__name__}; cancelling run")
            scope.cancel(e)
        # producers unwind on the scope; finish draining so the closer can run
        for _ in results:
            pass
        closer.join()
        group.wait()
        raise
    finally:
        scope.stop_timer()

    closer.join()
    error = group.wait()

    result = PipelineResult(
        rows_written=report.rows_written,
        paths_discovered=discoverer.discovered,
        worker_counts=pool.counts,
        elapsed_s=time.monotonic() - started,
        error=error,
        sink_error=report.error,
    )
    if error is not None:
        logger.error(f"Pipeline failed: {error}")
    else:
        logger.info(
            f"Pipeline finished: {result.rows_written} row(s) from "
            f"{result.paths_discovered} file(s) in {result.elapsed_s:.2f}s"
        )
    return result
