"""Digest stage: a fixed pool of threads draining the path stream."""

from __future__ import annotations

import logging
import threading
from typing import Dict, List

from dirdigest.config import PipelineConfig
from dirdigest.pipeline.cancel import CancelScope
from dirdigest.pipeline.channel import Channel
from dirdigest.pipeline.group import TaskGroup
from dirdigest.pipeline.records import ChecksumRecord, PathRecord
from dirdigest.utils.hashing import file_digest

logger = logging.getLogger(__name__)


def worker_name(index: int) -> str:
    """1-based worker label, e.g. ``worker-03``."""
    return f"worker-{index:02d}"


class ChecksumWorkerPool:
    """W workers sharing the path stream as a work queue.

    Any idle worker takes the next path; there is no static partitioning.
    A read failure escapes the worker and cancels the whole run. Delivery
    of a finished record races cancellation, so a worker never blocks
    forever on a result stream nobody is draining.
    """

    def __init__(
        self,
        config: PipelineConfig,
        paths: Channel[PathRecord],
        results: Channel[ChecksumRecord],
        scope: CancelScope,
    ):
        self.size = config.workers
        self.algorithm = config.algorithm
        self.paths = paths
        self.results = results
        self.scope = scope
        self.names: List[str] = [worker_name(i) for i in range(1, self.size + 1)]
        self._counts: Dict[str, int] = {name: 0 for name in self.names}
        self._counts_lock = threading.Lock()

    def start(self, group: TaskGroup) -> None:
        """Launch every worker into ``group``."""
        for name in self.names:
            group.go(lambda name=name: self.run_worker(name), name=name)
        logger.debug(f"Started {self.size} worker(s) using {self.algorithm}")

    def run_worker(self, name: str) -> None:
        """Process paths until the stream is closed and drained."""
        for path in self.paths.receive(self.scope):
            digest = file_digest(path, self.algorithm)
            record = ChecksumRecord(path=path, digest=digest, worker=name)
            self.results.put(record, self.scope)
            with self._counts_lock:
                self._counts[name] += 1
        logger.debug(f"[{name}] done, {self._counts[name]} record(s)")

    @property
    def counts(self) -> Dict[str, int]:
        """Delivered records per worker."""
        with self._counts_lock:
            return dict(self._counts)
