"""Supervisor that ends the result stream once every producer stopped."""

import logging
import threading
from typing import Optional

from dirdigest.pipeline.channel import Channel
from dirdigest.pipeline.group import TaskGroup

logger = logging.getLogger(__name__)


class ResultCloser:
    """Closes the result stream exactly once, after the producer group finished.

    Workers only produce or abort; they never decide when the stream as a
    whole is finished. The closer runs outside the group it waits on.
    """

    def __init__(self, group: TaskGroup, results: Channel):
        self.group = group
        self.results = results
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("ResultCloser already started")
        self._thread = threading.Thread(target=self._run, name="result-closer", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        self.group.join()
        logger.debug(f"All {len(self.group)} producer(s) stopped; closing {self.results.name}")
        self.results.close()

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)
