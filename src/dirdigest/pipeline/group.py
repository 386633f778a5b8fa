"""Thread pool whose first failure cancels every sibling."""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Callable, Dict, List, Optional

from dirdigest.errors import PipelineCancelled
from dirdigest.pipeline.cancel import CancelScope

logger = logging.getLogger(__name__)


class TaskGroup:
    """Runs long-lived tasks on a ``ThreadPoolExecutor`` sharing one ``CancelScope``.

    Every task occupies a pool thread until it returns, so the pool must be
    sized for all tasks submitted to it. An exception escaping a task is
    offered to the scope as soon as its future completes; only the first one
    is kept. ``join()`` is the completion handle the closer waits on.
    """

    def __init__(self, scope: CancelScope, max_workers: Optional[int] = None, name: str = "tasks") -> None:
        self.scope = scope
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name)
        self._futures: Dict[Future, str] = {}

    def go(self, fn: Callable[[], None], name: str) -> Future:
        """Submit ``fn`` as the task called ``name``."""
        future = self._executor.submit(fn)
        self._futures[future] = name
        future.add_done_callback(self._on_done)
        return future

    def _on_done(self, future: Future) -> None:
        error = future.exception()
        if error is None:
            return
        name = self._futures.get(future, "task")
        if isinstance(error, PipelineCancelled):
            logger.debug(f"[{name}] unwound: {error}")
            self.scope.cancel(error)
        elif self.scope.cancel(error):
            logger.error(f"[{name}] failed: {error}")
        else:
            logger.debug(f"[{name}] failed after cancellation: {error}")

    def _snapshot(self) -> List[Future]:
        return list(self._futures)

    def join(self, timeout: Optional[float] = None) -> bool:
        """Block until every submitted task has finished.

        Returns:
            True if all tasks finished, False if ``timeout`` elapsed first.
        """
        _, not_done = wait(self._snapshot(), timeout=timeout)
        return not not_done

    def wait(self) -> Optional[BaseException]:
        """Join every task, shut the pool down and return the first failure, if any."""
        futures = self._snapshot()
        wait(futures)
        # done callbacks may still be running; offer each failure again
        for future in futures:
            error = future.exception()
            if error is not None:
                self.scope.cancel(error)
        self._executor.shutdown(wait=True)
        return self.scope.error

    def __len__(self) -> int:
        return len(self._futures)
