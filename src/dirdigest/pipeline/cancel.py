"""Shared cancellation signal with a first-error-wins slot."""

from __future__ import annotations

import logging
import threading
from typing import Callable, List, Optional

from dirdigest.errors import PipelineCancelled, PipelineTimeoutError

logger = logging.getLogger(__name__)


class CancelScope:
    """One cancellation signal shared by every task of a run.

    The first call to ``cancel()`` stores its cause and trips the signal.
    Later causes are discarded. Callbacks registered with ``on_cancel()``
    fire once, on the cancelling thread, so blocked channel operations can
    wake up immediately instead of polling.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._error: Optional[BaseException] = None
        self._callbacks: List[Callable[[], None]] = []
        self._timer: Optional[threading.Timer] = None

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def error(self) -> Optional[BaseException]:
        """The terminal failure, or None while the run is healthy."""
        return self._error

    def cancel(self, cause: BaseException) -> bool:
        """Record ``cause`` as the failure if none is set yet, and trip the signal.

        Returns:
            True if this call set the failure, False if it was discarded.
        """
        with self._lock:
            if self._error is not None:
                logger.debug(f"Discarding later failure: {cause!r}")
                return False
            self._error = cause
            self._event.set()
            callbacks = list(self._callbacks)
            self._callbacks.clear()

        logger.debug(f"Scope cancelled by {type(cause).__name__}: {cause}")
        for callback in callbacks:
            callback()
        return True

    def on_cancel(self, callback: Callable[[], None]) -> None:
        """Run ``callback`` when the scope is cancelled (immediately if it already is)."""
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(callback)
                return
        callback()

    def raise_if_cancelled(self) -> None:
        """Raise the cancellation-derived error if the signal has tripped."""
        if self._event.is_set():
            raise PipelineCancelled(f"Cancelled: {self._error}", original_error=self._error)

    def start_timer(self, seconds: float) -> None:
        """Cancel the scope with a timeout error after ``seconds``."""
        def expire() -> None:
            self.cancel(PipelineTimeoutError(f"Run exceeded timeout of {seconds:g}s"))

        self._timer = threading.Timer(seconds, expire)
        self._timer.daemon = True
        self._timer.start()

    def stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
