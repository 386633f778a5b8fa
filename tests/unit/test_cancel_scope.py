"""Tests for CancelScope and TaskGroup first-error-wins semantics."""

import threading
import time

import pytest

from dirdigest.errors import PipelineCancelled, PipelineTimeoutError
from dirdigest.pipeline.cancel import CancelScope
from dirdigest.pipeline.group import TaskGroup


class TestCancelScope:
    """Single-assignment error slot plus shared signal."""

    def test_starts_healthy(self):
        scope = CancelScope()

        assert not scope.cancelled
        assert scope.error is None
        scope.raise_if_cancelled()  # no-op

    def test_first_error_wins(self):
        scope = CancelScope()
        first = RuntimeError("first")

        assert scope.cancel(first) is True
        assert scope.cancel(ValueError("second")) is False
        assert scope.error is first
        assert scope.cancelled

    def test_raise_if_cancelled(self):
        scope = CancelScope()
        cause = OSError("disk")
        scope.cancel(cause)

        with pytest.raises(PipelineCancelled) as exc_info:
            scope.raise_if_cancelled()
        assert exc_info.value.original_error is cause

    def test_callbacks_fire_once(self):
        scope = CancelScope()
        calls = []
        scope.on_cancel(lambda: calls.append("a"))

        scope.cancel(RuntimeError("x"))
        scope.cancel(RuntimeError("y"))

        assert calls == ["a"]

    def test_callback_after_cancel_runs_immediately(self):
        scope = CancelScope()
        scope.cancel(RuntimeError("x"))
        calls = []

        scope.on_cancel(lambda: calls.append("late"))

        assert calls == ["late"]

    def test_concurrent_cancel_keeps_one_error(self):
        scope = CancelScope()
        barrier = threading.Barrier(10)
        errors = [RuntimeError(str(i)) for i in range(10)]

        def racer(err):
            barrier.wait()
            scope.cancel(err)

        threads = [threading.Thread(target=racer, args=(e,)) for e in errors]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert scope.error in errors

    def test_timer_cancels_with_timeout_error(self):
        scope = CancelScope()
        fired = threading.Event()
        scope.on_cancel(fired.set)
        scope.start_timer(0.05)

        assert fired.wait(2.0)
        assert isinstance(scope.error, PipelineTimeoutError)

    def test_stopped_timer_never_fires(self):
        scope = CancelScope()
        scope.start_timer(0.05)
        scope.stop_timer()
        time.sleep(0.15)

        assert not scope.cancelled


class TestTaskGroup:
    """Errors escaping a task cancel the shared scope."""

    def test_success_returns_none(self):
        group = TaskGroup(CancelScope())
        ran = []
        for i in range(3):
            group.go(lambda i=i: ran.append(i), name=f"task-{i}")

        assert group.wait() is None
        assert sorted(ran) == [0, 1, 2]
        assert len(group) == 3

    def test_failure_cancels_siblings(self):
        scope = CancelScope()
        group = TaskGroup(scope)
        unwound = threading.Event()
        cancelled = threading.Event()
        scope.on_cancel(cancelled.set)

        def sibling():
            cancelled.wait()
            unwound.set()
            scope.raise_if_cancelled()

        def failing():
            raise OSError("read failed")

        group.go(sibling, name="sibling")
        group.go(failing, name="failing")
        error = group.wait()

        assert isinstance(error, OSError)
        assert unwound.is_set()

    def test_only_first_error_surfaced(self):
        scope = CancelScope()
        group = TaskGroup(scope)
        gate = threading.Event()
        cancelled = threading.Event()
        scope.on_cancel(cancelled.set)

        def first():
            raise ValueError("first")

        def second():
            gate.wait()
            raise KeyError("second")

        group.go(first, name="first")
        cancelled.wait(1.0)
        gate.set()
        group.go(second, name="second")

        assert isinstance(group.wait(), ValueError)

    def test_runs_on_named_pool_threads(self):
        group = TaskGroup(CancelScope(), max_workers=2, name="digest")
        names = []
        group.go(lambda: names.append(threading.current_thread().name), name="worker-07")
        group.wait()

        assert len(names) == 1
        assert names[0].startswith("digest")

    def test_go_returns_future(self):
        group = TaskGroup(CancelScope(), max_workers=1)
        future = group.go(lambda: None, name="noop")
        group.wait()

        assert future.done()
        assert future.exception() is None

    def test_wait_shuts_pool_down(self):
        group = TaskGroup(CancelScope(), max_workers=1)
        group.go(lambda: None, name="noop")
        group.wait()

        with pytest.raises(RuntimeError):
            group.go(lambda: None, name="late")

    def test_cancelled_task_does_not_replace_error(self):
        scope = CancelScope()
        group = TaskGroup(scope, max_workers=2)
        cause = OSError("disk")

        def unwinding():
            scope.raise_if_cancelled()

        scope.cancel(cause)
        group.go(unwinding, name="unwinding")

        assert group.wait() is cause

    def test_join_timeout(self):
        group = TaskGroup(CancelScope())
        release = threading.Event()
        group.go(release.wait, name="blocked")

        assert group.join(timeout=0.05) is False
        release.set()
        assert group.join(timeout=1.0) is True
