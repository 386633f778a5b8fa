"""Tests for the checksum worker pool."""

import hashlib
import threading
import time
from unittest.mock import patch

import pytest

from dirdigest.errors import ReadError
from dirdigest.pipeline.cancel import CancelScope
from dirdigest.pipeline.channel import Channel
from dirdigest.pipeline.group import TaskGroup
from dirdigest.pipeline.records import ChecksumRecord
from dirdigest.pipeline.workers import ChecksumWorkerPool, worker_name


def _feed(paths, items):
    for item in items:
        paths.put(item)
    paths.close()


class TestWorkerName:
    def test_zero_padded(self):
        assert worker_name(1) == "worker-01"
        assert worker_name(10) == "worker-10"


class TestChecksumWorkerPool:
    """Workers drain the path stream and deliver one record per path."""

    def test_one_record_per_path(self, log_tree, make_config):
        scope = CancelScope()
        paths = Channel(capacity=10)
        results = Channel(capacity=10)
        pool = ChecksumWorkerPool(make_config(log_tree, workers=3), paths, results, scope)
        group = TaskGroup(scope)

        files = [str(log_tree / n) for n in ("x.log", "y.log", "z.txt")]
        _feed(paths, files)
        pool.start(group)

        assert group.wait() is None
        results.close()
        records = list(results)

        assert sorted(r.path for r in records) == sorted(files)
        by_path = {r.path: r for r in records}
        assert by_path[str(log_tree / "x.log")].hexdigest == hashlib.md5(b"hello").hexdigest()
        assert all(r.worker in pool.names for r in records)
        assert sum(pool.counts.values()) == 3

    def test_configured_algorithm(self, log_tree, make_config):
        scope = CancelScope()
        paths = Channel(capacity=1)
        results = Channel(capacity=1)
        pool = ChecksumWorkerPool(make_config(log_tree, workers=1, algorithm="sha1"), paths, results, scope)
        group = TaskGroup(scope)

        _feed(paths, [str(log_tree / "y.log")])
        pool.start(group)
        group.wait()
        results.close()

        (record,) = list(results)
        assert record.digest == hashlib.sha1(b"world").digest()
        assert record.worker == "worker-01"

    def test_read_failure_becomes_pipeline_error(self, log_tree, make_config):
        scope = CancelScope()
        paths = Channel(capacity=10)
        results = Channel(capacity=10)
        pool = ChecksumWorkerPool(make_config(log_tree, workers=2), paths, results, scope)
        group = TaskGroup(scope)

        _feed(paths, [str(log_tree / "x.log"), str(log_tree / "gone.log")])
        pool.start(group)
        error = group.wait()

        assert isinstance(error, ReadError)
        assert error.path == str(log_tree / "gone.log")
        results.close()
        assert all(r.path != str(log_tree / "gone.log") for r in results)

    def test_blocked_delivery_abandoned_on_cancel(self, log_tree, make_config):
        """A worker stuck delivering exits once the scope is cancelled."""
        scope = CancelScope()
        paths = Channel(capacity=10)
        results = Channel(capacity=0)  # nobody drains it
        pool = ChecksumWorkerPool(make_config(log_tree, workers=1), paths, results, scope)
        group = TaskGroup(scope)

        _feed(paths, [str(log_tree / "x.log")])
        pool.start(group)
        time.sleep(0.05)
        assert group.join(timeout=0.05) is False

        cause = RuntimeError("sibling failed")
        scope.cancel(cause)

        assert group.join(timeout=2.0) is True
        assert scope.error is cause
        assert pool.counts["worker-01"] == 0
        assert len(results) == 0

    def test_idle_worker_wakes_on_cancel(self, make_config, tmp_path):
        scope = CancelScope()
        paths = Channel(capacity=0)  # never fed, never closed
        results = Channel(capacity=0)
        pool = ChecksumWorkerPool(make_config(tmp_path, workers=4), paths, results, scope)
        group = TaskGroup(scope)

        pool.start(group)
        scope.cancel(RuntimeError("discovery failed"))

        assert group.join(timeout=2.0) is True

    def test_work_shared_between_workers(self, many_files, make_config):
        """Any idle worker takes the next path; slow reads spread the load."""
        scope = CancelScope()
        paths = Channel(capacity=0)
        results = Channel(capacity=100)
        pool = ChecksumWorkerPool(make_config(many_files, workers=4), paths, results, scope)
        group = TaskGroup(scope)

        def slow_digest(path, algorithm):
            time.sleep(0.01)
            return b"\x00" * 16

        files = [str(p) for p in sorted(many_files.rglob("*.dat"))]
        with patch("dirdigest.pipeline.workers.file_digest", side_effect=slow_digest):
            pool.start(group)
            feeder = threading.Thread(target=_feed, args=(paths, files), daemon=True)
            feeder.start()
            assert group.wait() is None
            feeder.join(1.0)

        assert sum(pool.counts.values()) == len(files)
        assert sum(1 for c in pool.counts.values() if c) > 1
