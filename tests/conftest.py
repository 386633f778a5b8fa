"""
Pytest fixtures and configuration for dirdigest tests.
Provides common test utilities and shared fixtures.
"""

import hashlib
import os
import time
from pathlib import Path
from typing import List

import pytest

from dirdigest.config import PipelineConfig
from dirdigest.pipeline.records import ChecksumRecord


def md5_hex(data: bytes) -> str:
    return hashlib.md5(data).hexdigest()


class ListSink:
    """In-memory sink that records every row it receives."""

    def __init__(self, output_path: Path = Path("memory.xlsx"), delay: float = 0.0):
        self.output_path = output_path
        self.delay = delay
        self.records: List[ChecksumRecord] = []
        self.closed = False

    def write(self, record: ChecksumRecord) -> int:
        if self.delay:
            time.sleep(self.delay)
        self.records.append(record)
        return len(self.records)

    def close(self) -> None:
        self.closed = True

    def pairs(self) -> set:
        return {(r.path, r.hexdigest) for r in self.records}


@pytest.fixture
def list_sink():
    """Fresh in-memory sink."""
    return ListSink()


@pytest.fixture
def make_sink():
    """Factory for in-memory sinks, e.g. ``make_sink(delay=0.05)``."""
    return ListSink


@pytest.fixture
def log_tree(tmp_path):
    """Root with x.log ("hello"), y.log ("world") and z.txt ("skip")."""
    root = tmp_path / "root"
    root.mkdir()
    (root / "x.log").write_bytes(b"hello")
    (root / "y.log").write_bytes(b"world")
    (root / "z.txt").write_bytes(b"skip")
    return root


@pytest.fixture
def nested_tree(tmp_path):
    """Create a nested directory structure with mixed file types."""
    root = tmp_path / "nested"
    (root / "bdir").mkdir(parents=True)
    (root / "docs" / "deep" / "er").mkdir(parents=True)
    (root / "empty_dir").mkdir()
    # directory whose name matches *.txt must never be emitted itself
    (root / "archive.txt").mkdir()

    files = {
        root / "top.txt": b"top level",
        root / "bdir" / "a.txt": b"inside bdir",
        root / "docs" / "readme.md": b"# readme",
        root / "docs" / "deep" / "notes.txt": b"deep notes",
        root / "docs" / "deep" / "er" / "data.bin": bytes(range(256)),
        root / "docs" / "deep" / "er" / "empty.txt": b"",
        root / "archive.txt" / "inner.txt": b"inner",
    }
    for path, content in files.items():
        path.write_bytes(content)
    return root


@pytest.fixture
def many_files(tmp_path):
    """Create 60 small files spread over a few directories."""
    root = tmp_path / "many"
    for d in range(3):
        sub = root / f"d{d}"
        sub.mkdir(parents=True)
        for i in range(20):
            (sub / f"f{i:02d}.dat").write_bytes(f"content-{d}-{i}".encode() * (i + 1))
    return root


@pytest.fixture
def make_config(tmp_path):
    """Factory for PipelineConfig with a throwaway output path."""
    def _make(directory, **kwargs):
        kwargs.setdefault("output", tmp_path / "out" / "digests.xlsx")
        return PipelineConfig(directory=directory, **kwargs)
    return _make


# Platform-specific fixtures
@pytest.fixture
def unix_only():
    """Skip test if not running on Unix-like system."""
    if os.name == 'nt':
        pytest.skip("Unix-only test")
