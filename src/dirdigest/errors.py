"""Error taxonomy for digest runs.

Every failure a run can report derives from ``DirdigestError`` so callers
can catch the whole family at the CLI boundary.
"""

from enum import IntEnum
from typing import Optional


class ExitCode(IntEnum):
    """Stable process exit codes for the CLI."""

    OK = 0
    PIPELINE_FAILED = 1
    USAGE = 2
    SINK_FAILED = 3
    INTERRUPTED = 130


class DirdigestError(Exception):
    """Base exception class for all dirdigest errors."""

    def __init__(self, message: str, path: Optional[str] = None, original_error: Optional[BaseException] = None):
        """
        Args:
            message: Error message
            path: Filesystem path the error relates to, if any
            original_error: Original exception if this is a wrapped error
        """
        self.message = message
        self.path = path
        self.original_error = original_error
        super().__init__(message)


class UsageError(DirdigestError):
    """Command line was incomplete or contradictory."""


class ConfigError(DirdigestError):
    """A configuration value or file is invalid."""


class DiscoveryError(DirdigestError):
    """Walking the directory tree failed."""


class ReadError(DirdigestError):
    """A matched file could not be read."""


class SinkError(DirdigestError):
    """Persisting records failed. Not part of the pipeline's cancellation group."""


class ChannelClosed(DirdigestError):
    """Put on, or second close of, a closed channel."""


class PipelineCancelled(DirdigestError):
    """A task unwound because the shared scope was cancelled."""


class PipelineTimeoutError(PipelineCancelled):
    """The run exceeded its configured timeout."""


class PipelineInterrupted(PipelineCancelled):
    """The run was interrupted from the keyboard."""
