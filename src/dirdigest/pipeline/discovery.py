"""Discovery stage: walk the root and stream matching file paths."""

import logging
import os
from typing import Callable, Iterator

from dirdigest.config import PipelineConfig
from dirdigest.errors import DiscoveryError
from dirdigest.pipeline.cancel import CancelScope
from dirdigest.pipeline.channel import Channel
from dirdigest.pipeline.records import PathRecord

logger = logging.getLogger(__name__)


def _raise_walk_error(err: OSError) -> None:
    raise DiscoveryError(f"Cannot traverse {err.filename}: {err.strerror or err}", path=err.filename, original_error=err)


def walk_files(root: str) -> Iterator[str]:
    """
    Yield every non-directory entry below ``root`` in sorted order.

    Directories are recursed into but never yielded. Symlinked directories
    are not followed. If ``root`` is a file it is the only entry.

    Raises:
        DiscoveryError: On the first traversal error, including a missing root
    """
    if os.path.isfile(root):
        yield root
        return
    if not os.path.exists(root):
        raise DiscoveryError(f"Directory not found: {root}", path=root)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames.sort()
        for name in sorted(filenames):
            yield os.path.join(dirpath, name)


class PathDiscoverer:
    """Single producer feeding the path stream.

    Owns the path stream's lifetime: it closes it exactly once, whether the
    walk is exhausted or aborted.
    """

    def __init__(self, config: PipelineConfig, paths: Channel[PathRecord], scope: CancelScope):
        self.root = str(config.directory)
        self.matches: Callable[[str], bool] = config.matcher()
        self.pattern = config.pattern
        self.paths = paths
        self.scope = scope
        self.discovered = 0

    def run(self) -> None:
        """Walk the tree and push matches. Raises on traversal error or cancellation."""
        logger.info(f"Discovering '{self.pattern}' under {self.root}")
        try:
            for path in walk_files(self.root):
                if self.matches(os.path.basename(path)):
                    self.paths.put(path, self.scope)
                    self.discovered += 1
                self.scope.raise_if_cancelled()
        finally:
            self.paths.close()
        logger.info(f"Discovery finished: {self.discovered} matching file(s)")
