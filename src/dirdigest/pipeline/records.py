"""Records that flow through the pipeline streams.

Frozen dataclasses are immutable, so a record handed from one thread to
another can never be mutated while in flight.
"""

from __future__ import annotations

from dataclasses import dataclass

# A discovered file path. Plain strings are already immutable.
PathRecord = str


@dataclass(frozen=True)
class ChecksumRecord:
    """Digest of one successfully read file."""

    path: PathRecord
    digest: bytes
    worker: str  # e.g. "worker-03"

    @property
    def hexdigest(self) -> str:
        """Digest rendered as lowercase hexadecimal."""
        return self.digest.hex()
