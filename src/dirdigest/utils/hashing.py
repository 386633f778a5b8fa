"""Hashing utility functions for file operations."""

import hashlib
import logging
from pathlib import Path
from typing import Union

from dirdigest.errors import ConfigError, ReadError

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHM = "md5"
CHUNK_SIZE = 64 * 1024


def validate_algorithm(algorithm: str) -> str:
    """
    Check that an algorithm name is usable for fixed-length digests.

    Args:
        algorithm: hashlib algorithm name (md5, sha1, sha256, ...)

    Returns:
        The normalized (lowercase) algorithm name

    Raises:
        ConfigError: If the algorithm is unknown or has a variable-length output
    """
    name = algorithm.strip().lower()
    if name.startswith("shake_"):
        raise ConfigError(f"Variable-length hash algorithm not supported: {algorithm}")
    try:
        hashlib.new(name)
    except ValueError:
        raise ConfigError(f"Unsupported hash algorithm: {algorithm}")
    return name


def file_digest(file_path: Union[str, Path], algorithm: str = DEFAULT_ALGORITHM) -> bytes:
    """
    Calculate the digest of a file's full content.

    Args:
        file_path: Path to file to hash
        algorithm: hashlib algorithm name

    Returns:
        Raw digest bytes

    Raises:
        ReadError: If the file cannot be opened or read
    """
    hash_obj = hashlib.new(algorithm)
    try:
        with open(file_path, "rb") as f:
            for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
                hash_obj.update(chunk)
    except OSError as e:
        logger.debug(f"Failed to read {file_path}: {e}")
        raise ReadError(f"Cannot read {file_path}: {e}", path=str(file_path), original_error=e)
    return hash_obj.digest()
