"""
File hashing utilities for change detection.

Digests are used purely for equality comparison between a local record and
the remote store's checksum. MD5 is the default because that is what Google
Drive reports as `md5Checksum`.
"""

import hashlib
from pathlib import Path

import aiofiles

from reportsync.utils.logging import get_logger

logger = get_logger("reportsync.utils.hashing")

DEFAULT_ALGORITHM = "md5"
CHUNK_SIZE = 64 * 1024


def calculate_file_hash(file_path: str | Path, algorithm: str = DEFAULT_ALGORITHM) -> str | None:
    """
    Calculate the hex digest of a file's exact byte content (synchronous).

    Args:
        file_path: Path to file
        algorithm: hashlib algorithm name (default: md5)

    Returns:
        Hex digest, or None when the file cannot be read
    """
    digest = hashlib.new(algorithm)
    try:
        with open(file_path, "rb") as f:
            for block in iter(lambda: f.read(CHUNK_SIZE), b""):
                digest.update(block)
        return digest.hexdigest()
    except OSError as e:
        logger.warning(f"Could not compute hash for {file_path}: {e}")
        return None


async def calculate_file_hash_async(file_path: str | Path, algorithm: str = DEFAULT_ALGORITHM) -> str | None:
    """
    Calculate the hex digest of a file's content (async).

    Uses aiofiles so hashing does not block other objects being processed
    in the same event loop.

    Returns:
        Hex digest, or None when the file cannot be read
    """
    digest = hashlib.new(algorithm)
    try:
        async with aiofiles.open(file_path, "rb") as f:
            while True:
                chunk = await f.read(CHUNK_SIZE)
                if not chunk:
                    break
                digest.update(chunk)
        return digest.hexdigest()
    except OSError as e:
        logger.warning(f"Could not compute hash for {file_path}: {e}")
        return None


def hash_bytes(data: bytes, algorithm: str = DEFAULT_ALGORITHM) -> str:
    """Hex digest of an in-memory payload (used by stores that hold bytes)."""
    return hashlib.new(algorithm, data).hexdigest()
