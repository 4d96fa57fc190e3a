"""Content hashing for downloaded blobs."""

import hashlib
from pathlib import Path

CHUNK_SIZE = 8192


def new_hasher():
    """Create an incremental hasher for streamed content."""
    return hashlib.sha1()


def sha1_digest(data: bytes) -> str:
    """Compute the hex SHA-1 digest of a byte buffer.

    Args:
        data: Raw content

    Returns:
        Lowercase hex digest
    """
    return hashlib.sha1(data).hexdigest()


def file_digest(filepath: Path) -> str:
    """Compute the hex SHA-1 digest of a file.

    Args:
        filepath: Path to file

    Returns:
        Lowercase hex digest
    """
    sha1 = new_hasher()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(CHUNK_SIZE), b""):
            sha1.update(chunk)
    return sha1.hexdigest()
