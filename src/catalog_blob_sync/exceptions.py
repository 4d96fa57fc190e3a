"""
Exceptions raised by the blob synchronization engine
"""

from pathlib import Path


class BlobSyncError(Exception):
    """Base exception for blob synchronization errors."""

    pass


class IndexCorruptedError(BlobSyncError):
    """Raised when an entry index exists but cannot be parsed."""

    def __init__(self, entry_id: str, path: Path, reason: str):
        self.entry_id = entry_id
        self.path = path
        super().__init__(f"Corrupt index for entry {entry_id} at {path}: {reason}")


class InvalidEntryIdError(BlobSyncError, ValueError):
    """Raised when an entry id cannot be used as a directory name."""

    pass
