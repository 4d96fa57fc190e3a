"""Utility modules for content hashing."""

from catalog_blob_sync.utils.hashing import file_digest, new_hasher, sha1_digest

__all__ = [
    "file_digest",
    "new_hasher",
    "sha1_digest",
]
