"""Sync engine for mirroring catalog blobs with hash re-validation."""

from catalog_blob_sync.sync.engine import SyncEngine
from catalog_blob_sync.sync.state import IndexStore
from catalog_blob_sync.sync.download import BlobFetcher
from catalog_blob_sync.sync.references import enumerate_blob_references
from catalog_blob_sync.sync.storage import StorageLayout
from catalog_blob_sync.sync.validation import RecordValidator

__all__ = [
    "SyncEngine",
    "IndexStore",
    "BlobFetcher",
    "enumerate_blob_references",
    "StorageLayout",
    "RecordValidator",
]
