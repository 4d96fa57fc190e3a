"""
Catalog Blob Sync - mirror app store catalog assets to local storage

This package provides tools to keep a local copy of the binary assets
(app archives, screenshots, icons) referenced by an app store catalog:

Catalog:
- Paged client that saves catalog collections as JSON pages
- Reader yielding typed catalog entries from those pages

Sync Engine:
- Expands each entry into its blob references
- Re-validates existing downloads against their SHA-1 before trusting them
- Fetches only missing or invalid blobs, one attempt per run
- Persists one atomically written index per entry

Example usage (metadata):
    >>> from catalog_blob_sync import CatalogClient
    >>> client = CatalogClient()
    >>> client.scrape_collection("watchfaces", "./data/metadata", max_pages=1)

Example usage (SyncEngine):
    >>> from catalog_blob_sync import CatalogReader, SyncEngine
    >>> reader = CatalogReader("./data/metadata")
    >>> with SyncEngine(output_dir="./data/blobs") as engine:
    ...     stats = engine.sync(reader.iter_entries(), max_entries=10)
"""

__version__ = "0.1.0"

# Models
from catalog_blob_sync.models import (
    BlobReference,
    CatalogEntry,
    IndexRecord,
    Release,
)

# Errors
from catalog_blob_sync.exceptions import (
    BlobSyncError,
    IndexCorruptedError,
    InvalidEntryIdError,
)

# Sync Engine
from catalog_blob_sync.sync.engine import SyncEngine
from catalog_blob_sync.sync.state import IndexStore
from catalog_blob_sync.sync.storage import StorageLayout
from catalog_blob_sync.sync.download import BlobFetcher
from catalog_blob_sync.sync.references import enumerate_blob_references
from catalog_blob_sync.sync.validation import RecordValidator

# Catalog
from catalog_blob_sync.client import CatalogClient
from catalog_blob_sync.catalog import CatalogReader


__all__ = [
    # Version
    "__version__",
    # Models
    "BlobReference",
    "CatalogEntry",
    "IndexRecord",
    "Release",
    # Errors
    "BlobSyncError",
    "IndexCorruptedError",
    "InvalidEntryIdError",
    # Sync Engine
    "SyncEngine",
    "IndexStore",
    "StorageLayout",
    "BlobFetcher",
    "enumerate_blob_references",
    "RecordValidator",
    # Catalog
    "CatalogClient",
    "CatalogReader",
]
