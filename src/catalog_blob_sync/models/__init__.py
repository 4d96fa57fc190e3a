"""Pydantic models for catalog entries and entry indexes."""

from catalog_blob_sync.models.catalog import CatalogEntry, Release
from catalog_blob_sync.models.index import BlobReference, IndexRecord

__all__ = [
    # Catalog models
    "CatalogEntry",
    "Release",
    # Index models
    "BlobReference",
    "IndexRecord",
]
