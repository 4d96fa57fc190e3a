"""Command-line interface for catalog-blob-sync."""

from catalog_blob_sync.cli.main import main

__all__ = ["main"]
