"""Entry index persistence for tracking blob synchronization."""

import json
import logging
import os
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from catalog_blob_sync.exceptions import IndexCorruptedError
from catalog_blob_sync.models import IndexRecord
from catalog_blob_sync.sync.storage import StorageLayout

logger = logging.getLogger(__name__)

_RECORDS_ADAPTER = TypeAdapter(list[IndexRecord])


class IndexStore:
    """JSON-based per-entry index of fetched blobs.

    Each catalog entry owns one index file holding the records of its blobs
    in enumeration order. The file is always replaced wholesale, so records
    of one entry are updated together and stale records drop out.

    Index file format:
    [
        {
            "entryId": "52b0f8ab8b5f6f4f1c000035",
            "type": "archive",
            "url": "https://assets.example.com/app.pbw",
            "etag": "5b0f8a1c",
            "contentType": "application/octet-stream",
            "originalFileName": "app.pbw",
            "storedFileName": "3f2a9c1e0b7d4e5f8a6b2c1d0e9f8a7b",
            "contentHash": "2fd4e1c67a2d28fced849ee1bb76e7391b93eb12"
        }
    ]
    """

    def __init__(self, storage: StorageLayout):
        """Initialize index store.

        Args:
            storage: Storage layout resolving entry directories
        """
        self.storage = storage

    def index_path(self, entry_id: str) -> Path:
        return self.storage.get_index_path(entry_id)

    def load(self, entry_id: str) -> list[IndexRecord]:
        """Load the index of an entry.

        Args:
            entry_id: Catalog entry id

        Returns:
            Records in persisted order, empty if the entry was never synced

        Raises:
            IndexCorruptedError: If the index exists but cannot be parsed
        """
        path = self.index_path(entry_id)
        if not path.exists():
            return []

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            raise IndexCorruptedError(entry_id, path, str(e)) from e

        try:
            return _RECORDS_ADAPTER.validate_python(data)
        except ValidationError as e:
            raise IndexCorruptedError(
                entry_id, path, f"{e.error_count()} invalid record field(s)"
            ) from e

    def save(self, entry_id: str, records: list[IndexRecord]):
        """Replace the index of an entry with exactly ``records``.

        The index is written to a temporary sibling file and renamed into
        place, so readers see either the old or the new index.

        Args:
            entry_id: Catalog entry id
            records: Records to persist, in order
        """
        path = self.index_path(entry_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        payload = [record.model_dump(by_alias=True) for record in records]

        tmp = path.with_name(f".{path.name}.tmp")
        try:
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            tmp.replace(path)
        except Exception:
            tmp.unlink(missing_ok=True)
            raise

        logger.debug(f"Saved {len(records)} record(s) to {path}")
