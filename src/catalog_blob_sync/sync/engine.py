"""SyncEngine - orchestrates blob synchronization for catalog entries."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable

import requests

from catalog_blob_sync.models import CatalogEntry, IndexRecord
from catalog_blob_sync.sync.download import BlobFetcher, create_session
from catalog_blob_sync.sync.references import enumerate_blob_references
from catalog_blob_sync.sync.state import IndexStore
from catalog_blob_sync.sync.storage import StorageLayout
from catalog_blob_sync.sync.validation import RecordValidator

logger = logging.getLogger(__name__)


class SyncEngine:
    """Mirrors the blobs of catalog entries into a local directory.

    For every entry the engine enumerates its blob references, keeps each
    prior record whose file still hashes correctly, fetches everything else
    and writes the reconciled index in one step. Re-running is always safe:
    a second run with nothing changed performs no downloads.

    Example:
        reader = CatalogReader("./data/metadata")
        with SyncEngine(output_dir="./data/blobs") as engine:
            stats = engine.sync(reader.iter_entries(), max_entries=10)
    """

    def __init__(
        self,
        output_dir: str | Path = "./data",
        session: requests.Session | None = None,
        timeout: int = 60,
        pool_connections: int = 10,
        pool_maxsize: int = 10,
    ):
        """Initialize sync engine.

        Args:
            output_dir: Root directory for mirrored blobs and indexes
            session: Optional requests session (creates one if not provided)
            timeout: Request timeout in seconds
            pool_connections: Number of connection pools
            pool_maxsize: Max connections per pool
        """
        self.output_dir = Path(output_dir)
        self.storage = StorageLayout(output_dir)
        self.index_store = IndexStore(self.storage)
        self.validator = RecordValidator(self.storage)

        self._owns_session = session is None
        self._session = session or create_session(pool_connections, pool_maxsize)
        self.fetcher = BlobFetcher(self.storage, session=self._session, timeout=timeout)

    def close(self):
        """Close the shared session if the engine created it."""
        if self._owns_session and self._session:
            self._session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def sync(
        self,
        entries: Iterable[CatalogEntry],
        max_entries: int | None = None,
        progress_callback: Callable[[int, str], None] | None = None,
    ) -> dict:
        """Synchronize blobs for a stream of catalog entries.

        Entries are processed one after another. An error in one entry is
        logged and counted, that entry's index is left as it was, and the
        run continues with the next entry.

        Args:
            entries: Catalog entries to process
            max_entries: Process at most this many entries
            progress_callback: Called with (current, entry_id) before each entry

        Returns:
            Dict with sync statistics
        """
        stats = {
            "entries_found": 0,
            "entries_processed": 0,
            "entries_failed": 0,
            "blobs_found": 0,
            "blobs_valid": 0,
            "blobs_fetched": 0,
            "blobs_failed": 0,
            "errors": [],
            "start_time": datetime.now().isoformat(),
            "end_time": None,
        }

        for index, entry in enumerate(entries):
            if max_entries is not None and index >= max_entries:
                logger.info(f"Stopping after {max_entries} entries")
                break

            stats["entries_found"] += 1
            if progress_callback:
                progress_callback(index + 1, entry.id)

            try:
                entry_stats = self.sync_entry(entry, index)
            except Exception as e:
                logger.exception(f"[{index}:{entry.id}] Sync failed, index left unchanged: {e}")
                stats["entries_failed"] += 1
                stats["errors"].append({"entry_id": entry.id, "error": str(e)})
                continue

            stats["entries_processed"] += 1
            for key in ("blobs_found", "blobs_valid", "blobs_fetched", "blobs_failed"):
                stats[key] += entry_stats[key]

        stats["end_time"] = datetime.now().isoformat()
        logger.info(
            f"Processed {stats['entries_processed']}/{stats['entries_found']} entries: "
            f"{stats['blobs_fetched']} fetched, {stats['blobs_valid']} valid, "
            f"{stats['blobs_failed']} failed"
        )
        return stats

    def sync_entry(self, entry: CatalogEntry, index: int = 0) -> dict:
        """Synchronize the blobs of a single catalog entry.

        Args:
            entry: Catalog entry
            index: Position of the entry in the run, used in log messages

        Returns:
            Dict with per-entry statistics

        Raises:
            IndexCorruptedError: If the existing index cannot be parsed
            InvalidEntryIdError: If the entry id is unusable as a directory
        """
        prefix = f"[{index}:{entry.id}]"
        references = enumerate_blob_references(entry)
        previous = {record.reference: record for record in self.index_store.load(entry.id)}

        stats = {
            "entry_id": entry.id,
            "blobs_found": len(references),
            "blobs_valid": 0,
            "blobs_fetched": 0,
            "blobs_failed": 0,
        }

        records: list[IndexRecord] = []
        for reference in references:
            existing = previous.get(reference)
            if existing is not None and self.validator.is_valid(entry.id, existing):
                logger.info(f"{prefix} Skipping valid existing file for {reference.type}")
                records.append(existing)
                stats["blobs_valid"] += 1
                continue

            record = self.fetcher.fetch(entry.id, reference)
            if record is None:
                continue
            if record.is_complete:
                stats["blobs_fetched"] += 1
            else:
                stats["blobs_failed"] += 1
            records.append(record)

        self.index_store.save(entry.id, records)
        logger.debug(f"{prefix} Index saved with {len(records)} record(s)")
        return stats

    def get_entry_status(self, entry_id: str) -> dict:
        """Get current sync status for a catalog entry.

        Args:
            entry_id: Catalog entry id

        Returns:
            Dict with status info
        """
        records = self.index_store.load(entry_id)
        complete = [r for r in records if r.is_complete]
        valid = [r for r in complete if self.validator.is_valid(entry_id, r)]

        return {
            "entry_id": entry_id,
            "index_path": str(self.index_store.index_path(entry_id)),
            "record_count": len(records),
            "complete_count": len(complete),
            "valid_count": len(valid),
            "invalid_count": len(complete) - len(valid),
            "failed_count": len(records) - len(complete),
        }
