"""Re-validation of previously downloaded blobs."""

import logging

from catalog_blob_sync.models import IndexRecord
from catalog_blob_sync.sync.storage import StorageLayout
from catalog_blob_sync.utils.hashing import file_digest

logger = logging.getLogger(__name__)


class RecordValidator:
    """Checks that an index record still matches the file on disk.

    Nothing is cached between calls: the file is hashed every time, so files
    deleted, truncated or edited out-of-band are noticed on the next run.
    """

    def __init__(self, storage: StorageLayout):
        self.storage = storage

    def is_valid(self, entry_id: str, record: IndexRecord) -> bool:
        """Check whether a record's stored file exists and matches its hash.

        Args:
            entry_id: Catalog entry owning the record
            record: Previously persisted index record

        Returns:
            True if the local copy can be trusted, False if it must be re-fetched
        """
        if not record.is_complete:
            return False

        try:
            filepath = self.storage.get_blob_path(entry_id, record.stored_file_name)
        except ValueError as e:
            logger.warning(f"Rejecting record for {record.url}: {e}")
            return False

        if not filepath.is_file():
            logger.debug(f"Missing stored file: {filepath}")
            return False

        try:
            current_hash = file_digest(filepath)
        except OSError as e:
            logger.warning(f"Could not read {filepath}: {e}")
            return False

        if current_hash != record.content_hash:
            logger.info(
                f"Checksum mismatch for {filepath.name}: "
                f"expected {record.content_hash}, got {current_hash}"
            )
            return False
        return True
