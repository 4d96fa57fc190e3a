"""Storage layout management for mirrored blobs."""

import re
import uuid
from pathlib import Path

from catalog_blob_sync.exceptions import InvalidEntryIdError

# Valid entry id pattern: alphanumeric, underscore, hyphen only
VALID_ENTRY_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")

# Stored names are generated hex tokens
VALID_STORED_NAME_PATTERN = re.compile(r"^[A-Za-z0-9]+$")

INDEX_FILE_NAME = "index.json"


class StorageLayout:
    """Manages folder structure for mirrored blobs.

    Structure:
        <output_dir>/
        ├── <entry_id>/
        │   ├── index.json
        │   ├── 3f2a9c1e0b7d4e5f8a6b2c1d0e9f8a7b
        │   └── ...
        └── ...

    Blob files are stored under generated names so the local namespace never
    depends on anything the remote server sends.
    """

    def __init__(self, output_dir: str | Path):
        """Initialize storage layout.

        Args:
            output_dir: Root output directory
        """
        self.output_dir = Path(output_dir).resolve()
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def _validate_entry_id(self, entry_id: str) -> str:
        """Validate entry id to prevent path traversal.

        Args:
            entry_id: Catalog entry id

        Returns:
            Validated entry id

        Raises:
            InvalidEntryIdError: If entry id contains invalid characters
        """
        if not entry_id or not VALID_ENTRY_ID_PATTERN.match(entry_id):
            raise InvalidEntryIdError(
                f"Invalid entry id '{entry_id}': must contain only alphanumeric characters, "
                "underscores, and hyphens"
            )
        return entry_id

    def _validate_path(self, path: Path) -> Path:
        """Validate that a path is within the output directory.

        Args:
            path: Path to validate

        Returns:
            Resolved path

        Raises:
            InvalidEntryIdError: If path traversal is detected
        """
        resolved = path.resolve()
        if not resolved.is_relative_to(self.output_dir):
            raise InvalidEntryIdError(f"Path traversal detected: {path}")
        return resolved

    def get_entry_dir(self, entry_id: str) -> Path:
        """Get the directory for a catalog entry (not created).

        Args:
            entry_id: Catalog entry id

        Returns:
            Path to entry directory
        """
        entry_id = self._validate_entry_id(entry_id)
        return self._validate_path(self.output_dir / entry_id)

    def get_index_path(self, entry_id: str) -> Path:
        """Get the index file path for a catalog entry."""
        return self.get_entry_dir(entry_id) / INDEX_FILE_NAME

    def get_blob_path(self, entry_id: str, stored_file_name: str) -> Path:
        """Get the local path of a stored blob.

        Args:
            entry_id: Catalog entry id
            stored_file_name: Generated file name from the index record

        Returns:
            Full path of the blob file

        Raises:
            ValueError: If the stored name is not a plain file name
        """
        if not VALID_STORED_NAME_PATTERN.match(stored_file_name):
            raise ValueError(f"Invalid stored file name '{stored_file_name}'")
        return self.get_entry_dir(entry_id) / stored_file_name

    @staticmethod
    def generate_stored_file_name() -> str:
        """Generate an opaque, unique file name for a new blob."""
        return uuid.uuid4().hex
