"""Reader for catalog pages saved by CatalogClient.

Metadata layout:
    <metadata_dir>/
    ├── watchfaces/
    │   ├── 0000.json
    │   └── ...
    └── apps/
        └── ...

Each page file holds the raw API response; its ``data`` array contains the
catalog entries.
"""

import json
import logging
from pathlib import Path
from typing import Iterator

from pydantic import ValidationError

from catalog_blob_sync.client import COLLECTIONS
from catalog_blob_sync.models import CatalogEntry

logger = logging.getLogger(__name__)


class CatalogReader:
    """Reads catalog entries from saved metadata pages."""

    def __init__(self, metadata_dir: str | Path = "./data/metadata"):
        self.metadata_dir = Path(metadata_dir)

    def page_files(self) -> list[Path]:
        """List page files of every collection, watchfaces first."""
        files = []
        for dir_name in COLLECTIONS.values():
            collection_dir = self.metadata_dir / dir_name
            if not collection_dir.is_dir():
                logger.debug(f"No metadata directory at {collection_dir}")
                continue
            files.extend(sorted(collection_dir.glob("*.json")))
        return files

    def iter_entries(self) -> Iterator[CatalogEntry]:
        """Iterate over all catalog entries in page order.

        Yields:
            CatalogEntry objects; unreadable pages and entries that fail
            validation are skipped
        """
        for filepath in self.page_files():
            logger.info(f"Loading metadata from {filepath}")
            try:
                with open(filepath, "r", encoding="utf-8") as f:
                    page = json.load(f)
            except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.warning(f"Skipping unreadable page {filepath}: {type(e).__name__}: {e}")
                continue

            if not isinstance(page, dict):
                logger.warning(f"Skipping page {filepath}: expected an object, got {type(page).__name__}")
                continue

            data = page.get("data") or []
            if not isinstance(data, list):
                logger.warning(f"Skipping page {filepath}: data is {type(data).__name__}, not a list")
                continue

            for item in data:
                try:
                    yield CatalogEntry.model_validate(item)
                except ValidationError as e:
                    entry_id = item.get("id", "?") if isinstance(item, dict) else "?"
                    logger.warning(
                        f"Skipping invalid entry {entry_id} in {filepath.name}: "
                        f"{e.error_count()} error(s)"
                    )

    def get_all_entries(self) -> list[CatalogEntry]:
        return list(self.iter_entries())
