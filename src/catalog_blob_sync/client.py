"""
App Store Catalog Client

Paged HTTP client for the app store catalog API. Pages are stored verbatim
as JSON files that CatalogReader reads back for blob synchronization.
"""

import json
import logging
import time
from pathlib import Path
from typing import Iterator

import requests

from catalog_blob_sync.sync.download import create_session

logger = logging.getLogger(__name__)

# Collection endpoint -> local directory name
COLLECTIONS: dict[str, str] = {
    "watchfaces": "watchfaces",
    "watchapps-and-companions": "apps",
}

# 100 is the max supported query limit
QUERY_LIMIT = 100
PAGE_FILE_NAME_WIDTH = 4


class CatalogClient:
    """
    Client for the app store catalog collection API.

    Example:
        >>> client = CatalogClient()
        >>> for page in client.iter_pages("watchfaces", max_pages=1):
        ...     print(len(page["data"]))

        >>> client.scrape_collection("watchfaces", "./data/metadata")
    """

    BASE_URL = "https://api2.getpebble.com/v2/apps/collection/all"

    def __init__(
        self,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: int = 30,
        rate_limit_delay: float = 0.0,
    ):
        """
        Initialize catalog client.

        Args:
            base_url: Override base API URL
            session: Optional requests session (creates one if not provided)
            timeout: Request timeout in seconds
            rate_limit_delay: Delay between paginated requests (seconds)
        """
        self.base_url = base_url or self.BASE_URL
        self.timeout = timeout
        self.rate_limit_delay = rate_limit_delay
        self.session = session or create_session()
        self._owns_session = session is None

    def close(self):
        """Close the session if we own it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def get_page(self, collection: str, offset: int = 0, limit: int = QUERY_LIMIT) -> dict:
        """
        Get a single page of a collection.

        Args:
            collection: Collection name (e.g., "watchfaces")
            offset: Index of the first listing on the page
            limit: Page size (max 100)

        Returns:
            Raw page JSON with "data" and "links" keys
        """
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        url = f"{self.base_url}/{collection}"
        response = self.session.get(
            url, params={"limit": limit, "offset": offset}, timeout=self.timeout
        )
        response.raise_for_status()
        return response.json()

    def iter_pages(self, collection: str, max_pages: int | None = None) -> Iterator[dict]:
        """
        Iterate over all pages of a collection.

        Args:
            collection: Collection name
            max_pages: Limit number of pages (for testing)

        Yields:
            Raw page JSON objects
        """
        page_number = 0
        offset = 0

        while True:
            logger.info(f"[{page_number}] Scraping {collection} entries from {offset}")
            page = self.get_page(collection, offset=offset)
            yield page

            links = page.get("links") or {}
            if not links.get("nextPage"):
                break

            page_number += 1
            if max_pages and page_number >= max_pages:
                logger.info(f"[{page_number}] Stopping")
                break

            offset += QUERY_LIMIT
            if self.rate_limit_delay > 0:
                time.sleep(self.rate_limit_delay)

    def scrape_collection(
        self,
        collection: str,
        output_dir: str | Path,
        max_pages: int | None = None,
    ) -> list[Path]:
        """
        Save every page of a collection as numbered JSON files.

        Args:
            collection: Collection name
            output_dir: Metadata root directory
            max_pages: Limit number of pages

        Returns:
            Paths of the written page files
        """
        collection_dir = Path(output_dir) / COLLECTIONS.get(collection, collection)
        collection_dir.mkdir(parents=True, exist_ok=True)

        written = []
        for page_number, page in enumerate(self.iter_pages(collection, max_pages=max_pages)):
            filepath = collection_dir / f"{page_number:0{PAGE_FILE_NAME_WIDTH}d}.json"
            logger.info(f"[{page_number}] Writing to file {filepath}")
            _write_page(filepath, page)
            written.append(filepath)

        return written


def _write_page(filepath: Path, page: dict) -> None:
    """Write a page through a temp sibling so readers never see a partial file."""
    tmp_path = filepath.with_name(f".{filepath.name}.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(page, f)
        tmp_path.replace(filepath)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise
