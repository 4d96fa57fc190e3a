"""Blob fetcher producing index records for downloaded assets."""

import logging
from urllib.parse import unquote, urlparse

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from catalog_blob_sync import __version__
from catalog_blob_sync.models import BlobReference, IndexRecord
from catalog_blob_sync.sync.storage import StorageLayout
from catalog_blob_sync.utils.hashing import CHUNK_SIZE, new_hasher

logger = logging.getLogger(__name__)


def sanitize_url_for_logging(url: str) -> str:
    """Remove query parameters from URL for safe logging.

    Args:
        url: Full URL

    Returns:
        URL with query parameters removed
    """
    try:
        parsed = urlparse(url)
        return f"{parsed.scheme}://{parsed.netloc}{parsed.path}"
    except ValueError:
        return "<invalid-url>"


def filename_from_disposition(disposition: str | None) -> str:
    """Return the filename component of a Content-Disposition header.

    The RFC 5987 ``filename*=`` form wins over a plain ``filename=``.

    Args:
        disposition: Header value, possibly None

    Returns:
        File name, or empty string if the header carries none
    """
    if not disposition:
        return ""

    plain = ""
    for part in disposition.split(";"):
        part = part.strip()
        key, sep, value = part.partition("=")
        if not sep:
            continue
        key = key.strip().lower()
        value = value.strip()
        if key == "filename*":
            _, _, encoded = value.partition("''")
            candidate = unquote(encoded or value).strip('"')
            if candidate:
                return candidate
        elif key == "filename" and not plain:
            plain = value.strip('"')
    return plain


class BlobFetcher:
    """Downloads blob references into entry directories.

    Each reference gets exactly one GET per call; failures are reported as
    empty index records instead of exceptions so a synchronization pass can
    carry on with the remaining references.
    """

    def __init__(
        self,
        storage: StorageLayout,
        session: requests.Session | None = None,
        timeout: int = 60,
        pool_connections: int = 10,
        pool_maxsize: int = 10,
    ):
        """Initialize blob fetcher.

        Args:
            storage: Storage layout resolving local blob paths
            session: Optional requests session (creates one if not provided)
            timeout: Request timeout in seconds
            pool_connections: Number of connection pools to cache
            pool_maxsize: Maximum number of connections per pool
        """
        self.storage = storage
        self.session = session or create_session(pool_connections, pool_maxsize)
        self.timeout = timeout
        self._owns_session = session is None

    def close(self):
        """Close the session if we own it."""
        if self._owns_session and self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *args):
        self.close()

    def fetch(self, entry_id: str, reference: BlobReference) -> IndexRecord | None:
        """Download one blob reference.

        Args:
            entry_id: Catalog entry owning the reference
            reference: Type and URL of the blob

        Returns:
            Populated record on success, a record with empty result fields on
            failure, or None when the reference has no URL
        """
        if not reference.url:
            return None

        safe_url = sanitize_url_for_logging(reference.url)
        stored_file_name = self.storage.generate_stored_file_name()
        filepath = self.storage.get_blob_path(entry_id, stored_file_name)
        tmp_path = filepath.with_name(f".{stored_file_name}.part")

        logger.info(f"[{entry_id}] Fetching {reference.type} from {safe_url}")
        try:
            with self.session.get(reference.url, timeout=self.timeout, stream=True) as response:
                response.raise_for_status()
                headers = response.headers

                filepath.parent.mkdir(parents=True, exist_ok=True)
                sha1 = new_hasher()
                with open(tmp_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        f.write(chunk)
                        sha1.update(chunk)
            tmp_path.replace(filepath)

        except (requests.RequestException, OSError) as e:
            tmp_path.unlink(missing_ok=True)
            logger.error(
                f"[{entry_id}] Failed to fetch {reference.type} from {safe_url}: "
                f"{type(e).__name__}: {e}"
            )
            return IndexRecord.failed(entry_id, reference)

        record = IndexRecord(
            entry_id=entry_id,
            type=reference.type,
            url=reference.url,
            etag=(headers.get("ETag") or "").strip('"'),
            content_type=headers.get("Content-Type") or "",
            original_file_name=filename_from_disposition(headers.get("Content-Disposition")),
            stored_file_name=stored_file_name,
            content_hash=sha1.hexdigest(),
        )
        logger.info(f"[{entry_id}] --> {stored_file_name} ({record.original_file_name or 'unnamed'})")
        return record


def create_session(pool_connections: int = 10, pool_maxsize: int = 10) -> requests.Session:
    """Create a session with connection pooling and no automatic retries.

    Args:
        pool_connections: Number of connection pools
        pool_maxsize: Max connections per pool

    Returns:
        Configured requests session
    """
    session = requests.Session()
    adapter = HTTPAdapter(
        pool_connections=pool_connections,
        pool_maxsize=pool_maxsize,
        max_retries=Retry(total=0),  # One attempt per blob per run
    )
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({
        "User-Agent": f"catalog-blob-sync/{__version__}",
        "Accept": "*/*",
    })
    return session
