"""Remote catalog fetcher with retry logic and a local fallback copy."""

import hashlib
import logging
from pathlib import Path

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from flatmirror.catalog.codec import CatalogError, decode_catalog, decompress
from flatmirror.models.package import Component, Remote

logger = logging.getLogger(__name__)


def catalog_url(remote: Remote, arch: str) -> str:
    """Build the URL of a remote's compressed AppStream catalog.

    Args:
        remote: Remote to fetch from.
        arch: Architecture of the catalog.

    Returns:
        URL of ``appstream/<arch>/appstream.xml.gz`` under the remote.
    """
    return f"{remote.url.rstrip('/')}/appstream/{arch}/appstream.xml.gz"


class CatalogFetcher:
    """Downloads, decompresses and decodes remote AppStream catalogs.

    The last successful download of every URL is kept in the cache
    directory and used when the remote cannot be reached.
    """

    def __init__(self, cache_dir: Path | None = None, timeout: int = 120):
        """Initialize the catalog fetcher.

        Args:
            cache_dir: Directory for fallback copies. None disables caching.
            timeout: Request timeout in seconds.
        """
        self.cache_dir = cache_dir
        self.timeout = timeout
        self.session = self._create_session()

    def _create_session(self) -> requests.Session:
        """Create a requests session with retry configuration.

        Returns:
            Configured requests session with exponential backoff retry
        """
        session = requests.Session()

        retry_strategy = Retry(
            total=3,
            backoff_factor=1,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )

        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("http://", adapter)
        session.mount("https://", adapter)

        return session

    def fetch_remote_catalog(self, url: str) -> list[Component]:
        """Download and decode a remote catalog.

        The cached copy is replaced only by a download that decodes, and
        is used when the download fails or yields an unreadable catalog.

        Args:
            url: URL of a gzip-compressed AppStream catalog.

        Returns:
            Decoded components.

        Raises:
            CatalogError: If neither the remote nor a cached copy yields a catalog.
        """
        try:
            compressed = self._download(url)
            components = decode_catalog(decompress(compressed))
        except (requests.RequestException, CatalogError) as e:
            cached = self._read_cache(url)
            if cached is None:
                if isinstance(e, CatalogError):
                    raise
                raise CatalogError(f"Failed to download catalog {url}: {e}") from e
            logger.warning("Failed to fetch catalog %s, using cached copy: %s", url, e)
            components = decode_catalog(decompress(cached))
        else:
            self._write_cache(url, compressed)

        logger.info("Parsed %d catalog components from %s", len(components), url)
        return components

    def _download(self, url: str) -> bytes:
        """Download raw bytes from a URL.

        Raises:
            requests.RequestException: If the download fails after all retries.
        """
        logger.info("Downloading catalog: %s", url)
        response = self.session.get(url, timeout=self.timeout)
        response.raise_for_status()
        return response.content

    def _cache_path(self, url: str) -> Path | None:
        if self.cache_dir is None:
            return None
        digest = hashlib.sha256(url.encode("utf-8")).hexdigest()[:16]
        return self.cache_dir / f"{digest}.xml.gz"

    def _read_cache(self, url: str) -> bytes | None:
        path = self._cache_path(url)
        if path is None or not path.is_file():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            logger.warning("Failed to read cached catalog %s: %s", path, e)
            return None

    def _write_cache(self, url: str, data: bytes) -> None:
        path = self._cache_path(url)
        if path is None:
            return
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        except OSError as e:
            logger.warning("Failed to cache catalog %s: %s", path, e)
