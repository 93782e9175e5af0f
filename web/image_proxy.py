"""Same-origin image proxy with an in-memory byte cache.

Catalog images are fetched once per URL and kept for IMAGE_CACHE_TTL.
Any fetch failure yields a placeholder SVG instead of an error, so broken
upstream images never break a listing page.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

import requests  # type: ignore[import-untyped]

from .config import IMAGE_CACHE_MAX_ENTRIES, IMAGE_CACHE_TTL, IMAGE_FETCH_TIMEOUT

__all__ = ["ImageCache", "CachedImage", "fetch_image", "PLACEHOLDER_SVG"]

logger = logging.getLogger(__name__)

IMAGE_HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "image/webp,image/avif,image/apng,image/svg+xml,image/*,*/*;q=0.8",
}
MAX_REDIRECTS = 3

PLACEHOLDER_SVG = (
    '<svg width="400" height="400" xmlns="http://www.w3.org/2000/svg">'
    '<rect width="400" height="400" fill="#f3f4f6"/>'
    '<text x="200" y="200" text-anchor="middle" dominant-baseline="middle" '
    'font-family="Arial" font-size="16" fill="#6b7280">Image not available</text>'
    "</svg>"
)


@dataclass(frozen=True)
class CachedImage:
    data: bytes
    content_type: str
    fetched_at: float


class ImageCache:
    """Thread-safe URL -> image bytes cache with a fixed TTL."""

    def __init__(
        self,
        ttl: float = IMAGE_CACHE_TTL,
        max_entries: int = IMAGE_CACHE_MAX_ENTRIES,
        clock: Callable[[], float] = time.time,
    ):
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CachedImage] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, url: str) -> Optional[CachedImage]:
        with self._lock:
            entry = self._entries.get(url)
            if entry is None:
                return None
            if self._clock() - entry.fetched_at >= self.ttl:
                del self._entries[url]
                return None
            return entry

    def put(self, url: str, data: bytes, content_type: str) -> CachedImage:
        entry = CachedImage(data=data, content_type=content_type, fetched_at=self._clock())
        with self._lock:
            self._entries[url] = entry
            if len(self._entries) > self.max_entries:
                self._purge_expired()
                self._evict_oldest()
        return entry

    def _purge_expired(self) -> None:
        now = self._clock()
        expired = [k for k, v in self._entries.items() if now - v.fetched_at >= self.ttl]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.info(f"Image cache purged {len(expired)} expired entries")

    def _evict_oldest(self) -> None:
        overflow = len(self._entries) - self.max_entries
        if overflow <= 0:
            return
        oldest = sorted(self._entries, key=lambda k: self._entries[k].fetched_at)[:overflow]
        for key in oldest:
            del self._entries[key]
        logger.info(f"Image cache evicted {len(oldest)} oldest entries")


def fetch_image(
    url: str,
    session: Optional[requests.Session] = None,
    timeout: float = IMAGE_FETCH_TIMEOUT,
) -> CachedImage:
    """Download an image.

    Raises:
        requests.exceptions.RequestException: On timeout, connection error,
            too many redirects or a non-2xx response
    """
    sess = session or requests.Session()
    sess.max_redirects = MAX_REDIRECTS
    try:
        resp = sess.get(url, headers=IMAGE_HEADERS, timeout=timeout)
        resp.raise_for_status()
        content_type = resp.headers.get("Content-Type") or "image/jpeg"
        return CachedImage(data=resp.content, content_type=content_type, fetched_at=time.time())
    finally:
        if session is None:
            sess.close()
