"""
Idempotency Cache - short-lived deduplication of logout runs per URL.

Best-effort and in-memory only. A repeated request for the same normalized
URL inside the window is reported as recently processed so the caller can
skip the browser run.
"""

from typing import Callable, Optional
from urllib.parse import urlsplit, urlunsplit
import time

from cachetools import TTLCache
import structlog

logger = structlog.get_logger()

IDEMPOTENCY_CACHE_SIZE = 10_000


def normalize_url(url: str) -> str:
    """Lowercase scheme and host, drop the fragment and any trailing slash."""
    parts = urlsplit(url.strip())
    path = parts.path.rstrip("/")
    return urlunsplit((parts.scheme.lower(), parts.netloc.lower(), path, parts.query, ""))


class IdempotencyCache:
    """
    Remembers when each normalized URL was last seen.

    Expired entries are evicted on every lookup. Everything runs on one event
    loop, so lookups need no lock.
    """

    def __init__(
        self,
        ttl_seconds: float = 600,
        clock: Optional[Callable[[], float]] = None,
        maxsize: int = IDEMPOTENCY_CACHE_SIZE,
    ):
        self.ttl_seconds = ttl_seconds
        self._seen: Optional[TTLCache] = None
        if ttl_seconds > 0:
            self._seen = TTLCache(maxsize=maxsize, ttl=ttl_seconds, timer=clock or time.monotonic)

    @property
    def enabled(self) -> bool:
        return self._seen is not None

    def __len__(self) -> int:
        return len(self._seen) if self._seen is not None else 0

    def seen_recently(self, url: str) -> bool:
        """
        Check and record a URL.

        Returns:
            True if the URL was recorded within the window
        """
        if self._seen is None:
            return False

        expired = self._seen.expire()
        if expired:
            logger.debug("idempotency_evicted", count=len(expired))

        key = normalize_url(url)
        hit = key in self._seen
        self._seen[key] = True
        return hit

    def clear(self) -> None:
        if self._seen is not None:
            self._seen.clear()
