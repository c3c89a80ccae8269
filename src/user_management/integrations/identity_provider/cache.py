"""In-process TTL cache for provider tokens."""

import asyncio
from collections import OrderedDict
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from loguru import logger

from user_management.common.utils.datetime import utc_now

Clock = Callable[[], datetime]


class TokenCache:
    """Memory-based key/value cache with per-entry expiry.

    Entries are dropped lazily: a read of an expired key removes it and
    counts as a miss. When ``max_size`` is reached the least recently used
    entry is evicted.

    Features:
    - LRU eviction policy
    - TTL-based expiration
    - Hit/miss statistics
    """

    def __init__(
        self,
        max_size: int = 10000,
        default_ttl_seconds: int = 300,
        clock: Clock = utc_now
    ):
        """Initialize token cache.

        Args:
            max_size: Maximum number of cached entries
            default_ttl_seconds: TTL used when ``set`` is given none
            clock: Source of the current UTC time
        """
        if max_size <= 0:
            raise ValueError("Max size must be positive")
        if default_ttl_seconds <= 0:
            raise ValueError("Default TTL must be positive")

        self.max_size = max_size
        self.default_ttl_seconds = default_ttl_seconds
        self.clock = clock

        self._cache: "OrderedDict[str, CacheEntry]" = OrderedDict()

        self._hits = 0
        self._misses = 0
        self._evictions = 0

        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Optional[Any]:
        """Return the live value for ``key`` or None."""
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                self._misses += 1
                return None

            if entry.is_expired(self.clock()):
                del self._cache[key]
                self._misses += 1
                return None

            self._cache.move_to_end(key)
            self._hits += 1
            return entry.data

    async def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        """Store ``value`` under ``key`` for ``ttl_seconds``.

        A non-positive TTL is a no-op and drops any existing entry.
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        async with self._lock:
            if ttl <= 0:
                self._cache.pop(key, None)
                return

            now = self.clock()
            self._cache[key] = CacheEntry(
                key=key,
                data=value,
                expires_at=now + timedelta(seconds=ttl),
                created_at=now
            )
            self._cache.move_to_end(key)

            while len(self._cache) > self.max_size:
                evicted_key, _ = self._cache.popitem(last=False)
                self._evictions += 1
                logger.debug(f"Evicted cache entry {evicted_key}")

    async def delete(self, key: str) -> bool:
        """Remove ``key``. Returns True if something was removed."""
        async with self._lock:
            return self._cache.pop(key, None) is not None

    async def find_keys(self, predicate: Callable[[str, Any], bool]) -> List[str]:
        """Keys of live entries for which ``predicate(key, value)`` holds."""
        async with self._lock:
            now = self.clock()
            return [
                key for key, entry in self._cache.items()
                if not entry.is_expired(now) and predicate(key, entry.data)
            ]

    async def clear(self) -> None:
        """Clear all cached data."""
        async with self._lock:
            self._cache.clear()
            logger.debug("Cleared token cache")

    async def cleanup_expired(self) -> int:
        """Drop every expired entry.

        Returns:
            Number of entries cleaned up
        """
        async with self._lock:
            now = self.clock()
            expired_keys = [key for key, entry in self._cache.items() if entry.is_expired(now)]
            for key in expired_keys:
                del self._cache[key]

            if expired_keys:
                logger.debug(f"Cleaned up {len(expired_keys)} expired cache entries")
            return len(expired_keys)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        total = self._hits + self._misses
        return {
            "size": len(self._cache),
            "max_size": self.max_size,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / total if total > 0 else 0,
            "evictions": self._evictions,
        }


class CacheEntry:
    """Cache entry with expiration and metadata."""

    def __init__(
        self,
        key: str,
        data: Any,
        expires_at: datetime,
        created_at: datetime
    ):
        self.key = key
        self.data = data
        self.expires_at = expires_at
        self.created_at = created_at

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now
