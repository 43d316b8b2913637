"""
In-memory horoscope cache.

This module provides the process-wide store of generated horoscopes. The
store holds at most one entry per key and answers whether an entry is still
fresh for a given TTL. Entries are never evicted; a stale entry stays until
it is overwritten by regeneration.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from cosmic_horoscope.models import CacheEntry

logger = logging.getLogger(__name__)


class HoroscopeCache:
    """
    In-memory cache of generated horoscope text.

    The cache is owned by whoever constructs it (one per Lambda container in
    production, one per test). Each set replaces the whole entry, so a
    concurrent get observes either the old or the new entry.

    Attributes:
        _entries: Dictionary mapping cache keys to CacheEntry objects
    """

    def __init__(self):
        """Initialize an empty cache."""
        self._entries: Dict[str, CacheEntry] = {}

        # Metrics tracking
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[CacheEntry]:
        """
        Get the entry stored under a key, fresh or not.

        Args:
            key: Cache key

        Returns:
            CacheEntry or None if no entry was ever stored
        """
        return self._entries.get(key)

    def set(self, key: str, payload: str, now: datetime) -> None:
        """
        Store a payload, replacing any existing entry for the key.

        Args:
            key: Cache key
            payload: Generated horoscope text
            now: Write time recorded as the entry's creation time
        """
        self._entries[key] = CacheEntry(key=key, payload=payload, created_at=now)

        logger.debug(
            f"Cached horoscope for {key} (cache size: {len(self._entries)})",
            extra={'cache_key': key}
        )

    @staticmethod
    def is_fresh(
        entry: Optional[CacheEntry],
        ttl: timedelta,
        now: datetime
    ) -> bool:
        """
        Check whether an entry is still within its TTL.

        Args:
            entry: Cache entry, or None
            ttl: Freshness window
            now: Current time

        Returns:
            True if the entry exists and now - created_at < ttl
        """
        return entry is not None and entry.age(now) < ttl

    def get_fresh(
        self,
        key: str,
        ttl: timedelta,
        now: datetime
    ) -> Optional[CacheEntry]:
        """
        Get the entry for a key only if it is fresh.

        Counts the lookup as a hit or miss for cache statistics.

        Args:
            key: Cache key
            ttl: Freshness window
            now: Current time

        Returns:
            Fresh CacheEntry, or None on miss or stale entry
        """
        entry = self.get(key)

        if self.is_fresh(entry, ttl, now):
            self._hits += 1
            return entry

        self._misses += 1
        return None

    def size(self) -> int:
        """
        Get current cache size.

        Returns:
            Number of entries in cache, stale ones included
        """
        return len(self._entries)

    def clear(self) -> None:
        """
        Clear all entries from cache.

        Useful for testing or manual cache management.
        """
        self._entries.clear()
        logger.info("Horoscope cache cleared")

    def get_cache_stats(self) -> Dict[str, Any]:
        """
        Get current cache statistics.

        Returns:
            Dictionary with entries, hits, misses, and hit rate
        """
        total_requests = self._hits + self._misses
        hit_rate = (self._hits / total_requests) if total_requests > 0 else 0

        return {
            'entries': len(self._entries),
            'hits': self._hits,
            'misses': self._misses,
            'hitRate': hit_rate
        }
