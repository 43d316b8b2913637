"""
Cache data models.

This module defines the timeframe granularity with its TTL, the derived
cache key, and the entries held by the in-memory horoscope cache.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum


class Granularity(str, Enum):
    """Requested time window for a horoscope."""

    DAILY = 'daily'
    WEEKLY = 'weekly'
    MONTHLY = 'monthly'

    @property
    def ttl(self) -> timedelta:
        """Fixed freshness window for cached results of this granularity."""
        return GRANULARITY_TTL[self]


GRANULARITY_TTL = {
    Granularity.DAILY: timedelta(hours=24),
    Granularity.WEEKLY: timedelta(days=7),
    Granularity.MONTHLY: timedelta(days=30),
}


@dataclass(frozen=True)
class CacheKey:
    """
    Derived cache key and the TTL that applies to it.

    Attributes:
        key: Opaque key string
        ttl: Freshness window for entries stored under the key
    """

    key: str
    ttl: timedelta


@dataclass(frozen=True)
class CacheEntry:
    """
    Entry in the horoscope cache.

    Entries are overwritten as a whole on regeneration and never merged.

    Attributes:
        key: Cache key the entry is stored under
        payload: Generated horoscope text
        created_at: Time the entry was written
    """

    key: str
    payload: str
    created_at: datetime

    def __post_init__(self):
        """Validate field constraints."""
        if not self.key:
            raise ValueError("key cannot be empty")

    def age(self, now: datetime) -> timedelta:
        """
        Get the entry age at the given instant.

        Args:
            now: Current time

        Returns:
            Time elapsed since the entry was written
        """
        return now - self.created_at
