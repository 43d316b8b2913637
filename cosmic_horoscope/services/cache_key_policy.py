"""
Cache key derivation for generated horoscopes.

Keys partition the cache by sign, optional personalization identity,
timeframe and the calendar bucket of the current time, so every request
within one bucket maps to the same entry.
"""

import hashlib
from datetime import date, datetime, timedelta
from typing import Optional, Union

from cosmic_horoscope.models import CacheKey, Granularity


def date_bucket(granularity: Granularity, now: datetime) -> str:
    """
    Get the calendar bucket identifier for a timeframe.

    - daily: ISO date of `now` (YYYY-MM-DD)
    - weekly: ISO date of the Monday on or before `now`
      (a Sunday belongs to the week that began six days earlier)
    - monthly: YYYY-MM of `now`

    Args:
        granularity: Timeframe
        now: Current time

    Returns:
        Bucket identifier
    """
    today = now.date()

    if granularity is Granularity.DAILY:
        return today.isoformat()

    if granularity is Granularity.WEEKLY:
        # weekday(): Monday=0 ... Sunday=6
        week_start = today - timedelta(days=today.weekday())
        return week_start.isoformat()

    return f'{today.year:04d}-{today.month:02d}'


def derive_personalization_id(birth_date: Union[date, str]) -> str:
    """
    Derive an opaque personalization identity from a birth date.

    Args:
        birth_date: Birth date or YYYY-MM-DD string

    Returns:
        First 16 hex characters of the SHA-256 of the normalized date
    """
    if isinstance(birth_date, date):
        normalized = birth_date.isoformat()
    else:
        normalized = birth_date.strip()

    hash_hex = hashlib.sha256(normalized.encode('utf-8')).hexdigest()
    return hash_hex[:16]


class CacheKeyPolicy:
    """
    Derives cache keys and TTLs from request parameters.

    Key format: {sign}[-{personalizationId}]-{granularity}-{dateBucket}
    """

    def derive_key(
        self,
        sign_name: str,
        granularity: Granularity,
        personalization_id: Optional[str],
        now: datetime
    ) -> CacheKey:
        """
        Derive the cache key for a request.

        Args:
            sign_name: Canonical zodiac sign name
            granularity: Requested timeframe
            personalization_id: Opaque personalization identity, if any
            now: Current time

        Returns:
            CacheKey with the key string and the TTL for the timeframe

        Example:
            >>> policy = CacheKeyPolicy()
            >>> policy.derive_key('Leo', Granularity.DAILY, None, datetime(2025, 1, 15, 9)).key
            'Leo-daily-2025-01-15'
        """
        parts = [sign_name]
        if personalization_id:
            parts.append(personalization_id)
        parts.append(granularity.value)
        parts.append(date_bucket(granularity, now))

        return CacheKey(key='-'.join(parts), ttl=granularity.ttl)

    def derive_all(
        self,
        sign_name: str,
        personalization_id: Optional[str],
        now: datetime
    ) -> dict:
        """
        Derive the keys for every timeframe.

        Args:
            sign_name: Canonical zodiac sign name
            personalization_id: Opaque personalization identity, if any
            now: Current time

        Returns:
            Mapping of Granularity to CacheKey
        """
        return {
            granularity: self.derive_key(sign_name, granularity, personalization_id, now)
            for granularity in Granularity
        }
