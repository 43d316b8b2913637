"""
Horoscope request and result models.

This module defines the zodiac sign table and the dataclasses passed between
the HTTP handler and the horoscope service.
"""

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Optional, Tuple

from .cache import Granularity


@dataclass(frozen=True)
class ZodiacSign:
    """
    Zodiac sign with its date range.

    Attributes:
        name: Canonical sign name (e.g., 'Leo')
        dates: Human-readable date range (e.g., 'Jul 23 - Aug 22')
        element: Classical element
        start: (month, day) the sign starts
        end: (month, day) the sign ends
    """

    name: str
    dates: str
    element: str
    start: Tuple[int, int]
    end: Tuple[int, int]

    def contains(self, month: int, day: int) -> bool:
        """
        Check whether a calendar day falls within this sign.

        Args:
            month: Month (1-12)
            day: Day of month

        Returns:
            True if the day is inside the sign's range
        """
        start_month, start_day = self.start
        end_month, end_day = self.end
        if month == start_month and day >= start_day:
            return True
        return month == end_month and day <= end_day


ZODIAC_SIGNS = (
    ZodiacSign('Capricorn', 'Dec 22 - Jan 19', 'Earth', (12, 22), (1, 19)),
    ZodiacSign('Aquarius', 'Jan 20 - Feb 18', 'Air', (1, 20), (2, 18)),
    ZodiacSign('Pisces', 'Feb 19 - Mar 20', 'Water', (2, 19), (3, 20)),
    ZodiacSign('Aries', 'Mar 21 - Apr 19', 'Fire', (3, 21), (4, 19)),
    ZodiacSign('Taurus', 'Apr 20 - May 20', 'Earth', (4, 20), (5, 20)),
    ZodiacSign('Gemini', 'May 21 - Jun 20', 'Air', (5, 21), (6, 20)),
    ZodiacSign('Cancer', 'Jun 21 - Jul 22', 'Water', (6, 21), (7, 22)),
    ZodiacSign('Leo', 'Jul 23 - Aug 22', 'Fire', (7, 23), (8, 22)),
    ZodiacSign('Virgo', 'Aug 23 - Sep 22', 'Earth', (8, 23), (9, 22)),
    ZodiacSign('Libra', 'Sep 23 - Oct 22', 'Air', (9, 23), (10, 22)),
    ZodiacSign('Scorpio', 'Oct 23 - Nov 21', 'Water', (10, 23), (11, 21)),
    ZodiacSign('Sagittarius', 'Nov 22 - Dec 21', 'Fire', (11, 22), (12, 21)),
)


def find_sign(name: str) -> Optional[ZodiacSign]:
    """
    Look up a zodiac sign by name, case-insensitively.

    Args:
        name: Sign name

    Returns:
        Matching ZodiacSign or None
    """
    normalized = name.strip().lower()
    for sign in ZODIAC_SIGNS:
        if sign.name.lower() == normalized:
            return sign
    return None


class GenerationMode(str, Enum):
    """How cache misses are regenerated."""

    SINGLE = 'single'
    ALL_TIMEFRAMES = 'all_timeframes'


@dataclass(frozen=True)
class HoroscopeRequest:
    """
    Validated horoscope request.

    Attributes:
        sign: Requested zodiac sign
        granularity: Requested timeframe
        birth_date: Optional birth date used for personalization
    """

    sign: ZodiacSign
    granularity: Granularity
    birth_date: Optional[date] = None

    @property
    def personalized(self) -> bool:
        return self.birth_date is not None


@dataclass(frozen=True)
class HoroscopeResult:
    """
    Horoscope returned to the caller.

    Attributes:
        payload: Generated horoscope text
        cached: True if served from the cache without generation
        generated_at: Time the text was generated and stored
        granularity: Timeframe of the text
        personalized: True if the text was generated for a birth date
    """

    payload: str
    cached: bool
    generated_at: datetime
    granularity: Granularity
    personalized: bool = False
