"""
Data models for horoscope caching and generation.
"""

from .cache import Granularity, GRANULARITY_TTL, CacheKey, CacheEntry
from .horoscope import (
    ZodiacSign,
    ZODIAC_SIGNS,
    find_sign,
    GenerationMode,
    HoroscopeRequest,
    HoroscopeResult,
)

__all__ = [
    'Granularity',
    'GRANULARITY_TTL',
    'CacheKey',
    'CacheEntry',
    'ZodiacSign',
    'ZODIAC_SIGNS',
    'find_sign',
    'GenerationMode',
    'HoroscopeRequest',
    'HoroscopeResult',
]
