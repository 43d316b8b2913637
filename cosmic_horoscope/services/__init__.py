"""
Services for horoscope caching and generation.
"""

from .cache_key_policy import CacheKeyPolicy, date_bucket, derive_personalization_id
from .horoscope_cache import HoroscopeCache
from .gemini_client import GeminiClient
from .prompt_builder import (
    PromptBuilder,
    InventorPromptBuilder,
    BiorhythmPromptBuilder,
    date_phrase,
)
from .horoscope_service import HoroscopeService

__all__ = [
    'CacheKeyPolicy',
    'date_bucket',
    'derive_personalization_id',
    'HoroscopeCache',
    'GeminiClient',
    'PromptBuilder',
    'InventorPromptBuilder',
    'BiorhythmPromptBuilder',
    'date_phrase',
    'HoroscopeService',
]
