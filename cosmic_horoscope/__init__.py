"""
Cosmic Horoscope API.

Generates inventor's horoscopes through the Gemini API, caching results per
zodiac sign, timeframe bucket and optional personalization identity.
"""

__version__ = "1.0.0"
