"""
Configuration settings for the horoscope API.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import Optional

from cosmic_horoscope.exceptions import ConfigurationError
from cosmic_horoscope.models import GenerationMode


class Settings:
    """
    Configuration settings for horoscope generation, caching and retry.

    All settings are loaded from environment variables with defaults.
    """

    def __init__(self):
        """Initialize settings from environment variables."""
        # Gemini Configuration
        self.gemini_api_key: Optional[str] = os.getenv('GEMINI_API_KEY') or None
        self.gemini_model: str = os.getenv('GEMINI_MODEL', 'gemini-2.5-flash')
        self.gemini_api_base_url: str = os.getenv(
            'GEMINI_API_BASE_URL',
            'https://generativelanguage.googleapis.com/v1'
        )

        # Generation Parameters
        self.temperature: float = self._parse_float('GENERATION_TEMPERATURE', '0.9')
        self.top_k: int = self._parse_int('GENERATION_TOP_K', '40')
        self.top_p: float = self._parse_float('GENERATION_TOP_P', '0.95')
        self.max_output_tokens: int = self._parse_int('GENERATION_MAX_OUTPUT_TOKENS', '1024')
        self.timeout_seconds: float = self._parse_float('GENERATION_TIMEOUT_SECONDS', '30')

        # Retry Configuration
        self.retry_max_attempts: int = self._parse_int('RETRY_MAX_ATTEMPTS', '3')
        self.retry_initial_delay: float = self._parse_float('RETRY_INITIAL_DELAY_SECONDS', '2.0')
        self.retry_backoff_multiplier: float = self._parse_float('RETRY_BACKOFF_MULTIPLIER', '2.0')

        # Caching Behaviour
        self.generation_mode: str = os.getenv('GENERATION_MODE', GenerationMode.SINGLE.value)
        self.single_flight_enabled: bool = self._parse_bool(
            os.getenv('SINGLE_FLIGHT_ENABLED', 'false')
        )

        # Metrics Configuration
        self.metrics_enabled: bool = self._parse_bool(os.getenv('METRICS_ENABLED', 'false'))
        self.metrics_namespace: str = os.getenv('METRICS_NAMESPACE', 'CosmicHoroscope/API')

        # Site Configuration
        self.site_url: str = os.getenv('SITE_URL', 'https://cosmic-horoscope.vercel.app/')

        # Logging Configuration
        self.log_level: str = os.getenv('LOG_LEVEL', 'INFO')

        # Validate configuration
        self._validate()

    def _parse_bool(self, value: str) -> bool:
        """
        Parse boolean value from string.

        Args:
            value: String value to parse

        Returns:
            Boolean value
        """
        return value.lower() in ('true', '1', 'yes', 'on')

    def _parse_int(self, name: str, default: str) -> int:
        value = os.getenv(name, default)
        try:
            return int(value)
        except ValueError:
            raise ConfigurationError(f"{name} must be an integer, got {value!r}")

    def _parse_float(self, name: str, default: str) -> float:
        value = os.getenv(name, default)
        try:
            return float(value)
        except ValueError:
            raise ConfigurationError(f"{name} must be a number, got {value!r}")

    def _validate(self):
        """Validate configuration values."""
        # Validate generation parameters
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                f"GENERATION_TEMPERATURE must be between 0 and 2, got {self.temperature}"
            )

        if self.top_k < 1:
            raise ConfigurationError(f"GENERATION_TOP_K must be at least 1, got {self.top_k}")

        if not 0.0 <= self.top_p <= 1.0:
            raise ConfigurationError(
                f"GENERATION_TOP_P must be between 0 and 1, got {self.top_p}"
            )

        if self.max_output_tokens < 1:
            raise ConfigurationError(
                f"GENERATION_MAX_OUTPUT_TOKENS must be at least 1, "
                f"got {self.max_output_tokens}"
            )

        if self.timeout_seconds <= 0:
            raise ConfigurationError(
                f"GENERATION_TIMEOUT_SECONDS must be positive, got {self.timeout_seconds}"
            )

        # Validate retry configuration
        if self.retry_max_attempts < 1:
            raise ConfigurationError(
                f"RETRY_MAX_ATTEMPTS must be at least 1, got {self.retry_max_attempts}"
            )

        if self.retry_initial_delay < 0:
            raise ConfigurationError(
                f"RETRY_INITIAL_DELAY_SECONDS must be non-negative, "
                f"got {self.retry_initial_delay}"
            )

        if self.retry_backoff_multiplier < 1:
            raise ConfigurationError(
                f"RETRY_BACKOFF_MULTIPLIER must be at least 1, "
                f"got {self.retry_backoff_multiplier}"
            )

        # Validate generation mode
        valid_modes = {mode.value for mode in GenerationMode}
        if self.generation_mode not in valid_modes:
            raise ConfigurationError(
                f"Invalid GENERATION_MODE: {self.generation_mode}. "
                f"Must be one of {sorted(valid_modes)}"
            )

        # Validate log level
        valid_log_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if self.log_level.upper() not in valid_log_levels:
            raise ConfigurationError(
                f"Invalid LOG_LEVEL: {self.log_level}. "
                f"Must be one of {sorted(valid_log_levels)}"
            )


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get global settings instance (singleton pattern).

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Discard the global settings instance so it is reloaded on next access."""
    global _settings
    _settings = None
