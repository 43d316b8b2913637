"""
Shared pytest fixtures for horoscope API tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock

import pytest

from cosmic_horoscope.config import reset_settings
from cosmic_horoscope.models import find_sign


_ROOT_LOGGER = logging.getLogger()
_ROOT_LEVEL = _ROOT_LOGGER.level


@pytest.fixture(autouse=True)
def isolate_root_logger():
    """Undo the root log level leaked by modules calling configure_lambda_logging at import."""
    _ROOT_LOGGER.setLevel(_ROOT_LEVEL)
    yield
    _ROOT_LOGGER.setLevel(_ROOT_LEVEL)


class RecordingSleep:
    """Sleep replacement that records requested delays without waiting."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)

    @property
    def total(self):
        return sum(self.delays)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture(autouse=True)
def env_vars(monkeypatch):
    """Set up environment variables for tests."""
    monkeypatch.setenv('GEMINI_API_KEY', 'test-key')
    monkeypatch.setenv('METRICS_ENABLED', 'false')
    monkeypatch.setenv('LOG_LEVEL', 'INFO')
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fixed_now():
    """Wednesday, January 15, 2025 09:30 UTC."""
    return datetime(2025, 1, 15, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def clock(fixed_now):
    """Fake clock starting at fixed_now."""
    return FakeClock(fixed_now)


@pytest.fixture
def recording_sleep():
    """Sleep replacement recording backoff delays."""
    return RecordingSleep()


@pytest.fixture
def leo():
    """Leo zodiac sign."""
    return find_sign('Leo')


@pytest.fixture
def mock_generator():
    """Generation provider returning 'X'."""
    generator = Mock()
    generator.generate = AsyncMock(return_value='X')
    return generator
