"""
Unit tests for Horoscope Service.

Tests cache short-circuiting, generation with retry, all-timeframes
atomicity and single-flight de-duplication.
"""

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from unittest.mock import Mock

import pytest

from cosmic_horoscope.exceptions import (
    RetryExhaustedError,
    UpstreamAuthError,
    UpstreamOverloadedError,
)
from cosmic_horoscope.models import GenerationMode, Granularity, HoroscopeRequest
from cosmic_horoscope.services.cache_key_policy import CacheKeyPolicy, derive_personalization_id
from cosmic_horoscope.services.horoscope_cache import HoroscopeCache
from cosmic_horoscope.services.horoscope_service import HoroscopeService
from cosmic_horoscope.utils.metrics_emitter import MetricsEmitter
from cosmic_horoscope.utils.retry import RetryingInvoker, RetryPolicy


def overloaded():
    return UpstreamOverloadedError('The model is overloaded', status_code=503)


def generate_by_timeframe(prompt):
    """Return text naming the timeframe the prompt asks for."""
    for timeframe in ('daily', 'weekly', 'monthly'):
        if f"{timeframe} INVENTOR'S" in prompt:
            return f'{timeframe} text'
    raise AssertionError('unexpected prompt')


class TestHoroscopeService:
    """Test suite for HoroscopeService in single-timeframe mode."""

    @pytest.fixture
    def cache(self):
        return HoroscopeCache()

    @pytest.fixture
    def make_service(self, cache, mock_generator, clock, recording_sleep):
        """Factory creating services with test collaborators."""
        def factory(**kwargs):
            kwargs.setdefault('invoker', RetryingInvoker(RetryPolicy(), sleep=recording_sleep))
            return HoroscopeService(
                cache=cache,
                generator=mock_generator,
                clock=clock,
                **kwargs
            )
        return factory

    @pytest.fixture
    def leo_daily(self, leo):
        return HoroscopeRequest(sign=leo, granularity=Granularity.DAILY)

    @pytest.mark.asyncio
    async def test_miss_then_hit(self, make_service, mock_generator, leo_daily, clock):
        """Test first request generates and the second is served from cache."""
        service = make_service()

        first = await service.get_horoscope(leo_daily)
        clock.advance(hours=1)
        second = await service.get_horoscope(leo_daily)

        assert first.payload == 'X'
        assert first.cached is False
        assert second.payload == 'X'
        assert second.cached is True
        assert second.generated_at == first.generated_at
        assert mock_generator.generate.call_count == 1

    @pytest.mark.asyncio
    async def test_miss_stores_entry_under_derived_key(
        self, make_service, cache, leo_daily, fixed_now
    ):
        """Test generated text is stored with the generation time."""
        service = make_service()

        result = await service.get_horoscope(leo_daily)

        entry = cache.get('Leo-daily-2025-01-15')
        assert entry.payload == 'X'
        assert entry.created_at == fixed_now
        assert result.generated_at == fixed_now

    @pytest.mark.asyncio
    async def test_fresh_entry_short_circuits_generation(
        self, make_service, cache, mock_generator, leo_daily, fixed_now
    ):
        """Test a fresh entry is returned without calling the generator."""
        cache.set('Leo-daily-2025-01-15', 'cached text', fixed_now - timedelta(hours=2))
        service = make_service()

        result = await service.get_horoscope(leo_daily)

        assert result.payload == 'cached text'
        assert result.cached is True
        assert result.generated_at == fixed_now - timedelta(hours=2)
        mock_generator.generate.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_entry_in_same_bucket_is_regenerated(
        self, cache, mock_generator, recording_sleep, clock, leo
    ):
        """Test monthly entry older than 30 days is regenerated within the month."""
        clock.now = datetime(2025, 1, 1, 0, 0, tzinfo=timezone.utc)
        service = HoroscopeService(
            cache=cache,
            generator=mock_generator,
            invoker=RetryingInvoker(sleep=recording_sleep),
            clock=clock
        )
        request = HoroscopeRequest(sign=leo, granularity=Granularity.MONTHLY)

        await service.get_horoscope(request)
        clock.advance(days=30)
        result = await service.get_horoscope(request)

        assert result.cached is False
        assert mock_generator.generate.call_count == 2
        assert cache.get('Leo-monthly-2025-01').created_at == clock.now

    @pytest.mark.asyncio
    async def test_retries_overload_then_succeeds(
        self, make_service, mock_generator, leo_daily, recording_sleep
    ):
        """Test two 503 failures followed by success."""
        mock_generator.generate.side_effect = [overloaded(), overloaded(), 'X']
        service = make_service()

        result = await service.get_horoscope(leo_daily)

        assert result.payload == 'X'
        assert result.cached is False
        assert mock_generator.generate.call_count == 3
        assert recording_sleep.delays == [2.0, 4.0]

    @pytest.mark.asyncio
    async def test_exhausted_retries_do_not_cache(
        self, make_service, cache, mock_generator, leo_daily
    ):
        """Test nothing is written when generation keeps failing."""
        mock_generator.generate.side_effect = [overloaded(), overloaded(), overloaded()]
        service = make_service()

        with pytest.raises(RetryExhaustedError):
            await service.get_horoscope(leo_daily)

        assert cache.size() == 0

    @pytest.mark.asyncio
    async def test_non_retryable_error_propagates(
        self, make_service, cache, mock_generator, leo_daily, recording_sleep
    ):
        """Test auth failure surfaces after one call and caches nothing."""
        mock_generator.generate.side_effect = UpstreamAuthError(
            'API authentication failed', status_code=401
        )
        service = make_service()

        with pytest.raises(UpstreamAuthError):
            await service.get_horoscope(leo_daily)

        assert mock_generator.generate.call_count == 1
        assert recording_sleep.delays == []
        assert cache.size() == 0

    @pytest.mark.asyncio
    async def test_generation_start_and_completion_logged(
        self, make_service, leo_daily, caplog
    ):
        """Test generation start and completion with latency are logged."""
        service = make_service()

        with caplog.at_level(logging.INFO, logger='cosmic_horoscope.services.horoscope_service'):
            await service.get_horoscope(leo_daily)

        records = [
            record for record in caplog.records
            if record.name == 'cosmic_horoscope.services.horoscope_service'
        ]
        messages = [record.getMessage() for record in records]
        assert messages[0] == 'Starting daily generation for Leo'
        assert messages[1].startswith('Completed daily generation for Leo in ')
        assert messages[1].endswith('ms')
        assert records[1].latency_ms >= 0
        assert records[1].timeframe == 'daily'

    @pytest.mark.asyncio
    async def test_generation_failure_logged_with_error(
        self, make_service, mock_generator, leo_daily, caplog
    ):
        """Test a failed generation logs its error code and message."""
        mock_generator.generate.side_effect = UpstreamAuthError(
            'API authentication failed', status_code=401
        )
        service = make_service()

        with caplog.at_level(logging.INFO, logger='cosmic_horoscope.services.horoscope_service'):
            with pytest.raises(UpstreamAuthError):
                await service.get_horoscope(leo_daily)

        failure = caplog.records[-1]
        assert failure.levelname == 'WARNING'
        assert failure.getMessage() == (
            'Daily generation failed for Leo: UPSTREAM_AUTH_FAILED: API authentication failed'
        )

    @pytest.mark.asyncio
    async def test_personalized_request_uses_separate_entry(
        self, make_service, cache, mock_generator, leo
    ):
        """Test birth date requests are cached apart from generic ones."""
        service = make_service()
        birth_date = date(1990, 5, 17)
        generic = HoroscopeRequest(sign=leo, granularity=Granularity.DAILY)
        personal = HoroscopeRequest(sign=leo, granularity=Granularity.DAILY, birth_date=birth_date)

        await service.get_horoscope(generic)
        result = await service.get_horoscope(personal)

        assert result.cached is False
        assert result.personalized is True
        assert mock_generator.generate.call_count == 2

        personalization_id = derive_personalization_id(birth_date)
        assert cache.get(f'Leo-{personalization_id}-daily-2025-01-15') is not None
        assert cache.get('Leo-daily-2025-01-15') is not None

    @pytest.mark.asyncio
    async def test_personalized_prompt_includes_biorhythm(
        self, make_service, mock_generator, leo
    ):
        """Test default prompt strategy personalizes with the birth date."""
        service = make_service()
        request = HoroscopeRequest(
            sign=leo,
            granularity=Granularity.DAILY,
            birth_date=date(1990, 5, 17)
        )

        await service.get_horoscope(request)

        prompt = mock_generator.generate.call_args.args[0]
        assert 'PERSONALIZATION' in prompt
        assert 'Taurus' in prompt

    @pytest.mark.asyncio
    async def test_injected_prompt_builder(self, make_service, mock_generator, leo_daily, fixed_now):
        """Test prompt strategy is pluggable."""
        prompt_builder = Mock()
        prompt_builder.build.return_value = 'custom prompt'
        service = make_service(prompt_builder=prompt_builder)

        await service.get_horoscope(leo_daily)

        prompt_builder.build.assert_called_once_with(
            leo_daily.sign,
            Granularity.DAILY,
            fixed_now,
            birth_date=None,
            narrative_arc=False
        )
        mock_generator.generate.assert_awaited_once_with('custom prompt')

    @pytest.mark.asyncio
    async def test_metrics_emitted(self, make_service, mock_generator, leo_daily):
        """Test cache and generation metrics."""
        metrics = Mock(spec=MetricsEmitter)
        service = make_service(metrics=metrics)

        await service.get_horoscope(leo_daily)
        await service.get_horoscope(leo_daily)

        metrics.emit_cache_miss.assert_called_once_with('daily')
        metrics.emit_cache_hit.assert_called_once_with('daily')
        assert metrics.emit_generation_latency.call_count == 1

    @pytest.mark.asyncio
    async def test_failure_metric_emitted(self, make_service, mock_generator, leo_daily):
        """Test generation failure metric carries the error code."""
        metrics = Mock(spec=MetricsEmitter)
        mock_generator.generate.side_effect = UpstreamAuthError('denied', status_code=403)
        service = make_service(metrics=metrics)

        with pytest.raises(UpstreamAuthError):
            await service.get_horoscope(leo_daily)

        metrics.emit_generation_failure.assert_called_once_with('UPSTREAM_AUTH_FAILED')

    @pytest.mark.asyncio
    async def test_concurrent_misses_each_generate_without_single_flight(
        self, make_service, mock_generator, leo_daily
    ):
        """Test concurrent misses for one key generate independently by default."""
        gate = asyncio.Event()

        async def slow_generate(prompt):
            await gate.wait()
            return 'X'

        mock_generator.generate.side_effect = slow_generate
        service = make_service()

        first = asyncio.ensure_future(service.get_horoscope(leo_daily))
        second = asyncio.ensure_future(service.get_horoscope(leo_daily))
        await asyncio.sleep(0)
        gate.set()
        await asyncio.gather(first, second)

        assert mock_generator.generate.call_count == 2

    @pytest.mark.asyncio
    async def test_single_flight_shares_generation(
        self, make_service, mock_generator, leo_daily
    ):
        """Test concurrent misses share one generation when enabled."""
        gate = asyncio.Event()

        async def slow_generate(prompt):
            await gate.wait()
            return 'X'

        mock_generator.generate.side_effect = slow_generate
        service = make_service(single_flight=True)

        first = asyncio.ensure_future(service.get_horoscope(leo_daily))
        second = asyncio.ensure_future(service.get_horoscope(leo_daily))
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(first, second)
        await asyncio.sleep(0)

        assert mock_generator.generate.call_count == 1
        assert [result.payload for result in results] == ['X', 'X']
        assert service.in_flight_count() == 0

    @pytest.mark.asyncio
    async def test_single_flight_shares_failure(
        self, make_service, cache, mock_generator, leo_daily
    ):
        """Test a shared generation failure reaches every waiter."""
        gate = asyncio.Event()

        async def failing_generate(prompt):
            await gate.wait()
            raise UpstreamAuthError('API authentication failed', status_code=401)

        mock_generator.generate.side_effect = failing_generate
        service = make_service(single_flight=True)

        first = asyncio.ensure_future(service.get_horoscope(leo_daily))
        second = asyncio.ensure_future(service.get_horoscope(leo_daily))
        await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(first, second, return_exceptions=True)

        assert all(isinstance(result, UpstreamAuthError) for result in results)
        assert mock_generator.generate.call_count == 1
        assert cache.size() == 0

    @pytest.mark.asyncio
    async def test_single_flight_survives_cancelled_waiter(
        self, make_service, cache, mock_generator, leo_daily
    ):
        """Test cancelling the first caller leaves the shared generation running."""
        gate = asyncio.Event()

        async def slow_generate(prompt):
            await gate.wait()
            return 'X'

        mock_generator.generate.side_effect = slow_generate
        service = make_service(single_flight=True)

        first = asyncio.ensure_future(service.get_horoscope(leo_daily))
        second = asyncio.ensure_future(service.get_horoscope(leo_daily))
        await asyncio.sleep(0)
        first.cancel()
        gate.set()
        results = await asyncio.gather(first, second, return_exceptions=True)

        assert isinstance(results[0], asyncio.CancelledError)
        assert results[1].payload == 'X'
        assert mock_generator.generate.call_count == 1
        assert cache.size() == 1


class TestAllTimeframesMode:
    """Test suite for HoroscopeService in all-timeframes mode."""

    @pytest.fixture
    def cache(self):
        return HoroscopeCache()

    @pytest.fixture
    def service(self, cache, mock_generator, clock, recording_sleep):
        mock_generator.generate.side_effect = generate_by_timeframe
        return HoroscopeService(
            cache=cache,
            generator=mock_generator,
            invoker=RetryingInvoker(sleep=recording_sleep),
            mode=GenerationMode.ALL_TIMEFRAMES,
            clock=clock
        )

    @pytest.mark.asyncio
    async def test_miss_generates_and_stores_all_three(
        self, service, cache, mock_generator, leo, fixed_now
    ):
        """Test a miss refreshes daily, weekly and monthly together."""
        request = HoroscopeRequest(sign=leo, granularity=Granularity.WEEKLY)

        result = await service.get_horoscope(request)

        assert result.payload == 'weekly text'
        assert result.cached is False
        assert mock_generator.generate.call_count == 3
        assert cache.get('Leo-daily-2025-01-15').payload == 'daily text'
        assert cache.get('Leo-weekly-2025-01-13').payload == 'weekly text'
        assert cache.get('Leo-monthly-2025-01').payload == 'monthly text'
        assert {entry.created_at for entry in (
            cache.get('Leo-daily-2025-01-15'),
            cache.get('Leo-weekly-2025-01-13'),
            cache.get('Leo-monthly-2025-01'),
        )} == {fixed_now}

    @pytest.mark.asyncio
    async def test_prompts_request_narrative_arc(self, service, mock_generator, leo):
        """Test all-timeframes prompts carry the continuity instruction."""
        await service.get_horoscope(HoroscopeRequest(sign=leo, granularity=Granularity.DAILY))

        prompts = [call.args[0] for call in mock_generator.generate.call_args_list]
        assert all('narrative arc' in prompt for prompt in prompts)

    @pytest.mark.asyncio
    async def test_fresh_requested_key_returns_without_regenerating(
        self, service, cache, mock_generator, leo, fixed_now
    ):
        """Test a fresh requested entry is served even if others are missing."""
        cache.set('Leo-daily-2025-01-15', 'cached daily', fixed_now)

        result = await service.get_horoscope(
            HoroscopeRequest(sign=leo, granularity=Granularity.DAILY)
        )

        assert result.payload == 'cached daily'
        assert result.cached is True
        mock_generator.generate.assert_not_called()
        assert cache.get('Leo-weekly-2025-01-13') is None

    @pytest.mark.asyncio
    async def test_one_failure_writes_nothing(self, service, cache, mock_generator, leo):
        """Test all-or-nothing caching when one generation fails."""
        def fail_weekly(prompt):
            if "weekly INVENTOR'S" in prompt:
                raise UpstreamAuthError('API authentication failed', status_code=401)
            return generate_by_timeframe(prompt)

        mock_generator.generate.side_effect = fail_weekly

        with pytest.raises(UpstreamAuthError):
            await service.get_horoscope(
                HoroscopeRequest(sign=leo, granularity=Granularity.DAILY)
            )

        assert mock_generator.generate.call_count == 3
        assert cache.size() == 0

    @pytest.mark.asyncio
    async def test_each_timeframe_retried_independently(
        self, service, cache, mock_generator, leo, recording_sleep
    ):
        """Test an overloaded timeframe is retried while the others succeed."""
        attempts = {'monthly': 0}

        def flaky_monthly(prompt):
            if "monthly INVENTOR'S" in prompt:
                attempts['monthly'] += 1
                if attempts['monthly'] == 1:
                    raise overloaded()
            return generate_by_timeframe(prompt)

        mock_generator.generate.side_effect = flaky_monthly

        result = await service.get_horoscope(
            HoroscopeRequest(sign=leo, granularity=Granularity.MONTHLY)
        )

        assert result.payload == 'monthly text'
        assert mock_generator.generate.call_count == 4
        assert recording_sleep.delays == [2.0]
        assert cache.size() == 3

    @pytest.mark.asyncio
    async def test_personalized_keys(self, service, cache, leo):
        """Test all three keys carry the personalization identity."""
        birth_date = date(1990, 5, 17)
        personalization_id = derive_personalization_id(birth_date)

        await service.get_horoscope(
            HoroscopeRequest(sign=leo, granularity=Granularity.DAILY, birth_date=birth_date)
        )

        keys = CacheKeyPolicy().derive_all('Leo', personalization_id, datetime(2025, 1, 15, tzinfo=timezone.utc))
        assert all(cache.get(key.key) is not None for key in keys.values())
