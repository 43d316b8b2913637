"""
Horoscope Service.

This module composes key derivation, the horoscope cache and retrying
generation into the request-serving behaviour. Two modes are supported:

- single: only the requested timeframe is generated on a miss
- all_timeframes: a miss regenerates daily, weekly and monthly together
  so that a narrative shared across timeframes stays in sync
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Hashable, List, Optional, Protocol

from cosmic_horoscope.exceptions import HoroscopeError
from cosmic_horoscope.models import (
    CacheKey,
    GenerationMode,
    Granularity,
    HoroscopeRequest,
    HoroscopeResult,
)
from cosmic_horoscope.utils.metrics_emitter import MetricsEmitter
from cosmic_horoscope.utils.retry import RetryingInvoker
from .cache_key_policy import CacheKeyPolicy, derive_personalization_id
from .horoscope_cache import HoroscopeCache
from .prompt_builder import BiorhythmPromptBuilder, PromptBuilder

logger = logging.getLogger(__name__)


class TextGenerator(Protocol):
    """Generation provider consumed by the service."""

    async def generate(self, prompt: str) -> str:
        ...


def utc_now() -> datetime:
    """Get the current time in UTC."""
    return datetime.now(timezone.utc)


class HoroscopeService:
    """
    Serves horoscopes from the cache, generating them on a miss.

    Generated text is only cached after a successful generation; failures
    never write an entry. With single_flight enabled, concurrent misses for
    the same key share one generation instead of each generating
    independently.
    """

    def __init__(
        self,
        cache: HoroscopeCache,
        generator: TextGenerator,
        prompt_builder: Optional[PromptBuilder] = None,
        invoker: Optional[RetryingInvoker] = None,
        key_policy: Optional[CacheKeyPolicy] = None,
        mode: GenerationMode = GenerationMode.SINGLE,
        single_flight: bool = False,
        metrics: Optional[MetricsEmitter] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        """
        Initialize Horoscope Service.

        Args:
            cache: Horoscope cache instance
            generator: Generation provider
            prompt_builder: Prompt strategy (default: inventor prompts with
                biorhythm personalization)
            invoker: Retrying invoker wrapping each generation
            key_policy: Cache key policy
            mode: Generation mode
            single_flight: Whether to share in-flight generations per key
            metrics: Optional metrics emitter
            clock: Callable returning the current time
        """
        self.cache = cache
        self.generator = generator
        self.prompt_builder = prompt_builder or BiorhythmPromptBuilder()
        self.invoker = invoker or RetryingInvoker()
        self.key_policy = key_policy or CacheKeyPolicy()
        self.mode = GenerationMode(mode)
        self.single_flight = single_flight
        self.metrics = metrics
        self._clock = clock
        self._in_flight: Dict[Hashable, asyncio.Future] = {}

        logger.info(
            f"Initialized HoroscopeService with mode={self.mode.value}, "
            f"single_flight={single_flight}"
        )

    async def get_horoscope(self, request: HoroscopeRequest) -> HoroscopeResult:
        """
        Get the horoscope for a validated request.

        Args:
            request: Validated horoscope request

        Returns:
            HoroscopeResult with cached=True when served without generation

        Raises:
            HoroscopeError: Classified generation or configuration failure
        """
        now = self._clock()
        personalization_id = (
            derive_personalization_id(request.birth_date)
            if request.birth_date else None
        )
        cache_key = self.key_policy.derive_key(
            request.sign.name,
            request.granularity,
            personalization_id,
            now
        )

        entry = self.cache.get_fresh(cache_key.key, cache_key.ttl, now)
        if entry is not None:
            logger.info(
                f"Serving cached horoscope for {cache_key.key}",
                extra={'cache_key': cache_key.key}
            )
            self._emit('emit_cache_hit', request.granularity.value)
            return HoroscopeResult(
                payload=entry.payload,
                cached=True,
                generated_at=entry.created_at,
                granularity=request.granularity,
                personalized=request.personalized
            )

        self._emit('emit_cache_miss', request.granularity.value)

        if self.mode is GenerationMode.ALL_TIMEFRAMES:
            keys = self.key_policy.derive_all(request.sign.name, personalization_id, now)
            flight_key = tuple(sorted(key.key for key in keys.values()))
            results = await self._run_single_flight(
                flight_key,
                lambda: self._generate_all(request, keys, now)
            )
            payload, generated_at = results[request.granularity]
        else:
            payload, generated_at = await self._run_single_flight(
                cache_key.key,
                lambda: self._generate_one(request, request.granularity, cache_key, now)
            )

        return HoroscopeResult(
            payload=payload,
            cached=False,
            generated_at=generated_at,
            granularity=request.granularity,
            personalized=request.personalized
        )

    async def _generate_one(
        self,
        request: HoroscopeRequest,
        granularity: Granularity,
        cache_key: CacheKey,
        now: datetime
    ):
        """Generate one timeframe and store it."""
        payload = await self._generate_text(request, granularity, now, narrative_arc=False)
        generated_at = self._clock()
        self.cache.set(cache_key.key, payload, generated_at)

        logger.info(
            f"Generated and cached new horoscope for {cache_key.key}",
            extra={'cache_key': cache_key.key}
        )
        return payload, generated_at

    async def _generate_all(
        self,
        request: HoroscopeRequest,
        keys: Dict[Granularity, CacheKey],
        now: datetime
    ):
        """
        Generate every timeframe concurrently and store all or none.

        Returns:
            Dictionary mapping Granularity to (payload, generated_at)

        Raises:
            Exception: The first failure among the three generations
        """
        granularities: List[Granularity] = list(keys)

        # Execute all generations in parallel
        results = await asyncio.gather(
            *[
                self._generate_text(request, granularity, now, narrative_arc=True)
                for granularity in granularities
            ],
            return_exceptions=True
        )

        failures = [result for result in results if isinstance(result, BaseException)]
        if failures:
            logger.error(
                f"All-timeframes generation failed for {request.sign.name}: "
                f"{len(failures)}/{len(results)} generations failed, nothing cached",
                extra={'sign': request.sign.name, 'failures': len(failures)}
            )
            raise failures[0]

        generated_at = self._clock()
        stored = {}
        for granularity, payload in zip(granularities, results):
            self.cache.set(keys[granularity].key, payload, generated_at)
            stored[granularity] = (payload, generated_at)

        logger.info(
            f"Generated and cached all timeframes for {request.sign.name}",
            extra={'cache_keys': [key.key for key in keys.values()]}
        )
        return stored

    async def _generate_text(
        self,
        request: HoroscopeRequest,
        granularity: Granularity,
        now: datetime,
        narrative_arc: bool
    ) -> str:
        """Build the prompt and call the generator through the retrying invoker."""
        prompt = self.prompt_builder.build(
            request.sign,
            granularity,
            now,
            birth_date=request.birth_date,
            narrative_arc=narrative_arc
        )

        logger.info(
            f"Starting {granularity.value} generation for {request.sign.name}",
            extra={'sign': request.sign.name, 'timeframe': granularity.value}
        )

        start_time = time.time()
        try:
            payload = await self.invoker.run(lambda: self.generator.generate(prompt))
        except HoroscopeError as e:
            logger.warning(
                f"{granularity.value.capitalize()} generation failed for "
                f"{request.sign.name}: {e.error_code.value}: {e.message}",
                extra={'sign': request.sign.name, 'error_code': e.error_code.value}
            )
            self._emit('emit_generation_failure', e.error_code.value)
            raise

        latency_ms = (time.time() - start_time) * 1000
        logger.info(
            f"Completed {granularity.value} generation for {request.sign.name} "
            f"in {latency_ms:.2f}ms",
            extra={
                'sign': request.sign.name,
                'timeframe': granularity.value,
                'latency_ms': latency_ms
            }
        )
        self._emit('emit_generation_latency', granularity.value, latency_ms)
        return payload

    async def _run_single_flight(self, flight_key: Hashable, factory: Callable[[], Awaitable]):
        """
        Run a generation, sharing it with concurrent callers for the same key.

        Without single-flight every caller runs its own generation.
        """
        if not self.single_flight:
            return await factory()

        task = self._in_flight.get(flight_key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._in_flight[flight_key] = task
            task.add_done_callback(lambda done: self._release(flight_key, done))
        else:
            logger.debug(f"Joining in-flight generation for {flight_key}")

        # Cancelling one waiter must not cancel the generation others share
        return await asyncio.shield(task)

    def _release(self, flight_key: Hashable, task: asyncio.Future) -> None:
        if self._in_flight.get(flight_key) is task:
            del self._in_flight[flight_key]

    def in_flight_count(self) -> int:
        """Number of generations currently shared under single-flight."""
        return len(self._in_flight)

    def _emit(self, method: str, *args) -> None:
        if self.metrics is not None:
            getattr(self.metrics, method)(*args)
