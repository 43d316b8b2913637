"""
Retry logic with exponential backoff for generation provider calls.

Only transient overload failures are retried. Every other error propagates on
its first occurrence.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, TypeVar

from cosmic_horoscope.exceptions import (
    HoroscopeError,
    RetryExhaustedError,
    UpstreamError,
    UpstreamOverloadedError,
)

logger = logging.getLogger(__name__)

T = TypeVar('T')

RETRYABLE_STATUS_CODES = frozenset({503})
RETRYABLE_MESSAGE_MARKERS = ('overloaded', 'unavailable')


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff policy.

    Attributes:
        max_attempts: Total number of calls allowed, including the first (>= 1)
        initial_delay: Delay in seconds before the second attempt
        backoff_multiplier: Factor applied to the delay after each attempt
    """

    max_attempts: int = 3
    initial_delay: float = 2.0
    backoff_multiplier: float = 2.0

    def __post_init__(self):
        """Validate policy parameters."""
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {self.max_attempts}")

        if self.initial_delay < 0:
            raise ValueError(f"initial_delay must be non-negative, got {self.initial_delay}")

        if self.backoff_multiplier < 1:
            raise ValueError(
                f"backoff_multiplier must be at least 1, got {self.backoff_multiplier}"
            )

    def delay_for_attempt(self, attempt: int) -> float:
        """
        Get the delay to wait after a failed attempt.

        Args:
            attempt: 1-based number of the attempt that failed

        Returns:
            Delay in seconds: initial_delay * backoff_multiplier^(attempt-1)
        """
        return self.initial_delay * (self.backoff_multiplier ** (attempt - 1))

    def total_delay(self, attempts: int) -> float:
        """
        Get the total backoff incurred when `attempts` calls are made.

        Args:
            attempts: Number of calls made

        Returns:
            Sum of the delays between consecutive attempts
        """
        return sum(self.delay_for_attempt(i) for i in range(1, attempts))


def is_retryable_error(error: BaseException) -> bool:
    """
    Classify an error as transient overload.

    Errors already classified by the generation client are trusted. Other
    errors are retryable when they carry a 503 status or an
    overloaded/unavailable message.

    Args:
        error: Error raised by the operation

    Returns:
        True if the operation may be retried
    """
    if isinstance(error, UpstreamOverloadedError):
        return True

    # Classified errors other than overload are final
    if isinstance(error, HoroscopeError):
        return False

    status_code = getattr(error, 'status_code', None)
    if status_code in RETRYABLE_STATUS_CODES:
        return True

    message = str(error).lower()
    return any(marker in message for marker in RETRYABLE_MESSAGE_MARKERS)


class RetryingInvoker:
    """
    Runs an asynchronous operation with bounded retry on overload.

    The backoff sleep suspends only the calling task, so concurrent
    invocations continue while one of them waits.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_retry: Optional[Callable[[int, float, BaseException], None]] = None
    ):
        """
        Initialize retrying invoker.

        Args:
            policy: Default retry policy (default: 3 attempts, 2s, x2)
            sleep: Coroutine function used to wait between attempts
            on_retry: Optional callback receiving (attempt, delay, error)
                before each backoff sleep
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._on_retry = on_retry

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: Optional[RetryPolicy] = None
    ) -> T:
        """
        Run an operation, retrying transient overload failures.

        Args:
            operation: Zero-argument callable returning an awaitable
            policy: Policy overriding the invoker default for this call

        Returns:
            Result of the first successful attempt

        Raises:
            RetryExhaustedError: If every attempt failed with a retryable error
            Exception: Any non-retryable error, on its first occurrence

        Example:
            invoker = RetryingInvoker(RetryPolicy(max_attempts=3))
            text = await invoker.run(lambda: client.generate(prompt))
        """
        policy = policy or self.policy

        for attempt in range(1, policy.max_attempts + 1):
            try:
                result = await operation()

                if attempt > 1:
                    logger.info(
                        f"Operation succeeded on attempt {attempt}/{policy.max_attempts}",
                        extra={
                            'attempt': attempt,
                            'max_attempts': policy.max_attempts
                        }
                    )

                return result

            except Exception as e:
                if not is_retryable_error(e):
                    raise

                if attempt == policy.max_attempts:
                    logger.error(
                        f"Operation failed after {attempt} attempts: {e}",
                        extra={
                            'max_attempts': policy.max_attempts,
                            'error': str(e)
                        }
                    )
                    raise RetryExhaustedError(e, attempts=attempt) from e

                delay = policy.delay_for_attempt(attempt)

                logger.warning(
                    f"Retry attempt {attempt + 1}/{policy.max_attempts} "
                    f"after {delay:.2f}s: {e}",
                    extra={
                        'attempt': attempt + 1,
                        'max_attempts': policy.max_attempts,
                        'delay_seconds': delay,
                        'error': str(e),
                        'status_code': getattr(e, 'status_code', None)
                    }
                )

                if self._on_retry is not None:
                    self._on_retry(attempt, delay, e)

                await self._sleep(delay)

        # max_attempts >= 1, so the loop always returns or raises
        raise UpstreamError('Retry loop exited without a result')
