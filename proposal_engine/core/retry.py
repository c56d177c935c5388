"""Bounded retry with exponential backoff for provider calls."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from proposal_engine.core.errors import ProviderError
from proposal_engine.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Retry settings: ``max_retries`` extra attempts after the first."""

    max_retries: int = 2
    initial_delay: float = 1.0

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (2**attempt)


NO_RETRY = RetryPolicy(max_retries=0, initial_delay=0.0)


def is_transient(error: Exception) -> bool:
    return isinstance(error, ProviderError) and error.is_transient


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    label: str,
    should_retry: Callable[[Exception], bool] = is_transient,
) -> T:
    """
    Await ``fn()``, retrying transient failures with exponential backoff.

    Args:
        fn: Zero-argument coroutine factory
        policy: Attempt count and initial delay
        label: Name used in log messages
        should_retry: Predicate deciding whether an error is retryable

    Returns:
        The first successful result

    Raises:
        The last error once attempts are exhausted, or any non-retryable error
    """
    for attempt in range(policy.max_retries + 1):
        try:
            return await fn()
        except Exception as e:
            if not should_retry(e) or attempt >= policy.max_retries:
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{label} attempt {attempt + 1}/{policy.max_retries + 1} failed "
                f"({e}), retrying in {delay:.1f}s"
            )
            await asyncio.sleep(delay)

    raise RuntimeError("unreachable")  # pragma: no cover
