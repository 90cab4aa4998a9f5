"""Bounded retry loop with pluggable back-off."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


def linear_backoff(base_delay: float) -> Callable[[int], float]:
    """Delay before retry ``n`` (1-based) is ``n * base_delay``."""
    return lambda attempt: attempt * base_delay


def exponential_backoff(base_delay: float) -> Callable[[int], float]:
    """Delay before retry ``n`` (1-based) is ``base_delay * 2**(n-1)``."""
    return lambda attempt: base_delay * (2 ** (attempt - 1))


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int,
    backoff: Callable[[int], float],
    should_retry: Callable[[Exception], bool] | None = None,
    description: str = "operation",
) -> T:
    """Run ``operation`` up to ``attempts`` times.

    The error from the final attempt (or from any attempt ``should_retry``
    rejects) is re-raised unchanged.

    Args:
        operation: Zero-argument coroutine factory
        attempts: Maximum number of calls (>= 1)
        backoff: Maps the number of failed attempts so far to a delay in seconds
        should_retry: Optional predicate; errors it rejects propagate immediately
        description: Label used in log records
    """
    if attempts < 1:
        raise ValueError("attempts must be >= 1")

    for attempt in range(1, attempts + 1):
        try:
            return await operation()
        except Exception as e:
            if attempt == attempts or (should_retry is not None and not should_retry(e)):
                raise
            delay = backoff(attempt)
            logger.warning(
                "retry_scheduled",
                extra={
                    "description": description,
                    "attempt": attempt,
                    "delay_s": delay,
                    "error_type": type(e).__name__,
                    "error_message": str(e),
                },
            )
            if delay > 0:
                await asyncio.sleep(delay)

    raise AssertionError("unreachable")
