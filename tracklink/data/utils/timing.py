"""Wall-clock timing helpers."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


class PerformanceTimer:
    """Measures elapsed milliseconds for a labelled operation."""

    def __init__(self, label: str) -> None:
        self.label = label
        self._start: float | None = None
        self._end: float | None = None

    def start(self) -> PerformanceTimer:
        self._start = perf_counter()
        self._end = None
        return self

    def stop(self) -> float:
        """Stop the timer and return the duration in milliseconds."""
        self._end = perf_counter()
        return self.duration_ms

    @property
    def duration_ms(self) -> float:
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else perf_counter()
        return (end - self._start) * 1000.0

    def log(self, threshold_ms: float | None = None) -> float:
        """Log the duration, at warning level when it exceeds ``threshold_ms``."""
        duration = self.duration_ms
        extra = {"label": self.label, "duration_ms": duration, "threshold_ms": threshold_ms}
        if threshold_ms is not None and duration > threshold_ms:
            logger.warning("operation_slow", extra=extra)
        else:
            logger.debug("operation_timed", extra=extra)
        return duration


async def measure_performance(label: str, fn: Callable[[], Awaitable[T]]) -> tuple[T, float]:
    """Await ``fn()`` and return its result with the elapsed milliseconds."""
    timer = PerformanceTimer(label).start()
    try:
        result = await fn()
    finally:
        timer.stop()
    return result, timer.duration_ms
