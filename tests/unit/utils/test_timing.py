"""Unit tests for timing helpers."""

from __future__ import annotations

import logging

import pytest

from tracklink.data.utils import PerformanceTimer, measure_performance


class TestPerformanceTimer:
    """Test PerformanceTimer."""

    def test_unstarted_timer_is_zero(self):
        """Test an unstarted timer reports zero."""
        assert PerformanceTimer("idle").duration_ms == 0.0

    def test_stop_returns_duration(self):
        """Test stop() freezes and returns the duration."""
        timer = PerformanceTimer("op").start()
        elapsed = timer.stop()

        assert elapsed >= 0
        assert timer.duration_ms == elapsed

    def test_log_slow_operation_warns(self, caplog):
        """Test durations above the threshold log a warning."""
        timer = PerformanceTimer("slow").start()
        timer.stop()

        with caplog.at_level(logging.DEBUG, logger="tracklink.data.utils.timing"):
            timer.log(threshold_ms=-1)

        assert caplog.records[-1].levelno == logging.WARNING
        assert caplog.records[-1].getMessage() == "operation_slow"


@pytest.mark.asyncio
async def test_measure_performance():
    """Test measure_performance returns the result and elapsed time."""

    async def work() -> str:
        return "done"

    result, elapsed = await measure_performance("work", work)

    assert result == "done"
    assert elapsed >= 0
