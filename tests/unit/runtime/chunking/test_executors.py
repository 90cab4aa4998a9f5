"""Unit tests for windowed chunk execution."""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta

import pytest

from tracklink.data.runtime.chunking import (
    ChunkPlan,
    ChunkPlanner,
    WindowedChunkExecutor,
    WindowPolicy,
)

NOW = datetime(2024, 6, 1, tzinfo=UTC)


def _record(record_id: str, days_ago: float) -> dict:
    ts = NOW - timedelta(days=days_ago)
    return {"id": record_id, "timestampIso": ts.isoformat().replace("+00:00", "Z")}


def _plans(policy: WindowPolicy) -> list[ChunkPlan]:
    return ChunkPlanner().plan_windows(now=NOW, policy=policy)


class TestWindowedChunkExecutor:
    """Test WindowedChunkExecutor functionality."""

    @pytest.mark.asyncio
    async def test_small_dataset_short_circuits(self):
        """Test a small first fetch is returned as fetched."""
        policy = WindowPolicy(window_days=28, days_per_chunk=7)
        records = [_record("b", 100), _record("a", 1), {"id": "no-ts"}]
        calls = []

        async def fetch_chunk(plan: ChunkPlan) -> list[dict]:
            calls.append(plan.chunk_index)
            return records

        result = await WindowedChunkExecutor(policy).execute(
            plans=_plans(policy), fetch_chunk=fetch_chunk
        )

        assert result.short_circuited
        assert result.data == records
        assert result.chunks_used == 1
        assert calls == [0]

    @pytest.mark.asyncio
    async def test_filters_dedupes_and_sorts(self):
        """Test large datasets are filtered per window, deduplicated and sorted newest first."""
        policy = WindowPolicy(window_days=28, days_per_chunk=7, small_dataset_threshold=2)
        records = [
            _record("old", 20),
            _record("new", 2),
            _record("new", 2),
            _record("mid", 10),
            _record("outside", 40),
        ]
        kept_per_chunk = []

        async def fetch_chunk(plan: ChunkPlan) -> list[dict]:
            return records

        result = await WindowedChunkExecutor(policy).execute(
            plans=_plans(policy),
            fetch_chunk=fetch_chunk,
            on_chunk=lambda plan, kept, total: kept_per_chunk.append(kept),
        )

        assert not result.short_circuited
        assert [r["id"] for r in result.data] == ["new", "mid", "old"]
        assert result.chunks_used == 4
        assert kept_per_chunk == [0, 1, 1, 2]
        assert result.end_timestamp == NOW - timedelta(days=2)
        assert result.start_timestamp == NOW - timedelta(days=20)

    @pytest.mark.asyncio
    async def test_failing_chunk_stops_and_keeps_gathered(self):
        """Test a failing chunk ends the run and earlier records are returned."""
        policy = WindowPolicy(window_days=14, days_per_chunk=7, small_dataset_threshold=0)
        records = [_record("a", 10), _record("b", 3)]

        async def fetch_chunk(plan: ChunkPlan) -> list[dict]:
            if plan.chunk_index == 1:
                raise RuntimeError("boom")
            return records

        result = await WindowedChunkExecutor(policy).execute(
            plans=_plans(policy), fetch_chunk=fetch_chunk
        )

        assert [r["id"] for r in result.data] == ["a"]
        assert result.failed_chunk == 1
        assert result.error == "boom"

    @pytest.mark.asyncio
    async def test_first_chunk_failure_returns_empty(self):
        """Test a failure on the first chunk gives an empty result."""
        policy = WindowPolicy(window_days=14, days_per_chunk=7)

        async def fetch_chunk(plan: ChunkPlan) -> list[dict]:
            raise RuntimeError("Response was truncated")

        result = await WindowedChunkExecutor(policy).execute(
            plans=_plans(policy), fetch_chunk=fetch_chunk
        )

        assert result.data == []
        assert result.chunks_used == 0
        assert result.failed_chunk == 0

    @pytest.mark.asyncio
    async def test_requires_plans(self):
        """Test executing without plans raises."""

        async def fetch_chunk(plan: ChunkPlan) -> list:
            return []

        with pytest.raises(ValueError):
            await WindowedChunkExecutor(WindowPolicy()).execute(plans=[], fetch_chunk=fetch_chunk)


class TestChunkTelemetry:
    """Test the log events emitted by planning and execution."""

    @pytest.mark.asyncio
    async def test_partial_run_events(self, caplog):
        """Test a run that fails mid-way logs plans, windows, the failure and a partial outcome."""
        policy = WindowPolicy(window_days=14, days_per_chunk=7, small_dataset_threshold=0)

        async def fetch_chunk(plan: ChunkPlan) -> list[dict]:
            if plan.chunk_index == 1:
                raise RuntimeError("boom")
            return [_record("a", 10)]

        with caplog.at_level(logging.INFO, logger="tracklink.data.runtime.chunking.telemetry"):
            plans = ChunkPlanner(operation="test_run").plan_windows(now=NOW, policy=policy)
            await WindowedChunkExecutor(policy, operation="test_run").execute(
                plans=plans, fetch_chunk=fetch_chunk
            )

        events = [record.getMessage() for record in caplog.records]
        assert events == ["chunks_planned", "window_fetched", "window_failed", "chunk_run_finished"]
        assert all(record.operation == "test_run" for record in caplog.records)
        planned, fetched, failed, finished = caplog.records
        assert planned.chunk_count == 2
        assert planned.window_start == (NOW - timedelta(days=14)).isoformat()
        assert fetched.fetched == 1 and fetched.kept == 1
        assert failed.error_type == "RuntimeError"
        assert failed.levelno == logging.ERROR
        assert finished.outcome == "partial"
        assert finished.records == 1
