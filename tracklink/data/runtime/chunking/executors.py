"""Chunk execution logic for time-windowed fetching.

This module provides the WindowedChunkExecutor class that executes
time-window chunk plans, filters each fetch to its window on the client
side, and aggregates the union with deduplication and ordering.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from ...utils.records import (
    as_records,
    extract_timestamp,
    filter_by_time_range,
    remove_duplicates,
    sort_by_timestamp_desc,
)
from .definitions import ChunkPlan, ChunkResult, WindowPolicy
from .telemetry import log_run_finished, log_window_failed, log_window_fetched

ChunkCallback = Callable[[ChunkPlan, int, int], None]


class WindowedChunkExecutor:
    """Executes time-window chunk plans and aggregates results.

    The fetch function is not expected to filter by date: every call may
    return the same full dataset, and each chunk keeps only the records
    inside its own window.
    """

    def __init__(self, policy: WindowPolicy, operation: str = "unknown") -> None:
        """Initialize chunk executor.

        Args:
            policy: Window policy (provides the small-dataset threshold)
            operation: Label attached to telemetry log records
        """
        self._policy = policy
        self._operation = operation

    async def execute(
        self,
        *,
        plans: list[ChunkPlan],
        fetch_chunk: Callable[[ChunkPlan], Awaitable[Any]],
        on_chunk: ChunkCallback | None = None,
    ) -> ChunkResult:
        """Execute chunk plans and aggregate results.

        A chunk whose fetch raises ends the run; records gathered from the
        earlier chunks are still returned, with the failure recorded on the
        result.

        Args:
            plans: Time-window plans, oldest first
            fetch_chunk: Async function that takes a ChunkPlan and returns records
            on_chunk: Optional callback ``(plan, rows_kept, total_rows)``

        Returns:
            ChunkResult with records deduplicated by id, newest first
        """
        if not plans:
            raise ValueError("Cannot execute: no chunk plans provided")

        started = perf_counter()
        aggregated: list[Any] = []
        chunks_used = 0
        failed_chunk: int | None = None
        error: str | None = None

        for plan in plans:
            chunk_start = perf_counter()
            try:
                raw = await fetch_chunk(plan)
            except Exception as e:
                log_window_failed(self._operation, plan, e)
                failed_chunk = plan.chunk_index
                error = str(e)
                break

            chunks_used += 1
            records = as_records(raw)

            if plan.chunk_index == 0 and len(records) < self._policy.small_dataset_threshold:
                result = self._build_result(records, chunks_used, short_circuited=True)
                log_run_finished(
                    self._operation, result, elapsed_ms=(perf_counter() - started) * 1000.0
                )
                return result

            if plan.start_time is None or plan.end_time is None:
                raise ValueError(f"Chunk {plan.chunk_index} has no time window")
            kept = filter_by_time_range(records, plan.start_time, plan.end_time)
            aggregated.extend(kept)

            log_window_fetched(
                self._operation,
                plan,
                fetched=len(records),
                kept=len(kept),
                elapsed_ms=(perf_counter() - chunk_start) * 1000.0,
            )
            if on_chunk:
                on_chunk(plan, len(kept), len(aggregated))

        unique = sort_by_timestamp_desc(remove_duplicates(aggregated))
        result = self._build_result(
            unique, chunks_used, failed_chunk=failed_chunk, error=error
        )
        log_run_finished(self._operation, result, elapsed_ms=(perf_counter() - started) * 1000.0)
        return result

    @staticmethod
    def _build_result(
        data: list[Any],
        chunks_used: int,
        *,
        short_circuited: bool = False,
        failed_chunk: int | None = None,
        error: str | None = None,
    ) -> ChunkResult:
        timestamps = [ts for ts in (extract_timestamp(record) for record in data) if ts]
        return ChunkResult(
            data=data,
            chunks_used=chunks_used,
            total_points=len(data),
            short_circuited=short_circuited,
            failed_chunk=failed_chunk,
            error=error,
            start_timestamp=min(timestamps) if timestamps else None,
            end_timestamp=max(timestamps) if timestamps else None,
        )
