"""Chunk planning logic for determining chunk windows.

This module provides the ChunkPlanner class that determines how to split
work into chunks: fixed-size slices of an in-memory list for incremental
delivery, or consecutive day ranges of a historical window for the
time-windowed fetch fallback.
"""

from __future__ import annotations

from datetime import datetime

from .definitions import ChunkPlan, WindowPolicy, calculate_chunk_count
from .telemetry import log_plans


class ChunkPlanner:
    """Plans chunk boundaries.

    Plans are pure descriptions; nothing is fetched here.
    """

    def __init__(self, operation: str = "unknown") -> None:
        """Initialize chunk planner.

        Args:
            operation: Label attached to telemetry log records
        """
        self._operation = operation

    def plan_offsets(self, *, total: int, chunk_size: int) -> list[ChunkPlan]:
        """Plan fixed-size slices covering ``total`` items.

        Produces ``ceil(total / chunk_size)`` plans in order; the last plan
        holds the remainder.

        Raises:
            ValueError: If chunk_size < 1 or total < 0
        """
        if total < 0:
            raise ValueError("total must be >= 0")
        count = calculate_chunk_count(total, chunk_size)

        plans = [
            ChunkPlan(
                chunk_index=index,
                offset=index * chunk_size,
                limit=min(chunk_size, total - index * chunk_size),
            )
            for index in range(count)
        ]

        log_plans(self._operation, plans, chunk_size=chunk_size, total=total)
        return plans

    def plan_windows(self, *, now: datetime, policy: WindowPolicy) -> list[ChunkPlan]:
        """Plan consecutive day ranges covering ``policy.window_days`` before ``now``.

        Ranges are half-open ``[start, end)`` and adjacent, oldest first.
        """
        start_time = now - policy.window
        plans: list[ChunkPlan] = []
        current_start = start_time
        chunk_index = 0

        while current_start < now and chunk_index < policy.max_chunks:
            chunk_end = current_start + policy.chunk_span
            plans.append(
                ChunkPlan(
                    chunk_index=chunk_index,
                    start_time=current_start,
                    end_time=chunk_end,
                )
            )
            chunk_index += 1
            current_start = chunk_end

        log_plans(
            self._operation,
            plans,
            window_days=policy.window_days,
            days_per_chunk=policy.days_per_chunk,
        )
        return plans
