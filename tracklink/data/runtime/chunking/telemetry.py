"""Log events emitted while planning and running chunks.

Every event carries the ``operation`` label of the planner or executor
that produced it, so a single run can be followed across its records.
Window bounds are read off the plans themselves and rendered as ISO-8601.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from .definitions import ChunkPlan, ChunkResult

logger = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def log_plans(operation: str, plans: Sequence[ChunkPlan], **context: Any) -> None:
    """Record how a run was split up.

    ``context`` holds whatever sizing inputs produced the plans, such as
    ``chunk_size`` and ``total`` for offset plans or ``window_days`` for
    time windows.
    """
    first = plans[0] if plans else None
    last = plans[-1] if plans else None
    logger.info(
        "chunks_planned",
        extra={
            "operation": operation,
            "chunk_count": len(plans),
            "window_start": _iso(first.start_time if first else None),
            "window_end": _iso(last.end_time if last else None),
            **context,
        },
    )


def log_window_fetched(
    operation: str, plan: ChunkPlan, *, fetched: int, kept: int, elapsed_ms: float
) -> None:
    """One window came back; ``kept`` of ``fetched`` records fell inside it."""
    logger.info(
        "window_fetched",
        extra={
            "operation": operation,
            "chunk_index": plan.chunk_index,
            "window_start": _iso(plan.start_time),
            "window_end": _iso(plan.end_time),
            "fetched": fetched,
            "kept": kept,
            "elapsed_ms": round(elapsed_ms, 3),
        },
    )


def log_window_failed(operation: str, plan: ChunkPlan, error: Exception) -> None:
    logger.error(
        "window_failed",
        extra={
            "operation": operation,
            "chunk_index": plan.chunk_index,
            "window_start": _iso(plan.start_time),
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
    )


def log_run_finished(operation: str, result: ChunkResult, *, elapsed_ms: float) -> None:
    """Summarize a windowed run, including partial and short-circuited ones."""
    if result.short_circuited:
        outcome = "short_circuited"
    elif result.failed_chunk is not None:
        outcome = "partial"
    else:
        outcome = "complete"
    logger.info(
        "chunk_run_finished",
        extra={
            "operation": operation,
            "outcome": outcome,
            "chunks_used": result.chunks_used,
            "records": result.total_points,
            "oldest": _iso(result.start_timestamp),
            "newest": _iso(result.end_timestamp),
            "elapsed_ms": round(elapsed_ms, 3),
        },
    )
