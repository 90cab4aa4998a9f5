"""Chunking metadata definitions and policy structures.

This module defines the data structures used to describe chunked delivery
and time-windowed fetching: policies, per-chunk plans, and results.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from ...core.constants import (
    DEFAULT_DAYS_PER_CHUNK,
    DEFAULT_WINDOW_DAYS,
    SMALL_DATASET_THRESHOLD,
)


@dataclass(frozen=True)
class WindowPolicy:
    """Time-windowed chunking policy.

    A fixed historical window ending "now" is partitioned into equal day
    ranges that are fetched one after another.

    Attributes:
        window_days: Length of the historical window in days
        days_per_chunk: Length of each chunk's range in days
        small_dataset_threshold: If the first fetch returns fewer records than
            this, the whole result is used as-is and no further chunks run
    """

    window_days: int = DEFAULT_WINDOW_DAYS
    days_per_chunk: int = DEFAULT_DAYS_PER_CHUNK
    small_dataset_threshold: int = SMALL_DATASET_THRESHOLD

    def __post_init__(self) -> None:
        """Validate window policy configuration."""
        if self.window_days < 1:
            raise ValueError("WindowPolicy window_days must be >= 1")
        if self.days_per_chunk < 1:
            raise ValueError("WindowPolicy days_per_chunk must be >= 1")
        if self.small_dataset_threshold < 0:
            raise ValueError("WindowPolicy small_dataset_threshold must be >= 0")

    @property
    def max_chunks(self) -> int:
        """Number of ranges needed to cover the window."""
        return math.ceil(self.window_days / self.days_per_chunk)

    @property
    def window(self) -> timedelta:
        return timedelta(days=self.window_days)

    @property
    def chunk_span(self) -> timedelta:
        return timedelta(days=self.days_per_chunk)


@dataclass(frozen=True)
class ChunkPlan:
    """Plan for a single chunk.

    Attributes:
        chunk_index: Zero-based index of this chunk in the overall plan
        limit: Number of items in this chunk (None for time-based chunks)
        offset: Offset of the first item (offset-based chunks)
        start_time: Inclusive start of the chunk's range (time-based chunks)
        end_time: Exclusive end of the chunk's range (time-based chunks)
    """

    chunk_index: int = 0
    limit: int | None = None
    offset: int = 0
    start_time: datetime | None = None
    end_time: datetime | None = None

    def select(self, items: list[Any]) -> list[Any]:
        """Slice this chunk out of ``items`` (offset-based plans)."""
        if self.limit is None:
            return items[self.offset :]
        return items[self.offset : self.offset + self.limit]


@dataclass
class ChunkResult:
    """Result of chunked execution.

    Attributes:
        data: Aggregated records
        chunks_used: Number of chunks that were fetched successfully
        total_points: Number of records in ``data``
        short_circuited: Whether the small-dataset shortcut ended the run
        failed_chunk: Index of the chunk whose fetch raised, if any
        error: Message of that failure
        start_timestamp: Oldest record timestamp in ``data``
        end_timestamp: Newest record timestamp in ``data``
    """

    data: list[Any] = field(default_factory=list)
    chunks_used: int = 0
    total_points: int = 0
    short_circuited: bool = False
    failed_chunk: int | None = None
    error: str | None = None
    start_timestamp: datetime | None = None
    end_timestamp: datetime | None = None


def calculate_chunk_count(total: int, chunk_size: int) -> int:
    """Number of ``chunk_size`` chunks needed for ``total`` items."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be >= 1")
    return math.ceil(total / chunk_size) if total > 0 else 0
