"""Generic chunking layer for incremental delivery and windowed fetching.

This module provides reusable chunking logic: splitting an in-memory list
into fixed-size chunks for progressive delivery, and partitioning a
historical window into day ranges for the time-windowed fetch fallback.

Architecture:
    The chunking layer consists of:
    - definitions.py: Chunk metadata structures (WindowPolicy, ChunkPlan, ChunkResult)
    - planners.py: Chunk planning logic (determines offsets and windows)
    - executors.py: Chunk execution logic (fetches, filters and aggregates windows)
    - telemetry.py: Structured logging
"""

from __future__ import annotations

from .definitions import ChunkPlan, ChunkResult, WindowPolicy, calculate_chunk_count
from .executors import WindowedChunkExecutor
from .planners import ChunkPlanner

__all__ = [
    "WindowPolicy",
    "ChunkPlan",
    "ChunkResult",
    "ChunkPlanner",
    "WindowedChunkExecutor",
    "calculate_chunk_count",
]
