"""Endpoint-preserving uniform sampling."""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")


def sample_points(points: Sequence[T], target_size: int) -> list[T]:
    """Reduce ``points`` to at most ``target_size`` items at a fixed stride.

    The first and last items are always kept and the original order is
    preserved.

    Raises:
        ValueError: If target_size < 2
    """
    n = len(points)
    if n <= target_size:
        return list(points)
    if target_size < 2:
        raise ValueError("target_size must be >= 2")

    result = [points[0]]
    if target_size > 2:
        interval = max(1, (n - 2) // (target_size - 2))
        index = interval
        while index < n - 1 and len(result) < target_size - 1:
            result.append(points[index])
            index += interval
    result.append(points[-1])
    return result


def sampling_target(
    count: int, *, max_points: int, sampling_ratio: float
) -> int:
    """Target size for a sampled dataset of ``count`` points."""
    return max(2, min(max_points, math.floor(count * sampling_ratio)))
