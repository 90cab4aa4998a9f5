"""Path simplification with Douglas-Peucker and an adaptive tolerance.

Distances are planar in degree space. That is adequate for choosing which
points to draw, which is all the result is used for.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from ..core.constants import DEFAULT_SIMPLIFY_MAX_POINTS, TOLERANCE_SEARCH_ITERATIONS
from ..models.location_point import LocationPoint
from .sampling import sample_points


def perpendicular_distance(
    point: LocationPoint, line_start: LocationPoint, line_end: LocationPoint
) -> float:
    """Distance from ``point`` to the line through ``line_start`` and ``line_end``."""
    x, y = point.lat, point.lng
    x1, y1 = line_start.lat, line_start.lng
    x2, y2 = line_end.lat, line_end.lng

    dx = x2 - x1
    dy = y2 - y1
    if dx == 0 and dy == 0:
        return math.hypot(x - x1, y - y1)

    return abs(dy * x - dx * y + x2 * y1 - y2 * x1) / math.hypot(dx, dy)


def douglas_peucker(points: Sequence[LocationPoint], tolerance: float) -> list[LocationPoint]:
    """Keep only points farther than ``tolerance`` from their segment's chord.

    Segments are processed from an explicit stack, so long paths do not hit
    the interpreter's recursion limit. Both endpoints are always kept.
    """
    n = len(points)
    if n <= 2:
        return list(points)

    keep = [False] * n
    keep[0] = keep[-1] = True
    stack = [(0, n - 1)]

    while stack:
        start, end = stack.pop()
        if end - start < 2:
            continue

        max_distance = 0.0
        max_index = start
        for index in range(start + 1, end):
            distance = perpendicular_distance(points[index], points[start], points[end])
            if distance > max_distance:
                max_distance = distance
                max_index = index

        if max_distance > tolerance:
            keep[max_index] = True
            stack.append((start, max_index))
            stack.append((max_index, end))

    return [point for point, kept in zip(points, keep, strict=True) if kept]


def calculate_adaptive_tolerance(points: Sequence[LocationPoint], target_points: int) -> float:
    """Bisect for a tolerance giving between 80% and 100% of ``target_points``.

    The search brackets ``[0.1, 10]`` times a base tolerance of one
    thousandth of the path's larger bounding-box side and stops after
    TOLERANCE_SEARCH_ITERATIONS steps.
    """
    if len(points) <= target_points:
        return 0.0

    lats = [p.lat for p in points]
    lngs = [p.lng for p in points]
    max_range = max(max(lats) - min(lats), max(lngs) - min(lngs))
    base_tolerance = max_range / 1000

    low = base_tolerance * 0.1
    high = base_tolerance * 10
    best = base_tolerance

    for _ in range(TOLERANCE_SEARCH_ITERATIONS):
        mid = (low + high) / 2
        size = len(douglas_peucker(points, mid))
        best = mid
        if size > target_points:
            low = mid
        elif size < target_points * 0.8:
            high = mid
        else:
            break

    return best


def simplify_path(
    points: Sequence[LocationPoint], max_points: int = DEFAULT_SIMPLIFY_MAX_POINTS
) -> list[LocationPoint]:
    """Reduce a path to at most ``max_points`` points while keeping its shape.

    Paths already within budget come back unchanged. Otherwise Douglas-Peucker
    runs with an adaptive tolerance; if the bounded tolerance search still
    leaves too many points, the result is sampled down to ``max_points``.
    First and last points are always kept and order is preserved.

    Raises:
        ValueError: If max_points < 2
    """
    if max_points < 2:
        raise ValueError("max_points must be >= 2")
    if len(points) <= max_points:
        return list(points)

    tolerance = calculate_adaptive_tolerance(points, max_points)
    simplified = douglas_peucker(points, tolerance)
    if len(simplified) > max_points:
        simplified = sample_points(simplified, max_points)
    return simplified
