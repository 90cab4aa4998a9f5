"""Marker selection for map paths."""

from __future__ import annotations

from collections.abc import Sequence

from ..core.constants import DEFAULT_MAX_MARKERS
from ..models.location_point import LocationPoint
from ..models.path import Marker

START_LABEL = "Start"
END_LABEL = "End"


def cluster_markers(
    points: Sequence[LocationPoint], max_markers: int = DEFAULT_MAX_MARKERS
) -> list[Marker]:
    """Select at most ``max_markers`` markers along a path.

    Short paths get one unlabeled marker per point. Longer paths get a
    "Start" marker, evenly strided intermediate markers, and an "End" marker.

    Raises:
        ValueError: If the path needs reducing and max_markers < 2
    """
    if not points:
        return []

    if len(points) <= max_markers:
        return [Marker(point=point) for point in points]

    if max_markers < 2:
        raise ValueError("max_markers must be >= 2")

    n = len(points)
    markers = [Marker(point=points[0], label=START_LABEL)]

    remaining = max_markers - 2
    if remaining > 0:
        step = max(1, (n - 2) // remaining)
        index = step
        while index < n - 1:
            if len(markers) >= max_markers - 1:
                break
            markers.append(Marker(point=points[index]))
            index += step

    markers.append(Marker(point=points[-1], label=END_LABEL))
    return markers
