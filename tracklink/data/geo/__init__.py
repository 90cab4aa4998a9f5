"""Path preparation for map rendering: normalization, sampling, simplification, markers."""

from .markers import END_LABEL, START_LABEL, cluster_markers
from .normalize import normalize_location_points
from .sampling import sample_points, sampling_target
from .simplify import (
    calculate_adaptive_tolerance,
    douglas_peucker,
    perpendicular_distance,
    simplify_path,
)

__all__ = [
    "END_LABEL",
    "START_LABEL",
    "calculate_adaptive_tolerance",
    "cluster_markers",
    "douglas_peucker",
    "normalize_location_points",
    "perpendicular_distance",
    "sample_points",
    "sampling_target",
    "simplify_path",
]
