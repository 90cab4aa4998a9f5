"""Utility helpers."""

from .records import (
    as_records,
    extract_timestamp,
    filter_by_time_range,
    parse_timestamp,
    remove_duplicates,
    sort_by_timestamp_desc,
)
from .timing import PerformanceTimer, measure_performance

__all__ = [
    "PerformanceTimer",
    "measure_performance",
    "as_records",
    "extract_timestamp",
    "filter_by_time_range",
    "parse_timestamp",
    "remove_duplicates",
    "sort_by_timestamp_desc",
]
