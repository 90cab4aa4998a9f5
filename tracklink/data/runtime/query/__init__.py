"""Query field selection and response size estimation."""

from __future__ import annotations

from .optimizer import (
    FIELD_WEIGHTS,
    VIEW_PROFILES,
    FieldProfile,
    QueryOptimizer,
    analyze_fields,
    estimate_response_size,
    narrower_view,
    select_fields,
)

__all__ = [
    "FIELD_WEIGHTS",
    "VIEW_PROFILES",
    "FieldProfile",
    "QueryOptimizer",
    "analyze_fields",
    "estimate_response_size",
    "narrower_view",
    "select_fields",
]
