"""Data models for the acquisition layer.

Architecture:
    This module exports the Pydantic v2 models that cross the public API.
    All models are immutable (frozen=True): validation results, progress
    reports and health reports are judgment artifacts built once and never
    modified after they are returned.

Model Categories:
    - Geometry: LocationPoint, Marker
    - Validation: ValidationResult, ValidationMetadata, TruncationCheck,
      ValidationReport
    - Progress: ProgressReport, PageProgress, ChunkEvent
    - Results: LoadResult, LoadMetadata, HealthReport, HealthTest
    - Queries: QueryAnalysis

Telemetry records themselves stay plain mappings; their shape is owned by
the remote endpoint.
"""

from .health import HealthReport, HealthTest
from .location_point import LocationPoint
from .path import LoadMetadata, LoadResult, Marker
from .progress import ChunkEvent, PageProgress, ProgressReport
from .query import QueryAnalysis
from .validation import (
    TruncationCheck,
    ValidationMetadata,
    ValidationReport,
    ValidationResult,
    ValidationSummary,
)

__all__ = [
    "ChunkEvent",
    "HealthReport",
    "HealthTest",
    "LoadMetadata",
    "LoadResult",
    "LocationPoint",
    "Marker",
    "PageProgress",
    "ProgressReport",
    "QueryAnalysis",
    "TruncationCheck",
    "ValidationMetadata",
    "ValidationReport",
    "ValidationResult",
    "ValidationSummary",
]
