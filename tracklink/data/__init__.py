"""Tracklink Data - truncation-aware telemetry fetching and path preparation."""

from .api import SafeAnalyticsAPI
from .clients import AnalyticsQueryClient
from .core import (
    CheckStatus,
    DataError,
    FetchConfig,
    HealthStatus,
    LoadState,
    ProgressStatus,
    QueryError,
    RetryExhaustedError,
    TruncatedResponseError,
    ViewType,
    is_truncation_error,
)
from .geo import cluster_markers, normalize_location_points, sample_points, simplify_path
from .loaders import ProgressivePathLoader, load_location_data_progressive
from .models import (
    ChunkEvent,
    HealthReport,
    HealthTest,
    LoadMetadata,
    LoadResult,
    LocationPoint,
    Marker,
    PageProgress,
    ProgressReport,
    ValidationReport,
    ValidationResult,
)
from .runtime import (
    PaginationManager,
    ResponseValidator,
    detect_truncation,
    estimate_total_pages,
    validate_response,
)

__version__ = "0.1.0"

__all__ = [
    # Configuration and enums
    "FetchConfig",
    "CheckStatus",
    "HealthStatus",
    "LoadState",
    "ProgressStatus",
    "ViewType",
    # Components
    "SafeAnalyticsAPI",
    "PaginationManager",
    "ResponseValidator",
    "ProgressivePathLoader",
    "detect_truncation",
    "validate_response",
    "estimate_total_pages",
    "load_location_data_progressive",
    # Geometry
    "simplify_path",
    "cluster_markers",
    "sample_points",
    "normalize_location_points",
    # Models
    "ChunkEvent",
    "HealthReport",
    "HealthTest",
    "LoadMetadata",
    "LoadResult",
    "LocationPoint",
    "Marker",
    "PageProgress",
    "ProgressReport",
    "ValidationReport",
    "ValidationResult",
    # Clients
    "AnalyticsQueryClient",
    # Exceptions
    "DataError",
    "QueryError",
    "RetryExhaustedError",
    "TruncatedResponseError",
    "is_truncation_error",
]
