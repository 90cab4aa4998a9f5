"""Default tunables shared across the acquisition layer."""

from __future__ import annotations

# Pagination
DEFAULT_PAGE_SIZE = 1000
DEFAULT_MAX_PAGES = 50
DEFAULT_FALLBACK_PAGE_SIZE = 500
DEFAULT_MAX_RETRIES = 3
MIN_RECENT_LIMIT = 5
MIN_CHUNK_SIZE = 100

# Delays (seconds)
DEFAULT_RETRY_DELAY = 1.0
DEFAULT_PAGE_DELAY = 0.1
DEFAULT_CHUNK_DELAY = 0.01

# Response validation
DEFAULT_MIN_RESPONSE_SIZE = 100  # bytes
DEFAULT_MAX_RESPONSE_SIZE = 50 * 1024 * 1024  # 50 MiB
COMPLETION_WARNING_PERCENT = 90.0
ID_FIELDS = frozenset({"id", "_id", "uuid"})

# Time-windowed fallback
DEFAULT_WINDOW_DAYS = 90
DEFAULT_DAYS_PER_CHUNK = 7
SMALL_DATASET_THRESHOLD = 1000

# Path loading and simplification
DEFAULT_CHUNK_SIZE = 100
DEFAULT_SAMPLING_THRESHOLD = 500
DEFAULT_MAX_POINTS = 1000
DEFAULT_SAMPLING_RATIO = 0.5
DEFAULT_SIMPLIFY_MAX_POINTS = 100
DEFAULT_MAX_MARKERS = 20
TOLERANCE_SEARCH_ITERATIONS = 10

# Health check
HEALTH_CHECK_PAGE_SIZE = 5

# Record field names, in lookup priority order
TIMESTAMP_FIELDS = (
    "timestampIso",
    "timestampNormalized",
    "timestamp",
    "createdAt",
    "processedAt",
)
RECORD_ID_FIELD = "id"

# Query field selection
DEFAULT_ESTIMATED_RECORDS = 1000
DEFAULT_FIELD_WEIGHT = 50  # bytes, for fields without a known weight
FIELD_JSON_OVERHEAD = 10  # bytes of quoting and separators per field
ARRAY_JSON_OVERHEAD = 1000
HEAVY_FIELD_WEIGHT = 100
SAFE_RESPONSE_SIZE = 1_000_000
MAX_RECOMMENDED_FIELDS = 15
