"""Core building blocks: configuration, enums and exceptions."""

from .config import FetchConfig
from .enums import CheckStatus, HealthStatus, LoadState, ProgressStatus, ViewType
from .exceptions import (
    DataError,
    QueryError,
    RetryExhaustedError,
    TruncatedResponseError,
    is_truncation_error,
)

__all__ = [
    "FetchConfig",
    "CheckStatus",
    "HealthStatus",
    "LoadState",
    "ProgressStatus",
    "ViewType",
    "DataError",
    "QueryError",
    "RetryExhaustedError",
    "TruncatedResponseError",
    "is_truncation_error",
]
