"""Runtime components: validation, pagination, chunking, retry, progress and query fields."""

from .chunking import ChunkPlan, ChunkPlanner, ChunkResult, WindowedChunkExecutor, WindowPolicy
from .pagination import PaginationManager, estimate_total_pages
from .progress import ProgressReporter
from .query import QueryOptimizer, narrower_view
from .retry import exponential_backoff, linear_backoff, retry_async
from .validation import ResponseValidator, detect_truncation, validate_response

__all__ = [
    "ChunkPlan",
    "ChunkPlanner",
    "ChunkResult",
    "WindowedChunkExecutor",
    "WindowPolicy",
    "PaginationManager",
    "estimate_total_pages",
    "ProgressReporter",
    "QueryOptimizer",
    "narrower_view",
    "exponential_backoff",
    "linear_backoff",
    "retry_async",
    "ResponseValidator",
    "detect_truncation",
    "validate_response",
]
