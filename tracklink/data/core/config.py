"""Fetch configuration.

A single frozen structure carries every tunable used by the facade and the
progressive loader. Fallback and retry paths derive a new configuration
with :meth:`FetchConfig.with_overrides` rather than mutating the one the
caller passed in.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .constants import (
    DEFAULT_CHUNK_DELAY,
    DEFAULT_CHUNK_SIZE,
    DEFAULT_FALLBACK_PAGE_SIZE,
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_POINTS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PAGE_DELAY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETRY_DELAY,
    DEFAULT_SAMPLING_RATIO,
    DEFAULT_SAMPLING_THRESHOLD,
    MIN_RECENT_LIMIT,
)


@dataclass(frozen=True)
class FetchConfig:
    """Immutable per-invocation fetch configuration.

    Attributes:
        page_size: Records requested per page
        max_pages: Upper bound on pages fetched in one paginated run
        fallback_page_size: Page size used for the single truncation fallback
        max_retries: Attempts made by the progressive loader's fetch
        sampling_threshold: Point count above which sampling applies
        max_points: Ceiling on the sampled point count
        sampling_ratio: Fraction of points kept when sampling
        chunk_size: Points per emitted chunk
        retry_delay: Base back-off delay in seconds
        page_delay: Pause between pages in seconds
        chunk_delay: Pause between emitted chunks in seconds
        min_recent_limit: Floor for the recent-records limit halving
    """

    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES
    fallback_page_size: int = DEFAULT_FALLBACK_PAGE_SIZE
    max_retries: int = DEFAULT_MAX_RETRIES
    sampling_threshold: int = DEFAULT_SAMPLING_THRESHOLD
    max_points: int = DEFAULT_MAX_POINTS
    sampling_ratio: float = DEFAULT_SAMPLING_RATIO
    chunk_size: int = DEFAULT_CHUNK_SIZE
    retry_delay: float = DEFAULT_RETRY_DELAY
    page_delay: float = DEFAULT_PAGE_DELAY
    chunk_delay: float = DEFAULT_CHUNK_DELAY
    min_recent_limit: int = MIN_RECENT_LIMIT

    def __post_init__(self) -> None:
        """Validate configuration values."""
        for name in ("page_size", "max_pages", "fallback_page_size", "max_retries", "chunk_size"):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be >= 1")
        if self.max_points < 2:
            raise ValueError("max_points must be >= 2")
        if self.sampling_threshold < 0:
            raise ValueError("sampling_threshold must be >= 0")
        if not 0 < self.sampling_ratio <= 1:
            raise ValueError("sampling_ratio must be in (0, 1]")
        for name in ("retry_delay", "page_delay", "chunk_delay"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")

    def with_overrides(self, **overrides: Any) -> FetchConfig:
        """Return a new configuration with ``overrides`` applied.

        ``None`` values are ignored so optional keyword arguments can be
        forwarded directly.
        """
        changes = {key: value for key, value in overrides.items() if value is not None}
        if not changes:
            return self
        return replace(self, **changes)
