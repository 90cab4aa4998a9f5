"""Skip/limit pagination over a caller-supplied page fetch function."""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable
from time import perf_counter
from typing import Any

from ...core.constants import (
    DEFAULT_MAX_PAGES,
    DEFAULT_PAGE_DELAY,
    DEFAULT_PAGE_SIZE,
    DEFAULT_RETRY_DELAY,
    MIN_CHUNK_SIZE,
)
from ...core.exceptions import TruncatedResponseError, is_truncation_error
from ...models.progress import PageProgress
from ...models.validation import ValidationResult
from ...utils.records import as_records
from ..retry import exponential_backoff, retry_async

logger = logging.getLogger(__name__)

PageFetch = Callable[[int, int], Awaitable[Any]]
KeyedPageFetch = Callable[[str, int, int], Awaitable[Any]]
PageValidator = Callable[[Any], ValidationResult]
PageProgressCallback = Callable[[PageProgress], None]


class PaginationManager:
    """Drives sequential page fetches into one ordered result.

    Pages are requested strictly one after another with ``skip`` advancing
    by ``page_size``; results are concatenated in fetch order without
    reordering or deduplication.
    """

    def __init__(
        self,
        *,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_pages: int = DEFAULT_MAX_PAGES,
        max_page_size: int = 5000,
        retry_attempts: int = 1,
        retry_delay: float = DEFAULT_RETRY_DELAY,
        page_delay: float = DEFAULT_PAGE_DELAY,
    ) -> None:
        """Initialize pagination manager.

        Args:
            default_page_size: Page size when a call does not specify one
            max_pages: Page ceiling when a call does not specify one
            max_page_size: Upper bound for calculate_optimal_page_size
            retry_attempts: Attempts per page for non-truncation errors (1 = no retry)
            retry_delay: Base delay of the exponential back-off between attempts
            page_delay: Pause between consecutive pages, in seconds
        """
        if default_page_size < 1 or max_pages < 1 or retry_attempts < 1:
            raise ValueError("default_page_size, max_pages and retry_attempts must be >= 1")
        self.default_page_size = default_page_size
        self.max_pages = max_pages
        self.max_page_size = max_page_size
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.page_delay = page_delay

    async def fetch_paginated(
        self,
        page_fetch: PageFetch,
        *,
        page_size: int | None = None,
        max_pages: int | None = None,
        on_progress: PageProgressCallback | None = None,
        validate_response: PageValidator | None = None,
    ) -> list[Any]:
        """Fetch all pages until a short page or the page ceiling.

        Args:
            page_fetch: Async function ``(skip, limit) -> list``
            page_size: Records per page
            max_pages: Maximum number of pages to fetch
            on_progress: Optional callback receiving a PageProgress after each page
            validate_response: Optional validator applied to each raw page

        Returns:
            Concatenated page contents in fetch order

        Raises:
            TruncatedResponseError: If a page validates as truncated
        """
        page_size = page_size or self.default_page_size
        max_pages = max_pages or self.max_pages
        if page_size < 1 or max_pages < 1:
            raise ValueError("page_size and max_pages must be >= 1")

        results: list[Any] = []
        started = perf_counter()
        current_page = 0

        logger.debug(
            "pagination_started", extra={"page_size": page_size, "max_pages": max_pages}
        )

        while current_page < max_pages:
            skip = current_page * page_size
            page_number = current_page + 1

            page_data = await retry_async(
                lambda skip=skip: page_fetch(skip, page_size),
                attempts=self.retry_attempts,
                backoff=exponential_backoff(self.retry_delay),
                should_retry=lambda e: not is_truncation_error(e),
                description=f"page {page_number}",
            )

            if validate_response is not None:
                validation = validate_response(page_data)
                if not validation.is_valid:
                    logger.warning(
                        "page_validation_failed",
                        extra={
                            "page": page_number,
                            "is_truncated": validation.is_truncated,
                            "errors": list(validation.errors),
                        },
                    )
                    if validation.is_truncated:
                        raise TruncatedResponseError(
                            f"Page {page_number} response was truncated",
                            page=page_number,
                            validation=validation,
                        )

            page_items = as_records(page_data)
            results.extend(page_items)
            has_more_data = len(page_items) >= page_size
            current_page += 1

            logger.debug(
                "page_completed",
                extra={
                    "page": page_number,
                    "skip": skip,
                    "items": len(page_items),
                    "total_items": len(results),
                },
            )

            if on_progress:
                on_progress(
                    PageProgress(
                        current_page=page_number,
                        items_this_page=len(page_items),
                        total_items=len(results),
                        has_more_data=has_more_data,
                    )
                )

            if not has_more_data:
                break
            if current_page < max_pages and self.page_delay > 0:
                await asyncio.sleep(self.page_delay)

        logger.info(
            "pagination_complete",
            extra={
                "pages": current_page,
                "total_items": len(results),
                "latency_ms": (perf_counter() - started) * 1000.0,
            },
        )
        return results

    async def fetch_in_chunks(
        self,
        keyed_fetch: KeyedPageFetch,
        key: str,
        *,
        chunk_size: int | None = None,
        max_chunks: int | None = None,
        min_chunk_size: int = MIN_CHUNK_SIZE,
        on_progress: PageProgressCallback | None = None,
        validate_response: PageValidator | None = None,
    ) -> list[Any]:
        """Page through one key's records, shrinking the chunk size on truncation.

        A truncated chunk restarts the run from the first chunk at half the
        size, as long as the current size is above ``min_chunk_size``.

        Args:
            keyed_fetch: Async function ``(key, skip, limit) -> list``
            key: Key passed through to every call
            chunk_size: Records per chunk
            max_chunks: Maximum number of chunks per run
            min_chunk_size: Sizes at or below this are not halved further
            on_progress: Optional callback receiving a PageProgress per chunk
            validate_response: Optional validator applied to each raw chunk

        Raises:
            TruncatedResponseError: If truncation persists at the minimum size
        """
        chunk_size = chunk_size or self.default_page_size

        while True:
            try:
                return await self.fetch_paginated(
                    lambda skip, limit: keyed_fetch(key, skip, limit),
                    page_size=chunk_size,
                    max_pages=max_chunks,
                    on_progress=on_progress,
                    validate_response=validate_response,
                )
            except Exception as e:
                if not is_truncation_error(e) or chunk_size <= min_chunk_size:
                    raise
                logger.warning(
                    "chunk_size_reduced",
                    extra={
                        "key": key,
                        "chunk_size": chunk_size,
                        "new_chunk_size": chunk_size // 2,
                        "error_message": str(e),
                    },
                )
                chunk_size //= 2

    def calculate_optimal_page_size(
        self, average_item_size: float | None, target_response_size: int = 1024 * 1024
    ) -> int:
        """Page size that keeps responses near ``target_response_size`` bytes."""
        if not average_item_size or average_item_size <= 0:
            return self.default_page_size
        optimal = int(target_response_size // average_item_size)
        return max(10, min(optimal, self.max_page_size))


def estimate_total_pages(total_count: int | None, page_size: int) -> int | None:
    """Pages needed for ``total_count`` records, or None when the count is unknown."""
    if not total_count or total_count <= 0:
        return None
    return math.ceil(total_count / page_size)
