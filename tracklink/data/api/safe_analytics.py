"""Safe analytics facade.

Architecture:
    The facade composes the response validator, the pagination manager and
    the windowed chunk executor over caller-supplied fetch functions:

        page_fetch(skip, limit) -> list
        key_fetch(key) -> list
        view_fetch(key, view) -> list    (optional)
        count_fetch() -> int             (optional)

    Each public operation turns truncation (detected locally or reported by
    a fetch function's error message) into a bounded recovery strategy:
    a smaller page size, a narrower field set, a time-windowed re-fetch,
    or a smaller limit.
    Errors that are not truncation propagate unchanged.

Design Decisions:
    - No global instance: callers construct the facade, or build one over a
      query client with :meth:`SafeAnalyticsAPI.from_client`.
    - Fallbacks derive a new FetchConfig instead of mutating the caller's.
    - The windowed fallback filters on the client: it assumes every call of
      ``key_fetch`` returns the same full history for the key.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any

from ..core.config import FetchConfig
from ..core.constants import DEFAULT_DAYS_PER_CHUNK, DEFAULT_WINDOW_DAYS, HEALTH_CHECK_PAGE_SIZE
from ..core.enums import CheckStatus, HealthStatus, ViewType
from ..core.exceptions import TruncatedResponseError, is_truncation_error
from ..models.health import HealthReport, HealthTest
from ..models.progress import PageProgress
from ..runtime.chunking import ChunkPlan, ChunkPlanner, WindowedChunkExecutor, WindowPolicy
from ..runtime.pagination import PaginationManager, estimate_total_pages
from ..runtime.progress import ProgressCallback, ProgressReporter
from ..runtime.query import narrower_view
from ..runtime.retry import linear_backoff
from ..runtime.validation import ResponseValidator
from ..utils.records import as_records
from ..utils.timing import PerformanceTimer

if TYPE_CHECKING:
    from ..clients.analytics import AnalyticsQueryClient

logger = logging.getLogger(__name__)

PageFetch = Callable[[int, int], Awaitable[Any]]
KeyFetch = Callable[[str], Awaitable[Any]]
ViewFetch = Callable[[str, ViewType], Awaitable[Any]]
CountFetch = Callable[[], Awaitable[int]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SafeAnalyticsAPI:
    """Truncation-aware fetching of analytics records."""

    def __init__(
        self,
        *,
        page_fetch: PageFetch,
        key_fetch: KeyFetch,
        count_fetch: CountFetch | None = None,
        view_fetch: ViewFetch | None = None,
        validator: ResponseValidator | None = None,
        pagination: PaginationManager | None = None,
        config: FetchConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            page_fetch: Async ``(skip, limit) -> list``
            key_fetch: Async ``(key) -> list`` returning one key's full history
            count_fetch: Async ``() -> int`` used for progress estimates and health
            view_fetch: Async ``(key, view) -> list`` requesting only the view's fields
            validator: Response validator (a default one when omitted)
            pagination: Pagination manager (built from ``config`` when omitted)
            config: Fetch configuration
            clock: Returns "now" for the windowed fallback (UTC by default)
        """
        self.config = config or FetchConfig()
        self.validator = validator or ResponseValidator()
        self.pagination = pagination or PaginationManager(
            default_page_size=self.config.page_size,
            max_pages=self.config.max_pages,
            retry_delay=self.config.retry_delay,
            page_delay=self.config.page_delay,
        )
        self._page_fetch = page_fetch
        self._key_fetch = key_fetch
        self._count_fetch = count_fetch
        self._view_fetch = view_fetch
        self._clock = clock or _utcnow

    @classmethod
    def from_client(cls, client: AnalyticsQueryClient, **kwargs: Any) -> SafeAnalyticsAPI:
        """Build a facade over an analytics query client."""
        return cls(
            page_fetch=client.fetch_page,
            key_fetch=client.fetch_by_imei,
            count_fetch=client.fetch_count,
            view_fetch=client.fetch_by_imei,
            **kwargs,
        )

    async def get_all_safe(
        self,
        *,
        page_size: int | None = None,
        max_pages: int | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> list[Any]:
        """Fetch every record page by page.

        On truncation the run is restarted once with the fallback page size,
        provided the requested size is larger than it.

        Raises:
            TruncatedResponseError: If truncation persists after the fallback
        """
        config = self.config.with_overrides(page_size=page_size, max_pages=max_pages)
        reporter = ProgressReporter(on_progress)
        total_count = await self._estimate_count()

        attempts = [config]
        if config.page_size > config.fallback_page_size:
            attempts.append(config.with_overrides(page_size=config.fallback_page_size))

        for index, attempt in enumerate(attempts):
            try:
                results = await self.pagination.fetch_paginated(
                    self._page_fetch,
                    page_size=attempt.page_size,
                    max_pages=attempt.max_pages,
                    on_progress=self._page_progress(reporter, attempt, total_count),
                    validate_response=self.validator,
                )
            except Exception as e:
                if is_truncation_error(e) and index + 1 < len(attempts):
                    logger.warning(
                        "fetch_all_fallback",
                        extra={
                            "page_size": attempt.page_size,
                            "fallback_page_size": attempt.fallback_page_size,
                            "error_message": str(e),
                        },
                    )
                    continue
                logger.error(
                    "fetch_all_failed",
                    extra={"page_size": attempt.page_size, "error_message": str(e)},
                )
                reporter.error(e, total_items=0)
                raise

            reporter.complete(
                total_items=len(results),
                message=f"Fetched {len(results)} records",
            )
            logger.info(
                "fetch_all_complete",
                extra={"records": len(results), "page_size": attempt.page_size},
            )
            return results

        raise AssertionError("unreachable")

    async def get_by_key_safe(
        self,
        key: str,
        *,
        window_days: int = DEFAULT_WINDOW_DAYS,
        days_per_chunk: int = DEFAULT_DAYS_PER_CHUNK,
        on_progress: ProgressCallback | None = None,
    ) -> list[Any]:
        """Fetch one key's history, falling back to time windows on truncation.

        The fallback never raises: a failing window ends it and the records
        gathered so far are returned, deduplicated and newest first.

        Raises:
            Exception: Any non-truncation error of the initial fetch, unchanged
        """
        reporter = ProgressReporter(on_progress)
        reporter.loading(0, message=f"Fetching records for {key}...")

        try:
            data = await self._key_fetch(key)
        except Exception as e:
            if not is_truncation_error(e):
                reporter.error(e)
                raise
            reason = str(e)
        else:
            validation = self.validator(data)
            if not validation.is_truncated:
                if not validation.is_valid:
                    logger.warning(
                        "key_fetch_validation_failed",
                        extra={"key": key, "errors": list(validation.errors)},
                    )
                records = as_records(data)
                reporter.complete(total_items=len(records), message=f"Fetched {len(records)} records")
                return records
            reason = "; ".join(validation.errors) or "Response was truncated"

        logger.warning("key_fetch_truncated", extra={"key": key, "reason": reason})
        return await self._fetch_by_windows(
            key,
            WindowPolicy(window_days=window_days, days_per_chunk=days_per_chunk),
            reporter,
            lambda plan: self._key_fetch(key),
        )

    async def get_by_key_optimized(
        self,
        key: str,
        *,
        view: ViewType | str = ViewType.MAP,
        max_attempts: int | None = None,
        window_days: int = DEFAULT_WINDOW_DAYS,
        days_per_chunk: int = DEFAULT_DAYS_PER_CHUNK,
        on_progress: ProgressCallback | None = None,
    ) -> list[Any]:
        """Fetch one key's history requesting only the fields ``view`` needs.

        A truncated response repeats the query with the next narrower view,
        pausing ``retry_delay * attempt`` in between. Once MAP has been
        truncated too, or ``max_attempts`` (``config.max_retries`` by default)
        is used up, the time-windowed fallback runs with the last view.

        Raises:
            ValueError: If the facade was built without ``view_fetch``
            Exception: Any non-truncation error, unchanged
        """
        if self._view_fetch is None:
            raise ValueError("get_by_key_optimized requires a view_fetch function")
        view_fetch = self._view_fetch
        attempts = max_attempts or self.config.max_retries
        backoff = linear_backoff(self.config.retry_delay)
        view = ViewType(view)
        reporter = ProgressReporter(on_progress)
        reporter.loading(0, message=f"Fetching {view.value} fields for {key}...")

        for attempt in range(1, attempts + 1):
            try:
                data = await view_fetch(key, view)
                validation = self.validator(data)
                if validation.is_truncated:
                    raise TruncatedResponseError(
                        f"Response for {key} was truncated with {view.value} fields",
                        validation=validation,
                    )
            except Exception as e:
                if not is_truncation_error(e):
                    reporter.error(e)
                    raise
                narrower = narrower_view(view)
                logger.warning(
                    "key_fetch_view_truncated",
                    extra={
                        "key": key,
                        "view": view.value,
                        "attempt": attempt,
                        "next_view": narrower.value,
                        "error_message": str(e),
                    },
                )
                if narrower == view or attempt == attempts:
                    break
                view = narrower
                delay = backoff(attempt)
                if delay > 0:
                    await asyncio.sleep(delay)
                continue

            if not validation.is_valid:
                logger.warning(
                    "key_fetch_validation_failed",
                    extra={"key": key, "view": view.value, "errors": list(validation.errors)},
                )
            records = as_records(data)
            reporter.complete(
                total_items=len(records),
                message=f"Fetched {len(records)} records with {view.value} fields",
            )
            logger.info(
                "key_fetch_optimized_complete",
                extra={"key": key, "view": view.value, "attempts": attempt, "records": len(records)},
            )
            return records

        final_view = view
        return await self._fetch_by_windows(
            key,
            WindowPolicy(window_days=window_days, days_per_chunk=days_per_chunk),
            reporter,
            lambda plan: view_fetch(key, final_view),
        )

    async def get_recent_safe(self, limit: int = 10) -> list[Any]:
        """Fetch the newest ``limit`` records, halving the limit on truncation.

        Raises:
            TruncatedResponseError: If truncation persists down to the minimum limit
        """
        while True:
            try:
                data = await self._page_fetch(0, limit)
                validation = self.validator(data)
                if validation.is_truncated:
                    raise TruncatedResponseError(
                        f"Recent records response was truncated (limit={limit})",
                        validation=validation,
                    )
                if not validation.is_valid:
                    logger.warning(
                        "recent_validation_failed",
                        extra={"limit": limit, "errors": list(validation.errors)},
                    )
                return as_records(data)
            except Exception as e:
                if not is_truncation_error(e) or limit <= self.config.min_recent_limit:
                    raise
                logger.warning(
                    "recent_limit_reduced",
                    extra={"limit": limit, "new_limit": limit // 2, "error_message": str(e)},
                )
                limit //= 2

    async def health_check(self) -> HealthReport:
        """Probe the endpoint with a count query and a small page."""
        tests: dict[str, HealthTest] = {}
        try:
            if self._count_fetch is not None:
                timer = PerformanceTimer("health_count").start()
                count = await self._count_fetch()
                tests["count"] = HealthTest(
                    status=CheckStatus.PASS,
                    response_time_ms=timer.stop(),
                    result=count,
                )

            timer = PerformanceTimer("health_pagination").start()
            page = await self._page_fetch(0, HEALTH_CHECK_PAGE_SIZE)
            elapsed = timer.stop()
            validation = self.validator(page)
            tests["pagination"] = HealthTest(
                status=CheckStatus.PASS if validation.is_valid else CheckStatus.FAIL,
                response_time_ms=elapsed,
                record_count=len(as_records(page)),
                validation=validation,
            )
        except Exception as e:
            logger.error(
                "health_check_failed",
                extra={"error_type": type(e).__name__, "error_message": str(e)},
            )
            return HealthReport(
                status=HealthStatus.UNHEALTHY,
                timestamp=self._clock(),
                tests=tests,
                error=str(e),
            )

        passed = all(test.status == CheckStatus.PASS for test in tests.values())
        report = HealthReport(
            status=HealthStatus.HEALTHY if passed else HealthStatus.DEGRADED,
            timestamp=self._clock(),
            tests=tests,
        )
        logger.info("health_check_complete", extra={"status": report.status.value})
        return report

    async def _estimate_count(self) -> int | None:
        if self._count_fetch is None:
            return None
        try:
            return await self._count_fetch()
        except Exception as e:
            logger.warning("count_estimate_failed", extra={"error_message": str(e)})
            return None

    @staticmethod
    def _page_progress(
        reporter: ProgressReporter, config: FetchConfig, total_count: int | None
    ) -> Callable[[PageProgress], None]:
        total_pages = estimate_total_pages(total_count, config.page_size)

        def on_page(page: PageProgress) -> None:
            if total_count:
                percent = page.total_items / total_count * 100
            else:
                percent = page.current_page / config.max_pages * 100
            reporter.loading(
                percent,
                total_items=page.total_items,
                chunks_loaded=page.current_page,
                total_chunks=min(total_pages, config.max_pages) if total_pages else None,
                estimated_total=total_count or None,
                message=f"Fetched page {page.current_page} ({page.total_items} records)",
            )

        return on_page

    async def _fetch_by_windows(
        self,
        key: str,
        policy: WindowPolicy,
        reporter: ProgressReporter,
        fetch_chunk: Callable[[ChunkPlan], Awaitable[Any]],
    ) -> list[Any]:
        plans = ChunkPlanner(operation="key_window_fallback").plan_windows(
            now=self._clock(), policy=policy
        )
        executor = WindowedChunkExecutor(policy, operation="key_window_fallback")

        def on_chunk(plan: ChunkPlan, rows_kept: int, total_rows: int) -> None:
            reporter.loading(
                (plan.chunk_index + 1) / len(plans) * 100,
                total_items=total_rows,
                chunks_loaded=plan.chunk_index + 1,
                total_chunks=len(plans),
                message=f"Fetched window {plan.chunk_index + 1}/{len(plans)} ({rows_kept} records)",
            )

        result = await executor.execute(
            plans=plans,
            fetch_chunk=fetch_chunk,
            on_chunk=on_chunk,
        )
        if result.error is not None:
            logger.warning(
                "key_window_fallback_partial",
                extra={"key": key, "failed_chunk": result.failed_chunk, "error_message": result.error},
            )

        reporter.complete(
            total_items=result.total_points,
            chunks_loaded=result.chunks_used,
            total_chunks=len(plans),
            message=f"Fetched {result.total_points} records in {result.chunks_used} windows",
        )
        return result.data
