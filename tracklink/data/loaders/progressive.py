"""Progressive loading of a device's location history.

Architecture:
    The loader fetches the full history for one key in a single call (with
    bounded retries), optionally samples it down, then re-splits the result
    into fixed-size chunks that are handed to the caller one at a time with
    progress reports in between. Chunks are delivered strictly in order and
    the loop yields to the event loop between chunks so renderers can draw.

Design Decisions:
    - Each call is a fresh run (idle -> loading -> complete | error); the
      ``state`` attribute reflects the most recent run only.
    - "No data" is a successful, complete run with zero points.
    - Cancellation is not supported: a caller abandoning a stale load
      discards its result.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

from ..core.config import FetchConfig
from ..core.enums import LoadState, ProgressStatus
from ..core.exceptions import RetryExhaustedError
from ..geo.sampling import sample_points, sampling_target
from ..models.path import LoadMetadata, LoadResult
from ..models.progress import ChunkEvent, ProgressReport
from ..runtime.chunking import ChunkPlanner
from ..runtime.progress import ProgressCallback, ProgressReporter
from ..runtime.retry import linear_backoff, retry_async
from ..utils.records import as_records
from ..utils.timing import PerformanceTimer

logger = logging.getLogger(__name__)

KeyFetch = Callable[[str], Awaitable[Any]]
ChunkCallback = Callable[[list[Any], int], None]


class ProgressivePathLoader:
    """Loads location data in chunks with progress reporting and sampling."""

    def __init__(self, config: FetchConfig | None = None) -> None:
        """Initialize loader.

        Args:
            config: Fetch configuration (chunk size, sampling, retry settings)
        """
        self.config = config or FetchConfig()
        self.state = LoadState.IDLE
        self._planner = ChunkPlanner(operation="path_load")

    async def load(
        self,
        fetch_fn: KeyFetch,
        key: str,
        *,
        on_progress: ProgressCallback | None = None,
        on_chunk: ChunkCallback | None = None,
        chunk_size: int | None = None,
        enable_sampling: bool = True,
    ) -> LoadResult:
        """Load location data for ``key`` progressively.

        Args:
            fetch_fn: Async function ``(key) -> list`` returning the full history
            key: Device key (IMEI)
            on_progress: Optional sink for ProgressReports
            on_chunk: Optional callback ``(chunk, chunk_index)``
            chunk_size: Override the configured chunk size
            enable_sampling: Sample datasets above the sampling threshold

        Returns:
            LoadResult with the delivered points and load metadata

        Raises:
            RetryExhaustedError: If every fetch attempt failed
        """
        chunk_size = chunk_size or self.config.chunk_size
        timer = PerformanceTimer(f"path_load:{key}").start()
        reporter = ProgressReporter(on_progress)
        delivered: list[Any] = []
        chunks_loaded = 0

        self.state = LoadState.LOADING
        reporter.loading(0, message="Starting data fetch...")

        try:
            full_data = as_records(await self._fetch_with_retry(fetch_fn, key))

            if not full_data:
                reporter.complete(message="No location data available")
                self.state = LoadState.COMPLETE
                return LoadResult(metadata=LoadMetadata(load_time_ms=timer.stop()))

            processed = self._sample(full_data) if enable_sampling else list(full_data)
            was_sampled = len(processed) < len(full_data)
            plans = self._planner.plan_offsets(total=len(processed), chunk_size=chunk_size)
            total = len(processed)

            for plan in plans:
                chunk = plan.select(processed)
                delivered.extend(chunk)
                chunks_loaded += 1

                reporter.loading(
                    round(len(delivered) / total * 100),
                    total_items=len(delivered),
                    chunks_loaded=chunks_loaded,
                    total_chunks=len(plans),
                    estimated_total=total,
                    message=f"Loading location data ({len(delivered)}/{total} points)...",
                )
                if on_chunk:
                    on_chunk(chunk, plan.chunk_index)

                if chunks_loaded < len(plans) and self.config.chunk_delay > 0:
                    await asyncio.sleep(self.config.chunk_delay)

        except Exception as e:
            self.state = LoadState.ERROR
            reporter.error(e, total_items=len(delivered), chunks_loaded=chunks_loaded)
            raise

        load_time_ms = timer.stop()
        reporter.complete(
            total_items=len(delivered),
            chunks_loaded=chunks_loaded,
            total_chunks=chunks_loaded,
            message=(
                f"Loaded {len(delivered)} points (sampled from {len(full_data)})"
                if was_sampled
                else f"Loaded {len(delivered)} points"
            ),
        )
        self.state = LoadState.COMPLETE

        logger.info(
            "path_load_complete",
            extra={
                "key": key,
                "original_points": len(full_data),
                "total_points": len(delivered),
                "chunks": chunks_loaded,
                "load_time_ms": load_time_ms,
            },
        )

        return LoadResult(
            data=delivered,
            metadata=LoadMetadata(
                original_points=len(full_data),
                total_points=len(delivered),
                chunks_loaded=chunks_loaded,
                load_time_ms=load_time_ms,
                sampled=was_sampled,
                sampling_ratio=len(delivered) / len(full_data) if was_sampled else 1.0,
            ),
        )

    async def stream_chunks(
        self,
        fetch_fn: KeyFetch,
        key: str,
        *,
        chunk_size: int | None = None,
        enable_sampling: bool = True,
    ) -> AsyncIterator[ChunkEvent]:
        """Yield chunks as they are prepared, each with its progress.

        Failures are delivered as a final event with ``status=error`` and an
        empty chunk instead of being raised.
        """
        chunk_size = chunk_size or self.config.chunk_size
        self.state = LoadState.LOADING

        try:
            full_data = as_records(await self._fetch_with_retry(fetch_fn, key))
        except RetryExhaustedError as e:
            self.state = LoadState.ERROR
            logger.error("path_stream_failed", extra={"key": key, "error_message": str(e)})
            yield ChunkEvent(
                chunk=[],
                progress=ProgressReport(
                    status=ProgressStatus.ERROR,
                    message=f"Error: {e}",
                    error=str(e),
                ),
            )
            return

        if not full_data:
            self.state = LoadState.COMPLETE
            yield ChunkEvent(
                chunk=[],
                progress=ProgressReport(
                    status=ProgressStatus.COMPLETE,
                    progress=100,
                    message="No location data available",
                ),
            )
            return

        processed = self._sample(full_data) if enable_sampling else list(full_data)
        plans = self._planner.plan_offsets(total=len(processed), chunk_size=chunk_size)
        total = len(processed)

        for plan in plans:
            chunk = plan.select(processed)
            delivered = plan.offset + len(chunk)
            is_last = plan.chunk_index == len(plans) - 1
            yield ChunkEvent(
                chunk=chunk,
                progress=ProgressReport(
                    status=ProgressStatus.COMPLETE if is_last else ProgressStatus.LOADING,
                    progress=min(100, round(delivered / total * 100)),
                    total_items=delivered,
                    estimated_total=total,
                    chunks_loaded=plan.chunk_index + 1,
                    total_chunks=len(plans),
                    message=f"Loading chunk {plan.chunk_index + 1}/{len(plans)}...",
                ),
            )
            if not is_last and self.config.chunk_delay > 0:
                await asyncio.sleep(self.config.chunk_delay)

        self.state = LoadState.COMPLETE

    async def _fetch_with_retry(self, fetch_fn: KeyFetch, key: str) -> Any:
        attempts = self.config.max_retries
        try:
            return await retry_async(
                lambda: fetch_fn(key),
                attempts=attempts,
                backoff=linear_backoff(self.config.retry_delay),
                description=f"location fetch {key}",
            )
        except Exception as e:
            raise RetryExhaustedError(
                f"Failed to fetch data after {attempts} attempts: {e}",
                attempts=attempts,
                last_error=e,
            ) from e

    def _sample(self, data: list[Any]) -> list[Any]:
        """Endpoint-preserving sampling for datasets above the threshold."""
        if len(data) <= self.config.sampling_threshold:
            return list(data)

        target = sampling_target(
            len(data),
            max_points=self.config.max_points,
            sampling_ratio=self.config.sampling_ratio,
        )
        sampled = sample_points(data, target)
        logger.debug(
            "path_sampled",
            extra={"original_points": len(data), "sampled_points": len(sampled)},
        )
        return sampled


async def load_location_data_progressive(
    fetch_fn: KeyFetch,
    key: str,
    *,
    config: FetchConfig | None = None,
    **options: Any,
) -> LoadResult:
    """Load with a loader built for this call."""
    return await ProgressivePathLoader(config).load(fetch_fn, key, **options)
