"""Progress sink wrapper.

Wraps a caller-supplied callback so that every run reports monotonically
non-decreasing percentages and ends with exactly one final report.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..core.enums import ProgressStatus
from ..models.progress import ProgressReport

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressReport], None]


class ProgressReporter:
    """Emits ProgressReports to an optional sink."""

    def __init__(self, sink: ProgressCallback | None = None) -> None:
        self._sink = sink
        self._last_progress = 0.0
        self._finished = False

    @property
    def last_progress(self) -> float:
        return self._last_progress

    def loading(
        self,
        progress: float,
        *,
        total_items: int = 0,
        chunks_loaded: int = 0,
        total_chunks: int | None = None,
        estimated_total: int | None = None,
        message: str = "",
    ) -> None:
        self._emit(
            ProgressStatus.LOADING,
            progress,
            total_items=total_items,
            chunks_loaded=chunks_loaded,
            total_chunks=total_chunks,
            estimated_total=estimated_total,
            message=message,
        )

    def complete(
        self,
        *,
        total_items: int = 0,
        chunks_loaded: int = 0,
        total_chunks: int | None = None,
        message: str = "",
    ) -> None:
        self._emit(
            ProgressStatus.COMPLETE,
            100.0,
            total_items=total_items,
            chunks_loaded=chunks_loaded,
            total_chunks=total_chunks,
            message=message,
        )
        self._finished = True

    def error(
        self,
        error: BaseException | str,
        *,
        total_items: int = 0,
        chunks_loaded: int = 0,
        message: str | None = None,
    ) -> None:
        text = str(error)
        self._emit(
            ProgressStatus.ERROR,
            self._last_progress,
            total_items=total_items,
            chunks_loaded=chunks_loaded,
            message=message or f"Error loading data: {text}",
            error=text,
        )
        self._finished = True

    def _emit(self, status: ProgressStatus, progress: float, **fields: object) -> None:
        if self._finished:
            logger.debug("progress_after_final_report_ignored", extra={"status": status.value})
            return
        clamped = max(self._last_progress, min(100.0, max(0.0, progress)))
        self._last_progress = clamped
        if self._sink is None:
            return
        self._sink(ProgressReport(status=status, progress=clamped, **fields))
