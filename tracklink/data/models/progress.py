"""Progress event models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import ProgressStatus


class ProgressReport(BaseModel):
    """Progress event handed to a caller-supplied sink.

    ``total_items`` counts records for analytics fetches and points for
    path loads.
    """

    status: ProgressStatus
    progress: float = Field(default=0.0, ge=0, le=100)
    total_items: int = Field(default=0, ge=0)
    chunks_loaded: int = Field(default=0, ge=0)
    total_chunks: int | None = None
    estimated_total: int | None = None
    message: str = ""
    error: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_final(self) -> bool:
        """Whether this report ends a run."""
        return self.status in (ProgressStatus.COMPLETE, ProgressStatus.ERROR)


class PageProgress(BaseModel):
    """Per-page event emitted by the pagination manager."""

    current_page: int = Field(..., ge=1)
    items_this_page: int = Field(..., ge=0)
    total_items: int = Field(..., ge=0)
    has_more_data: bool

    model_config = ConfigDict(frozen=True)


class ChunkEvent(BaseModel):
    """A chunk of points paired with the progress after delivering it."""

    chunk: list[Any]
    progress: ProgressReport

    model_config = ConfigDict(frozen=True)
