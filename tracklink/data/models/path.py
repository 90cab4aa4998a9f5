"""Map path models: markers and progressive load results."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .location_point import LocationPoint


class Marker(BaseModel):
    """A map marker anchored on a path point."""

    point: LocationPoint
    label: str | None = None
    type: Literal["marker"] = "marker"

    model_config = ConfigDict(frozen=True)


class LoadMetadata(BaseModel):
    """Bookkeeping for one progressive load."""

    original_points: int = Field(default=0, ge=0)
    total_points: int = Field(default=0, ge=0)
    chunks_loaded: int = Field(default=0, ge=0)
    load_time_ms: float = Field(default=0.0, ge=0)
    sampled: bool = False
    sampling_ratio: float = Field(default=1.0, ge=0, le=1)

    model_config = ConfigDict(frozen=True)


class LoadResult(BaseModel):
    """Points delivered by a progressive load, with metadata."""

    data: list[Any] = Field(default_factory=list)
    metadata: LoadMetadata = Field(default_factory=LoadMetadata)

    model_config = ConfigDict(frozen=True)
