"""Location point model."""

from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class LocationPoint(BaseModel):
    """A single geographic fix on a device path."""

    lat: float
    lng: float
    time: str | None = None

    model_config = ConfigDict(frozen=True)

    @field_validator("lat", "lng")
    @classmethod
    def validate_finite(cls, v: float) -> float:
        """Reject NaN and infinite coordinates."""
        if not math.isfinite(v):
            raise ValueError("coordinate must be a finite number")
        return v

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> LocationPoint:
        """Build a point from a raw telemetry record.

        Raises:
            pydantic.ValidationError: If coordinates are missing or not finite
        """
        lat = _first_present(record, "latitude", "lat")
        lng = _first_present(record, "longitude", "lng", "lon")
        time = _first_present(record, "timestampIso", "timestamp")
        return cls(lat=lat, lng=lng, time=str(time) if time is not None else None)


def _first_present(record: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = record.get(key)
        if value is not None:
            return value
    return None
