"""Conversion of raw telemetry records into location points."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from ..models.location_point import LocationPoint

logger = logging.getLogger(__name__)


def normalize_location_points(records: Iterable[Any]) -> list[LocationPoint]:
    """Build LocationPoints from records, dropping those without finite coordinates.

    Records that are already LocationPoints pass through.
    """
    points: list[LocationPoint] = []
    dropped = 0
    for record in records:
        if isinstance(record, LocationPoint):
            points.append(record)
            continue
        if not isinstance(record, Mapping):
            dropped += 1
            continue
        try:
            points.append(LocationPoint.from_record(record))
        except ValidationError:
            dropped += 1

    if dropped:
        logger.debug("location_points_dropped", extra={"dropped": dropped, "kept": len(points)})
    return points
