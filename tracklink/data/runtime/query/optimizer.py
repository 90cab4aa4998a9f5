"""Per-view field selection and response size estimation.

Architecture:
    Each :class:`ViewType` has a :class:`FieldProfile`: fields it always
    needs, fields it takes when the size budget allows, and fields it never
    requests. The optimizer turns a profile into a concrete field list and
    estimates how large a response with that list would be, using a fixed
    byte weight per field.

Design Decisions:
    - Estimates are coarse (weight x expected record count plus
      fixed JSON overhead). They only rank field sets against a budget.
    - ``rawText`` dominates record size, so every profile excludes it; a
      caller gets it only by requiring it explicitly.
    - Narrowing on truncation walks DETAILS -> DASHBOARD -> MAP and
      ANALYTICS -> MAP; MAP is the floor.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from ...core.constants import (
    ARRAY_JSON_OVERHEAD,
    DEFAULT_ESTIMATED_RECORDS,
    DEFAULT_FIELD_WEIGHT,
    FIELD_JSON_OVERHEAD,
    HEAVY_FIELD_WEIGHT,
    MAX_RECOMMENDED_FIELDS,
    SAFE_RESPONSE_SIZE,
)
from ...core.enums import ViewType
from ...models.query import QueryAnalysis

# Approximate serialized bytes per field value
FIELD_WEIGHTS: Mapping[str, int] = {
    "id": 50,
    "imei": 20,
    "topic": 30,
    "type": 20,
    "latitude": 15,
    "longitude": 15,
    "speed": 10,
    "battery": 10,
    "signal": 10,
    "interval": 10,
    "geoid": 15,
    "packet": 10,
    "alert": 10,
    "timestampIso": 30,
    "timestampNormalized": 30,
    "timestamp": 30,
    "receivedAtIst": 30,
    "processedAt": 30,
    "createdAt": 30,
    "rawText": 500,
}


@dataclass(frozen=True)
class FieldProfile:
    """Field selection rules for one view.

    Attributes:
        essential: Always requested, in this order
        optional: Added in order while the estimate stays within budget
        exclude: Never requested unless a caller requires them
        max_response_size: Size budget in bytes for the optional fields
    """

    essential: tuple[str, ...]
    optional: tuple[str, ...] = ()
    exclude: frozenset[str] = frozenset()
    max_response_size: int = SAFE_RESPONSE_SIZE

    def __post_init__(self) -> None:
        if not self.essential:
            raise ValueError("FieldProfile needs at least one essential field")
        if self.max_response_size < 1:
            raise ValueError("max_response_size must be >= 1")


VIEW_PROFILES: Mapping[ViewType, FieldProfile] = {
    ViewType.DETAILS: FieldProfile(
        essential=(
            "id", "imei", "latitude", "longitude", "timestampIso", "timestamp",
            "speed", "battery", "signal", "alert",
        ),
        optional=(
            "topic", "type", "interval", "geoid", "packet",
            "timestampNormalized", "processedAt", "receivedAtIst", "createdAt",
        ),
        exclude=frozenset({"rawText"}),
        max_response_size=1_000_000,
    ),
    ViewType.ANALYTICS: FieldProfile(
        essential=(
            "id", "imei", "timestampIso", "timestamp", "latitude", "longitude",
            "speed", "battery",
        ),
        optional=("signal", "alert", "type", "interval"),
        exclude=frozenset({"rawText", "geoid", "packet"}),
        max_response_size=2_000_000,
    ),
    ViewType.DASHBOARD: FieldProfile(
        essential=(
            "id", "imei", "latitude", "longitude", "timestampIso", "timestamp",
            "battery", "signal",
        ),
        optional=("speed", "alert", "type", "interval"),
        exclude=frozenset({"rawText", "geoid", "packet"}),
        max_response_size=500_000,
    ),
    ViewType.MAP: FieldProfile(
        essential=("id", "imei", "latitude", "longitude", "timestampIso", "timestamp"),
        optional=("speed", "battery", "alert"),
        exclude=frozenset({
            "rawText", "topic", "signal", "type", "interval", "geoid", "packet",
            "timestampNormalized", "processedAt", "receivedAtIst", "createdAt",
        }),
        max_response_size=300_000,
    ),
}

_NARROWER_VIEW: Mapping[ViewType, ViewType] = {
    ViewType.DETAILS: ViewType.DASHBOARD,
    ViewType.ANALYTICS: ViewType.MAP,
    ViewType.DASHBOARD: ViewType.MAP,
    ViewType.MAP: ViewType.MAP,
}


class QueryOptimizer:
    """Chooses record fields per view and estimates response sizes."""

    def __init__(
        self,
        *,
        weights: Mapping[str, int] | None = None,
        profiles: Mapping[ViewType, FieldProfile] | None = None,
        estimated_records: int = DEFAULT_ESTIMATED_RECORDS,
    ) -> None:
        """Initialize optimizer.

        Args:
            weights: Bytes per field value (FIELD_WEIGHTS when omitted)
            profiles: Field profile per view (VIEW_PROFILES when omitted)
            estimated_records: Record count assumed by size estimates
        """
        if estimated_records < 1:
            raise ValueError("estimated_records must be >= 1")
        self.weights = dict(FIELD_WEIGHTS if weights is None else weights)
        self.profiles = dict(VIEW_PROFILES if profiles is None else profiles)
        self.estimated_records = estimated_records

    def weight(self, field: str) -> int:
        return self.weights.get(field, DEFAULT_FIELD_WEIGHT)

    def estimate_response_size(
        self, fields: Iterable[str], estimated_records: int | None = None
    ) -> int:
        """Estimated bytes of a response carrying ``fields`` for every record."""
        fields = list(fields)
        record_size = sum(self.weight(field) for field in fields) + FIELD_JSON_OVERHEAD * len(fields)
        records = estimated_records or self.estimated_records
        return record_size * records + ARRAY_JSON_OVERHEAD

    def select_fields(
        self,
        view: ViewType | str,
        *,
        required: Iterable[str] = (),
        optional: Iterable[str] = (),
        exclude: Iterable[str] = (),
        max_response_size: int | None = None,
    ) -> tuple[str, ...]:
        """Field list for ``view``.

        Required fields are always kept, even when the profile or ``exclude``
        names them. Optional fields (the profile's, then the caller's) are
        added one at a time while the estimate stays within the budget.
        """
        profile = self.profile(view)
        required = list(required)
        excluded = set(exclude) | profile.exclude
        budget = max_response_size or profile.max_response_size

        selected: list[str] = []
        for field in (*profile.essential, *required):
            if field in selected:
                continue
            if field in required or field not in excluded:
                selected.append(field)

        for field in (*profile.optional, *optional):
            if field in selected or field in excluded:
                continue
            if self.estimate_response_size([*selected, field]) <= budget:
                selected.append(field)

        return tuple(selected)

    def analyze(self, fields: Iterable[str]) -> QueryAnalysis:
        """Estimate size and complexity of ``fields`` and collect advice."""
        fields = tuple(fields)
        heavy = tuple(field for field in fields if self.weight(field) > HEAVY_FIELD_WEIGHT)
        estimated_size = self.estimate_response_size(fields)
        complexity = round(sum(math.log(self.weight(field) + 1) for field in fields))

        recommendations: list[str] = []
        if heavy:
            recommendations.append(
                f"Query includes {len(heavy)} heavy fields that may cause truncation: "
                + ", ".join(heavy)
            )
        if estimated_size > SAFE_RESPONSE_SIZE:
            recommendations.append(
                f"Estimated response size ({estimated_size} bytes) exceeds safe limits; "
                "consider pagination or fewer fields"
            )
        if len(fields) > MAX_RECOMMENDED_FIELDS:
            recommendations.append(
                f"Query requests {len(fields)} fields; consider essential fields only"
            )

        return QueryAnalysis(
            fields=fields,
            heavy_fields=heavy,
            estimated_size=estimated_size,
            complexity=complexity,
            recommendations=tuple(recommendations),
        )

    def profile(self, view: ViewType | str) -> FieldProfile:
        try:
            return self.profiles[ViewType(view)]
        except (KeyError, ValueError) as e:
            raise ValueError(f"Unknown view type: {view!r}") from e


def narrower_view(view: ViewType | str) -> ViewType:
    """The next more restrictive view; MAP maps to itself."""
    return _NARROWER_VIEW[ViewType(view)]


_default_optimizer = QueryOptimizer()


def select_fields(view: ViewType | str, **options) -> tuple[str, ...]:
    """Select fields for ``view`` with the default weights and profiles."""
    return _default_optimizer.select_fields(view, **options)


def estimate_response_size(
    fields: Iterable[str], estimated_records: int = DEFAULT_ESTIMATED_RECORDS
) -> int:
    """Estimate a response size with the default field weights."""
    return _default_optimizer.estimate_response_size(fields, estimated_records)


def analyze_fields(fields: Iterable[str]) -> QueryAnalysis:
    return _default_optimizer.analyze(fields)
