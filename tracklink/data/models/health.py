"""Health check models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core.enums import CheckStatus, HealthStatus
from .validation import ValidationResult


class HealthTest(BaseModel):
    """Result of one timed check against the endpoint."""

    status: CheckStatus
    response_time_ms: float = Field(..., ge=0)
    result: Any = None
    record_count: int | None = None
    validation: ValidationResult | None = None

    model_config = ConfigDict(frozen=True)


class HealthReport(BaseModel):
    """Aggregate endpoint health."""

    status: HealthStatus
    timestamp: datetime
    tests: dict[str, HealthTest] = Field(default_factory=dict)
    error: str | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_healthy(self) -> bool:
        return self.status == HealthStatus.HEALTHY
