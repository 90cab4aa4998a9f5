"""Validation result models."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class ValidationMetadata(BaseModel):
    """Size measurements taken while validating a payload."""

    actual_size: int = Field(default=0, ge=0)
    expected_size: int | None = None
    completion_percentage: float = Field(default=100.0, ge=0, le=100)

    model_config = ConfigDict(frozen=True)


class ValidationResult(BaseModel):
    """Judgment on a single payload.

    ``is_truncated`` implies ``not is_valid``, but an invalid payload is not
    necessarily truncated (it may be too small or structurally incomplete).
    """

    is_valid: bool = True
    is_truncated: bool = False
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    indicators: tuple[str, ...] = ()
    metadata: ValidationMetadata = Field(default_factory=ValidationMetadata)

    model_config = ConfigDict(frozen=True)


class TruncationCheck(BaseModel):
    """Outcome of truncation detection on serialized text."""

    is_truncated: bool = False
    errors: tuple[str, ...] = ()
    indicators: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)


class ValidationSummary(BaseModel):
    is_valid: bool
    is_truncated: bool
    error_count: int
    warning_count: int
    response_size: int
    completion_percentage: float

    model_config = ConfigDict(frozen=True)


class ValidationReport(BaseModel):
    """Human-oriented report derived from a :class:`ValidationResult`."""

    timestamp: datetime
    status: str
    summary: ValidationSummary
    details: ValidationResult

    model_config = ConfigDict(frozen=True)
