"""Query field-selection models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class QueryAnalysis(BaseModel):
    """Size estimate and advice for a set of requested record fields."""

    fields: tuple[str, ...] = ()
    heavy_fields: tuple[str, ...] = ()
    estimated_size: int = Field(default=0, ge=0)
    complexity: int = Field(default=0, ge=0)
    recommendations: tuple[str, ...] = ()

    model_config = ConfigDict(frozen=True)

    @property
    def total_fields(self) -> int:
        return len(self.fields)
