"""Enumerations for progress and health reporting."""

from __future__ import annotations

from enum import Enum


class ProgressStatus(str, Enum):
    """Lifecycle status carried by a progress report."""

    LOADING = "loading"
    COMPLETE = "complete"
    ERROR = "error"


class LoadState(str, Enum):
    """State of a single progressive load run."""

    IDLE = "idle"
    LOADING = "loading"
    COMPLETE = "complete"
    ERROR = "error"


class HealthStatus(str, Enum):
    """Overall result of an endpoint health check."""

    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class CheckStatus(str, Enum):
    """Outcome of a single health sub-test."""

    PASS = "pass"
    FAIL = "fail"


class ViewType(str, Enum):
    """Consumer of a per-device query; decides which record fields are requested.

    Ordered from the widest field set (``DETAILS``) to the narrowest (``MAP``).
    """

    DETAILS = "details"
    ANALYTICS = "analytics"
    DASHBOARD = "dashboard"
    MAP = "map"
