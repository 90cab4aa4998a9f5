"""High-level, truncation-aware data access."""

from .safe_analytics import SafeAnalyticsAPI

__all__ = ["SafeAnalyticsAPI"]
