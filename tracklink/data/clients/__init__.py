"""Concrete transports for the analytics query endpoint."""

from .analytics import AnalyticsQueryClient
from .http import HTTPClient

__all__ = ["AnalyticsQueryClient", "HTTPClient"]
