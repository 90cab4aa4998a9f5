"""Pagination runtime."""

from __future__ import annotations

from .manager import PaginationManager, estimate_total_pages

__all__ = ["PaginationManager", "estimate_total_pages"]
