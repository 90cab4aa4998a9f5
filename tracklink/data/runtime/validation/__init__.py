"""Response validation: truncation detection and structural sanity checks."""

from __future__ import annotations

from .validator import ResponseValidator, detect_truncation, validate_response

__all__ = [
    "ResponseValidator",
    "detect_truncation",
    "validate_response",
]
