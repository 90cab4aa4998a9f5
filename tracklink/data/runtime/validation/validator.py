"""Response validation and truncation detection.

Architecture:
    The validator is a pure function object: it serializes a payload,
    measures it, inspects the text for signs of a cut-off transfer and,
    for decoded payloads, walks the structure for under-populated objects.
    Findings accumulate locally and are frozen into a ValidationResult
    only at the end, so a result is never mutated after it is returned.

Design Decisions:
    - Truncation vs. invalidity: a payload that is merely too small or
      structurally thin is invalid but not truncated. Only truncation makes
      callers retry with reduced parameters.
    - Text that decodes as JSON is complete by definition, so the bracket
      and suspicious-ending heuristics only apply to text that fails to
      decode.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from ...core.constants import (
    COMPLETION_WARNING_PERCENT,
    DEFAULT_MAX_RESPONSE_SIZE,
    DEFAULT_MIN_RESPONSE_SIZE,
    ID_FIELDS,
)
from ...models.validation import (
    TruncationCheck,
    ValidationMetadata,
    ValidationReport,
    ValidationResult,
    ValidationSummary,
)

logger = logging.getLogger(__name__)

_SUSPICIOUS_ENDINGS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("trailing comma", re.compile(r",\s*$")),
    ("trailing colon", re.compile(r":\s*$")),
    ("open quote", re.compile(r"\"\s*$")),
    ("open brace", re.compile(r"\{\s*$")),
    ("open bracket", re.compile(r"\[\s*$")),
)

_TRUNCATION_KEYWORDS = ("unexpected end", "unterminated", "incomplete", "truncated")


class ResponseValidator:
    """Classifies payloads as complete, truncated or structurally invalid."""

    def __init__(
        self,
        *,
        min_expected_size: int = DEFAULT_MIN_RESPONSE_SIZE,
        max_response_size: int = DEFAULT_MAX_RESPONSE_SIZE,
    ) -> None:
        """Initialize validator.

        Args:
            min_expected_size: Payloads smaller than this many bytes are invalid
            max_response_size: Payloads larger than this many bytes get a warning
        """
        if min_expected_size < 0:
            raise ValueError("min_expected_size must be >= 0")
        if max_response_size < min_expected_size:
            raise ValueError("max_response_size must be >= min_expected_size")
        self.min_expected_size = min_expected_size
        self.max_response_size = max_response_size

    def __call__(self, payload: Any, expected_size: int | None = None) -> ValidationResult:
        return self.validate(payload, expected_size)

    def validate(self, payload: Any, expected_size: int | None = None) -> ValidationResult:
        """Validate response completeness and detect truncation.

        Args:
            payload: Raw text, bytes, or a decoded JSON value
            expected_size: Optional expected size in bytes

        Returns:
            A fresh ValidationResult
        """
        errors: list[str] = []
        warnings: list[str] = []
        indicators: list[str] = []
        is_valid = True
        is_truncated = False
        actual_size = 0
        completion = 100.0

        if payload is None:
            return ValidationResult(
                is_valid=False,
                errors=("Response is null",),
                metadata=ValidationMetadata(expected_size=expected_size),
            )

        try:
            text = self._serialize(payload)
        except (TypeError, ValueError, UnicodeDecodeError) as e:
            return ValidationResult(
                is_valid=False,
                errors=(f"Validation error: {e}",),
                metadata=ValidationMetadata(expected_size=expected_size),
            )

        actual_size = len(text.encode("utf-8"))

        if actual_size < self.min_expected_size:
            is_valid = False
            errors.append(
                f"Response too small: {actual_size} bytes (minimum: {self.min_expected_size})"
            )

        if actual_size > self.max_response_size:
            warnings.append(
                f"Response very large: {actual_size} bytes "
                f"(max recommended: {self.max_response_size})"
            )

        truncation = self.detect_truncation(text)
        if truncation.is_truncated:
            is_valid = False
            is_truncated = True
            errors.extend(truncation.errors)
            indicators.extend(truncation.indicators)

        if expected_size is not None and expected_size > 0:
            completion = min(100.0, actual_size / expected_size * 100.0)
            if completion < COMPLETION_WARNING_PERCENT:
                warnings.append(
                    f"Response may be incomplete: {completion:.1f}% of expected size"
                )

        if isinstance(payload, Mapping | list | tuple):
            structure_errors, structure_warnings = self.validate_structure(payload)
            if structure_errors:
                is_valid = False
                errors.extend(structure_errors)
            warnings.extend(structure_warnings)

        result = ValidationResult(
            is_valid=is_valid,
            is_truncated=is_truncated,
            errors=tuple(errors),
            warnings=tuple(warnings),
            indicators=tuple(indicators),
            metadata=ValidationMetadata(
                actual_size=actual_size,
                expected_size=expected_size,
                completion_percentage=completion,
            ),
        )
        if not result.is_valid:
            logger.debug(
                "response_validation_failed",
                extra={
                    "is_truncated": result.is_truncated,
                    "errors": list(result.errors),
                    "actual_size": actual_size,
                },
            )
        return result

    def detect_truncation(self, text: str) -> TruncationCheck:
        """Detect truncation indicators in serialized response text.

        Checks, in order: whether the outermost structure is still open
        once brackets outside string literals are counted, suspicious
        trailing characters, and a parse attempt whose failure points at
        the end of input.
        """
        trimmed = text.strip()
        if not trimmed:
            return TruncationCheck()

        parse_error = _parse_error(trimmed)
        if parse_error is None:
            return TruncationCheck()

        errors: list[str] = []
        indicators: list[str] = []

        unclosed = _unclosed_brackets(trimmed)
        if unclosed and unclosed[0] == "{":
            errors.append("JSON object appears truncated - missing closing brace")
            indicators.append("incomplete_json_object")
        if unclosed and unclosed[0] == "[":
            errors.append("JSON array appears truncated - missing closing bracket")
            indicators.append("incomplete_json_array")

        for label, pattern in _SUSPICIOUS_ENDINGS:
            if pattern.search(trimmed):
                errors.append(f"Response ends suspiciously: {label}")
                indicators.append("suspicious_ending")
                break

        if _is_truncation_parse_error(parse_error, trimmed):
            errors.append(f"JSON parse error suggests truncation: {parse_error}")
            indicators.append("parse_error_truncation")

        return TruncationCheck(
            is_truncated=bool(errors),
            errors=tuple(errors),
            indicators=tuple(indicators),
        )

    def validate_structure(self, payload: Any) -> tuple[list[str], list[str]]:
        """Sanity-check a decoded payload.

        Returns:
            Tuple of (errors, warnings)
        """
        errors: list[str] = []
        warnings: list[str] = []

        arrays = [payload] if isinstance(payload, list | tuple) else []
        if isinstance(payload, Mapping) and isinstance(payload.get("data"), list | tuple):
            arrays.append(payload["data"])
        for array in arrays:
            if array and array[-1] is None:
                warnings.append("Array ends with null - possible truncation")

        incomplete = self.find_incomplete_objects(payload)
        if incomplete:
            errors.append(f"Found {len(incomplete)} incomplete objects")
        return errors, warnings

    def find_incomplete_objects(self, value: Any, path: str = "") -> list[str]:
        """Paths of objects whose only field is an identifier."""
        found: list[str] = []
        if isinstance(value, list | tuple):
            for index, item in enumerate(value):
                found.extend(self.find_incomplete_objects(item, f"{path}[{index}]"))
        elif isinstance(value, Mapping):
            if len(value) == 1 and next(iter(value)) in ID_FIELDS:
                found.append(path or "$")
            for key, item in value.items():
                found.extend(self.find_incomplete_objects(item, f"{path}.{key}"))
        return found

    def generate_report(self, validation: ValidationResult) -> ValidationReport:
        """Summarize a validation result."""
        return ValidationReport(
            timestamp=datetime.now(UTC),
            status="VALID" if validation.is_valid else "INVALID",
            summary=ValidationSummary(
                is_valid=validation.is_valid,
                is_truncated=validation.is_truncated,
                error_count=len(validation.errors),
                warning_count=len(validation.warnings),
                response_size=validation.metadata.actual_size,
                completion_percentage=validation.metadata.completion_percentage,
            ),
            details=validation,
        )

    @staticmethod
    def _serialize(payload: Any) -> str:
        if isinstance(payload, str):
            return payload
        if isinstance(payload, bytes | bytearray):
            return bytes(payload).decode("utf-8")
        return json.dumps(payload, separators=(",", ":"), default=str)


def _parse_error(text: str) -> json.JSONDecodeError | None:
    try:
        json.loads(text)
    except json.JSONDecodeError as e:
        return e
    return None


def _unclosed_brackets(text: str) -> list[str]:
    """Openers still pending at end of text, outermost first.

    Brackets inside string literals are ignored.
    """
    stack: list[str] = []
    in_string = False
    escaped = False
    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
        elif char == '"':
            in_string = True
        elif char in "{[":
            stack.append(char)
        elif char in "}]" and stack:
            stack.pop()
    return stack


def _is_truncation_parse_error(error: json.JSONDecodeError, text: str) -> bool:
    message = error.msg.lower()
    if any(keyword in message for keyword in _TRUNCATION_KEYWORDS):
        return True
    # The decoder ran out of input while a value was still open
    return error.pos >= len(text)


def validate_response(payload: Any, expected_size: int | None = None, **options: Any) -> ValidationResult:
    """Validate ``payload`` with a validator built from ``options``."""
    return ResponseValidator(**options).validate(payload, expected_size)


def detect_truncation(text: str) -> TruncationCheck:
    """Run truncation detection with default settings."""
    return ResponseValidator().detect_truncation(text)
