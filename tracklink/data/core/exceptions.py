"""Custom exception hierarchy."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..models.validation import ValidationResult


class DataError(Exception):
    """Base exception for all library errors."""

    pass


class QueryError(DataError):
    """Error returned by the remote query endpoint or its transport."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code


class TruncatedResponseError(DataError):
    """A response was detected as partial.

    The message always contains the word "truncated" so that callers which
    only see the message (for example, errors re-raised by foreign fetch
    functions) can still classify it with :func:`is_truncation_error`.
    """

    def __init__(
        self,
        message: str = "Response was truncated",
        *,
        page: int | None = None,
        validation: ValidationResult | None = None,
    ) -> None:
        if "truncated" not in message.lower():
            message = f"{message} (response was truncated)"
        super().__init__(message)
        self.page = page
        self.validation = validation


class RetryExhaustedError(DataError):
    """All attempts of a bounded retry loop failed."""

    def __init__(
        self,
        message: str,
        attempts: int,
        last_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.last_error = last_error


def is_truncation_error(error: BaseException) -> bool:
    """Return True when ``error`` signals a truncated response.

    Detection is by type first and then by message content, since fetch
    functions supplied by callers may raise their own exception types.
    """
    if isinstance(error, TruncatedResponseError):
        return True
    return "truncated" in str(error).lower()
