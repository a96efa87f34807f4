"""Typed errors surfaced at the boundary of the resilience layer."""

from enum import Enum
from typing import Optional, Union

ErrorCode = Union[int, str]


class ErrorCategory(str, Enum):
    RATE_LIMIT = "rate_limit"
    PERMISSION = "permission"
    NOT_FOUND = "not_found"
    TRANSIENT = "transient"
    UNKNOWN = "unknown"


_USER_MESSAGES = {
    ErrorCategory.RATE_LIMIT: "Rate limit exceeded. Please wait before making more requests.",
    ErrorCategory.PERMISSION: (
        "Permission denied. Please ensure the spreadsheet is shared with the "
        "service account or you have proper OAuth permissions."
    ),
    ErrorCategory.NOT_FOUND: "Spreadsheet or range not found. Please check the ID and range are correct.",
    ErrorCategory.TRANSIENT: "The Sheets service is temporarily unavailable. Please try again shortly.",
    ErrorCategory.UNKNOWN: "The request to the Sheets service failed.",
}


class ClassifiedError(Exception):
    """A failed remote call, tagged with its code, category and retryability.

    Instances are immutable. The original failure is kept in ``cause`` and is
    also chained as ``__cause__`` when raised with ``raise ... from``.
    """

    __slots__ = ("_code", "_category", "_retryable", "_message", "_cause")

    def __init__(
        self,
        code: Optional[ErrorCode],
        category: ErrorCategory,
        retryable: bool,
        message: str,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(message)
        object.__setattr__(self, "_code", code)
        object.__setattr__(self, "_category", category)
        object.__setattr__(self, "_retryable", retryable)
        object.__setattr__(self, "_message", message)
        object.__setattr__(self, "_cause", cause)

    def __setattr__(self, name, value):
        # Exception machinery sets these when the error is raised or chained.
        if name in ("__cause__", "__context__", "__traceback__", "__suppress_context__", "__notes__"):
            object.__setattr__(self, name, value)
            return
        raise AttributeError(f"{type(self).__name__} is immutable")

    @property
    def code(self) -> Optional[ErrorCode]:
        return self._code

    @property
    def category(self) -> ErrorCategory:
        return self._category

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def message(self) -> str:
        return self._message

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause

    def is_rate_limit_error(self) -> bool:
        return self._category is ErrorCategory.RATE_LIMIT

    def is_permission_error(self) -> bool:
        return self._category is ErrorCategory.PERMISSION

    def is_not_found_error(self) -> bool:
        return self._category is ErrorCategory.NOT_FOUND

    def get_user_message(self) -> str:
        """Fixed, category-derived sentence suitable for end users."""
        return _USER_MESSAGES[self._category]

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(code={self._code!r}, category={self._category.value}, "
            f"retryable={self._retryable}, message={self._message!r})"
        )

    def __reduce__(self):
        return (type(self), (self._code, self._category, self._retryable, self._message, self._cause))
