"""Maps raw transport failures onto ``ClassifiedError``.

The status code is looked up in a nested response-status field first
(``HttpError.resp.status`` for googleapiclient, ``response.status_code`` for
requests/httpx style errors), then in the transport-level ``code`` attribute.
Low-level connection failures that carry no code at all are mapped from
their Python exception type.
"""

import logging
import socket
from typing import Any, Optional

from sheetsguard.domain.models.errors import ClassifiedError, ErrorCategory, ErrorCode

logger = logging.getLogger(__name__)

RATE_LIMIT_CODE = 429
PERMISSION_CODE = 403
NOT_FOUND_CODE = 404

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})
RETRYABLE_CONNECTION_CODES = frozenset({"ECONNRESET", "ETIMEDOUT", "ENOTFOUND"})


def _normalize_code(value: Any) -> Optional[ErrorCode]:
    """Returns ints for HTTP-style codes ('503' -> 503), strings otherwise."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return int(text)
    return text


def _nested_status(raw: BaseException) -> Optional[ErrorCode]:
    for holder_name in ("resp", "response"):
        holder = getattr(raw, holder_name, None)
        if holder is None:
            continue
        for attr in ("status", "status_code"):
            status = _normalize_code(getattr(holder, attr, None))
            if status is not None:
                return status
    return _normalize_code(getattr(raw, "status_code", None))


def _connection_code(raw: BaseException) -> Optional[str]:
    # gaierror is an OSError, and TimeoutError/ConnectionResetError are too,
    # so check the most specific type first.
    if isinstance(raw, socket.gaierror):
        return "ENOTFOUND"
    if isinstance(raw, (TimeoutError, socket.timeout)):
        return "ETIMEDOUT"
    if isinstance(raw, ConnectionResetError):
        return "ECONNRESET"
    return None


def extract_code(raw: BaseException) -> Optional[ErrorCode]:
    """Extracts the numeric or string code of a failure, if it has one."""
    if isinstance(raw, ClassifiedError):
        return raw.code
    status = _nested_status(raw)
    if status is not None:
        return status
    code = _normalize_code(getattr(raw, "code", None))
    if code is not None:
        return code
    return _connection_code(raw)


def is_retryable_code(code: Optional[ErrorCode]) -> bool:
    return code in RETRYABLE_STATUS_CODES or code in RETRYABLE_CONNECTION_CODES


def categorize(code: Optional[ErrorCode]) -> ErrorCategory:
    if code == RATE_LIMIT_CODE:
        return ErrorCategory.RATE_LIMIT
    if code == PERMISSION_CODE:
        return ErrorCategory.PERMISSION
    if code == NOT_FOUND_CODE:
        return ErrorCategory.NOT_FOUND
    if is_retryable_code(code):
        return ErrorCategory.TRANSIENT
    return ErrorCategory.UNKNOWN


def _extract_message(raw: BaseException) -> str:
    # googleapiclient's HttpError exposes the API's error message as ``reason``.
    reason = getattr(raw, "reason", None)
    if isinstance(reason, str) and reason:
        return reason
    text = str(raw)
    return text or type(raw).__name__ or "Unknown error"


def classify(raw: BaseException) -> ClassifiedError:
    """Classifies a raw failure. Already classified errors are returned as is."""
    if isinstance(raw, ClassifiedError):
        return raw
    code = extract_code(raw)
    error = ClassifiedError(
        code=code,
        category=categorize(code),
        retryable=is_retryable_code(code),
        message=_extract_message(raw),
        cause=raw,
    )
    logger.debug(f"Classified {type(raw).__name__} as {error!r}")
    return error


def is_rate_limit_failure(raw: BaseException) -> bool:
    """True when a raw or classified failure carries the rate-limit code."""
    return extract_code(raw) == RATE_LIMIT_CODE
