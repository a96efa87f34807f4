import socket
from types import SimpleNamespace

import pytest

from sheetsguard.domain.models.errors import ClassifiedError, ErrorCategory
from sheetsguard.infrastructure.resilience.error_classifier import (
    categorize,
    classify,
    extract_code,
    is_rate_limit_failure,
    is_retryable_code,
)


@pytest.mark.parametrize("code, category, retryable", [
    (429, ErrorCategory.RATE_LIMIT, True),
    (403, ErrorCategory.PERMISSION, False),
    (404, ErrorCategory.NOT_FOUND, False),
    (500, ErrorCategory.TRANSIENT, True),
    (502, ErrorCategory.TRANSIENT, True),
    (503, ErrorCategory.TRANSIENT, True),
    (504, ErrorCategory.TRANSIENT, True),
    ("ECONNRESET", ErrorCategory.TRANSIENT, True),
    ("ETIMEDOUT", ErrorCategory.TRANSIENT, True),
    ("ENOTFOUND", ErrorCategory.TRANSIENT, True),
    (400, ErrorCategory.UNKNOWN, False),
    (None, ErrorCategory.UNKNOWN, False),
])
def test_code_table(code, category, retryable):
    assert categorize(code) is category
    assert is_retryable_code(code) is retryable


def test_classify_plain_code_attribute(status_error):
    raw = status_error(503, "Service Unavailable")
    error = classify(raw)
    assert isinstance(error, ClassifiedError)
    assert error.code == 503
    assert error.category is ErrorCategory.TRANSIENT
    assert error.retryable is True
    assert error.message == "Service Unavailable"
    assert error.cause is raw


def test_nested_status_wins_over_code(status_error):
    raw = status_error("EUNKNOWN")
    raw.response = SimpleNamespace(status=404)
    assert extract_code(raw) == 404
    assert classify(raw).is_not_found_error()


def test_numeric_string_codes_are_normalized(status_error):
    assert extract_code(status_error("429")) == 429
    assert is_rate_limit_failure(status_error("429"))


def test_classify_http_error(http_error):
    error = classify(http_error(403, "The caller does not have permission"))
    assert error.code == 403
    assert error.is_permission_error()
    assert error.retryable is False
    assert error.message == "The caller does not have permission"


def test_classify_http_error_rate_limit(http_error):
    error = classify(http_error(429, "Quota exceeded"))
    assert error.is_rate_limit_error()
    assert error.retryable is True


@pytest.mark.parametrize("raw, code", [
    (ConnectionResetError("reset by peer"), "ECONNRESET"),
    (TimeoutError("timed out"), "ETIMEDOUT"),
    (socket.gaierror("Name or service not known"), "ENOTFOUND"),
])
def test_connection_failures(raw, code):
    error = classify(raw)
    assert error.code == code
    assert error.category is ErrorCategory.TRANSIENT
    assert error.retryable is True


def test_codeless_failure_is_unknown():
    error = classify(RuntimeError("boom"))
    assert error.code is None
    assert error.category is ErrorCategory.UNKNOWN
    assert error.retryable is False
    assert error.message == "boom"


def test_empty_message_falls_back_to_type_name():
    assert classify(RuntimeError()).message == "RuntimeError"


def test_already_classified_is_returned_unchanged():
    original = ClassifiedError(500, ErrorCategory.TRANSIENT, True, "boom")
    assert classify(original) is original
