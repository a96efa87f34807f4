import pickle

import pytest

from sheetsguard.domain.models.errors import ClassifiedError, ErrorCategory


@pytest.fixture
def rate_limit_error():
    return ClassifiedError(429, ErrorCategory.RATE_LIMIT, True, "Quota exceeded")


def test_fields(rate_limit_error: ClassifiedError):
    assert rate_limit_error.code == 429
    assert rate_limit_error.category is ErrorCategory.RATE_LIMIT
    assert rate_limit_error.retryable is True
    assert rate_limit_error.message == "Quota exceeded"
    assert rate_limit_error.cause is None
    assert str(rate_limit_error) == "Quota exceeded"


def test_is_immutable(rate_limit_error: ClassifiedError):
    with pytest.raises(AttributeError):
        rate_limit_error.retryable = False
    with pytest.raises(AttributeError):
        rate_limit_error.extra = "x"
    assert rate_limit_error.retryable is True


def test_predicates():
    assert ClassifiedError(429, ErrorCategory.RATE_LIMIT, True, "").is_rate_limit_error()
    assert ClassifiedError(403, ErrorCategory.PERMISSION, False, "").is_permission_error()
    assert ClassifiedError(404, ErrorCategory.NOT_FOUND, False, "").is_not_found_error()
    transient = ClassifiedError(503, ErrorCategory.TRANSIENT, True, "")
    assert not transient.is_rate_limit_error()
    assert not transient.is_permission_error()
    assert not transient.is_not_found_error()


def test_user_message_depends_only_on_category():
    first = ClassifiedError(403, ErrorCategory.PERMISSION, False, "caller does not have permission")
    second = ClassifiedError(403, ErrorCategory.PERMISSION, False, "something else entirely")
    assert first.get_user_message() == second.get_user_message()
    assert "Permission denied" in first.get_user_message()
    assert "caller does not have permission" not in first.get_user_message()


def test_every_category_has_a_user_message():
    for category in ErrorCategory:
        assert ClassifiedError(None, category, False, "").get_user_message()


def test_can_be_raised_and_chained():
    cause = RuntimeError("boom")
    with pytest.raises(ClassifiedError) as exc_info:
        try:
            raise cause
        except RuntimeError as e:
            raise ClassifiedError(500, ErrorCategory.TRANSIENT, True, "boom", cause=e) from e
    assert exc_info.value.__cause__ is cause
    assert exc_info.value.cause is cause


def test_pickle_round_trip_keeps_fields(rate_limit_error: ClassifiedError):
    restored = pickle.loads(pickle.dumps(rate_limit_error))
    assert (restored.code, restored.category, restored.retryable, restored.message) == (
        429, ErrorCategory.RATE_LIMIT, True, "Quota exceeded"
    )
