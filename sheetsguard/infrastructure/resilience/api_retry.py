"""Service for executing API calls with automatic retries.

Implements exponential backoff with jitter for transient errors like
rate limits (429) or temporary server issues (5xx). Every failure is
classified; the last classified error is always the one raised.
"""

import asyncio
import logging
import random
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from sheetsguard.domain.events.api_events import (
    ApiCallFailed,
    ApiCallSucceeded,
    RetryScheduled,
    dispatch_event,
)
from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.common import (
    ApiResponse,
    BatchWriteOperation,
    CellValues,
    ValueRange,
)
from sheetsguard.domain.models.errors import ClassifiedError
from sheetsguard.domain.models.policies import RetryPolicy
from sheetsguard.infrastructure.resilience.error_classifier import classify

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Upper bound of the uniform jitter added to every backoff delay.
MAX_JITTER_MS = 1000


def compute_delay_ms(policy: RetryPolicy, attempt_index: int) -> float:
    """Backoff for the zero-based ``attempt_index`` plus uniform jitter."""
    return policy.backoff_ms(attempt_index) + random.uniform(0, MAX_JITTER_MS)


# --- Retry Service ---

class ApiRetryService:
    """Handles API call execution with bounded, jittered retries."""

    def __init__(self, policy: Optional[RetryPolicy] = None):
        """Initializes the ApiRetryService.

        Args:
            policy: Retry configuration; defaults to 3 attempts, 1s initial
                delay capped at 10s.
        """
        self.policy = policy or RetryPolicy()
        logger.info(
            f"ApiRetryService initialized: max_attempts={self.policy.max_attempts}, "
            f"initial_delay={self.policy.initial_delay_ms}ms, max_delay={self.policy.max_delay_ms}ms"
        )

    async def execute_with_retry(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        endpoint_name: Optional[str] = None,
        **kwargs: Any,
    ) -> T:
        """Executes an async function, retrying retryable failures.

        Args:
            func: The async function (API call) to execute.
            *args: Positional arguments for the function.
            endpoint_name: Name used in logs and events (defaults to the
                function name).
            **kwargs: Keyword arguments for the function.

        Returns:
            The result of the first successful attempt.

        Raises:
            ClassifiedError: On a non-retryable failure, or on the last
                allowed attempt, wrapping the original exception.
            ValueError, TypeError: Argument errors raised by `func` propagate
                unchanged on the first attempt.
        """
        endpoint = endpoint_name or getattr(func, "__name__", "call")
        max_attempts = self.policy.max_attempts
        start_time = time.perf_counter()

        for attempt in range(max_attempts):
            try:
                result = await func(*args, **kwargs)
            except (ValueError, TypeError):
                raise
            except Exception as e:
                error = classify(e)
                is_last_attempt = attempt == max_attempts - 1
                if not error.retryable or is_last_attempt:
                    if error.retryable:
                        logger.error(
                            f"Max attempts ({max_attempts}) reached for {endpoint}. Last error: {error.code} {error.message}"
                        )
                    else:
                        logger.error(
                            f"Non-retryable error calling {endpoint} on attempt {attempt + 1}: {error.code} {error.message}"
                        )
                    dispatch_event(ApiCallFailed(
                        endpoint=endpoint,
                        error_code=error.code,
                        error_category=error.category.value,
                        error_message=error.message,
                        attempts=attempt + 1,
                    ))
                    if error is e:
                        raise
                    raise error from e

                delay_ms = compute_delay_ms(self.policy, attempt)
                logger.warning(
                    f"Retryable error calling {endpoint} on attempt {attempt + 1}/{max_attempts}: "
                    f"{error.code} {error.message}. Waiting {delay_ms / 1000:.2f}s..."
                )
                dispatch_event(RetryScheduled(
                    endpoint=endpoint,
                    attempt_number=attempt + 1,
                    delay_seconds=delay_ms / 1000,
                    error_code=error.code,
                ))
                await asyncio.sleep(delay_ms / 1000)
            else:
                latency_ms = (time.perf_counter() - start_time) * 1000
                dispatch_event(ApiCallSucceeded(endpoint=endpoint, latency_ms=latency_ms, attempts=attempt + 1))
                return result

        # range(max_attempts) always returns or raises above; max_attempts >= 1.
        raise AssertionError("unreachable")


async def with_retry(
    operation: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    endpoint_name: Optional[str] = None,
) -> T:
    """Runs a zero-argument coroutine function under ``policy``."""
    return await ApiRetryService(policy).execute_with_retry(operation, endpoint_name=endpoint_name)


# --- Decorator ---

class RetryingSheetsClient(SheetsClient):
    """SheetsClient decorator that routes every operation through the retry engine.

    Each call runs its own bounded retry sequence; nothing is shared between
    calls. ``append`` is retried like the others, so a timed-out append can
    duplicate rows.
    """

    def __init__(self, client: SheetsClient, policy: Optional[RetryPolicy] = None):
        self._client = client
        self.retry_service = ApiRetryService(policy)

    @property
    def policy(self) -> RetryPolicy:
        return self.retry_service.policy

    async def read(self, spreadsheet_id: str, range_: str) -> CellValues:
        return await self.retry_service.execute_with_retry(
            self._client.read, spreadsheet_id, range_, endpoint_name="read"
        )

    async def write(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        return await self.retry_service.execute_with_retry(
            self._client.write, spreadsheet_id, range_, values, endpoint_name="write"
        )

    async def append(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        return await self.retry_service.execute_with_retry(
            self._client.append, spreadsheet_id, range_, values, endpoint_name="append"
        )

    async def clear(self, spreadsheet_id: str, range_: str) -> ApiResponse:
        return await self.retry_service.execute_with_retry(
            self._client.clear, spreadsheet_id, range_, endpoint_name="clear"
        )

    async def batch_read(self, spreadsheet_id: str, ranges: Sequence[str]) -> List[ValueRange]:
        return await self.retry_service.execute_with_retry(
            self._client.batch_read, spreadsheet_id, ranges, endpoint_name="batch_read"
        )

    async def batch_write(
        self, spreadsheet_id: str, data: Sequence[BatchWriteOperation]
    ) -> ApiResponse:
        return await self.retry_service.execute_with_retry(
            self._client.batch_write, spreadsheet_id, data, endpoint_name="batch_write"
        )

    async def batch_clear(self, spreadsheet_id: str, ranges: Sequence[str]) -> ApiResponse:
        return await self.retry_service.execute_with_retry(
            self._client.batch_clear, spreadsheet_id, ranges, endpoint_name="batch_clear"
        )

    async def get_metadata(self, spreadsheet_id: str) -> ApiResponse:
        return await self.retry_service.execute_with_retry(
            self._client.get_metadata, spreadsheet_id, endpoint_name="get_metadata"
        )

