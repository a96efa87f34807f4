"""SheetsClient decorator recording metrics for every call.

The decorator runs its own small retry loop (3 attempts, linear backoff of
1s, 2s) so that the metric stream carries retry counts. This loop is
separate from the retry engine and shares none of its configuration; when
both are stacked, the attempts multiply (3 metrics attempts x
``RetryPolicy.max_attempts`` inner attempts for an always-failing call).
Only retryable ``ClassifiedError``s are retried here.
"""

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.common import (
    ApiResponse,
    BatchWriteOperation,
    CellValues,
    ValueRange,
)
from sheetsguard.domain.models.errors import ClassifiedError
from sheetsguard.infrastructure.monitoring.metrics import MetricsCollector, PerformanceMonitor

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_METRICS_ATTEMPTS = 3
DEFAULT_METRICS_BACKOFF_MS = 1000


class MetricsSheetsClient(SheetsClient):
    """Metrics decorator. Exposes ``.metrics`` and ``.performance``."""

    def __init__(
        self,
        client: SheetsClient,
        metrics: Optional[MetricsCollector] = None,
        performance: Optional[PerformanceMonitor] = None,
        max_attempts: int = DEFAULT_METRICS_ATTEMPTS,
        backoff_ms: float = DEFAULT_METRICS_BACKOFF_MS,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")
        self._client = client
        self.metrics = metrics or MetricsCollector()
        self.performance = performance or PerformanceMonitor()
        self.max_attempts = max_attempts
        self.backoff_ms = backoff_ms

    async def _call(self, method: str, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        start_time = time.perf_counter()
        retries = 0
        while True:
            try:
                result = await func(*args)
            except Exception as e:
                retryable = isinstance(e, ClassifiedError) and e.retryable
                if not retryable or retries + 1 >= self.max_attempts:
                    duration_ms = (time.perf_counter() - start_time) * 1000
                    self.metrics.record_request(method, duration_ms, False, retries, e)
                    self.performance.record(method, duration_ms)
                    raise
                retries += 1
                delay_ms = self.backoff_ms * retries
                logger.warning(
                    f"{method} failed ({e.code}); metrics retry {retries}/{self.max_attempts - 1} "
                    f"in {delay_ms / 1000:.2f}s"
                )
                await asyncio.sleep(delay_ms / 1000)
            else:
                duration_ms = (time.perf_counter() - start_time) * 1000
                self.metrics.record_request(method, duration_ms, True, retries)
                self.performance.record(method, duration_ms)
                return result

    async def read(self, spreadsheet_id: str, range_: str) -> CellValues:
        return await self._call("read", self._client.read, spreadsheet_id, range_)

    async def write(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        return await self._call("write", self._client.write, spreadsheet_id, range_, values)

    async def append(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        return await self._call("append", self._client.append, spreadsheet_id, range_, values)

    async def clear(self, spreadsheet_id: str, range_: str) -> ApiResponse:
        return await self._call("clear", self._client.clear, spreadsheet_id, range_)

    async def batch_read(self, spreadsheet_id: str, ranges: Sequence[str]) -> List[ValueRange]:
        return await self._call("batch_read", self._client.batch_read, spreadsheet_id, ranges)

    async def batch_write(
        self, spreadsheet_id: str, data: Sequence[BatchWriteOperation]
    ) -> ApiResponse:
        return await self._call("batch_write", self._client.batch_write, spreadsheet_id, data)

    async def batch_clear(self, spreadsheet_id: str, ranges: Sequence[str]) -> ApiResponse:
        return await self._call("batch_clear", self._client.batch_clear, spreadsheet_id, ranges)

    async def get_metadata(self, spreadsheet_id: str) -> ApiResponse:
        return await self._call("get_metadata", self._client.get_metadata, spreadsheet_id)
