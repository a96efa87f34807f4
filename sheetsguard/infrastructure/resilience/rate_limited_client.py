"""SheetsClient decorators that shape request timing with a rate limiter.

Both decorators implement the full, closed SheetsClient interface method by
method; there is no dynamic discovery of operations to wrap.
"""

import logging
from typing import Any, Awaitable, Callable, List, Optional, Sequence, TypeVar

from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.common import (
    ApiResponse,
    BatchWriteOperation,
    CellValues,
    ValueRange,
)
from sheetsguard.domain.models.policies import AdaptiveLimiterConfig, TokenBucketConfig
from sheetsguard.infrastructure.resilience.rate_limiter import (
    AdaptiveRateLimiter,
    TokenBucketRateLimiter,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class _LimitedClient(SheetsClient):
    """Routes each operation through ``_call``; subclasses decide how to wait."""

    def __init__(self, client: SheetsClient):
        self._client = client

    async def _call(self, endpoint: str, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        raise NotImplementedError

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


class AdaptiveRateLimitedClient(_LimitedClient):
    """Wraps every call in ``AdaptiveRateLimiter.execute``."""

    def __init__(
        self,
        client: SheetsClient,
        limiter: Optional[AdaptiveRateLimiter] = None,
        config: Optional[AdaptiveLimiterConfig] = None,
    ):
        super().__init__(client)
        self.limiter = limiter or AdaptiveRateLimiter(config)

    async def _call(self, endpoint: str, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        return await self.limiter.execute(func, *args, endpoint_name=endpoint)


class TokenBucketRateLimitedClient(_LimitedClient):
    """Takes one token from the bucket before every call."""

    def __init__(
        self,
        client: SheetsClient,
        limiter: Optional[TokenBucketRateLimiter] = None,
        config: Optional[TokenBucketConfig] = None,
    ):
        super().__init__(client)
        self.limiter = limiter or TokenBucketRateLimiter(config)

    async def _call(self, endpoint: str, func: Callable[..., Awaitable[T]], *args: Any) -> T:
        await self.limiter.acquire(1)
        logger.debug(f"Token acquired for {endpoint}.")
        return await func(*args)
