"""SheetsClient decorator adding read-through caching and write invalidation.

Reads are served from the cache when possible. Writes and clears drop the
entries of the touched range (and every key prefixed by it, to cover
sub-reads written as ``'A1:B2'`` vs ``'A1:B20'``). Appends drop the whole
spreadsheet namespace because the rows land at a location that is not known
in advance.

Ranges are compared as strings: a write to 'Sheet1!A1:B2' does not
invalidate an overlapping read cached as 'Sheet1!A1:C3'.

Batch-read results always carry the range text the caller asked for, whether
they were served from the cache or fetched.
"""

import copy
import logging
from typing import Dict, List, Optional, Sequence

from sheetsguard.domain.events.api_events import CacheInvalidated, dispatch_event
from sheetsguard.domain.interfaces.cache import CacheService
from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.common import (
    ApiResponse,
    BatchWriteOperation,
    CellValues,
    ValueRange,
    make_cache_key,
)
from sheetsguard.domain.models.policies import CacheConfig
from sheetsguard.infrastructure.cache.caching_service import InMemoryCacheService

logger = logging.getLogger(__name__)


class CachedSheetsClient(SheetsClient):
    """Caching decorator. The cache is exposed as ``.cache`` for manual control."""

    def __init__(
        self,
        client: SheetsClient,
        cache: Optional[CacheService] = None,
        config: Optional[CacheConfig] = None,
    ):
        self._client = client
        self.cache = cache or InMemoryCacheService(config)
        # Bumped on every invalidation; a read that overlapped one must not store its result.
        self._generation = 0

    # --- Invalidation helpers ---

    def _invalidate(self, pattern: str) -> None:
        self._generation += 1
        removed = self.cache.invalidate(pattern)
        dispatch_event(CacheInvalidated(pattern=pattern, removed=removed))

    def _invalidate_range(self, spreadsheet_id: str, range_: str) -> None:
        self._invalidate(f"{make_cache_key(spreadsheet_id, range_)}*")

    def _invalidate_spreadsheet(self, spreadsheet_id: str) -> None:
        self._invalidate(f"{spreadsheet_id}:*")

    # --- Reads ---

    async def read(self, spreadsheet_id: str, range_: str) -> CellValues:
        key = make_cache_key(spreadsheet_id, range_)
        cached = self.cache.get(key)
        if cached is not None:
            return copy.deepcopy(cached)

        generation = self._generation
        result = await self._client.read(spreadsheet_id, range_)
        if generation == self._generation:
            self.cache.set(key, copy.deepcopy(result))
        return result

    async def batch_read(self, spreadsheet_id: str, ranges: Sequence[str]) -> List[ValueRange]:
        cached_results: Dict[str, ValueRange] = {}
        uncached_ranges: List[str] = []

        for range_ in ranges:
            cached = self.cache.get(make_cache_key(spreadsheet_id, range_))
            if cached is not None:
                cached_results[range_] = {"range": range_, "values": copy.deepcopy(cached)}
            elif range_ not in uncached_ranges:
                uncached_ranges.append(range_)

        fresh_results: Dict[str, ValueRange] = {}
        if uncached_ranges:
            logger.debug(
                f"Batch read for {spreadsheet_id}: {len(cached_results)} cached, "
                f"{len(uncached_ranges)} fetched"
            )
            generation = self._generation
            fetched = await self._client.batch_read(spreadsheet_id, uncached_ranges)
            matched = self._match_fresh_results(uncached_ranges, fetched)
            for range_, value_range in matched.items():
                values = value_range.get("values") or []
                fresh_results[range_] = {"range": range_, "values": values}
                if generation == self._generation:
                    self.cache.set(make_cache_key(spreadsheet_id, range_), copy.deepcopy(values))

        # Caller's order; ranges the service did not return are left out.
        results: List[ValueRange] = []
        for range_ in ranges:
            if range_ in cached_results:
                results.append(cached_results[range_])
            elif range_ in fresh_results:
                results.append(fresh_results[range_])
        return results

    @staticmethod
    def _match_fresh_results(
        requested: List[str], fetched: List[ValueRange]
    ) -> Dict[str, ValueRange]:
        """Maps requested ranges to fetched value ranges.

        The service answers in request order but may normalise the range
        text ('A1:B2' -> 'Sheet1!A1:B2'), so results are matched by position
        when the counts agree and by their ``range`` field otherwise.
        """
        if len(fetched) == len(requested):
            return dict(zip(requested, fetched))
        by_range = {item.get("range"): item for item in fetched}
        return {range_: by_range[range_] for range_ in requested if range_ in by_range}

    async def get_metadata(self, spreadsheet_id: str) -> ApiResponse:
        return await self._client.get_metadata(spreadsheet_id)

    # --- Writes ---

    async def write(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        result = await self._client.write(spreadsheet_id, range_, values)
        self._invalidate_range(spreadsheet_id, range_)
        return result

    async def append(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        result = await self._client.append(spreadsheet_id, range_, values)
        self._invalidate_spreadsheet(spreadsheet_id)
        return result

    async def clear(self, spreadsheet_id: str, range_: str) -> ApiResponse:
        result = await self._client.clear(spreadsheet_id, range_)
        self._invalidate_range(spreadsheet_id, range_)
        return result

    async def batch_write(
        self, spreadsheet_id: str, data: Sequence[BatchWriteOperation]
    ) -> ApiResponse:
        result = await self._client.batch_write(spreadsheet_id, data)
        for item in data:
            self._invalidate_range(spreadsheet_id, item["range"])
        return result

    async def batch_clear(self, spreadsheet_id: str, ranges: Sequence[str]) -> ApiResponse:
        result = await self._client.batch_clear(spreadsheet_id, ranges)
        for range_ in ranges:
            self._invalidate_range(spreadsheet_id, range_)
        return result
