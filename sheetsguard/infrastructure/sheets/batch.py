"""Helpers for batch operations larger than one API request allows.

The Sheets API accepts at most 100 ranges per batch request. These helpers
split larger batches into chunks and issue them in order through any
SheetsClient (usually the fully decorated stack).
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence, TypeVar

from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.common import ApiResponse, BatchWriteOperation, ValueRange

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100

T = TypeVar("T")


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    if size < 1:
        raise ValueError("Chunk size must be at least 1.")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class BatchOperations:
    """Splits batch reads, writes and clears into API-sized requests."""

    def __init__(self, client: SheetsClient, max_batch_size: int = MAX_BATCH_SIZE):
        self.client = client
        self.max_batch_size = max_batch_size

    async def batch_write(
        self, spreadsheet_id: str, operations: Sequence[BatchWriteOperation]
    ) -> List[ApiResponse]:
        results = []
        for batch in chunk(operations, self.max_batch_size):
            results.append(await self.client.batch_write(spreadsheet_id, batch))
        return results

    async def batch_clear(self, spreadsheet_id: str, ranges: Sequence[str]) -> List[ApiResponse]:
        results = []
        for batch in chunk(ranges, self.max_batch_size):
            results.append(await self.client.batch_clear(spreadsheet_id, batch))
        return results

    async def batch_read(self, spreadsheet_id: str, ranges: Sequence[str]) -> List[ValueRange]:
        results: List[ValueRange] = []
        for batch in chunk(ranges, self.max_batch_size):
            results.extend(await self.client.batch_read(spreadsheet_id, batch))
        return results

    async def execute_batch(
        self,
        spreadsheet_id: str,
        writes: Optional[Sequence[BatchWriteOperation]] = None,
        clears: Optional[Sequence[str]] = None,
        reads: Optional[Sequence[str]] = None,
    ) -> Dict[str, Any]:
        """Runs writes, clears and reads concurrently.

        The three groups are independent tasks, so a read may observe the
        sheet before or after the writes of the same call.

        Returns:
            A dict with 'write_results', 'clear_results' and 'read_results'
            for the groups that were requested.
        """
        tasks = {}
        if writes:
            tasks["write_results"] = self.batch_write(spreadsheet_id, writes)
        if clears:
            tasks["clear_results"] = self.batch_clear(spreadsheet_id, clears)
        if reads:
            tasks["read_results"] = self.batch_read(spreadsheet_id, reads)
        if not tasks:
            return {}

        logger.debug(f"Executing mixed batch on {spreadsheet_id}: {', '.join(tasks)}")
        values = await asyncio.gather(*tasks.values())
        return dict(zip(tasks.keys(), values))
