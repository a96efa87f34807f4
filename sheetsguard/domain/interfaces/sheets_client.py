"""Interface for the Sheets values API.

Defines the closed set of remote operations. The transport and every
decorator (retry, cache, rate limiting, metrics) implement this same
contract, so they can be stacked in any order. Adding an operation means
adding it here, to ``SHEETS_OPERATIONS`` and to every implementation.
"""

import abc
from typing import List, Sequence

from sheetsguard.domain.models.common import (
    ApiResponse,
    BatchWriteOperation,
    CellValues,
    ValueRange,
)


class SheetsClient(abc.ABC):
    """Abstract Base Class for remote spreadsheet operations."""

    @abc.abstractmethod
    async def read(self, spreadsheet_id: str, range_: str) -> CellValues:
        """Reads the values of a range.

        Args:
            spreadsheet_id: The spreadsheet ID.
            range_: A1 notation range (e.g., 'Sheet1!A1:B10').

        Returns:
            Row-major 2D list of values (empty if the range is empty).
        """
        pass

    @abc.abstractmethod
    async def write(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        """Overwrites the values of a range."""
        pass

    @abc.abstractmethod
    async def append(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        """Appends rows after the table found in ``range_``.

        Not idempotent: repeating a timed-out append may duplicate rows.
        """
        pass

    @abc.abstractmethod
    async def clear(self, spreadsheet_id: str, range_: str) -> ApiResponse:
        """Clears the values of a range (formatting is kept)."""
        pass

    @abc.abstractmethod
    async def batch_read(self, spreadsheet_id: str, ranges: Sequence[str]) -> List[ValueRange]:
        """Reads several ranges in one request, in the order given."""
        pass

    @abc.abstractmethod
    async def batch_write(
        self, spreadsheet_id: str, data: Sequence[BatchWriteOperation]
    ) -> ApiResponse:
        """Overwrites several ranges in one request."""
        pass

    @abc.abstractmethod
    async def batch_clear(self, spreadsheet_id: str, ranges: Sequence[str]) -> ApiResponse:
        """Clears several ranges in one request."""
        pass

    @abc.abstractmethod
    async def get_metadata(self, spreadsheet_id: str) -> ApiResponse:
        """Fetches spreadsheet metadata (title, sheets, properties)."""
        pass
