"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), runs them through
the decorated client stack and hands results to the user interface.
Failures are caught here, at the boundary, and shown with the
category-derived user message.
"""

import logging
from typing import List, Optional

from sheetsguard.core.client_factory import ClientStack
from sheetsguard.domain.interfaces.user_interface import UserInterface
from sheetsguard.domain.models.common import CellValues
from sheetsguard.domain.models.errors import ClassifiedError
from sheetsguard.infrastructure.sheets.batch import BatchOperations

logger = logging.getLogger(__name__)


class CommandHandler:
    """Handles incoming commands and delegates to the client stack."""

    def __init__(self, stack: ClientStack, ui: UserInterface):
        self.stack = stack
        self.client = stack.client
        self.batch = BatchOperations(stack.client)
        self.ui = ui

    def _report_failure(self, action: str, error: Exception) -> None:
        if isinstance(error, ClassifiedError):
            logger.error(f"{action} failed: {error!r}")
            self.ui.display_error(f"{action} failed: {error.get_user_message()} ({error.code})")
        else:
            logger.error(f"{action} failed: {error}", exc_info=True)
            self.ui.display_error(f"{action} failed: {error}")

    async def handle_read(self, spreadsheet_id: str, range_: str) -> Optional[CellValues]:
        logger.info(f"Handling 'read' for {spreadsheet_id} {range_}")
        try:
            values = await self.client.read(spreadsheet_id, range_)
        except (ClassifiedError, ValueError) as e:
            self._report_failure("Read", e)
            return None
        self.ui.display_values(values, title=range_)
        return values

    async def handle_batch_read(self, spreadsheet_id: str, ranges: List[str]) -> None:
        logger.info(f"Handling 'batch-read' for {spreadsheet_id}: {len(ranges)} ranges")
        try:
            value_ranges = await self.batch.batch_read(spreadsheet_id, ranges)
        except (ClassifiedError, ValueError) as e:
            self._report_failure("Batch read", e)
            return
        for value_range in value_ranges:
            self.ui.display_values(value_range["values"], title=value_range["range"])

    async def handle_write(self, spreadsheet_id: str, range_: str, values: CellValues) -> None:
        logger.info(f"Handling 'write' for {spreadsheet_id} {range_}")
        try:
            response = await self.client.write(spreadsheet_id, range_, values)
        except (ClassifiedError, ValueError) as e:
            self._report_failure("Write", e)
            return
        self.ui.display_info(f"Updated {response.get('updatedCells', 0)} cells in {response.get('updatedRange', range_)}.")

    async def handle_append(self, spreadsheet_id: str, range_: str, values: CellValues) -> None:
        logger.info(f"Handling 'append' for {spreadsheet_id} {range_}")
        try:
            response = await self.client.append(spreadsheet_id, range_, values)
        except (ClassifiedError, ValueError) as e:
            self._report_failure("Append", e)
            return
        updates = response.get("updates", {})
        self.ui.display_info(
            f"Appended {updates.get('updatedRows', len(values))} rows to {updates.get('updatedRange', range_)}."
        )

    async def handle_clear(self, spreadsheet_id: str, range_: str) -> None:
        logger.info(f"Handling 'clear' for {spreadsheet_id} {range_}")
        try:
            response = await self.client.clear(spreadsheet_id, range_)
        except (ClassifiedError, ValueError) as e:
            self._report_failure("Clear", e)
            return
        self.ui.display_info(f"Cleared {response.get('clearedRange', range_)}.")

    async def handle_metadata(self, spreadsheet_id: str) -> None:
        logger.info(f"Handling 'metadata' for {spreadsheet_id}")
        try:
            metadata = await self.client.get_metadata(spreadsheet_id)
        except (ClassifiedError, ValueError) as e:
            self._report_failure("Metadata", e)
            return
        self.ui.display_metadata(metadata)

    def show_metrics(self) -> None:
        """Displays metrics and limiter state, when those layers are present."""
        if self.stack.metrics is not None:
            self.ui.display_metrics(self.stack.metrics.get_summary(), self.stack.metrics.get_metrics())
        if self.stack.rate_limiter is not None:
            self.ui.display_info(f"Rate limiter: {self.stack.rate_limiter.get_stats()}")
        if self.stack.cache is not None:
            self.ui.display_info(f"Cache entries: {self.stack.cache.size()}")
