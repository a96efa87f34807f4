"""Concrete implementation of the SheetsClient interface using the Google Sheets v4 API.

Hides the specifics of googleapiclient and translates calls between the
domain interface and the API's request shapes. This is the innermost layer:
it performs no retries, no caching and no rate limiting. Failures propagate
as the library's ``HttpError`` (or socket-level errors) and are classified
by the retry engine above it.
"""

import asyncio
import logging
import threading
from typing import Any, List, Optional, Sequence

from google.oauth2 import service_account
from googleapiclient.discovery import build

from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.domain.models.common import (
    ApiResponse,
    BatchWriteOperation,
    CellValues,
    ValueRange,
)

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
VALUE_INPUT_OPTION = "USER_ENTERED"
INSERT_DATA_OPTION = "INSERT_ROWS"


def _require_id(spreadsheet_id: str) -> None:
    if not spreadsheet_id or not str(spreadsheet_id).strip():
        raise ValueError("spreadsheet_id must be a non-empty string.")


def _require_ranges(ranges: Sequence[Any]) -> None:
    if not ranges:
        raise ValueError("At least one range is required.")


class GoogleSheetsTransport(SheetsClient):
    """Google Sheets implementation of the SheetsClient interface."""

    def __init__(
        self,
        credentials: Optional[Any] = None,
        credentials_path: Optional[str] = None,
        service: Optional[Any] = None,
    ):
        """Initializes the transport.

        Args:
            credentials: A google-auth credentials object.
            credentials_path: Path to a service-account JSON key file, used
                when ``credentials`` is not given.
            service: A pre-built Sheets API resource (mainly for tests).
        """
        if service is not None:
            self._service = service
        else:
            if credentials is None:
                if not credentials_path:
                    raise ValueError(
                        "Google credentials not provided. Pass credentials, a service-account "
                        "key path, or set GOOGLE_APPLICATION_CREDENTIALS."
                    )
                credentials = service_account.Credentials.from_service_account_file(
                    credentials_path, scopes=SCOPES
                )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        # The service shares one httplib2.Http, which is not thread-safe.
        self._http_lock = threading.Lock()
        logger.info("GoogleSheetsTransport initialized.")

    def _values(self):
        return self._service.spreadsheets().values()

    def _run(self, request: Any) -> ApiResponse:
        with self._http_lock:
            return request.execute()

    async def _execute(self, request: Any) -> ApiResponse:
        # The client library is synchronous; keep the event loop free.
        response = await asyncio.to_thread(self._run, request)
        return response or {}

    async def read(self, spreadsheet_id: str, range_: str) -> CellValues:
        _require_id(spreadsheet_id)
        logger.debug(f"GET values {spreadsheet_id} {range_}")
        response = await self._execute(
            self._values().get(spreadsheetId=spreadsheet_id, range=range_)
        )
        return response.get("values", [])

    async def write(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        _require_id(spreadsheet_id)
        logger.debug(f"UPDATE values {spreadsheet_id} {range_} ({len(values)} rows)")
        return await self._execute(
            self._values().update(
                spreadsheetId=spreadsheet_id,
                range=range_,
                valueInputOption=VALUE_INPUT_OPTION,
                body={"values": values},
            )
        )

    async def append(self, spreadsheet_id: str, range_: str, values: CellValues) -> ApiResponse:
        _require_id(spreadsheet_id)
        logger.debug(f"APPEND values {spreadsheet_id} {range_} ({len(values)} rows)")
        return await self._execute(
            self._values().append(
                spreadsheetId=spreadsheet_id,
                range=range_,
                valueInputOption=VALUE_INPUT_OPTION,
                insertDataOption=INSERT_DATA_OPTION,
                body={"values": values},
            )
        )

    async def clear(self, spreadsheet_id: str, range_: str) -> ApiResponse:
        _require_id(spreadsheet_id)
        logger.debug(f"CLEAR values {spreadsheet_id} {range_}")
        return await self._execute(
            self._values().clear(spreadsheetId=spreadsheet_id, range=range_, body={})
        )

    async def batch_read(self, spreadsheet_id: str, ranges: Sequence[str]) -> List[ValueRange]:
        _require_id(spreadsheet_id)
        _require_ranges(ranges)
        response = await self._execute(
            self._values().batchGet(spreadsheetId=spreadsheet_id, ranges=list(ranges))
        )
        return [
            {"range": item.get("range", ""), "values": item.get("values", [])}
            for item in response.get("valueRanges", [])
        ]

    async def batch_write(
        self, spreadsheet_id: str, data: Sequence[BatchWriteOperation]
    ) -> ApiResponse:
        _require_id(spreadsheet_id)
        _require_ranges(data)
        body = {
            "valueInputOption": VALUE_INPUT_OPTION,
            "data": [{"range": item["range"], "values": item["values"]} for item in data],
        }
        return await self._execute(
            self._values().batchUpdate(spreadsheetId=spreadsheet_id, body=body)
        )

    async def batch_clear(self, spreadsheet_id: str, ranges: Sequence[str]) -> ApiResponse:
        _require_id(spreadsheet_id)
        _require_ranges(ranges)
        return await self._execute(
            self._values().batchClear(spreadsheetId=spreadsheet_id, body={"ranges": list(ranges)})
        )

    async def get_metadata(self, spreadsheet_id: str) -> ApiResponse:
        _require_id(spreadsheet_id)
        return await self._execute(self._service.spreadsheets().get(spreadsheetId=spreadsheet_id))
