import json
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httplib2
import pytest
from googleapiclient.errors import HttpError
from typer.testing import CliRunner

from sheetsguard.domain.interfaces.sheets_client import SheetsClient
from sheetsguard.infrastructure.config.settings import clear_config_overrides


class StatusError(Exception):
    """Transport failure carrying a plain ``code`` attribute."""

    def __init__(self, code: Any, message: str = "request failed"):
        super().__init__(message)
        self.code = code


class FakeSheetsTransport(SheetsClient):
    """In-memory SheetsClient that records calls and can be scripted to fail.

    ``fail_next`` queues exceptions raised by the next calls (one per call);
    ``fail_always`` makes every call raise the same exception.
    """

    def __init__(self):
        self.sheets: Dict[Tuple[str, str], List[List[Any]]] = {}
        self.calls: List[Tuple[str, tuple]] = []
        self._queued: List[BaseException] = []
        self._always: Optional[BaseException] = None

    def fail_next(self, *errors: BaseException) -> None:
        self._queued.extend(errors)

    def fail_always(self, error: Optional[BaseException]) -> None:
        self._always = error

    def call_count(self, method: Optional[str] = None) -> int:
        return len([c for c in self.calls if method is None or c[0] == method])

    def _record(self, method: str, *args: Any) -> None:
        self.calls.append((method, args))
        if self._always is not None:
            raise self._always
        if self._queued:
            raise self._queued.pop(0)

    async def read(self, spreadsheet_id, range_):
        self._record("read", spreadsheet_id, range_)
        return [list(row) for row in self.sheets.get((spreadsheet_id, range_), [])]

    async def write(self, spreadsheet_id, range_, values):
        self._record("write", spreadsheet_id, range_, values)
        self.sheets[(spreadsheet_id, range_)] = [list(row) for row in values]
        return {"updatedRange": range_, "updatedCells": sum(len(row) for row in values)}

    async def append(self, spreadsheet_id, range_, values):
        self._record("append", spreadsheet_id, range_, values)
        self.sheets.setdefault((spreadsheet_id, range_), []).extend(list(row) for row in values)
        return {"updates": {"updatedRange": range_, "updatedRows": len(values)}}

    async def clear(self, spreadsheet_id, range_):
        self._record("clear", spreadsheet_id, range_)
        self.sheets[(spreadsheet_id, range_)] = []
        return {"clearedRange": range_}

    async def batch_read(self, spreadsheet_id, ranges: Sequence[str]):
        self._record("batch_read", spreadsheet_id, list(ranges))
        return [
            {"range": r, "values": [list(row) for row in self.sheets.get((spreadsheet_id, r), [])]}
            for r in ranges
        ]

    async def batch_write(self, spreadsheet_id, data):
        self._record("batch_write", spreadsheet_id, list(data))
        for item in data:
            self.sheets[(spreadsheet_id, item["range"])] = [list(row) for row in item["values"]]
        return {"totalUpdatedCells": sum(len(row) for item in data for row in item["values"])}

    async def batch_clear(self, spreadsheet_id, ranges):
        self._record("batch_clear", spreadsheet_id, list(ranges))
        for r in ranges:
            self.sheets[(spreadsheet_id, r)] = []
        return {"clearedRanges": list(ranges)}

    async def get_metadata(self, spreadsheet_id):
        self._record("get_metadata", spreadsheet_id)
        return {
            "spreadsheetId": spreadsheet_id,
            "properties": {"title": "Budget"},
            "sheets": [{"properties": {"sheetId": 0, "title": "Sheet1"}}],
        }


@pytest.fixture(scope="session")
def runner():
    """Provides a Typer CliRunner instance."""
    return CliRunner()


@pytest.fixture
def fake_transport():
    return FakeSheetsTransport()


@pytest.fixture
def status_error():
    """Factory for transport errors with a plain ``code`` attribute."""
    return StatusError


@pytest.fixture
def http_error():
    """Factory for real googleapiclient HttpErrors with a given status."""
    def _make(status: int, message: str = "Backend Error") -> HttpError:
        content = json.dumps({"error": {"code": status, "message": message}}).encode("utf-8")
        return HttpError(resp=httplib2.Response({"status": status}), content=content)
    return _make


@pytest.fixture
def no_jitter(mocker):
    """Removes the random jitter from retry delays."""
    return mocker.patch("sheetsguard.infrastructure.resilience.api_retry.random.uniform", return_value=0)


@pytest.fixture(autouse=True)
def reset_test_config():
    """Test overrides (and CLI flag overrides) must not leak between tests."""
    yield
    clear_config_overrides()
