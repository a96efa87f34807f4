"""Defines common Value Objects used across different domain contexts.

These objects represent simple values or concepts like cell grids,
value ranges and cache keys, ensuring consistency and type safety.
"""

from typing import Any, Dict, List, NewType, TypedDict

# === Remote Sheet Context ===

CellValues = List[List[Any]]                     # Rectangular grid, row-major

# === Caching Context ===
CacheKey = NewType("CacheKey", str)              # '{spreadsheet_id}:{range}'

# === Operation names ===
# The closed operation set of the SheetsClient interface; every decorator
# implements each of these explicitly.
SHEETS_OPERATIONS = (
    "read",
    "write",
    "append",
    "clear",
    "batch_read",
    "batch_write",
    "batch_clear",
    "get_metadata",
)

# --- Structured Data ---
class ValueRange(TypedDict):
    """A range and its values, as returned by a batch read."""
    range: str
    values: CellValues

class BatchWriteOperation(TypedDict):
    """A single range update inside a batch write."""
    range: str
    values: CellValues

# Raw response bodies (update/append/clear/metadata) are passed through untouched.
ApiResponse = Dict[str, Any]


def make_cache_key(spreadsheet_id: str, range_: str) -> CacheKey:
    """Builds the cache key for a single range of a spreadsheet."""
    return CacheKey(f"{spreadsheet_id}:{range_}")
