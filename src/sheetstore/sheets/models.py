"""
Result models for Google Sheets operations.

These dataclasses carry what the backend reports back after a write, and the
typed rows returned by the Visualization query endpoint.
"""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from sheetstore.exceptions import SheetsAPIError
from sheetstore.spreadsheet.model import A1Range

MAJOR_DIMENSION_ROWS = "ROWS"
VALUE_INPUT_USER_ENTERED = "USER_ENTERED"
RESPONSE_VALUE_RENDER_FORMATTED = "FORMATTED_VALUE"
APPEND_MODE_INSERT = "INSERT_ROWS"
APPEND_MODE_OVERWRITE = "OVERWRITE"

QUERY_ROWS_URL_TEMPLATE = "https://docs.google.com/spreadsheets/d/{}/gviz/tq"
QUERY_RESPONSE_HANDLER = "responseHandler:sheetstore"


@dataclass
class InsertRowsResult:
    """Outcome of an append call.

    Attributes:
        updated_range: The range the rows actually landed in
        updated_rows: Number of rows written
        updated_columns: Number of columns written
        updated_cells: Number of cells written
        inserted_values: The written values as rendered by the backend
    """
    updated_range: A1Range
    updated_rows: int = 0
    updated_columns: int = 0
    updated_cells: int = 0
    inserted_values: List[List[Any]] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "InsertRowsResult":
        """Build from an ``AppendValuesResponse`` payload."""
        updates = data.get("updates", {})
        return cls(
            updated_range=A1Range.from_string(updates.get("updatedRange", "")),
            updated_rows=updates.get("updatedRows", 0),
            updated_columns=updates.get("updatedColumns", 0),
            updated_cells=updates.get("updatedCells", 0),
            inserted_values=updates.get("updatedData", {}).get("values", []),
        )


@dataclass
class UpdateRowsResult:
    """Outcome of an update call.

    ``updated_values`` holds the cells as computed by the backend, which is
    how formula results are read back.
    """
    updated_range: A1Range
    updated_rows: int = 0
    updated_columns: int = 0
    updated_cells: int = 0
    updated_values: List[List[Any]] = field(default_factory=list)

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "UpdateRowsResult":
        """Build from an ``UpdateValuesResponse`` payload."""
        return cls(
            updated_range=A1Range.from_string(data.get("updatedRange", "")),
            updated_rows=data.get("updatedRows", 0),
            updated_columns=data.get("updatedColumns", 0),
            updated_cells=data.get("updatedCells", 0),
            updated_values=data.get("updatedData", {}).get("values", []),
        )


@dataclass
class BatchUpdateRowsRequest:
    """One range and the values to write into it."""
    a1_range: A1Range
    values: List[List[Any]]

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a ``ValueRange`` payload."""
        return {
            "majorDimension": MAJOR_DIMENSION_ROWS,
            "range": self.a1_range.original,
            "values": self.values,
        }


@dataclass
class QueryRowsResult:
    """Typed rows returned by a query, header excluded."""
    rows: List[List[Any]] = field(default_factory=list)


def _convert_cell(col_type: str, cell: Optional[Dict[str, Any]]) -> Any:
    if cell is None:
        return None
    if col_type in ("boolean", "number", "string"):
        return cell.get("v")
    if col_type in ("date", "datetime", "timeofday"):
        return cell.get("f")
    raise SheetsAPIError(f"unsupported cell value type: {col_type}")


def parse_query_response(text: str) -> QueryRowsResult:
    """Parse the Visualization endpoint's JSONP response into typed rows.

    The payload looks like
    ``/*O_o*/ google.visualization.Query.setResponse({...});`` and its
    ``table`` holds ``cols`` (with a ``type`` per column) and ``rows`` (each a
    ``c`` list of ``{"v": raw, "f": formatted}`` cells or nulls).

    Numbers come back as floats. Date and time columns return the formatted
    string, because their raw value is a JavaScript ``Date(...)`` literal.

    Raises:
        SheetsAPIError: If the payload is malformed or reports an error
    """
    first = text.find("{")
    if first == -1:
        raise SheetsAPIError(f"opening curly bracket not found: {text}")
    last = text.rfind("}")
    if last == -1:
        raise SheetsAPIError(f"closing curly bracket not found: {text}")

    try:
        payload = json.loads(text[first:last + 1])
    except json.JSONDecodeError as e:
        raise SheetsAPIError(f"Failed to parse query response: {e}") from e

    if payload.get("status") == "error":
        raise SheetsAPIError(f"Query failed: {payload.get('errors')}")

    table = payload.get("table") or {}
    cols = table.get("cols") or []
    rows: List[List[Any]] = []

    for raw_row in table.get("rows") or []:
        cells = raw_row.get("c") or []
        row = []
        for idx, cell in enumerate(cells):
            if idx >= len(cols):
                raise SheetsAPIError(f"query response row has more cells than columns: {raw_row}")
            row.append(_convert_cell(cols[idx].get("type", ""), cell))
        rows.append(row)

    return QueryRowsResult(rows=rows)
