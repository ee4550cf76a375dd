"""
Sheet operations interface.

The SheetsWrapper protocol is the contract the stores rely on for every
backend call. SheetsClient implements it on top of gspread; tests substitute
a mock with the same shape.
"""

from typing import Dict, List, Protocol, Sequence

from sheetstore.sheets.models import (
    BatchUpdateRowsRequest,
    InsertRowsResult,
    QueryRowsResult,
    UpdateRowsResult,
)
from sheetstore.spreadsheet.model import A1Range


class SheetsWrapper(Protocol):
    """Protocol for the spreadsheet operations used by the stores."""

    def get_sheet_name_to_id(self, spreadsheet_id: str) -> Dict[str, int]:
        ...

    def create_sheet(self, spreadsheet_id: str, sheet_name: str) -> None:
        ...

    def delete_sheets(self, spreadsheet_id: str, sheet_ids: Sequence[int]) -> None:
        ...

    def insert_rows(
        self, spreadsheet_id: str, a1_range: A1Range, values: List[List]
    ) -> InsertRowsResult:
        """Append rows after the table found in ``a1_range``, inserting new rows."""
        ...

    def overwrite_rows(
        self, spreadsheet_id: str, a1_range: A1Range, values: List[List]
    ) -> InsertRowsResult:
        """Append rows after the table found in ``a1_range``, overwriting empty rows."""
        ...

    def update_rows(
        self, spreadsheet_id: str, a1_range: A1Range, values: List[List]
    ) -> UpdateRowsResult:
        ...

    def batch_update_rows(
        self, spreadsheet_id: str, requests: Sequence[BatchUpdateRowsRequest]
    ) -> List[UpdateRowsResult]:
        ...

    def query_rows(
        self, spreadsheet_id: str, sheet_name: str, query: str, skip_header: bool
    ) -> QueryRowsResult:
        ...

    def clear(self, spreadsheet_id: str, ranges: Sequence[A1Range]) -> List[str]:
        ...
