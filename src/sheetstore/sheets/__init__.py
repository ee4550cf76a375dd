"""
Sheet operations module for sheetstore.

``SheetsWrapper`` is the interface the stores talk to; ``SheetsClient``
implements it against the Google Sheets API through gspread.
"""

from sheetstore.sheets.base import SheetsWrapper
from sheetstore.sheets.client import SheetsClient
from sheetstore.sheets.models import (
    BatchUpdateRowsRequest,
    InsertRowsResult,
    QueryRowsResult,
    UpdateRowsResult,
    parse_query_response,
)

__all__ = [
    "SheetsWrapper",
    "SheetsClient",
    "BatchUpdateRowsRequest",
    "InsertRowsResult",
    "QueryRowsResult",
    "UpdateRowsResult",
    "parse_query_response",
]
