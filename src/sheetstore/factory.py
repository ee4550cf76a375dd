"""
Entry points that build stores from an authenticated gspread client.

Each function wraps the client in a ``SheetsClient`` and hands it to the
store. Use the store classes directly to plug in another ``SheetsWrapper``.
"""

from typing import Any, Optional

from sheetstore.sheets.client import SheetsClient
from sheetstore.store.kv import GoogleSheetKVStore, KVStoreConfig
from sheetstore.store.kv_v2 import GoogleSheetKVStoreV2
from sheetstore.store.row import GoogleSheetRowStore, RowStoreConfig


def new_row_store(
    gc: Any,
    spreadsheet_id: str,
    sheet_name: str,
    config: RowStoreConfig,
    timeout: Optional[float] = None,
) -> GoogleSheetRowStore:
    """Create a row store on ``sheet_name``.

    Args:
        gc: An authenticated ``gspread.Client`` (from
            ``gspread.service_account()`` or ``gspread.oauth()``).
        spreadsheet_id: ID of an existing spreadsheet
        sheet_name: The sheet holding the table; created when missing
        config: Columns of the table
        timeout: Optional per-request timeout in seconds

    Raises:
        ConfigurationError: If the configuration is invalid
        SheetsAPIError: If preparing the sheet fails
    """
    return GoogleSheetRowStore(SheetsClient(gc, timeout=timeout), spreadsheet_id, sheet_name, config)


def new_kv_store(
    gc: Any,
    spreadsheet_id: str,
    sheet_name: str,
    config: Optional[KVStoreConfig] = None,
    timeout: Optional[float] = None,
) -> GoogleSheetKVStore:
    """Create a key-value store keeping one row per entry on ``sheet_name``.

    Args:
        gc: An authenticated ``gspread.Client``
        spreadsheet_id: ID of an existing spreadsheet
        sheet_name: The sheet holding the entries; created when missing
        config: Mode and codec; default mode with ``BasicCodec`` when omitted
        timeout: Optional per-request timeout in seconds
    """
    return GoogleSheetKVStore(SheetsClient(gc, timeout=timeout), spreadsheet_id, sheet_name, config)


def new_kv_store_v2(
    gc: Any,
    spreadsheet_id: str,
    sheet_name: str,
    config: Optional[KVStoreConfig] = None,
    timeout: Optional[float] = None,
) -> GoogleSheetKVStoreV2:
    """Create a key-value store backed by a row store table on ``sheet_name``."""
    return GoogleSheetKVStoreV2(SheetsClient(gc, timeout=timeout), spreadsheet_id, sheet_name, config)
