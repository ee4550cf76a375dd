"""
sheetstore - Row and key-value storage on top of Google Sheets.

This package turns a Google Sheet into a small database: a row store with
SQL-like select, insert, update, delete and count statements, and key-value
stores with a default (one row per key) and an append-only layout.

Usage:
    >>> import gspread
    >>> import sheetstore
    >>> gc = gspread.service_account()
    >>> store = sheetstore.new_row_store(
    ...     gc, "<spreadsheet id>", "people",
    ...     sheetstore.RowStoreConfig(columns=["name", "age"]),
    ... )
    >>> store.insert({"name": "alice", "age": 30}).exec()
    >>> store.select([]).where("age > ?", 18).exec()
    [{'name': 'alice', 'age': 30.0}]

Key components:
- GoogleSheetRowStore: select/insert/update/delete/count over a sheet table
- GoogleSheetKVStore: key-value store, one row per write or per key
- GoogleSheetKVStoreV2: key-value store on top of the row store
- SheetsClient: gspread-backed sheet operations used by the stores
"""

from .codec import BasicCodec, Codec
from .exceptions import *
from .factory import new_kv_store, new_kv_store_v2, new_row_store
from .query import ColumnOrderBy, OrderBy
from .sheets import SheetsClient, SheetsWrapper
from .store import (
    GoogleSheetKVStore,
    GoogleSheetKVStoreV2,
    GoogleSheetRowStore,
    KVMode,
    KVStoreConfig,
    RowStoreConfig,
    db_field,
)

# Version
__version__ = "0.1.0"

__all__ = [
    'BasicCodec',
    'Codec',
    'ColumnOrderBy',
    'OrderBy',
    'SheetsClient',
    'SheetsWrapper',
    'GoogleSheetKVStore',
    'GoogleSheetKVStoreV2',
    'GoogleSheetRowStore',
    'KVMode',
    'KVStoreConfig',
    'RowStoreConfig',
    'db_field',
    'new_kv_store',
    'new_kv_store_v2',
    'new_row_store',
    'SheetStoreError',
    'ConfigurationError',
    'ArgumentError',
    'PlaceholderCountError',
    'UnsupportedArgumentTypeError',
    'FormulaTypeError',
    'PrecisionLossError',
    'DecodeError',
    'KeyNotFoundError',
    'SheetsAPIError',
    'RowIndexError',
    'StoreClosedError',
]
