"""
Store module for sheetstore.

Row store, key-value stores, and the scratchpad protocol they use to find
the rows affected by a condition.
"""

from sheetstore.store.kv import GoogleSheetKVStore, KVMode, KVStoreConfig
from sheetstore.store.kv_v2 import GoogleSheetKVStoreV2
from sheetstore.store.records import db_field
from sheetstore.store.row import GoogleSheetRowStore, RowStoreConfig
from sheetstore.store.scratchpad import (
    Scratchpad,
    discover_row_indices,
    parse_row_indices,
    plan_row_index_formula,
)
from sheetstore.store.stmt import CountStmt, DeleteStmt, InsertStmt, SelectStmt, UpdateStmt

__all__ = [
    "GoogleSheetKVStore",
    "GoogleSheetKVStoreV2",
    "KVMode",
    "KVStoreConfig",
    "db_field",
    "GoogleSheetRowStore",
    "RowStoreConfig",
    "Scratchpad",
    "discover_row_indices",
    "parse_row_indices",
    "plan_row_index_formula",
    "CountStmt",
    "DeleteStmt",
    "InsertStmt",
    "SelectStmt",
    "UpdateStmt",
]
