"""
Key-value store built on the row store.

Entries live in a row store table with the columns ``key`` and ``value``, so
the sheet gets a header row and the ``_rid`` column. The layout is not
compatible with ``GoogleSheetKVStore``.
"""

from dataclasses import dataclass
from typing import List, Optional

from sheetstore.exceptions import KeyNotFoundError
from sheetstore.query.args import TextArg
from sheetstore.query.builder import ColumnOrderBy, OrderBy
from sheetstore.sheets.base import SheetsWrapper
from sheetstore.store.constants import ROW_IDX_COL
from sheetstore.store.kv import KVMode, KVStoreConfig
from sheetstore.store.records import db_field
from sheetstore.store.row import GoogleSheetRowStore, RowStoreConfig

KEY_COLUMN = "key"
VALUE_COLUMN = "value"
KEY_CONDITION = f"{KEY_COLUMN} = ?"


def _key_arg(key: str) -> TextArg:
    # Keys are always text, even when they start with a date keyword.
    return TextArg(key, allow_keyword=False)


@dataclass
class KVRow:
    key: str = db_field(KEY_COLUMN, default="")
    value: str = db_field(VALUE_COLUMN, default="")


class GoogleSheetKVStoreV2:
    """
    Key-value storage on top of ``GoogleSheetRowStore``.

    In default mode ``set`` updates the key's rows when it has any and
    inserts a row otherwise, and ``delete`` removes the key's rows. In
    append-only mode every ``set`` and ``delete`` inserts a row and ``get``
    reads the key's row with the highest row number.
    """

    def __init__(
        self,
        wrapper: SheetsWrapper,
        spreadsheet_id: str,
        sheet_name: str,
        config: Optional[KVStoreConfig] = None,
    ) -> None:
        self.config = config if config is not None else KVStoreConfig()
        self.mode = self.config.mode
        self.codec = self.config.resolved_codec()
        self.row_store = GoogleSheetRowStore(
            wrapper,
            spreadsheet_id,
            sheet_name,
            RowStoreConfig(columns=[KEY_COLUMN, VALUE_COLUMN]),
        )

    def get(self, key: str) -> bytes:
        """
        Return the value stored under ``key``.

        Raises:
            KeyNotFoundError: If the key does not exist or was deleted
            DecodeError: If the stored value was not written by the codec
            SheetsAPIError: If the query fails
        """
        stmt = self.row_store.select([], VALUE_COLUMN, model=KVRow).where(KEY_CONDITION, _key_arg(key))
        if self.mode == KVMode.APPEND_ONLY:
            stmt = stmt.order_by([ColumnOrderBy(ROW_IDX_COL, OrderBy.DESC)])
        rows: List[KVRow] = stmt.limit(1).exec()

        if not rows or not rows[0].value:
            raise KeyNotFoundError(key)
        return self.codec.decode(rows[0].value)

    def set(self, key: str, value: bytes) -> None:
        """
        Store ``value`` under ``key``.

        Raises:
            RowIndexError: If locating the key's rows failed (default mode)
            SheetsAPIError: If an API call fails
        """
        encoded = self.codec.encode(value)
        if self.mode == KVMode.APPEND_ONLY:
            self.row_store.insert(KVRow(key=key, value=encoded)).exec()
            return

        count = self.row_store.count().where(KEY_CONDITION, _key_arg(key)).exec()
        if count == 0:
            self.row_store.insert(KVRow(key=key, value=encoded)).exec()
            return

        self.row_store.update({VALUE_COLUMN: encoded}).where(KEY_CONDITION, _key_arg(key)).exec()

    def delete(self, key: str) -> None:
        """
        Delete ``key``. Deleting a missing key is not an error.

        Raises:
            RowIndexError: If locating the key's rows failed (default mode)
            SheetsAPIError: If an API call fails
        """
        if self.mode == KVMode.APPEND_ONLY:
            self.row_store.insert(KVRow(key=key, value="")).exec()
            return
        self.row_store.delete().where(KEY_CONDITION, _key_arg(key)).exec()

    def close(self) -> None:
        self.row_store.close()

    def __enter__(self) -> "GoogleSheetKVStoreV2":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
