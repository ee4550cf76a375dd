"""
Key-value store on top of a single Google Sheet.

Each entry is one row: the key in column A, the encoded value in column B and
the epoch-millisecond time of the write in column C. There is no header row.

Two layouts are supported and they are not compatible with each other:

- ``KVMode.DEFAULT`` keeps at most one row per key and updates it in place.
- ``KVMode.APPEND_ONLY`` appends a row for every write; the row with the
  latest timestamp wins and an empty value marks the key as deleted.
"""

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from sheetstore.codec import BasicCodec, Codec
from sheetstore.exceptions import KeyNotFoundError, RowIndexError, StoreClosedError
from sheetstore.sheets.base import SheetsWrapper
from sheetstore.spreadsheet.model import A1Range
from sheetstore.store.constants import (
    DEFAULT_KV_FIRST_ROW_RANGE,
    DEFAULT_KV_KEY_COL_RANGE,
    DEFAULT_KV_TABLE_RANGE,
    ERROR_VALUE,
    KV_FIND_KEY_A1_RANGE_QUERY_TEMPLATE,
    KV_GET_APPEND_QUERY_TEMPLATE,
    KV_GET_DEFAULT_QUERY_TEMPLATE,
    KV_ROW_RANGE_TEMPLATE,
    NA_VALUE,
    escape_formula_string,
)
from sheetstore.store.scratchpad import Scratchpad

logger = logging.getLogger(__name__)


class KVMode(Enum):
    """How a key-value store lays out its rows."""
    DEFAULT = 0
    APPEND_ONLY = 1


@dataclass
class KVStoreConfig:
    """Configuration of a key-value store.

    Attributes:
        mode: Row layout, see ``KVMode``
        codec: Value codec; ``BasicCodec`` when not given
    """
    mode: KVMode = KVMode.DEFAULT
    codec: Optional[Codec] = None

    def resolved_codec(self) -> Codec:
        return self.codec if self.codec is not None else BasicCodec()


def current_time_ms() -> int:
    return int(time.time() * 1000)


def _is_missing(value: Optional[str]) -> bool:
    return value is None or value == NA_VALUE or value == ""


def _key_cell(key: str) -> str:
    # Forces text, so keys like "123" or "TRUE" are not converted on write.
    return f"'{key}"


class GoogleSheetKVStore:
    """
    Key-value storage where every entry is a row of a Google Sheet.

    Lookups are evaluated as formulas in a scratchpad cell booked when the
    store is created. ``close()`` releases that cell.

    Default mode writes are not atomic: ``set`` and ``delete`` first locate
    the key's row and then write it, so concurrent writers of the same key
    can race.

    Attributes:
        wrapper: Sheet operations used for every call
        spreadsheet_id: The spreadsheet holding the entries
        sheet_name: The sheet (tab) holding the entries
        config: The configuration the store was created with
        scratchpad: The booked formula cell
    """

    def __init__(
        self,
        wrapper: SheetsWrapper,
        spreadsheet_id: str,
        sheet_name: str,
        config: Optional[KVStoreConfig] = None,
    ) -> None:
        """
        Create the store, the sheet (if missing) and a scratchpad.

        Raises:
            SheetsAPIError: If preparing the sheets fails
        """
        self.wrapper = wrapper
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.config = config if config is not None else KVStoreConfig()
        self.codec = self.config.resolved_codec()

        self.wrapper.create_sheet(spreadsheet_id, sheet_name)
        self.scratchpad: Optional[Scratchpad] = Scratchpad.allocate(
            wrapper, spreadsheet_id, sheet_name
        )

    def get(self, key: str) -> bytes:
        """
        Return the value stored under ``key``.

        In append-only mode the most recent row of the key is used.

        Raises:
            KeyNotFoundError: If the key does not exist or was deleted
            RowIndexError: If the lookup formula failed
            DecodeError: If the stored value was not written by the codec
            SheetsAPIError: If the API call fails
        """
        template = KV_GET_DEFAULT_QUERY_TEMPLATE
        if self.config.mode == KVMode.APPEND_ONLY:
            template = KV_GET_APPEND_QUERY_TEMPLATE

        formula = template.format(
            key=escape_formula_string(key),
            table=A1Range.of(self.sheet_name, DEFAULT_KV_TABLE_RANGE).original,
        )
        value = self._active_scratchpad().evaluate(formula)

        if _is_missing(value):
            raise KeyNotFoundError(key)
        if value == ERROR_VALUE:
            raise RowIndexError(f"error looking up key {key!r}: {value}")
        return self.codec.decode(value)

    def set(self, key: str, value: bytes) -> None:
        """
        Store ``value`` under ``key``.

        Raises:
            RowIndexError: If locating the key's row failed (default mode)
            SheetsAPIError: If an API call fails
        """
        encoded = self.codec.encode(value)
        if self.config.mode == KVMode.APPEND_ONLY:
            self._set_append_only(key, encoded)
        else:
            self._set_default(key, encoded)

    def _set_append_only(self, key: str, encoded: str) -> None:
        self.wrapper.insert_rows(
            self.spreadsheet_id,
            A1Range.of(self.sheet_name, DEFAULT_KV_TABLE_RANGE),
            [[_key_cell(key), encoded, current_time_ms()]],
        )

    def _set_default(self, key: str, encoded: str) -> None:
        row = [[_key_cell(key), encoded, current_time_ms()]]
        a1_range = self._find_key_a1_range(key)

        if a1_range is None:
            self.wrapper.overwrite_rows(
                self.spreadsheet_id,
                A1Range.of(self.sheet_name, DEFAULT_KV_FIRST_ROW_RANGE),
                row,
            )
            return

        self.wrapper.update_rows(self.spreadsheet_id, a1_range, row)
        logger.debug("Updated key %r at %s", key, a1_range)

    def _find_key_a1_range(self, key: str) -> Optional[A1Range]:
        formula = KV_FIND_KEY_A1_RANGE_QUERY_TEMPLATE.format(
            key=escape_formula_string(key),
            table=A1Range.of(self.sheet_name, DEFAULT_KV_KEY_COL_RANGE).original,
        )
        offset = self._active_scratchpad().evaluate(formula)
        if _is_missing(offset):
            return None

        try:
            row = int(offset)
        except ValueError as e:
            raise RowIndexError(f"error locating key {key!r}, value: {offset!r}") from e

        # MATCH is relative to A1, so the offset is the absolute row number.
        return A1Range.of(self.sheet_name, KV_ROW_RANGE_TEMPLATE.format(row=row))

    def delete(self, key: str) -> None:
        """
        Delete ``key``. Deleting a missing key is not an error.

        In append-only mode a row with an empty value is appended instead.

        Raises:
            RowIndexError: If locating the key's row failed (default mode)
            SheetsAPIError: If an API call fails
        """
        if self.config.mode == KVMode.APPEND_ONLY:
            self._set_append_only(key, "")
            return

        a1_range = self._find_key_a1_range(key)
        if a1_range is None:
            return
        self.wrapper.clear(self.spreadsheet_id, [a1_range])
        logger.debug("Cleared key %r at %s", key, a1_range)

    def _active_scratchpad(self) -> Scratchpad:
        if self.scratchpad is None:
            raise StoreClosedError(f"key-value store for sheet {self.sheet_name!r} is closed")
        return self.scratchpad

    def close(self) -> None:
        """Release the scratchpad. The store must not be used afterwards."""
        if self.scratchpad is None:
            return
        self.scratchpad.release()
        self.scratchpad = None

    def __enter__(self) -> "GoogleSheetKVStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
