"""
Row store on top of a single Google Sheet.

The sheet is laid out as a table: row 1 holds the column names and data rows
start at row 2. Column A is reserved for ``_rid``, a ``=ROW()`` formula
written with every inserted row. It tells materialized rows apart from the
unused capacity of the sheet and gives each row its absolute row number.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional, Type

from sheetstore.exceptions import ConfigurationError, StoreClosedError
from sheetstore.sheets.base import SheetsWrapper
from sheetstore.spreadsheet.model import A1Range, ColumnMapping
from sheetstore.store.constants import DEFAULT_ROW_HEADER_RANGE, MAX_COLUMN, ROW_IDX_COL
from sheetstore.store.scratchpad import Scratchpad
from sheetstore.store.stmt import (
    CountStmt,
    DeleteStmt,
    InsertStmt,
    SelectStmt,
    UpdateStmt,
    new_count_stmt,
    new_delete_stmt,
    new_insert_stmt,
    new_select_stmt,
    new_update_stmt,
)

logger = logging.getLogger(__name__)

# _rid occupies one of the MAX_COLUMN columns.
MAX_USER_COLUMNS = MAX_COLUMN - 1


@dataclass
class RowStoreConfig:
    """Configuration of a row store.

    Attributes:
        columns: Logical column names. The order decides the physical column
            of each name, so changing it for an existing sheet scrambles the data.
        columns_with_formula: Columns whose values are written as formulas.
            Only string values are accepted for them.
    """
    columns: List[str]
    columns_with_formula: List[str] = field(default_factory=list)

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: If there are no columns or too many of them
        """
        if not self.columns:
            raise ConfigurationError("columns must have at least one column")
        if len(self.columns) > MAX_USER_COLUMNS:
            raise ConfigurationError(
                f"you can only have up to {MAX_USER_COLUMNS} columns; "
                f"the reserved {ROW_IDX_COL!r} column takes the {MAX_COLUMN}th"
            )
        if ROW_IDX_COL in self.columns:
            raise ConfigurationError(f"column name {ROW_IDX_COL!r} is reserved")


class GoogleSheetRowStore:
    """
    SQL-like row storage on a Google Sheet.

    Every operation returns an immutable statement; nothing is sent until the
    statement's ``exec()`` is called.

    Example:
        >>> store = GoogleSheetRowStore(client, spreadsheet_id, "people",
        ...                             RowStoreConfig(columns=["name", "age"]))
        >>> store.insert({"name": "alice", "age": 30}).exec()
        >>> store.select([], "name").where("age > ?", 18).exec()
        [{'name': 'alice'}]

    Attributes:
        wrapper: Sheet operations used for every call
        spreadsheet_id: The spreadsheet holding the table
        sheet_name: The sheet (tab) holding the table
        config: The configuration the store was created with
        columns_mapping: ``_rid`` followed by the configured columns
        columns_with_formula: Columns written without text escaping
        scratchpad: The cell booked for row-index discovery
    """

    def __init__(
        self,
        wrapper: SheetsWrapper,
        spreadsheet_id: str,
        sheet_name: str,
        config: RowStoreConfig,
    ) -> None:
        """
        Create the store, the sheet (if missing), its header row and a scratchpad.

        Raises:
            ConfigurationError: If the configuration is invalid
            SheetsAPIError: If preparing the sheet fails
        """
        config.validate()

        self.wrapper = wrapper
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.config = config
        self.columns_mapping = ColumnMapping([ROW_IDX_COL] + list(config.columns))
        self.columns_with_formula: FrozenSet[str] = frozenset(config.columns_with_formula)

        self.wrapper.create_sheet(spreadsheet_id, sheet_name)
        self._ensure_headers()
        self.scratchpad: Optional[Scratchpad] = Scratchpad.allocate(
            wrapper, spreadsheet_id, sheet_name
        )

    def _ensure_headers(self) -> None:
        header_range = A1Range.of(self.sheet_name, DEFAULT_ROW_HEADER_RANGE)
        self.wrapper.clear(self.spreadsheet_id, [header_range])
        self.wrapper.update_rows(self.spreadsheet_id, header_range, [self.columns_mapping.columns])
        logger.debug("Wrote header row of %r", self.sheet_name)

    def select(self, output: Any, *columns: str, model: Optional[Type] = None) -> SelectStmt:
        """
        Prepare a query returning ``columns`` (all configured columns when empty).

        Args:
            output: A list the selected rows are appended to
            *columns: Logical column names to return
            model: Optional dataclass type each row is decoded into; fields map
                to columns through ``db_field`` metadata or their own name

        Returns:
            A statement supporting ``where``, ``order_by``, ``limit`` and ``offset``
        """
        if not columns:
            columns = tuple(self.config.columns)
        return new_select_stmt(self, output, columns, model)

    def insert(self, *rows: Any) -> InsertStmt:
        """
        Prepare appending ``rows`` (dataclass instances or mappings).

        Fields without a matching column are ignored.
        """
        return new_insert_stmt(self, rows)

    def update(self, col_to_value: Dict[str, Any]) -> UpdateStmt:
        """
        Prepare setting new values for the given columns.

        Without ``where`` every materialized row is updated.
        """
        return new_update_stmt(self, col_to_value)

    def delete(self) -> DeleteStmt:
        """Prepare clearing rows. Without ``where`` every materialized row is cleared."""
        return new_delete_stmt(self)

    def count(self) -> CountStmt:
        return new_count_stmt(self)

    def active_scratchpad(self) -> Scratchpad:
        """
        Raises:
            StoreClosedError: If the store was closed
        """
        if self.scratchpad is None:
            raise StoreClosedError(f"row store for sheet {self.sheet_name!r} is closed")
        return self.scratchpad

    def close(self) -> None:
        """Release the scratchpad. The store must not be used afterwards."""
        if self.scratchpad is None:
            return
        self.scratchpad.release()
        self.scratchpad = None

    def __enter__(self) -> "GoogleSheetRowStore":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"GoogleSheetRowStore({self.spreadsheet_id!r}, {self.sheet_name!r}, {self.config.columns!r})"
