"""
Row store statements.

Each statement is an immutable description: ``where``, ``order_by``,
``limit`` and ``offset`` return a new statement and never touch the network.
``exec`` is the only method that performs I/O.

Select and Count are answered by the query endpoint directly. Update and
Delete first discover the absolute row numbers of the affected rows through
the store's scratchpad, then address those rows in one batched request.
"""

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Dict, List, MutableSequence, Optional, Sequence, Tuple, Type

from sheetstore.codec import check_safe_integer, escape_value
from sheetstore.exceptions import ArgumentError, RowIndexError
from sheetstore.query.builder import ColumnOrderBy, QueryBuilder, new_query_builder
from sheetstore.sheets.models import BatchUpdateRowsRequest, QueryRowsResult
from sheetstore.spreadsheet.model import A1Range
from sheetstore.store.constants import (
    DEFAULT_ROW_FULL_TABLE_RANGE,
    ROW_COUNT_QUERY_COLUMN,
    ROW_DELETE_RANGE_TEMPLATE,
    ROW_IDX_COL,
    ROW_IDX_FORMULA,
    ROW_WHERE_EMPTY_CONDITION,
    ROW_WHERE_NON_EMPTY_CONDITION_TEMPLATE,
)
from sheetstore.store.records import dicts_to_records, normalize_value, record_to_dict
from sheetstore.store.scratchpad import discover_row_indices

if TYPE_CHECKING:
    from sheetstore.store.row import GoogleSheetRowStore

logger = logging.getLogger(__name__)


def rid_where_clause_interceptor(where: str) -> str:
    """Restrict a condition to materialized rows (rows with a row-identity marker)."""
    if not where:
        return ROW_WHERE_EMPTY_CONDITION
    return ROW_WHERE_NON_EMPTY_CONDITION_TEMPLATE.format(where)


def _prepare_value(store: "GoogleSheetRowStore", column: str, value: Any) -> Any:
    value = normalize_value(value)
    # None leaves the cell empty.
    if value is None:
        return None
    escaped = escape_value(column, value, store.columns_with_formula)
    check_safe_integer(escaped)
    return escaped


@dataclass(frozen=True)
class SelectStmt:
    """Query rows and decode them into ``output``.

    ``output`` must be a list; decoded records are appended to it. When
    ``model`` is a dataclass type each row becomes an instance of it,
    otherwise each row is a dict keyed by logical column name.
    """
    store: "GoogleSheetRowStore"
    output: Any
    columns: Tuple[str, ...]
    builder: QueryBuilder
    model: Optional[Type] = None

    def where(self, condition: str, *args: Any) -> "SelectStmt":
        """Keep only rows matching ``condition``.

        Values in the condition are written as ``?`` placeholders and passed
        positionally in ``args``, e.g. ``where("age > ? AND name = ?", 10, "bob")``.
        Any condition supported by the Visualization query language can be used,
        with logical column names in place of column letters.
        """
        return replace(self, builder=self.builder.with_where(condition, *args))

    def order_by(self, ordering: Sequence[ColumnOrderBy]) -> "SelectStmt":
        return replace(self, builder=self.builder.with_order_by(ordering))

    def limit(self, limit: int) -> "SelectStmt":
        return replace(self, builder=self.builder.with_limit(limit))

    def offset(self, offset: int) -> "SelectStmt":
        return replace(self, builder=self.builder.with_offset(offset))

    def exec(self) -> MutableSequence:
        """Run the query (one API call) and append the decoded rows to ``output``.

        Returns:
            The ``output`` list

        Raises:
            ArgumentError: If ``output`` is None or not a list
            PlaceholderCountError: If the WHERE arguments do not match the placeholders
            SheetsAPIError: If the query fails
        """
        self._ensure_output_list()
        query = self.builder.generate()

        result = self.store.wrapper.query_rows(
            self.store.spreadsheet_id,
            self.store.sheet_name,
            query,
            True,
        )
        self.output.extend(dicts_to_records(self._build_result_dicts(result), self.model))
        return self.output

    def _build_result_dicts(self, result: QueryRowsResult) -> List[Dict[str, Any]]:
        rows = []
        for row in result.rows:
            rows.append({self.columns[idx]: value for idx, value in enumerate(row)})
        return rows

    def _ensure_output_list(self) -> None:
        if self.output is None:
            raise ArgumentError("select statement output cannot be None")
        if not isinstance(self.output, MutableSequence):
            raise ArgumentError(
                f"select statement output must be a list; current output type: "
                f"{type(self.output).__name__}"
            )


@dataclass(frozen=True)
class InsertStmt:
    """Append rows after the last row of the table."""
    store: "GoogleSheetRowStore"
    rows: Tuple[Any, ...]

    def exec(self) -> None:
        """Insert every row in one API call.

        All rows are converted before the call, so a single invalid row fails
        the whole batch without writing anything.

        Raises:
            ArgumentError: If a row is None or not a record
            FormulaTypeError: If a formula column gets a non-string value
            PrecisionLossError: If an integer cannot be stored exactly
            SheetsAPIError: If the write fails
        """
        if not self.rows:
            return

        converted = [self._convert_row(row) for row in self.rows]
        self.store.wrapper.overwrite_rows(
            self.store.spreadsheet_id,
            A1Range.of(self.store.sheet_name, DEFAULT_ROW_FULL_TABLE_RANGE),
            converted,
        )
        logger.debug("Inserted %d row(s) into %r", len(converted), self.store.sheet_name)

    def _convert_row(self, row: Any) -> List[Any]:
        try:
            values = record_to_dict(row)
        except ArgumentError as e:
            raise ArgumentError(
                f"cannot execute insert statement due to row conversion error: {e}"
            ) from e

        mapping = self.store.columns_mapping
        result: List[Any] = [None] * len(mapping)
        result[0] = ROW_IDX_FORMULA

        for column, value in values.items():
            if column == ROW_IDX_COL or column not in mapping:
                continue
            result[mapping[column].ordinal] = _prepare_value(self.store, column, value)
        return result


@dataclass(frozen=True)
class UpdateStmt:
    """Set new values for some columns of every matching row."""
    store: "GoogleSheetRowStore"
    col_to_value: Dict[str, Any]
    builder: QueryBuilder

    def where(self, condition: str, *args: Any) -> "UpdateStmt":
        """Choose the affected rows; see ``SelectStmt.where``. Defaults to every row."""
        return replace(self, builder=self.builder.with_where(condition, *args))

    def exec(self) -> None:
        """Update the matching rows (two API calls, or one when nothing matches).

        Raises:
            ArgumentError: If no column is given or a column is unknown
            FormulaTypeError: If a formula column gets a non-string value
            PrecisionLossError: If an integer cannot be stored exactly
            RowIndexError: If the affected rows cannot be determined
            SheetsAPIError: If an API call fails
        """
        if not self.col_to_value:
            raise ArgumentError("empty col_to_value, at least one column must be updated")

        prepared = self._prepare_values()
        query = self.builder.generate()

        indices = discover_row_indices(self.store.active_scratchpad(), self.store.sheet_name, query)
        if not indices:
            return

        requests = self._generate_batch_update_requests(prepared, indices)
        self.store.wrapper.batch_update_rows(self.store.spreadsheet_id, requests)

    def _prepare_values(self) -> Dict[str, Any]:
        prepared = {}
        for column, value in self.col_to_value.items():
            if column == ROW_IDX_COL:
                raise ArgumentError(f"failed to update, column {ROW_IDX_COL!r} is reserved")
            if column not in self.store.columns_mapping:
                raise ArgumentError(f"failed to update, unknown column name provided: {column}")
            prepared[column] = _prepare_value(self.store, column, value)
        return prepared

    def _generate_batch_update_requests(
        self, prepared: Dict[str, Any], indices: List[int]
    ) -> List[BatchUpdateRowsRequest]:
        requests = []
        for column, value in prepared.items():
            letter = self.store.columns_mapping[column].physical_name
            for row in indices:
                requests.append(BatchUpdateRowsRequest(
                    a1_range=A1Range.of(self.store.sheet_name, f"{letter}{row}"),
                    values=[[value]],
                ))
        return requests


@dataclass(frozen=True)
class DeleteStmt:
    """Clear every matching row."""
    store: "GoogleSheetRowStore"
    builder: QueryBuilder

    def where(self, condition: str, *args: Any) -> "DeleteStmt":
        """Choose the affected rows; see ``SelectStmt.where``. Defaults to every row."""
        return replace(self, builder=self.builder.with_where(condition, *args))

    def exec(self) -> None:
        """Clear the matching rows (two API calls, or one when nothing matches).

        Raises:
            RowIndexError: If the affected rows cannot be determined
            SheetsAPIError: If an API call fails
        """
        query = self.builder.generate()

        indices = discover_row_indices(self.store.active_scratchpad(), self.store.sheet_name, query)
        if not indices:
            return

        ranges = [
            A1Range.of(self.store.sheet_name, ROW_DELETE_RANGE_TEMPLATE.format(row=row))
            for row in indices
        ]
        self.store.wrapper.clear(self.store.spreadsheet_id, ranges)


@dataclass(frozen=True)
class CountStmt:
    """Count the matching rows."""
    store: "GoogleSheetRowStore"
    builder: QueryBuilder

    def where(self, condition: str, *args: Any) -> "CountStmt":
        """Choose the counted rows; see ``SelectStmt.where``. Defaults to every row."""
        return replace(self, builder=self.builder.with_where(condition, *args))

    def exec(self) -> int:
        """Count the matching rows (one API call).

        Raises:
            RowIndexError: If the result is not exactly one numeric cell
            SheetsAPIError: If the query fails
        """
        query = self.builder.generate()
        result = self.store.wrapper.query_rows(
            self.store.spreadsheet_id,
            self.store.sheet_name,
            query,
            True,
        )

        if len(result.rows) != 1 or len(result.rows[0]) != 1:
            raise RowIndexError(f"unexpected count query result shape: {result.rows!r}")

        count = result.rows[0][0]
        if isinstance(count, bool) or not isinstance(count, (int, float)) or count < 0:
            raise RowIndexError(f"unexpected count query result: {count!r}")
        return int(count)


def new_select_stmt(
    store: "GoogleSheetRowStore",
    output: Any,
    columns: Sequence[str],
    model: Optional[Type] = None,
) -> SelectStmt:
    columns = tuple(columns)
    return SelectStmt(
        store=store,
        output=output,
        columns=columns,
        builder=new_query_builder(store.columns_mapping.name_map(), rid_where_clause_interceptor, columns),
        model=model,
    )


def new_insert_stmt(store: "GoogleSheetRowStore", rows: Sequence[Any]) -> InsertStmt:
    return InsertStmt(store=store, rows=tuple(rows))


def new_update_stmt(store: "GoogleSheetRowStore", col_to_value: Dict[str, Any]) -> UpdateStmt:
    return UpdateStmt(
        store=store,
        col_to_value=dict(col_to_value),
        builder=new_query_builder(
            store.columns_mapping.name_map(),
            rid_where_clause_interceptor,
            [ROW_IDX_COL],
        ),
    )


def new_delete_stmt(store: "GoogleSheetRowStore") -> DeleteStmt:
    return DeleteStmt(
        store=store,
        builder=new_query_builder(
            store.columns_mapping.name_map(),
            rid_where_clause_interceptor,
            [ROW_IDX_COL],
        ),
    )


def new_count_stmt(store: "GoogleSheetRowStore") -> CountStmt:
    return CountStmt(
        store=store,
        builder=new_query_builder(
            store.columns_mapping.name_map(),
            rid_where_clause_interceptor,
            [ROW_COUNT_QUERY_COLUMN],
        ),
    )
