"""
Unit tests for the row store and its statements.

The store runs against a Mock SheetsWrapper; tests assert on the calls it
makes and feed back query and scratchpad results.
"""

from dataclasses import dataclass
from typing import Optional

import numpy as np
import pytest

from sheetstore.exceptions import (
    ArgumentError,
    ConfigurationError,
    FormulaTypeError,
    PlaceholderCountError,
    PrecisionLossError,
    RowIndexError,
    StoreClosedError,
)
from sheetstore.query.builder import ColumnOrderBy, OrderBy
from sheetstore.sheets.models import BatchUpdateRowsRequest
from sheetstore.spreadsheet.model import A1Range
from sheetstore.store.records import db_field
from sheetstore.store.row import GoogleSheetRowStore, RowStoreConfig
from tests.helpers.fakes import query_result, update_result

SHEET = "people"


@dataclass
class Person:
    name: str = db_field("name")
    age: int = db_field("age")
    dob: Optional[str] = db_field("dob", default=None)


@dataclass
class FormulaRow:
    value: str = db_field("value")


def discovery_formula(query: str) -> str:
    return f'=JOIN(",", QUERY({SHEET}!A2:Z, "{query}", 0))'


@pytest.fixture
def store(wrapper):
    store = GoogleSheetRowStore(wrapper, "sid", SHEET, RowStoreConfig(columns=["name", "age", "dob"]))
    wrapper.reset_mock()
    return store


class TestRowStoreConfig:
    """Test suite for configuration validation."""

    def test_no_columns(self, wrapper):
        """At least one column is required."""
        with pytest.raises(ConfigurationError, match="at least one column"):
            GoogleSheetRowStore(wrapper, "sid", SHEET, RowStoreConfig(columns=[]))
        wrapper.create_sheet.assert_not_called()

    def test_too_many_columns(self, wrapper):
        """The user columns and _rid must fit in A:Z."""
        columns = [f"c{i}" for i in range(26)]
        with pytest.raises(ConfigurationError, match="up to 25 columns; the reserved '_rid' column takes the 26th"):
            GoogleSheetRowStore(wrapper, "sid", SHEET, RowStoreConfig(columns=columns))

    def test_max_columns(self, wrapper):
        """Exactly 25 user columns are accepted; the last one lands in Z."""
        columns = [f"c{i}" for i in range(25)]
        store = GoogleSheetRowStore(wrapper, "sid", SHEET, RowStoreConfig(columns=columns))
        assert store.columns_mapping["c24"].physical_name == "Z"

    def test_reserved_column(self, wrapper):
        """_rid cannot be configured."""
        with pytest.raises(ConfigurationError, match="reserved"):
            GoogleSheetRowStore(wrapper, "sid", SHEET, RowStoreConfig(columns=["_rid", "name"]))


class TestRowStoreSetup:
    """Test suite for store construction and lifecycle."""

    def test_construction(self, wrapper):
        """The sheet, the header row and a scratchpad are prepared."""
        store = GoogleSheetRowStore(wrapper, "sid", SHEET, RowStoreConfig(columns=["name", "age"]))

        header = A1Range.of(SHEET, "A1:Z1")
        wrapper.create_sheet.assert_any_call("sid", SHEET)
        wrapper.create_sheet.assert_any_call("sid", "people_scratch")
        wrapper.clear.assert_called_once_with("sid", [header])
        wrapper.update_rows.assert_called_once_with("sid", header, [["_rid", "name", "age"]])
        assert store.scratchpad.location == A1Range.of("people_scratch", "A1")
        assert store.columns_mapping.name_map() == {"_rid": "A", "name": "B", "age": "C"}

    def test_close_releases_scratchpad(self, store, wrapper):
        """Closing clears the scratchpad once."""
        store.close()
        store.close()

        wrapper.clear.assert_called_once_with("sid", [A1Range.of("people_scratch", "A1")])

    def test_context_manager(self, wrapper):
        """Leaving the with block closes the store."""
        with GoogleSheetRowStore(wrapper, "sid", SHEET, RowStoreConfig(columns=["name"])) as store:
            pass
        assert store.scratchpad is None

    def test_closed_store_rejects_discovery(self, store):
        """Statements that need the scratchpad fail after close."""
        store.close()
        with pytest.raises(StoreClosedError):
            store.delete().exec()
        with pytest.raises(StoreClosedError):
            store.update({"name": "x"}).exec()


class TestSelect:
    """Test suite for select statements."""

    def test_select_all_columns(self, store, wrapper):
        """Without columns every configured column is selected."""
        wrapper.query_rows.return_value = query_result(["alice", 30.0, "2000-01-01"], ["bob", 41.0, None])

        output = []
        result = store.select(output).exec()

        wrapper.query_rows.assert_called_once_with("sid", SHEET, "select B, C, D where A is not null", True)
        assert result is output
        assert output == [
            {"name": "alice", "age": 30.0, "dob": "2000-01-01"},
            {"name": "bob", "age": 41.0, "dob": None},
        ]

    def test_select_columns_with_where(self, store, wrapper):
        """Selected columns are mapped positionally to the returned cells."""
        wrapper.query_rows.return_value = query_result(["alice", 30.0])

        output = store.select([], "name", "age").where("age > ? AND name != ?", 18, "bob").exec()

        wrapper.query_rows.assert_called_once_with(
            "sid", SHEET, 'select B, C where A is not null AND C > 18 AND B != "bob"', True
        )
        assert output == [{"name": "alice", "age": 30.0}]

    def test_select_order_limit_offset(self, store, wrapper):
        """Ordering and paging are passed to the query."""
        store.select([], "name").order_by([ColumnOrderBy("age", OrderBy.DESC)]).limit(10).offset(5).exec()

        wrapper.query_rows.assert_called_once_with(
            "sid", SHEET, "select B where A is not null order by C DESC offset 5 limit 10", True
        )

    def test_select_into_model(self, store, wrapper):
        """Rows decode into dataclasses; integral floats become ints and missing cells defaults."""
        wrapper.query_rows.return_value = query_result(["alice", 30.0])

        output = store.select([], "name", "age", model=Person).exec()

        assert output == [Person(name="alice", age=30, dob=None)]
        assert isinstance(output[0].age, int)

    def test_select_model_zero_values(self, store, wrapper):
        """Empty cells without a field default get the zero value of the type."""
        wrapper.query_rows.return_value = query_result([None, None, None])

        output = store.select([], model=Person).exec()

        assert output == [Person(name="", age=0, dob=None)]

    def test_select_appends_to_output(self, store, wrapper):
        """Existing entries of the output list are kept."""
        wrapper.query_rows.return_value = query_result(["bob", 41.0, None])

        output = [{"name": "alice"}]
        store.select(output).exec()

        assert len(output) == 2

    @pytest.mark.parametrize("output", [None, (), {}, "rows"])
    def test_select_invalid_output(self, store, wrapper, output):
        """The output must be a list."""
        with pytest.raises(ArgumentError, match="output"):
            store.select(output).exec()
        wrapper.query_rows.assert_not_called()

    def test_select_placeholder_mismatch(self, store, wrapper):
        """A condition with the wrong argument count fails before any call."""
        with pytest.raises(PlaceholderCountError):
            store.select([]).where("age > ? AND age < ?", 1).exec()
        wrapper.query_rows.assert_not_called()

    def test_select_is_immutable(self, store, wrapper):
        """Chained calls leave the original statement untouched."""
        base = store.select([], "name")
        base.where("age > ?", 1).limit(3)

        base.exec()

        wrapper.query_rows.assert_called_once_with("sid", SHEET, "select B where A is not null", True)


class TestInsert:
    """Test suite for insert statements."""

    def test_insert_dataclasses_and_mappings(self, store, wrapper):
        """Rows become physical rows with the row marker and text escaping, in one call."""
        store.insert(
            Person(name="alice", age=30, dob="2000-01-01"),
            {"name": "bob", "age": np.int64(41), "unknown": "ignored"},
        ).exec()

        wrapper.overwrite_rows.assert_called_once_with(
            "sid",
            A1Range.of(SHEET, "A2:Z"),
            [
                ["=ROW()", "'alice", 30, "'2000-01-01"],
                ["=ROW()", "'bob", 41, None],
            ],
        )

    def test_insert_nothing(self, store, wrapper):
        """No rows means no call."""
        store.insert().exec()
        wrapper.overwrite_rows.assert_not_called()

    @pytest.mark.parametrize("row", [None, ["alice", 30], "alice", 42])
    def test_insert_rejects_non_records(self, store, wrapper, row):
        """A bad row fails the whole batch before any call."""
        with pytest.raises(ArgumentError, match="row conversion error"):
            store.insert(Person(name="ok", age=1), row).exec()
        wrapper.overwrite_rows.assert_not_called()

    def test_insert_rejects_unsafe_integer(self, store, wrapper):
        """Integers beyond 2^53 are rejected."""
        with pytest.raises(PrecisionLossError):
            store.insert({"name": "alice", "age": 2 ** 53 + 1}).exec()
        wrapper.overwrite_rows.assert_not_called()

    def test_insert_formula_column(self, wrapper):
        """Formula columns are written unescaped and must be strings."""
        store = GoogleSheetRowStore(
            wrapper, "sid", SHEET, RowStoreConfig(columns=["value"], columns_with_formula=["value"])
        )
        wrapper.reset_mock()

        store.insert(FormulaRow(value="=ROW()-1")).exec()
        wrapper.overwrite_rows.assert_called_once_with(
            "sid", A1Range.of(SHEET, "A2:Z"), [["=ROW()", "=ROW()-1"]]
        )

        with pytest.raises(FormulaTypeError):
            store.insert({"value": 1}).exec()


class TestUpdate:
    """Test suite for update statements."""

    def test_update_without_where_touches_materialized_rows(self, store, wrapper):
        """Only rows carrying the row marker are discovered and updated."""
        # Rows 2 and 4 are populated, row 3 has no marker.
        wrapper.update_rows.return_value = update_result("2,4")

        store.update({"name": "carol", "age": 5}).exec()

        wrapper.update_rows.assert_called_once_with(
            "sid",
            A1Range.of("people_scratch", "A1"),
            [[discovery_formula("select A where A is not null")]],
        )
        wrapper.batch_update_rows.assert_called_once_with("sid", [
            BatchUpdateRowsRequest(A1Range.of(SHEET, "B2"), [["'carol"]]),
            BatchUpdateRowsRequest(A1Range.of(SHEET, "B4"), [["'carol"]]),
            BatchUpdateRowsRequest(A1Range.of(SHEET, "C2"), [[5]]),
            BatchUpdateRowsRequest(A1Range.of(SHEET, "C4"), [[5]]),
        ])

    def test_update_with_where(self, store, wrapper):
        """The condition is translated and embedded in the discovery formula."""
        wrapper.update_rows.return_value = update_result("3")

        store.update({"age": 31}).where("name = ?", "alice").exec()

        wrapper.update_rows.assert_called_once_with(
            "sid",
            A1Range.of("people_scratch", "A1"),
            [[discovery_formula('select A where A is not null AND B = ""alice""')]],
        )
        wrapper.batch_update_rows.assert_called_once_with(
            "sid", [BatchUpdateRowsRequest(A1Range.of(SHEET, "C3"), [[31]])]
        )

    def test_update_no_match(self, store, wrapper):
        """No matching rows means no write."""
        wrapper.update_rows.return_value = update_result("#N/A")

        store.update({"age": 31}).where("name = ?", "nobody").exec()

        wrapper.batch_update_rows.assert_not_called()

    def test_update_empty_mapping(self, store, wrapper):
        """At least one column must be updated."""
        with pytest.raises(ArgumentError, match="at least one column"):
            store.update({}).exec()
        wrapper.update_rows.assert_not_called()

    def test_update_unknown_column(self, store, wrapper):
        """Unknown columns fail before discovery."""
        with pytest.raises(ArgumentError, match="unknown column name provided: salary"):
            store.update({"salary": 1}).exec()
        wrapper.update_rows.assert_not_called()

    def test_update_row_identity_column(self, store, wrapper):
        """The _rid column cannot be overwritten."""
        with pytest.raises(ArgumentError, match="reserved"):
            store.update({"_rid": 5}).exec()
        wrapper.update_rows.assert_not_called()
        wrapper.batch_update_rows.assert_not_called()

    def test_update_unsafe_integer(self, store, wrapper):
        """Unsafe integers fail before discovery."""
        with pytest.raises(PrecisionLossError):
            store.update({"age": -(2 ** 53) - 1}).exec()
        wrapper.update_rows.assert_not_called()

    def test_update_discovery_error(self, store, wrapper):
        """A failed discovery formula is reported."""
        wrapper.update_rows.return_value = update_result("#ERROR!")

        with pytest.raises(RowIndexError):
            store.update({"age": 1}).exec()
        wrapper.batch_update_rows.assert_not_called()

    def test_update_formula_column(self, wrapper):
        """Formula columns are updated with the raw formula."""
        store = GoogleSheetRowStore(
            wrapper, "sid", SHEET, RowStoreConfig(columns=["value"], columns_with_formula=["value"])
        )
        wrapper.reset_mock()
        wrapper.update_rows.return_value = update_result("2")

        store.update({"value": "=ROW()"}).exec()

        wrapper.batch_update_rows.assert_called_once_with(
            "sid", [BatchUpdateRowsRequest(A1Range.of(SHEET, "B2"), [["=ROW()"]])]
        )


class TestDelete:
    """Test suite for delete statements."""

    def test_delete_with_where(self, store, wrapper):
        """Matching rows are cleared across the full width in one call."""
        wrapper.update_rows.return_value = update_result("2,5")

        store.delete().where("age < ?", 18).exec()

        wrapper.update_rows.assert_called_once_with(
            "sid",
            A1Range.of("people_scratch", "A1"),
            [[discovery_formula("select A where A is not null AND C < 18")]],
        )
        wrapper.clear.assert_called_once_with("sid", [
            A1Range.of(SHEET, "A2:Z2"),
            A1Range.of(SHEET, "A5:Z5"),
        ])

    def test_delete_no_match(self, store, wrapper):
        """No matching rows means nothing is cleared."""
        wrapper.update_rows.return_value = update_result("#N/A")

        store.delete().exec()

        wrapper.clear.assert_not_called()

    def test_delete_missing_formula_result(self, store, wrapper):
        """A discovery that returns no value at all is an error."""
        wrapper.update_rows.return_value = update_result()

        with pytest.raises(RowIndexError):
            store.delete().exec()


class TestCount:
    """Test suite for count statements."""

    def test_count(self, store, wrapper):
        """The count aggregate is translated and parsed."""
        wrapper.query_rows.return_value = query_result([2.0])

        assert store.count().where("age > ?", 10).exec() == 2
        wrapper.query_rows.assert_called_once_with(
            "sid", SHEET, "select COUNT(A) where A is not null AND C > 10", True
        )

    @pytest.mark.parametrize("rows", [[], [[1.0, 2.0]], [[1.0], [2.0]]])
    def test_count_unexpected_shape(self, store, wrapper, rows):
        """Anything but a single cell is an error."""
        wrapper.query_rows.return_value = query_result(*rows)

        with pytest.raises(RowIndexError, match="shape"):
            store.count().exec()

    def test_count_non_numeric(self, store, wrapper):
        """A non-numeric count is an error."""
        wrapper.query_rows.return_value = query_result(["two"])

        with pytest.raises(RowIndexError):
            store.count().exec()


@pytest.mark.slow
class TestRowStoreLive:
    """End-to-end checks against a real spreadsheet (requires credentials)."""

    def test_round_trip(self):
        """Insert, update, count, select and delete against Google Sheets."""
        import os

        import gspread

        from sheetstore import new_row_store

        spreadsheet_id = os.environ.get("SHEETSTORE_SPREADSHEET_ID")
        if not spreadsheet_id:
            pytest.skip("SHEETSTORE_SPREADSHEET_ID is not set")

        gc = gspread.service_account()
        with new_row_store(gc, spreadsheet_id, "people_live", RowStoreConfig(columns=["name", "age"])) as store:
            store.delete().exec()
            store.insert({"name": "alice", "age": 30}, {"name": "bob", "age": 41}).exec()
            store.update({"age": 31}).where("name = ?", "alice").exec()

            assert store.count().exec() == 2
            rows = store.select([], model=Person).where("age > ?", 30).order_by([ColumnOrderBy("age")]).exec()
            assert [(p.name, p.age) for p in rows] == [("alice", 31), ("bob", 41)]

            store.delete().exec()
            assert store.count().exec() == 0
