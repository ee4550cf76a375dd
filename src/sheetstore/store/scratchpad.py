"""
Scratchpad cells and row-index discovery.

The Sheets API has no "update rows matching X" or "delete rows matching X"
call, so the stores find the affected rows first and then address them one by
one. The discovery works in three phases:

1. Plan: render the query and wrap it into a formula that lists the absolute
   row numbers of the matching rows (``plan_row_index_formula``).
2. Discover: write that formula into the store's scratchpad cell and read the
   computed result echoed back by the same call (``Scratchpad.evaluate``),
   then parse it (``parse_row_indices``).
3. Execute: the statements turn the row numbers into batched range updates or
   clears.

A scratchpad is one cell booked per store instance in the ``<sheet>_scratch``
sheet. Two store instances must never share a scratchpad cell.
"""

import logging
from typing import List, Optional

from sheetstore.exceptions import RowIndexError
from sheetstore.sheets.base import SheetsWrapper
from sheetstore.spreadsheet.model import A1Range
from sheetstore.store.constants import (
    DEFAULT_KV_TABLE_RANGE,
    DEFAULT_ROW_FULL_TABLE_RANGE,
    ERROR_VALUE,
    NA_VALUE,
    ROW_GET_INDICES_QUERY_TEMPLATE,
    SCRATCHPAD_BOOKED,
    SCRATCHPAD_SHEET_NAME_SUFFIX,
    escape_formula_string,
)

logger = logging.getLogger(__name__)


def scratchpad_sheet_name(sheet_name: str) -> str:
    return sheet_name + SCRATCHPAD_SHEET_NAME_SUFFIX


class Scratchpad:
    """A single booked cell used to evaluate formulas on the backend.

    Attributes:
        wrapper: Sheet operations used for the writes
        spreadsheet_id: The spreadsheet holding the scratchpad sheet
        location: The booked cell
    """

    def __init__(self, wrapper: SheetsWrapper, spreadsheet_id: str, location: A1Range) -> None:
        self.wrapper = wrapper
        self.spreadsheet_id = spreadsheet_id
        self.location = location

    @classmethod
    def allocate(cls, wrapper: SheetsWrapper, spreadsheet_id: str, sheet_name: str) -> "Scratchpad":
        """Book the next free cell of the scratchpad sheet for ``sheet_name``.

        The scratchpad sheet is created when missing. The booking writes a
        sentinel value below the cells booked so far, and the range the
        backend reports for that write becomes the scratchpad.

        Raises:
            SheetsAPIError: If creating the sheet or booking the cell fails
        """
        scratch_sheet = scratchpad_sheet_name(sheet_name)
        wrapper.create_sheet(spreadsheet_id, scratch_sheet)

        result = wrapper.overwrite_rows(
            spreadsheet_id,
            A1Range.of(scratch_sheet, DEFAULT_KV_TABLE_RANGE),
            [[SCRATCHPAD_BOOKED]],
        )
        logger.info("Booked scratchpad %s", result.updated_range)
        return cls(wrapper, spreadsheet_id, result.updated_range)

    def evaluate(self, formula: str) -> Optional[str]:
        """Write ``formula`` into the scratchpad and return its computed value.

        Returns:
            The formatted result, or None when the backend echoed no value
        """
        result = self.wrapper.update_rows(self.spreadsheet_id, self.location, [[formula]])
        if not result.updated_values or not result.updated_values[0]:
            return None
        return str(result.updated_values[0][0])

    def release(self) -> None:
        """Clear the booked cell so that it can be booked again."""
        self.wrapper.clear(self.spreadsheet_id, [self.location])
        logger.info("Released scratchpad %s", self.location)

    def __repr__(self) -> str:
        return f"Scratchpad({self.location.original!r})"


def plan_row_index_formula(sheet_name: str, query: str) -> str:
    """Wrap a query over the data range into a formula listing matching row numbers.

    The query must select the ``_rid`` column, whose cells hold their own
    absolute row number. Matching rows are joined with commas; no match
    evaluates to the NA sentinel.
    """
    table = A1Range.of(sheet_name, DEFAULT_ROW_FULL_TABLE_RANGE).original
    return ROW_GET_INDICES_QUERY_TEMPLATE.format(
        table=table,
        query=escape_formula_string(query),
    )


def parse_row_indices(raw: Optional[str]) -> List[int]:
    """Parse the scratchpad result of a row-index formula.

    Returns:
        Absolute (1-indexed) row numbers; empty when nothing matched

    Raises:
        RowIndexError: If there was no result, the formula failed, or a token
            is not an integer
    """
    if raw is None:
        raise RowIndexError("error retrieving row indices: no formula result returned")
    if raw == NA_VALUE or raw == "":
        return []
    if raw == ERROR_VALUE:
        raise RowIndexError(f"error retrieving row indices: {raw}")

    indices: List[int] = []
    for token in raw.split(","):
        try:
            indices.append(int(token.strip()))
        except ValueError as e:
            raise RowIndexError(f"error converting row indices: {token!r}") from e
    return indices


def discover_row_indices(scratchpad: Scratchpad, sheet_name: str, query: str) -> List[int]:
    """Run the plan and discover phases for one query."""
    formula = plan_row_index_formula(sheet_name, query)
    indices = parse_row_indices(scratchpad.evaluate(formula))
    logger.debug("Discovered %d row(s) for query %r", len(indices), query)
    return indices
