"""
Spreadsheet addressing model.

This module provides the addressing primitives the stores are built on:
- A1Range: a parsed "sheet!fromCell:toCell" reference with row/column spans
- ColumnSpec: one logical column bound to its spreadsheet column letter
- ColumnMapping: the ordered, immutable logical -> physical column table
- generate_column_name / cell_to_col_idx: column letter conversions
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Sequence

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

_DIGITS = re.compile(r"\d")


def generate_column_name(n: int) -> str:
    """Convert a 0-indexed column ordinal into spreadsheet column letters.

    This is not a plain base-26 conversion: after the first letter, every
    subsequent round subtracts one before taking the modulo, so that the
    second letter can restart at "A" (0 -> A, 25 -> Z, 26 -> AA, 52 -> BA).

    Args:
        n: Column ordinal (0-indexed, non-negative)

    Returns:
        Column letter(s) in A1 notation

    Raises:
        ValueError: If n is negative
    """
    if n < 0:
        raise ValueError("Column ordinal must be non-negative")

    col = ALPHABET[n % 26]
    n //= 26

    while n > 0:
        n -= 1
        col = ALPHABET[n % 26] + col
        n //= 26

    return col


def cell_to_col_idx(cell: str) -> int:
    """Convert a cell or column reference into a 1-indexed column number.

    Everything from the first digit onwards is ignored and the letters are
    read case-insensitively ("A" -> 1, "AA1" -> 27, "abc" -> 731).
    An empty reference yields 0.
    """
    match = _DIGITS.search(cell)
    if match:
        cell = cell[:match.start()]

    index = 0
    for char in cell.upper():
        index = index * 26 + (ord(char) - ord("A") + 1)
    return index


@dataclass(frozen=True)
class A1Range:
    """A cell range reference in A1 notation, e.g. ``Sheet1!A1:C10``.

    Parsing never fails: anything that is not separated by ``!`` or ``:``
    ends up verbatim in the cell fields, and ``original`` always keeps the
    input as given.

    Attributes:
        original: The reference exactly as provided
        sheet_name: The sheet part ("" when absent)
        from_cell: The first cell ("A1")
        to_cell: The last cell (same as from_cell for a single cell)
    """
    original: str
    sheet_name: str
    from_cell: str
    to_cell: str

    @classmethod
    def from_string(cls, notation: str) -> "A1Range":
        """Parse ``[sheet!]cell[:cell]`` into an A1Range."""
        sheet_name = ""
        cells = notation
        if "!" in notation:
            sheet_name, cells = notation.split("!", 1)

        from_cell, sep, to_cell = cells.partition(":")
        if not sep:
            to_cell = from_cell

        return cls(
            original=notation,
            sheet_name=sheet_name,
            from_cell=from_cell,
            to_cell=to_cell,
        )

    @classmethod
    def of(cls, sheet_name: str, rng: str) -> "A1Range":
        """Build a range on the given sheet, e.g. ``A1Range.of("kv", "A1:C1")``."""
        return cls.from_string(f"{sheet_name}!{rng}")

    @property
    def range(self) -> str:
        """The cell part without the sheet name, e.g. ``A1:C10``."""
        return f"{self.from_cell}:{self.to_cell}"

    @property
    def num_cols(self) -> int:
        """Number of columns spanned (order of the two cells does not matter)."""
        return abs(cell_to_col_idx(self.to_cell) - cell_to_col_idx(self.from_cell)) + 1

    @property
    def num_rows(self) -> int:
        """Number of rows spanned, or 0 when either cell has no valid row number."""
        from_row = self._row_number(self.from_cell)
        to_row = self._row_number(self.to_cell)
        if from_row is None or to_row is None:
            return 0
        return abs(to_row - from_row) + 1

    @staticmethod
    def _row_number(cell: str):
        match = _DIGITS.search(cell)
        if not match:
            return None
        digits = cell[match.start():]
        if not digits.isdigit():
            return None
        return int(digits)

    def __str__(self) -> str:
        return self.original


@dataclass(frozen=True)
class ColumnSpec:
    """One logical column and where it lives in the sheet.

    Attributes:
        logical_name: The name callers use (e.g. "age")
        physical_name: The spreadsheet column letter(s) (e.g. "C")
        ordinal: 0-indexed position in the configured schema
    """
    logical_name: str
    physical_name: str
    ordinal: int


class ColumnMapping:
    """Ordered, immutable mapping between logical column names and sheet columns.

    Ordinals are contiguous from 0 following the order of ``columns``, and
    each physical name is ``generate_column_name(ordinal)``.
    """

    def __init__(self, columns: Sequence[str]) -> None:
        specs = [
            ColumnSpec(logical_name=name, physical_name=generate_column_name(i), ordinal=i)
            for i, name in enumerate(columns)
        ]
        self._specs = tuple(specs)
        self._by_name: Dict[str, ColumnSpec] = {spec.logical_name: spec for spec in specs}

    @property
    def columns(self) -> List[str]:
        """Logical column names in ordinal order."""
        return [spec.logical_name for spec in self._specs]

    def get(self, name: str):
        return self._by_name.get(name)

    def name_map(self) -> Dict[str, str]:
        """Logical name -> column letter, as used for query translation."""
        return {spec.logical_name: spec.physical_name for spec in self._specs}

    def __getitem__(self, name: str) -> ColumnSpec:
        return self._by_name[name]

    def __contains__(self, name: object) -> bool:
        return name in self._by_name

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self._specs)

    def __len__(self) -> int:
        return len(self._specs)

    def __repr__(self) -> str:
        return f"ColumnMapping({self.columns!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ColumnMapping):
            return NotImplemented
        return self._specs == other._specs
