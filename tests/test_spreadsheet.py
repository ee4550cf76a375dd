"""
Unit tests for the spreadsheet addressing model.

Tests cover:
- generate_column_name: the A..Z, AA..ZZ, AAA..ZZZ letter sequence
- cell_to_col_idx: 1-indexed column numbers from cell references
- A1Range: parsing, sheet-qualified construction, row/column spans
- ColumnMapping: ordinals, letters and lookup
"""

import itertools
import string

import pytest

from sheetstore.spreadsheet.model import (
    A1Range,
    ColumnMapping,
    ColumnSpec,
    cell_to_col_idx,
    generate_column_name,
)


def reference_column_names():
    """All column names from A to ZZZ, in order."""
    letters = string.ascii_uppercase
    for width in (1, 2, 3):
        for combo in itertools.product(letters, repeat=width):
            yield "".join(combo)


class TestColumnLetterConversion:
    """Test suite for column letter conversions."""

    @pytest.mark.parametrize("ordinal,expected", [
        (0, "A"),
        (5, "F"),
        (15, "P"),
        (25, "Z"),
        (26, "AA"),
        (51, "AZ"),
        (52, "BA"),
        (89, "CL"),
        (701, "ZZ"),
        (702, "AAA"),
        (18277, "ZZZ"),
    ])
    def test_generate_column_name(self, ordinal, expected):
        """Known ordinals map to their column letters."""
        assert generate_column_name(ordinal) == expected

    def test_generate_column_name_matches_reference_table(self):
        """Every ordinal in [0, 18277] matches the A..ZZZ sequence."""
        reference = list(reference_column_names())
        assert len(reference) == 18278

        for ordinal, expected in enumerate(reference):
            assert generate_column_name(ordinal) == expected

    def test_cell_to_col_idx_inverts_generate_column_name(self):
        """cell_to_col_idx is the 1-indexed inverse of generate_column_name."""
        for ordinal in range(18278):
            assert cell_to_col_idx(generate_column_name(ordinal)) == ordinal + 1

    def test_generate_column_name_rejects_negative(self):
        """Negative ordinals are invalid."""
        with pytest.raises(ValueError, match="non-negative"):
            generate_column_name(-1)

    @pytest.mark.parametrize("cell,expected", [
        ("A", 1),
        ("Z", 26),
        ("A1", 1),
        ("AA1", 27),
        ("ZZ100", 702),
        ("abc", 731),
        ("", 0),
    ])
    def test_cell_to_col_idx(self, cell, expected):
        """Trailing digits are ignored and letters are case-insensitive."""
        assert cell_to_col_idx(cell) == expected


class TestA1Range:
    """Test suite for A1Range parsing."""

    @pytest.mark.parametrize("notation,sheet_name,from_cell,to_cell", [
        ("A1", "", "A1", "A1"),
        ("A1:A2", "", "A1", "A2"),
        ("Sheet1!A1", "Sheet1", "A1", "A1"),
        ("Sheet1!A1:A2", "Sheet1", "A1", "A2"),
        ("", "", "", ""),
    ])
    def test_from_string(self, notation, sheet_name, from_cell, to_cell):
        """Parsing splits the sheet name and the two cells, keeping the original."""
        a1 = A1Range.from_string(notation)
        assert a1.original == notation
        assert a1.sheet_name == sheet_name
        assert a1.from_cell == from_cell
        assert a1.to_cell == to_cell

    def test_of_prefixes_sheet_name(self):
        """of() builds a sheet-qualified reference."""
        assert A1Range.of("sheet", "A1:A50").original == "sheet!A1:A50"
        assert A1Range.of("sheet", "A1").original == "sheet!A1"
        assert A1Range.of("sheet", "A").original == "sheet!A"

    def test_str_is_original(self):
        """str() gives the reference as provided."""
        assert str(A1Range.from_string("kv!A1:C5")) == "kv!A1:C5"

    def test_range_without_sheet(self):
        """range drops the sheet name."""
        assert A1Range.from_string("kv!A1:C5").range == "A1:C5"

    @pytest.mark.parametrize("notation,rows,cols", [
        ("A1", 1, 1),
        ("A1:C5", 5, 3),
        ("C5:A1", 5, 3),
        ("Sheet1!B2:B2", 1, 1),
        ("A1:Z1", 1, 26),
        ("A:C", 0, 3),
        ("A1:C", 0, 3),
    ])
    def test_spans(self, notation, rows, cols):
        """Row and column spans are order-independent; missing row numbers give 0 rows."""
        a1 = A1Range.from_string(notation)
        assert a1.num_rows == rows
        assert a1.num_cols == cols

    def test_equality(self):
        """Ranges parsed from the same text are equal."""
        assert A1Range.from_string("s!A1:B2") == A1Range.of("s", "A1:B2")


class TestColumnMapping:
    """Test suite for ColumnMapping."""

    def test_ordinals_and_letters(self):
        """Columns get contiguous ordinals and letters in configuration order."""
        mapping = ColumnMapping(["_rid", "name", "age"])

        assert list(mapping) == [
            ColumnSpec("_rid", "A", 0),
            ColumnSpec("name", "B", 1),
            ColumnSpec("age", "C", 2),
        ]
        assert mapping.columns == ["_rid", "name", "age"]
        assert len(mapping) == 3

    def test_name_map(self):
        """name_map translates logical names into column letters."""
        mapping = ColumnMapping(["_rid", "name", "age"])
        assert mapping.name_map() == {"_rid": "A", "name": "B", "age": "C"}

    def test_lookup(self):
        """Lookups by logical name."""
        mapping = ColumnMapping(["name", "age"])

        assert "age" in mapping
        assert "salary" not in mapping
        assert mapping["age"].physical_name == "B"
        assert mapping.get("salary") is None

        with pytest.raises(KeyError):
            mapping["salary"]

    def test_equality(self):
        """Mappings built from the same columns are equal."""
        assert ColumnMapping(["a", "b"]) == ColumnMapping(["a", "b"])
        assert ColumnMapping(["a", "b"]) != ColumnMapping(["b", "a"])
