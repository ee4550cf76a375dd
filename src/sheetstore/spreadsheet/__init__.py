"""
Spreadsheet addressing module.

This module provides A1 range parsing and the logical-to-physical column
mapping shared by the query builder and the stores.
"""

from sheetstore.spreadsheet.model import (
    A1Range,
    ColumnMapping,
    ColumnSpec,
    cell_to_col_idx,
    generate_column_name,
)

__all__ = [
    "A1Range",
    "ColumnMapping",
    "ColumnSpec",
    "cell_to_col_idx",
    "generate_column_name",
]
