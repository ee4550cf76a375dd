"""
Query module for sheetstore.

Renders select queries in the Google Visualization query dialect from
logical column names and typed WHERE arguments.
"""

from sheetstore.query.args import (
    BooleanArg,
    FloatArg,
    IntegerArg,
    QueryArg,
    TextArg,
    to_query_arg,
)
from sheetstore.query.builder import (
    ColumnOrderBy,
    ColumnReplacer,
    OrderBy,
    QueryBuilder,
    new_query_builder,
)

__all__ = [
    "BooleanArg",
    "FloatArg",
    "IntegerArg",
    "QueryArg",
    "TextArg",
    "to_query_arg",
    "ColumnOrderBy",
    "ColumnReplacer",
    "OrderBy",
    "QueryBuilder",
    "new_query_builder",
]
