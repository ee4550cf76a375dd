"""
Sheet layouts and formula templates shared by the stores.

All templates are ``str.format`` patterns. Values substituted into formula
string literals must already have their double quotes doubled.
"""

from sheetstore.spreadsheet.model import generate_column_name

# The delete range and the row-index formula both stop at this column.
MAX_COLUMN = 26
LAST_COLUMN = generate_column_name(MAX_COLUMN - 1)

SCRATCHPAD_BOOKED = "BOOKED"
SCRATCHPAD_SHEET_NAME_SUFFIX = "_scratch"

NA_VALUE = "#N/A"
ERROR_VALUE = "#ERROR!"

# Key-value layout: key in A, encoded value in B, epoch millis in C.
DEFAULT_KV_TABLE_RANGE = "A1:C5000000"
DEFAULT_KV_KEY_COL_RANGE = "A1:A5000000"
DEFAULT_KV_FIRST_ROW_RANGE = "A1:C1"
KV_ROW_RANGE_TEMPLATE = "A{row}:C{row}"

KV_GET_APPEND_QUERY_TEMPLATE = '=VLOOKUP("{key}", SORT({table}, 3, FALSE), 2, FALSE)'
KV_GET_DEFAULT_QUERY_TEMPLATE = '=VLOOKUP("{key}", {table}, 2, FALSE)'
KV_FIND_KEY_A1_RANGE_QUERY_TEMPLATE = '=MATCH("{key}", {table}, 0)'

# Row layout: header in row 1, data from row 2, row-identity marker in A.
ROW_IDX_COL = "_rid"
ROW_IDX_FORMULA = "=ROW()"

DEFAULT_ROW_HEADER_RANGE = f"A1:{LAST_COLUMN}1"
DEFAULT_ROW_FULL_TABLE_RANGE = f"A2:{LAST_COLUMN}"
ROW_DELETE_RANGE_TEMPLATE = "A{row}:" + LAST_COLUMN + "{row}"

ROW_WHERE_NON_EMPTY_CONDITION_TEMPLATE = ROW_IDX_COL + " is not null AND {}"
ROW_WHERE_EMPTY_CONDITION = ROW_IDX_COL + " is not null"

# The _rid column holds =ROW(), so selecting it yields absolute row numbers.
ROW_GET_INDICES_QUERY_TEMPLATE = '=JOIN(",", QUERY({table}, "{query}", 0))'
ROW_COUNT_QUERY_COLUMN = f"COUNT({ROW_IDX_COL})"


def escape_formula_string(text: str) -> str:
    """Double the quotes so ``text`` can sit inside a formula string literal."""
    return text.replace('"', '""')
