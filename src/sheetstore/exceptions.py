"""
Exception classes for sheetstore.

These exceptions are used throughout the sheetstore package to signal configuration
mistakes, bad caller arguments, lossy values and backend failures.
"""


class SheetStoreError(Exception):
    """Base class for every error raised by sheetstore."""
    pass


class ConfigurationError(SheetStoreError):
    """Raised when a store is constructed with an unusable configuration.

    No valid store can exist for such a configuration, so this is raised from
    the store constructor before any request is made. Examples:
        - A row store configured without any column
        - A row store configured with more than 26 columns
    """
    pass


class ArgumentError(SheetStoreError, ValueError):
    """Raised when a statement or operation receives an invalid argument.

    These are caller mistakes and retrying will not help. Examples:
        - Inserting a bare list instead of a record
        - Selecting into ``None`` or into something that is not a list
        - Updating with an empty column mapping
    """
    pass


class PlaceholderCountError(ArgumentError):
    """Raised when the number of ``?`` placeholders differs from the number of arguments."""
    pass


class UnsupportedArgumentTypeError(ArgumentError, TypeError):
    """Raised when a WHERE argument cannot be rendered into the query dialect."""
    pass


class FormulaTypeError(ArgumentError, TypeError):
    """Raised when a formula column receives a value that is not a string."""
    pass


class PrecisionLossError(SheetStoreError, ValueError):
    """Raised when an integer cannot be stored exactly as an IEEE 754 double.

    Spreadsheet numeric cells are doubles, so only integers within
    [-(2^53), 2^53] survive the round trip. Callers must downcast or store
    the value as text instead.
    """
    pass


class DecodeError(SheetStoreError, ValueError):
    """Raised when a stored value does not carry the codec marker."""
    pass


class KeyNotFoundError(SheetStoreError, KeyError):
    """Raised by the key-value stores when the key does not exist.

    A tombstoned key in append-only mode raises this error as well.
    """

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"key not found: {self.key}"


class SheetsAPIError(SheetStoreError):
    """Raised when a Google Sheets API call fails.

    This error wraps exceptions from the Google Sheets API (via gspread) and provides
    context about which operation failed. Common causes include:
        - Authentication failures
        - Rate limiting (HTTP 429)
        - Network connectivity issues
        - Invalid spreadsheet IDs or permissions errors
        - A malformed response from the query endpoint
    """
    pass


class RowIndexError(SheetStoreError):
    """Raised when a formula evaluated on the scratchpad does not yield usable rows.

    Examples:
        - The formula evaluated to the ``#ERROR!`` sentinel
        - The backend echoed no computed value at all
        - A returned row number is not an integer
        - A count query returned something other than a single cell
    """
    pass


class StoreClosedError(SheetStoreError):
    """Raised when a store is used after ``close()`` released its scratchpad."""
    pass
