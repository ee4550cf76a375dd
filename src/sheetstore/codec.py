"""
Value encoding and cell safety checks.

The Sheets API returns an empty string both for a cell that was never written
and for a cell holding an empty value, so stored payloads are prefixed with a
marker to tell an empty payload apart from a missing one. The helpers below
also guard integers against silent precision loss and force plain strings to
be stored as text.
"""

from typing import Any, Collection, Protocol

import numpy as np

from sheetstore.exceptions import DecodeError, FormulaTypeError, PrecisionLossError

BASIC_CODEC_PREFIX = "!"

# Spreadsheet numbers are IEEE 754 doubles.
MAX_SAFE_INTEGER = 2 ** 53
MIN_SAFE_INTEGER = -(2 ** 53)


class Codec(Protocol):
    """Protocol for encoding raw bytes into cell text and back."""

    def encode(self, value: bytes) -> str:
        ...

    def decode(self, value: str) -> bytes:
        ...


class BasicCodec:
    """Encodes raw bytes by prefixing them with an exclamation mark.

    Bytes are carried as UTF-8 text; undecodable bytes round-trip through
    surrogate escapes.
    """

    def encode(self, value: bytes) -> str:
        return BASIC_CODEC_PREFIX + value.decode("utf-8", "surrogateescape")

    def decode(self, value: str) -> bytes:
        if not value:
            raise DecodeError("basic decode fail: empty string")
        if not value.startswith(BASIC_CODEC_PREFIX):
            raise DecodeError(
                f"basic decode fail: first character is not {BASIC_CODEC_PREFIX!r}"
            )
        return value[len(BASIC_CODEC_PREFIX):].encode("utf-8", "surrogateescape")


def is_integer_value(value: Any) -> bool:
    """True for Python and numpy integers, False for booleans."""
    if isinstance(value, (bool, np.bool_)):
        return False
    return isinstance(value, (int, np.integer))


def check_safe_integer(value: Any) -> None:
    """Ensure an integer survives a round trip through a 64-bit float.

    Non-integer values are always accepted.

    Raises:
        PrecisionLossError: If the integer lies outside [-(2^53), 2^53]
    """
    if not is_integer_value(value):
        return

    converted = int(value)
    if MIN_SAFE_INTEGER <= converted <= MAX_SAFE_INTEGER:
        return

    raise PrecisionLossError(
        f"integer {converted} is not within the IEEE 754 safe integer boundary of "
        f"[-(2^53), 2^53], the integer may have a precision loss"
    )


def escape_value(column: str, value: Any, formula_columns: Collection[str]) -> Any:
    """Prepare a value for a USER_ENTERED write into the given column.

    Formula columns take the value verbatim, and it must be a string. In every
    other column strings get a leading quote so the backend keeps them as text
    ("1" would otherwise become a number and "2020-01-01" a date).

    Raises:
        FormulaTypeError: If a formula column receives a non-string value
    """
    if column in formula_columns:
        if not isinstance(value, str):
            raise FormulaTypeError(
                f"value of column {column} is not a string, but expected to contain formula"
            )
        return value

    if isinstance(value, str):
        return f"'{value}"
    return value
