"""
WHERE argument values.

Arguments bound to ``?`` placeholders are converted once, at the call
boundary, into one of four closed variants. Each variant knows how to render
itself in the query dialect, so the builder never inspects raw Python types.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Union

import numpy as np

from sheetstore.exceptions import UnsupportedArgumentTypeError

# Date and time literals ("date '2020-01-01'") must reach the query unquoted.
_TEMPORAL_KEYWORD = re.compile(r"^(date|datetime|timeofday)")


@dataclass(frozen=True)
class IntegerArg:
    value: int

    def render(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class FloatArg:
    value: float

    def render(self) -> str:
        return np.format_float_positional(self.value, trim="-")


@dataclass(frozen=True)
class BooleanArg:
    value: bool

    def render(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class TextArg:
    """A string argument.

    Attributes:
        value: The text to bind
        allow_keyword: Whether a leading date/datetime/timeofday keyword is
            passed through unquoted. Byte strings never get this treatment.
    """
    value: str
    allow_keyword: bool = True

    def render(self) -> str:
        if self.allow_keyword and _TEMPORAL_KEYWORD.match(self.value.strip().lower()):
            return self.value
        return json.dumps(self.value, ensure_ascii=False)


QueryArg = Union[IntegerArg, FloatArg, BooleanArg, TextArg]

_QUERY_ARG_TYPES = (IntegerArg, FloatArg, BooleanArg, TextArg)


def to_query_arg(value: Any) -> QueryArg:
    """Convert a Python value into its query argument variant.

    Booleans are checked before integers since ``bool`` subclasses ``int``.
    numpy scalars are accepted alongside the builtin types.

    Raises:
        UnsupportedArgumentTypeError: For any other type (including None)
    """
    if isinstance(value, _QUERY_ARG_TYPES):
        return value
    if isinstance(value, (bool, np.bool_)):
        return BooleanArg(bool(value))
    if isinstance(value, (int, np.integer)):
        return IntegerArg(int(value))
    if isinstance(value, (float, np.floating)):
        return FloatArg(float(value))
    if isinstance(value, str):
        return TextArg(value)
    if isinstance(value, (bytes, bytearray)):
        try:
            text = bytes(value).decode("utf-8")
        except UnicodeDecodeError as e:
            raise UnsupportedArgumentTypeError(
                f"byte string argument is not valid UTF-8: {bytes(value)!r}"
            ) from e
        return TextArg(text, allow_keyword=False)
    raise UnsupportedArgumentTypeError(
        f"unsupported argument type: {type(value).__name__}"
    )
