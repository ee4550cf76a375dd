"""
Mapping between records and sheet rows.

Rows are inserted from dataclass instances or mappings, and selected rows are
decoded into dataclass instances or plain dicts. A dataclass field maps to
the column named by its ``db`` metadata (see ``db_field``), or to the field
name when no metadata is given.

Decoding ignores columns that have no matching field, and fills fields whose
column is missing or empty with the field default, or the zero value of the
field type when there is no default.
"""

import dataclasses
import typing
from typing import Any, Dict, List, Mapping, Optional, Type

import numpy as np

from sheetstore.exceptions import ArgumentError

DB_METADATA_KEY = "db"

_ZERO_VALUES: Dict[Any, Any] = {
    int: 0,
    float: 0.0,
    str: "",
    bool: False,
    bytes: b"",
}


def db_field(name: str, **kwargs: Any) -> Any:
    """Declare a dataclass field stored under the column ``name``.

    Example:
        >>> @dataclass
        ... class Person:
        ...     name: str = db_field("name")
        ...     age: int = db_field("age", default=0)
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[DB_METADATA_KEY] = name
    return dataclasses.field(metadata=metadata, **kwargs)


def column_name(f: dataclasses.Field) -> str:
    return f.metadata.get(DB_METADATA_KEY, f.name)


def is_record(row: Any) -> bool:
    """True for dataclass instances and mappings."""
    if dataclasses.is_dataclass(row) and not isinstance(row, type):
        return True
    return isinstance(row, Mapping)


def record_to_dict(row: Any) -> Dict[str, Any]:
    """Convert an insertable record into a column -> value dict.

    Raises:
        ArgumentError: If the row is None or not a dataclass instance / mapping
    """
    if row is None:
        raise ArgumentError("row type must not be None")
    if not is_record(row):
        raise ArgumentError(
            f"row type must be either a dataclass instance or a mapping, got {type(row).__name__}"
        )

    if isinstance(row, Mapping):
        return {str(k): normalize_value(v) for k, v in row.items()}
    return {column_name(f): normalize_value(getattr(row, f.name)) for f in dataclasses.fields(row)}


def normalize_value(value: Any) -> Any:
    """Turn numpy scalars into builtin Python values so they serialize as JSON."""
    if isinstance(value, np.generic):
        return value.item()
    return value


def _zero_value(f: dataclasses.Field, hint: Any) -> Any:
    if f.default is not dataclasses.MISSING:
        return f.default
    if f.default_factory is not dataclasses.MISSING:  # type: ignore[misc]
        return f.default_factory()  # type: ignore[misc]
    return _ZERO_VALUES.get(hint)


def _coerce(value: Any, hint: Any) -> Any:
    if hint is int and isinstance(value, float) and value.is_integer():
        return int(value)
    if hint is float and isinstance(value, int) and not isinstance(value, bool):
        return float(value)
    return value


def dicts_to_records(rows: List[Dict[str, Any]], model: Optional[Type] = None) -> List[Any]:
    """Decode column -> value dicts into ``model`` instances.

    Without a model the dicts are returned unchanged.
    """
    if model is None:
        return list(rows)
    if not (dataclasses.is_dataclass(model) and isinstance(model, type)):
        raise ArgumentError(f"select model must be a dataclass type, got {model!r}")

    hints = typing.get_type_hints(model)
    init_fields = [f for f in dataclasses.fields(model) if f.init]

    records = []
    for row in rows:
        kwargs = {}
        for f in init_fields:
            hint = hints.get(f.name)
            value = row.get(column_name(f))
            if value is None:
                kwargs[f.name] = _zero_value(f, hint)
            else:
                kwargs[f.name] = _coerce(value, hint)
        records.append(model(**kwargs))
    return records
