"""
Query string builder for the Google Visualization query dialect.

The builder renders ``select <cols> [where <cond>] [order by <ordering>]
[offset <n>] [limit <n>]`` from logical column names. Logical names are
rewritten into physical names (column letters such as ``B``) through a
plain text replacement table; names missing from the table pass through
untouched, which keeps raw aggregate expressions such as ``COUNT(_rid)``
usable.

The builder is immutable: every fluent method returns a new builder, and
``generate`` is a pure function of the builder's fields.
"""

import re
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from sheetstore.exceptions import PlaceholderCountError
from sheetstore.query.args import QueryArg, to_query_arg

WhereInterceptor = Callable[[str], str]

PLACEHOLDER = "?"


class OrderBy(Enum):
    """Sort direction for a column in ORDER BY."""
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class ColumnOrderBy:
    """Ordering requirement for one logical column.

    Attributes:
        column: Logical column name
        order_by: Sort direction (default: ascending)
    """
    column: str
    order_by: OrderBy = OrderBy.ASC


class ColumnReplacer:
    """Replaces every occurrence of a logical column name with its physical name.

    Replacement is a single left-to-right pass over the text, preferring the
    longest matching name at each position, so the result does not depend on
    the order of the replacement table.
    """

    def __init__(self, replacements: Mapping[str, str]) -> None:
        self._replacements = dict(replacements)
        names = sorted(self._replacements, key=lambda name: (-len(name), name))
        self._pattern = (
            re.compile("|".join(re.escape(name) for name in names)) if names else None
        )

    def replace(self, text: str) -> str:
        if self._pattern is None:
            return text
        return self._pattern.sub(lambda m: self._replacements[m.group(0)], text)


@dataclass(frozen=True)
class QueryBuilder:
    """Immutable description of a select query over logical column names.

    Attributes:
        replacements: Logical name -> physical name table
        columns: Selected logical columns (or raw expressions)
        where_interceptor: Optional rewrite applied to the WHERE condition
            before placeholders are counted
        where: Condition with ``?`` placeholders
        where_args: One converted argument per placeholder
        order_by: Ordering requirements, applied in order
        limit: Maximum number of rows (0 means no limit)
        offset: Number of rows to skip (0 means none)
    """
    replacements: Mapping[str, str]
    columns: Tuple[str, ...] = ()
    where_interceptor: Optional[WhereInterceptor] = None
    where: str = ""
    where_args: Tuple[QueryArg, ...] = ()
    order_by: Tuple[ColumnOrderBy, ...] = ()
    limit: int = 0
    offset: int = 0
    _replacer: ColumnReplacer = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "columns", tuple(self.columns))
        object.__setattr__(self, "_replacer", ColumnReplacer(self.replacements))

    def with_where(self, condition: str, *args: Any) -> "QueryBuilder":
        """Return a builder with the given condition and placeholder arguments.

        Raises:
            UnsupportedArgumentTypeError: If an argument has no query representation
        """
        converted = tuple(to_query_arg(arg) for arg in args)
        return replace(self, where=condition, where_args=converted)

    def with_order_by(self, ordering: Sequence[ColumnOrderBy]) -> "QueryBuilder":
        return replace(self, order_by=tuple(ordering))

    def with_limit(self, limit: int) -> "QueryBuilder":
        return replace(self, limit=limit)

    def with_offset(self, offset: int) -> "QueryBuilder":
        return replace(self, offset=offset)

    def with_columns(self, columns: Sequence[str]) -> "QueryBuilder":
        return replace(self, columns=tuple(columns))

    def generate(self) -> str:
        """Render the query string.

        Returns:
            The query, e.g. ``select B, C where A is not null order by C DESC limit 10``

        Raises:
            PlaceholderCountError: If the placeholder count differs from the argument count
        """
        parts = ["select", self._render_columns()]

        where = self._render_where()
        if where:
            parts.extend(["where", where])

        if self.order_by:
            parts.extend(["order by", self._render_order_by()])
        if self.offset:
            parts.extend(["offset", str(int(self.offset))])
        if self.limit:
            parts.extend(["limit", str(int(self.limit))])

        return " ".join(parts)

    def _render_columns(self) -> str:
        return ", ".join(self._replacer.replace(col) for col in self.columns)

    def _render_where(self) -> str:
        where = self.where
        if self.where_interceptor is not None:
            where = self.where_interceptor(where)

        n_placeholders = where.count(PLACEHOLDER)
        if n_placeholders != len(self.where_args):
            raise PlaceholderCountError(
                f"number of arguments required in the 'where' clause ({n_placeholders}) "
                f"is not the same as the number of provided arguments ({len(self.where_args)})"
            )

        tokens = self._replacer.replace(where).split(PLACEHOLDER)
        result: List[str] = [tokens[0].strip()]
        for arg, token in zip(self.where_args, tokens[1:]):
            result.append(arg.render())
            result.append(token.strip())

        return " ".join(part for part in result if part)

    def _render_order_by(self) -> str:
        return ", ".join(
            f"{self._replacer.replace(o.column)} {o.order_by.value}" for o in self.order_by
        )


def new_query_builder(
    replacements: Dict[str, str],
    where_interceptor: Optional[WhereInterceptor],
    columns: Sequence[str],
) -> QueryBuilder:
    """Create a builder selecting ``columns`` with the given translation table."""
    return QueryBuilder(
        replacements=replacements,
        columns=tuple(columns),
        where_interceptor=where_interceptor,
    )
