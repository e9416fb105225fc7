"""Tables, columns, filters, and ordering for database routes.

All frozen dataclasses. Filter values are normalized to their query-string
form on construction, so two filters built from ``5`` and ``"5"`` compare
equal, the same way the backing store would see them.
"""

from __future__ import annotations

import datetime
import enum
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any


@dataclass(frozen=True, slots=True)
class Table:
    """A table (or view) in the backing store."""

    name: str

    def __str__(self) -> str:
        return self.name

    @classmethod
    def of(cls, value: str | Table) -> Table:
        """Coerce a plain string into a ``Table``."""
        return value if isinstance(value, Table) else cls(value)


@dataclass(frozen=True, slots=True)
class Column:
    """A column of a table."""

    name: str

    def __str__(self) -> str:
        return self.name

    @classmethod
    def of(cls, value: str | Column) -> Column:
        """Coerce a plain string into a ``Column``."""
        return value if isinstance(value, Column) else cls(value)

    def equals(self, value: object) -> Filter:
        """Filter rows where this column equals ``value``::

            Column("complete").equals(False)
        """
        return Filter.equals(self, value)

    def ascending(self, *, nulls_first: bool = False, foreign_table: str | Table | None = None) -> Order:
        return Order.asc(self, nulls_first=nulls_first, foreign_table=foreign_table)

    def descending(self, *, nulls_first: bool = False, foreign_table: str | Table | None = None) -> Order:
        return Order.desc(self, nulls_first=nulls_first, foreign_table=foreign_table)


ID_COLUMN = Column("id")
"""The conventional primary-key column."""


class Operator(StrEnum):
    """PostgREST filter operators."""

    EQ = "eq"
    NEQ = "neq"
    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    LIKE = "like"
    ILIKE = "ilike"
    IS = "is"
    IN = "in"
    CS = "cs"
    CD = "cd"
    OV = "ov"
    FTS = "fts"
    PLFTS = "plfts"
    PHFTS = "phfts"
    WFTS = "wfts"
    MATCH = "match"
    IMATCH = "imatch"
    SL = "sl"
    SR = "sr"
    NXL = "nxl"
    NXR = "nxr"
    ADJ = "adj"


# Operators whose list values use array-literal braces rather than parentheses.
_ARRAY_OPERATORS = frozenset({Operator.CS, Operator.CD, Operator.OV})


def query_value(value: object, operator: Operator = Operator.EQ) -> str:
    """Render a Python value the way it appears in a PostgREST query string.

    ::

        query_value(True)                 # "true"
        query_value(None)                 # "null"
        query_value([1, 2], Operator.IN)  # "(1,2)"
        query_value(["a"], Operator.CS)   # "{a}"
    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, str):
        return value
    if isinstance(value, enum.Enum):
        return query_value(value.value, operator)
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, datetime.date):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray, memoryview, Mapping)):
        msg = f"Cannot use {type(value).__name__} as a filter value"
        raise TypeError(msg)
    if isinstance(value, Iterable):
        inner = ",".join(query_value(v) for v in value)
        if operator in _ARRAY_OPERATORS:
            return f"{{{inner}}}"
        return f"({inner})"
    return str(value)


@dataclass(frozen=True, slots=True, init=False)
class Filter:
    """One ``column operator value`` condition.

    ::

        Filter("complete", Operator.EQ, False)
        Filter.equals("owner_id", user.id)
        Filter.id(42)
    """

    column: Column
    operator: Operator
    value: str

    def __init__(self, column: str | Column, operator: Operator | str, value: Any) -> None:
        op = Operator(operator)
        object.__setattr__(self, "column", Column.of(column))
        object.__setattr__(self, "operator", op)
        object.__setattr__(self, "value", query_value(value, op))

    @classmethod
    def equals(cls, column: str | Column, value: Any) -> Filter:
        return cls(column, Operator.EQ, value)

    @classmethod
    def id(cls, value: Any) -> Filter:
        """Filter on the conventional ``id`` column."""
        return cls(ID_COLUMN, Operator.EQ, value)

    @property
    def sort_key(self) -> tuple[str, str, str]:
        return (self.column.name, self.operator.value, self.value)


@dataclass(frozen=True, slots=True)
class Order:
    """Ordering for fetch routes.

    ``foreign_table`` orders rows of an embedded resource instead of the
    top-level table.
    """

    column: Column
    ascending: bool = True
    nulls_first: bool = False
    foreign_table: Table | None = None

    @classmethod
    def asc(
        cls,
        column: str | Column,
        *,
        nulls_first: bool = False,
        foreign_table: str | Table | None = None,
    ) -> Order:
        return cls(
            Column.of(column),
            ascending=True,
            nulls_first=nulls_first,
            foreign_table=Table.of(foreign_table) if foreign_table is not None else None,
        )

    @classmethod
    def desc(
        cls,
        column: str | Column,
        *,
        nulls_first: bool = False,
        foreign_table: str | Table | None = None,
    ) -> Order:
        return cls(
            Column.of(column),
            ascending=False,
            nulls_first=nulls_first,
            foreign_table=Table.of(foreign_table) if foreign_table is not None else None,
        )
