"""DatabaseRoute — an immutable description of one database operation.

A route says *what* should happen (table, method, filters, ordering,
payload) without doing it. Executors turn routes into requests; overrides
match on them.

Identity ignores the payload: two routes that differ only in what they
would write are the same route. Filters compare as a multiset, so the
order they were listed in never affects matching, but it is kept on the
value so requests are built deterministically.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from suparoute.errors import DataNotSuppliedError
from suparoute.routing.filters import Filter, Order, Table

if TYPE_CHECKING:
    from suparoute.postgrest.request import PostgrestRequest

type CustomBuilder = Callable[[PostgrestRequest], PostgrestRequest]


class Method(StrEnum):
    """The kind of operation a route performs."""

    CUSTOM = "custom"
    DELETE = "delete"
    FETCH = "fetch"
    FETCH_ONE = "fetch_one"
    INSERT = "insert"
    INSERT_MANY = "insert_many"
    UPDATE = "update"
    UPSERT = "upsert"

    @property
    def is_mutation(self) -> bool:
        return self in _MUTATIONS


_MUTATIONS = frozenset({Method.INSERT, Method.INSERT_MANY, Method.UPDATE, Method.UPSERT})


class Returning(StrEnum):
    """What the backing store sends back after a mutation."""

    REPRESENTATION = "representation"
    MINIMAL = "minimal"


@dataclass(frozen=True, slots=True, eq=False)
class DatabaseRoute:
    """A frozen route definition.

    Build with the classmethod constructors rather than directly::

        DatabaseRoute.fetch("todos", Filter.equals("complete", False), order=Order.desc("created_at"))
        DatabaseRoute.fetch_one("todos", by_id=todo_id)
        DatabaseRoute.insert("todos", TodoInsert(description="Buy milk"))
        DatabaseRoute.update("todos", TodoUpdate(complete=True), by_id=todo_id)
        DatabaseRoute.delete("todos", by_id=todo_id)
        DatabaseRoute.custom("todos", lambda req: req.rpc("complete_all", {}), route_id="complete-all")

    ``route_id`` is an opaque tag for telling apart routes that would
    otherwise look the same, typically ``custom`` routes.
    """

    table: Table
    method: Method
    filters: tuple[Filter, ...] = ()
    order: Order | None = None
    payload: Any = None
    returning: Returning = Returning.REPRESENTATION
    route_id: str | None = None
    build: CustomBuilder | None = field(default=None, repr=False)

    # -- Identity --

    def _identity(self) -> tuple[object, ...]:
        return (
            self.table,
            self.method,
            tuple(sorted(f.sort_key for f in self.filters)),
            self.order,
            self.route_id,
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DatabaseRoute):
            return NotImplemented
        return self._identity() == other._identity()

    def __hash__(self) -> int:
        return hash(self._identity())

    # -- Constructors --

    @classmethod
    def custom(
        cls,
        table: str | Table,
        build: CustomBuilder,
        *,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        """A route whose request is assembled by ``build``.

        ``build`` receives a request already pointed at ``table`` and
        returns the request to send.
        """
        return cls(
            table=Table.of(table),
            method=Method.CUSTOM,
            route_id=route_id,
            build=build,
        )

    @classmethod
    def delete(
        cls,
        table: str | Table,
        *filters: Filter,
        by_id: object = None,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        return cls(
            table=Table.of(table),
            method=Method.DELETE,
            filters=_with_id(filters, by_id),
            returning=Returning.MINIMAL,
            route_id=route_id,
        )

    @classmethod
    def fetch(
        cls,
        table: str | Table,
        *filters: Filter,
        order: Order | None = None,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        return cls(
            table=Table.of(table),
            method=Method.FETCH,
            filters=tuple(filters),
            order=order,
            route_id=route_id,
        )

    @classmethod
    def fetch_one(
        cls,
        table: str | Table,
        *filters: Filter,
        by_id: object = None,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        return cls(
            table=Table.of(table),
            method=Method.FETCH_ONE,
            filters=_with_id(filters, by_id),
            route_id=route_id,
        )

    @classmethod
    def insert(
        cls,
        table: str | Table,
        value: object,
        *,
        returning: Returning = Returning.REPRESENTATION,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        return cls(
            table=Table.of(table),
            method=Method.INSERT,
            payload=_require_payload(Method.INSERT, value),
            returning=returning,
            route_id=route_id,
        )

    @classmethod
    def insert_many(
        cls,
        table: str | Table,
        values: Iterable[object],
        *,
        returning: Returning = Returning.REPRESENTATION,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        """Insert several rows in one request. The payload is stored as a tuple."""
        payload = _require_payload(Method.INSERT_MANY, values)
        return cls(
            table=Table.of(table),
            method=Method.INSERT_MANY,
            payload=tuple(payload),
            returning=returning,
            route_id=route_id,
        )

    @classmethod
    def update(
        cls,
        table: str | Table,
        value: object,
        *filters: Filter,
        by_id: object = None,
        returning: Returning = Returning.REPRESENTATION,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        return cls(
            table=Table.of(table),
            method=Method.UPDATE,
            filters=_with_id(filters, by_id),
            payload=_require_payload(Method.UPDATE, value),
            returning=returning,
            route_id=route_id,
        )

    @classmethod
    def upsert(
        cls,
        table: str | Table,
        value: object,
        *,
        returning: Returning = Returning.REPRESENTATION,
        route_id: str | None = None,
    ) -> DatabaseRoute:
        return cls(
            table=Table.of(table),
            method=Method.UPSERT,
            payload=_require_payload(Method.UPSERT, value),
            returning=returning,
            route_id=route_id,
        )


def _with_id(filters: tuple[Filter, ...], by_id: object) -> tuple[Filter, ...]:
    if by_id is None:
        return tuple(filters)
    return (*filters, Filter.id(by_id))


def _require_payload[V](method: Method, value: V | None) -> V:
    if value is None:
        msg = f"A {method.value!r} route requires a payload"
        raise DataNotSuppliedError(msg)
    return value
