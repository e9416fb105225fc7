"""PostgrestRequest — an immutable description of one PostgREST HTTP request.

Built through chainable ``.with_*()`` transformations, each returning a new
request. ``build_request()`` turns a ``DatabaseRoute`` into one; ``custom``
routes receive a request already pointed at their table and chain onto it::

    DatabaseRoute.custom(
        "todos",
        lambda req: req.rpc("complete_all", {"owner": user.id}),
        route_id="complete-all",
    )

    DatabaseRoute.custom(
        "todos",
        lambda req: req.select("id,description").filtered([Filter("id", "in", ids)]),
    )

The body is kept as a Python value; the executor encodes it with its codec.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from typing import Any

from suparoute.errors import CustomBuilderNotSuppliedError, DataNotSuppliedError
from suparoute.routing.filters import Filter, Order, Table
from suparoute.routing.route import DatabaseRoute, Method, Returning

SINGLE_OBJECT = "application/vnd.pgrst.object+json"


@dataclass(frozen=True, slots=True)
class PostgrestRequest:
    """A request against the PostgREST API, relative to its base URL."""

    path: str
    http_method: str = "GET"
    params: tuple[tuple[str, str], ...] = ()
    headers: tuple[tuple[str, str], ...] = ()
    body: Any = None

    @classmethod
    def for_table(cls, table: str | Table) -> PostgrestRequest:
        """A bare request pointed at ``table``."""
        return cls(path=f"/{Table.of(table)}")

    # -- Chainable transformations --

    def with_method(self, http_method: str) -> PostgrestRequest:
        return replace(self, http_method=http_method.upper())

    def with_param(self, name: str, value: str) -> PostgrestRequest:
        """Return a new request with an additional query parameter."""
        return replace(self, params=(*self.params, (name, value)))

    def with_header(self, name: str, value: str) -> PostgrestRequest:
        """Return a new request with ``name`` set to ``value``, replacing any previous value."""
        lowered = name.lower()
        kept = tuple((k, v) for k, v in self.headers if k.lower() != lowered)
        return replace(self, headers=(*kept, (name, value)))

    def with_body(self, body: Any) -> PostgrestRequest:
        return replace(self, body=body)

    def header(self, name: str) -> str | None:
        """The value of header ``name``, or ``None``."""
        lowered = name.lower()
        for k, v in self.headers:
            if k.lower() == lowered:
                return v
        return None

    def param(self, name: str) -> str | None:
        """The last value of query parameter ``name``, or ``None``."""
        found = None
        for k, v in self.params:
            if k == name:
                found = v
        return found

    def prefer(self, *directives: str) -> PostgrestRequest:
        """Add ``Prefer`` directives, keeping the ones already present."""
        current = self.header("Prefer")
        merged = [d.strip() for d in current.split(",")] if current else []
        merged.extend(d for d in directives if d not in merged)
        return self.with_header("Prefer", ",".join(merged))

    # -- Operations --

    def select(self, columns: str = "*") -> PostgrestRequest:
        return self.with_method("GET").with_param("select", columns)

    def insert(self, body: Any, *, returning: Returning = Returning.REPRESENTATION) -> PostgrestRequest:
        return self.with_method("POST").with_body(body).prefer(f"return={returning.value}")

    def update(self, body: Any, *, returning: Returning = Returning.REPRESENTATION) -> PostgrestRequest:
        return self.with_method("PATCH").with_body(body).prefer(f"return={returning.value}")

    def upsert(
        self,
        body: Any,
        *,
        returning: Returning = Returning.REPRESENTATION,
        on_conflict: str | None = None,
    ) -> PostgrestRequest:
        request = (
            self.with_method("POST")
            .with_body(body)
            .prefer("resolution=merge-duplicates", f"return={returning.value}")
        )
        if on_conflict:
            request = request.with_param("on_conflict", on_conflict)
        return request

    def delete(self, *, returning: Returning = Returning.MINIMAL) -> PostgrestRequest:
        return self.with_method("DELETE").prefer(f"return={returning.value}")

    def rpc(self, function: str, args: Any = None) -> PostgrestRequest:
        """Call the stored procedure ``function`` instead of reading the table."""
        return replace(
            self,
            path=f"/rpc/{function}",
            http_method="POST",
            body=args if args is not None else {},
        )

    # -- Modifiers --

    def filtered(self, filters: Iterable[Filter]) -> PostgrestRequest:
        """Apply ``column=operator.value`` filters in the order given."""
        request = self
        for f in filters:
            request = request.with_param(f.column.name, f"{f.operator.value}.{f.value}")
        return request

    def ordered(self, order: Order | None) -> PostgrestRequest:
        """Apply ``order``; a no-op for ``None``.

        Orders on the same key accumulate as PostgREST expects
        (``order=a.asc,b.desc``).
        """
        if order is None:
            return self
        key = "order" if order.foreign_table is None else f"{order.foreign_table}.order"
        direction = "asc" if order.ascending else "desc"
        nulls = "nullsfirst" if order.nulls_first else "nullslast"
        clause = f"{order.column.name}.{direction}.{nulls}"

        existing = self.param(key)
        if existing is None:
            return self.with_param(key, clause)
        params = tuple((k, f"{v},{clause}" if k == key else v) for k, v in self.params)
        return replace(self, params=params)

    def single(self) -> PostgrestRequest:
        """Ask for one object instead of an array."""
        return self.with_header("Accept", SINGLE_OBJECT)


def build_request(route: DatabaseRoute) -> PostgrestRequest:
    """Translate ``route`` into the request that performs it."""
    base = PostgrestRequest.for_table(route.table)

    match route.method:
        case Method.CUSTOM:
            if route.build is None:
                msg = f"Custom route on {route.table} has no request builder"
                raise CustomBuilderNotSuppliedError(msg)
            return route.build(base)
        case Method.DELETE:
            return base.delete(returning=route.returning).filtered(route.filters)
        case Method.FETCH:
            return base.select().filtered(route.filters).ordered(route.order)
        case Method.FETCH_ONE:
            return base.select().filtered(route.filters).single()

    if route.payload is None:
        msg = f"A {route.method.value!r} route requires a payload"
        raise DataNotSuppliedError(msg)

    match route.method:
        case Method.INSERT | Method.INSERT_MANY:
            request = base.insert(route.payload, returning=route.returning)
        case Method.UPDATE:
            request = base.update(route.payload, returning=route.returning).filtered(route.filters)
        case Method.UPSERT:
            request = base.upsert(route.payload, returning=route.returning)
        case _:
            msg = f"Unsupported route method: {route.method!r}"
            raise ValueError(msg)

    # A single row written with return=representation comes back as one object.
    if route.returning is Returning.REPRESENTATION and _is_single_object(route.payload):
        return request.single()
    return request


def _is_single_object(payload: Any) -> bool:
    return not isinstance(payload, (list, tuple, set, frozenset, str, bytes))
