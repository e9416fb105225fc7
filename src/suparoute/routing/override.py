"""Overrides — substitute results for matching routes.

An ``Override`` pairs an ``OverrideRule`` (does this route match?) with a
producer (what should the call return instead?). Overrides live in an
``OverrideStore`` owned by the router. The most recently registered
override is consulted first, so a broad override registered early can be
carved up by narrower ones registered later::

    router.override(CasePath.wrapped(Todos), DatabaseResult.failure(Offline()))
    router.override(todos_fetch, [])                  # wins for fetches
    router.override(OverrideRule.method(Method.DELETE, "todos"))  # void success

Free-threading safety:
    - Rules, overrides, and results are frozen dataclasses
    - The store publishes an immutable linked snapshot; writers swap it
      under a ``threading.Lock``, readers never take the lock
"""

from __future__ import annotations

import threading
from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass
from typing import Any, Final

from suparoute._internal.invoke import invoke
from suparoute.errors import UnexpectedRouteError
from suparoute.routing.case_path import CasePath
from suparoute.routing.collection import RouteCollection, resolve_route
from suparoute.routing.filters import Table
from suparoute.routing.route import DatabaseRoute, Method


class _Void:
    """The empty success value. Encodes as ``{}``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "VOID"


VOID: Final = _Void()


@dataclass(frozen=True, slots=True)
class DatabaseResult:
    """The outcome an override hands back: a value, void, or an error.

    ::

        DatabaseResult.success(todos)
        DatabaseResult.success()                # void
        DatabaseResult.failure(PermissionError("nope"))
        await DatabaseResult.catching(do_something)
    """

    value: Any = VOID
    error: BaseException | None = None

    @classmethod
    def success(cls, value: Any = VOID) -> DatabaseResult:
        return cls(value=value)

    @classmethod
    def failure(cls, error: BaseException) -> DatabaseResult:
        return cls(error=error)

    @classmethod
    async def catching(cls, func: Callable[[], Any]) -> DatabaseResult:
        """Run ``func`` (sync or async); void success unless it raises."""
        try:
            await invoke(func)
        except Exception as exc:
            return cls.failure(exc)
        return cls.success()

    @property
    def is_success(self) -> bool:
        return self.error is None

    @property
    def is_void(self) -> bool:
        return self.error is None and self.value is VOID

    def get(self) -> Any:
        """Return the success value, or raise the failure."""
        if self.error is not None:
            raise self.error
        return self.value


type Predicate[R] = Callable[[R], bool | Awaitable[bool]]
type Producer = Callable[[Any], DatabaseResult | Any | Awaitable[DatabaseResult | Any]]


def _identity(route: Any) -> Any:
    return route


@dataclass(frozen=True, slots=True)
class OverrideRule[R]:
    """Decides whether an override applies to a route-collection value.

    ``extract`` picks what the override's producer is called with: the
    case payload for case rules, the unresolved route value otherwise.
    """

    predicate: Predicate[R]
    extract: Callable[[R], Any] = _identity
    description: str = "custom"

    async def matches(self, route: R) -> bool:
        return bool(await invoke(self.predicate, route))

    def __repr__(self) -> str:
        return f"OverrideRule({self.description})"

    # -- Constructors --

    @classmethod
    def matching(cls, predicate: Predicate[R], *, description: str = "custom") -> OverrideRule[R]:
        """Match with an arbitrary (sync or async) predicate."""
        return cls(predicate, description=description)

    @classmethod
    def case(cls, path: CasePath[R, Any]) -> OverrideRule[R]:
        """Match any value in the case ``path`` points at, whatever its payload."""

        def extract(route: R) -> Any:
            value = path.extract(route)
            if value is None:
                msg = f"{route!r} is not in case {path.name}"
                raise UnexpectedRouteError(msg)
            return value

        return cls(path.matches, extract, f"case {path.name}")

    @classmethod
    def id(cls, route_id: str, table: str | Table | None = None) -> OverrideRule[Any]:
        """Match routes tagged with ``route_id``, optionally only in ``table``."""
        expected_table = Table.of(table) if table is not None else None

        async def predicate(route: RouteCollection | DatabaseRoute) -> bool:
            resolved = await resolve_route(route)
            return resolved.route_id == route_id and _check_table(resolved, expected_table)

        return cls(predicate, description=_describe(f"id {route_id!r}", expected_table))

    @classmethod
    def method(cls, method: Method | str, table: str | Table | None = None) -> OverrideRule[Any]:
        """Match every route using ``method``, optionally only in ``table``."""
        expected_method = Method(method)
        expected_table = Table.of(table) if table is not None else None

        async def predicate(route: RouteCollection | DatabaseRoute) -> bool:
            resolved = await resolve_route(route)
            return resolved.method is expected_method and _check_table(resolved, expected_table)

        return cls(predicate, description=_describe(f"method {expected_method.value}", expected_table))

    @classmethod
    def route(cls, route: DatabaseRoute) -> OverrideRule[Any]:
        """Match routes equal to ``route``.

        Filters and ordering take part in the match, the payload does
        not. Use a case or method rule for a looser match.
        """

        async def predicate(value: RouteCollection | DatabaseRoute) -> bool:
            return await resolve_route(value) == route

        return cls(predicate, description=f"route {route.method.value} {route.table}")


def _check_table(route: DatabaseRoute, table: Table | None) -> bool:
    return table is None or route.table == table


def _describe(base: str, table: Table | None) -> str:
    return base if table is None else f"{base} in {table}"


@dataclass(frozen=True, slots=True)
class Override[R]:
    """A rule plus the result to hand back when it matches.

    Calling an override returns the ``DatabaseResult`` for a matching
    route and ``None`` otherwise::

        override = Override.build(OverrideRule.method(Method.DELETE))
        assert await override(Todos(DeleteTodo("5"))) is not None
    """

    rule: OverrideRule[R]
    produce: Callable[[Any], Awaitable[DatabaseResult]]

    async def __call__(self, route: R) -> DatabaseResult | None:
        if not await self.rule.matches(route):
            return None
        return await self.produce(self.rule.extract(route))

    @classmethod
    def build(cls, rule: OverrideRule[R], result: DatabaseResult | Producer | Any = VOID) -> Override[R]:
        """Normalize any accepted result form into a producer.

        ``result`` may be a ``DatabaseResult``, a (sync or async) callable
        returning a ``DatabaseResult`` or a plain value, or a plain value.
        Omitting it means void success.
        """
        if isinstance(result, DatabaseResult):
            fixed = result

            async def produce(_: Any) -> DatabaseResult:
                return fixed

        elif callable(result):
            producer = result

            async def produce(value: Any) -> DatabaseResult:
                outcome = await invoke(producer, value)
                if isinstance(outcome, DatabaseResult):
                    return outcome
                return DatabaseResult.success(outcome)

        else:
            fixed = DatabaseResult.success(result)

            async def produce(_: Any) -> DatabaseResult:
                return fixed

        return cls(rule, produce)


@dataclass(frozen=True, slots=True)
class _Link[R]:
    override: Override[R]
    next: _Link[R] | None


class OverrideStore[R]:
    """Ordered overrides, most recently inserted first.

    Insertion is an O(1) prepend onto an immutable linked list. Lookups
    walk the snapshot that was current when they started, so an override
    registered while a call is in flight only affects later calls.
    """

    __slots__ = ("_count", "_head", "_lock")

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._head: _Link[R] | None = None
        self._count = 0

    def insert(self, override: Override[R]) -> None:
        """Register ``override`` ahead of every existing one."""
        with self._lock:
            self._head = _Link(override, self._head)
            self._count += 1

    def reset(self) -> None:
        """Remove every override."""
        with self._lock:
            self._head = None
            self._count = 0

    def snapshot(self) -> tuple[Override[R], ...]:
        """The current overrides, front to back."""
        return tuple(self)

    async def first_match(self, route: R) -> DatabaseResult | None:
        """Return the result of the first override matching ``route``.

        Matching may resolve the route, so it can raise
        ``RouteResolutionError``. The producer runs only for the winner.
        """
        link = self._head
        while link is not None:
            result = await link.override(route)
            if result is not None:
                return result
            link = link.next
        return None

    def __iter__(self) -> Iterator[Override[R]]:
        link = self._head
        while link is not None:
            yield link.override
            link = link.next

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return f"OverrideStore({len(self)} overrides)"
