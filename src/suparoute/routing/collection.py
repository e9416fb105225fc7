"""Route collections — tagged unions of routes.

A route collection is any value that can produce a ``DatabaseRoute``.
Collections are written as one frozen dataclass per case, grouped into a
union, and nested as deeply as the application needs::

    TODOS = Table("todos")

    @dataclass(frozen=True, slots=True)
    class FetchTodos:
        filters: tuple[Filter, ...] = ()
        order: Order | None = None

        def resolve(self) -> DatabaseRoute:
            return DatabaseRoute.fetch(TODOS, *self.filters, order=self.order)

    @dataclass(frozen=True, slots=True)
    class DeleteTodo:
        id: str

        def resolve(self) -> DatabaseRoute:
            return DatabaseRoute.delete(TODOS, by_id=self.id)

    type TodoRoute = FetchTodos | DeleteTodo

    @dataclass(frozen=True, slots=True)
    class Todos:
        route: TodoRoute

        def resolve(self) -> DatabaseRoute:
            return self.route.resolve()

    type AppRoute = Todos | ...

``resolve()`` may be ``async`` when it needs ambient state (for example
the current user) and may raise a ``RouteResolutionError``. It must never
talk to the backing store itself.
"""

from collections.abc import Awaitable
from typing import Protocol, runtime_checkable

from suparoute._internal.invoke import invoke
from suparoute.errors import RouteResolutionError
from suparoute.routing.route import DatabaseRoute


@runtime_checkable
class RouteCollection(Protocol):
    """Anything that can describe itself as a ``DatabaseRoute``."""

    def resolve(self) -> DatabaseRoute | Awaitable[DatabaseRoute]: ...


async def resolve_route(value: RouteCollection | DatabaseRoute) -> DatabaseRoute:
    """Resolve a route collection value to its ``DatabaseRoute``.

    A bare ``DatabaseRoute`` resolves to itself. ``RouteResolutionError``
    (and subclasses) propagate unchanged; any other failure raised by
    ``resolve()`` is wrapped in one so callers can tell domain failures
    apart from transport and decode failures.
    """
    if isinstance(value, DatabaseRoute):
        return value
    try:
        route = await invoke(value.resolve)
    except RouteResolutionError:
        raise
    except Exception as exc:
        msg = f"Could not resolve {type(value).__name__}: {exc}"
        raise RouteResolutionError(msg) from exc

    if not isinstance(route, DatabaseRoute):
        msg = f"{type(value).__name__}.resolve() returned {type(route).__name__}, expected DatabaseRoute"
        raise RouteResolutionError(msg)
    return route
