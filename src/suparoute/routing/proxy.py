"""RouterProxy — a router narrowed to one case of the route collection.

Lets calling code work in terms of a sub-collection::

    todos = router.scoped(CasePath.wrapped(Todos))
    items = await todos.call(FetchTodos(), list[Todo])   # == router.call(Todos(FetchTodos()), ...)

    archive = router.scoped(CasePath.wrapped(Archive)).scoped(CasePath.wrapped(ArchivedTodos))

A proxy is only a view. It holds no overrides and offers no way to
register any; every call goes through the root router, so overrides
registered there apply exactly as they would to the embedded value.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, overload

from suparoute.routing.case_path import CasePath

if TYPE_CHECKING:
    from suparoute.routing.router import DatabaseRouter


@dataclass(frozen=True, slots=True)
class RouterProxy[R, V]:
    """A ``DatabaseRouter`` bound to the case ``path`` addresses."""

    router: DatabaseRouter[R]
    path: CasePath[R, V]

    @overload
    async def call(self, route: V) -> None: ...

    @overload
    async def call[T](self, route: V, as_type: type[T]) -> T: ...

    async def call(self, route: V, as_type: Any = None) -> Any:
        """Embed ``route`` into the full collection and call the root router."""
        return await self.router.call(self.path.embed(route), as_type)

    async def __call__(self, route: V, as_type: Any = None) -> Any:
        return await self.call(route, as_type)

    def scoped[S](self, path: CasePath[V, S]) -> RouterProxy[R, S]:
        """Narrow further into a case of this proxy's sub-collection."""
        return RouterProxy(self.router, self.path.appending(path))

    def __repr__(self) -> str:
        return f"RouterProxy({self.path.name})"
