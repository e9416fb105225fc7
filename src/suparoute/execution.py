"""Execution collaborators — what runs a route when no override matches.

The router only needs ``execute(route) -> bytes``. Anything with an
``async def execute(self, route)`` method satisfies ``Executor``, and a
plain function (sync or async) taking a ``DatabaseRoute`` works too.

``unimplemented()`` is the router's default: a router built without a
live executor fails loudly on any call that isn't overridden, which is
what tests and previews want::

    router = DatabaseRouter[AppRoute]()              # unimplemented
    router.override(CasePath.wrapped(Todos), [])     # only todos answered

``ResultExecutor`` adapts a handler that returns values or
``DatabaseResult``s instead of raw bytes::

    router = DatabaseRouter(ResultExecutor(lambda route: DatabaseResult.success(TODOS)))
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol, runtime_checkable

from suparoute._internal.invoke import invoke
from suparoute.codec import JSONCodec
from suparoute.errors import UnimplementedError
from suparoute.routing.override import DatabaseResult
from suparoute.routing.route import DatabaseRoute

type ExecuteFunction = Callable[[DatabaseRoute], bytes | Awaitable[bytes]]


@runtime_checkable
class Executor(Protocol):
    """Performs a resolved route against the backing store."""

    async def execute(self, route: DatabaseRoute) -> bytes: ...


class _FunctionExecutor:
    """Adapts a plain (sync or async) function to ``Executor``."""

    __slots__ = ("_func",)

    def __init__(self, func: ExecuteFunction) -> None:
        self._func = func

    async def execute(self, route: DatabaseRoute) -> bytes:
        return await invoke(self._func, route)

    def __repr__(self) -> str:
        name = getattr(self._func, "__qualname__", repr(self._func))
        return f"FunctionExecutor({name})"


def as_executor(execute: Executor | ExecuteFunction) -> Executor:
    """Return ``execute`` as an ``Executor``, wrapping plain functions."""
    if isinstance(execute, Executor):
        return execute
    if callable(execute):
        return _FunctionExecutor(execute)
    msg = f"Expected an Executor or a callable, got {type(execute).__name__}"
    raise TypeError(msg)


class _Unimplemented:
    __slots__ = ("name",)

    def __init__(self, name: str) -> None:
        self.name = name

    async def execute(self, route: DatabaseRoute) -> bytes:
        raise UnimplementedError(f"{self.name} ({route.method.value} {route.table})")

    def __repr__(self) -> str:
        return f"unimplemented({self.name!r})"


def unimplemented(name: str = "DatabaseRouter.execute") -> Executor:
    """An executor that always raises ``UnimplementedError``."""
    return _Unimplemented(name)


class ResultExecutor:
    """Executes routes by asking ``handler`` for a result and encoding it.

    ``handler`` (sync or async) returns a ``DatabaseResult`` or a plain
    value. Failures are raised; successes are encoded with ``codec``.
    """

    __slots__ = ("_codec", "_handler")

    def __init__(
        self,
        handler: Callable[[DatabaseRoute], Any],
        *,
        codec: JSONCodec | None = None,
    ) -> None:
        self._handler = handler
        self._codec = codec or JSONCodec()

    async def execute(self, route: DatabaseRoute) -> bytes:
        outcome = await invoke(self._handler, route)
        if isinstance(outcome, DatabaseResult):
            outcome = outcome.get()
        return self._codec.encode(outcome)
