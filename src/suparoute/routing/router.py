"""DatabaseRouter — overrides first, live execution otherwise.

The router is the single entry point application code calls with a
route-collection value. Each call is a one-shot sequence:

1. Look for an override (most recently registered first).
2. On a match, hand back the override's result, normalized through the
   same encode/decode path live responses take.
3. Otherwise resolve the value to a ``DatabaseRoute``, execute it, and
   decode the raw response.

Nothing is cached between calls; overrides may change between them.

Usage::

    router = DatabaseRouter[AppRoute](PostgrestExecutor(config))

    todos = await router.call(Todos(FetchTodos()), list[Todo])
    await router.call(Todos(DeleteTodo(todo.id)))

    # Tests and previews
    router = DatabaseRouter[AppRoute]()
    router.override(CasePath.wrapped(Todos) / CasePath.case(FetchTodos), [])
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from types import TracebackType
from typing import TYPE_CHECKING, Any, overload

from suparoute.codec import JSONCodec
from suparoute.errors import DecodeError, EncodeError, OverrideMismatchError, SuparouteError, TransportError
from suparoute.execution import ExecuteFunction, Executor, as_executor, unimplemented
from suparoute.routing.case_path import CasePath
from suparoute.routing.collection import resolve_route
from suparoute.routing.override import VOID, DatabaseResult, Override, OverrideRule, OverrideStore, Producer
from suparoute.routing.proxy import RouterProxy

if TYPE_CHECKING:
    from suparoute.config import ClientConfig

_log = logging.getLogger("suparoute.router")


class DatabaseRouter[R]:
    """Resolves route-collection values to override results or live results.

    ``execute`` defaults to ``unimplemented()``, so a router that is not
    explicitly wired to a backing store fails loudly on any call that is
    not overridden. ``codec`` encodes override values and decodes every
    response. Errors are logged to ``logger`` before they propagate.
    """

    __slots__ = ("_codec", "_executor", "_logger", "_overrides")

    def __init__(
        self,
        execute: Executor | ExecuteFunction | None = None,
        *,
        codec: JSONCodec | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._executor = as_executor(execute) if execute is not None else unimplemented()
        self._codec = codec or JSONCodec()
        self._logger = logger or _log
        self._overrides: OverrideStore[R] = OverrideStore()

    @classmethod
    def live(
        cls,
        config: ClientConfig,
        *,
        codec: JSONCodec | None = None,
        logger: logging.Logger | None = None,
    ) -> DatabaseRouter[R]:
        """A router executing against PostgREST, configured by ``config``.

        The router owns the HTTP client; close it with ``aclose()`` or use
        the router as an async context manager::

            async with DatabaseRouter[AppRoute].live(ClientConfig.from_env()) as router:
                todos = await router.call(Todos(FetchTodos()), list[Todo])
        """
        from suparoute.postgrest.executor import PostgrestExecutor

        codec = codec or JSONCodec()
        return cls(PostgrestExecutor(config, codec=codec), codec=codec, logger=logger)

    @property
    def overrides(self) -> OverrideStore[R]:
        return self._overrides

    @property
    def codec(self) -> JSONCodec:
        return self._codec

    # -- Calling --

    @overload
    async def call(self, route: R) -> None: ...

    @overload
    async def call[T](self, route: R, as_type: type[T]) -> T: ...

    async def call(self, route: R, as_type: Any = None) -> Any:
        """Call ``route``, respecting overrides.

        With ``as_type`` the response is decoded into that type. Without
        it the call is fire-and-forget: a matching override only
        short-circuits the live call (its failure is still raised, its
        value is never looked at) and live responses are discarded.
        """
        with self._log_errors("Run route:"):
            result = await self._overrides.first_match(route)

            if result is None:
                self._logger.debug("No override matched %r", route)
                raw = await self._execute(route)
                if as_type is None:
                    return None
                return self._codec.decode(raw, as_type)

            self._logger.debug("Override matched %r", route)
            value = result.get()
            if as_type is None:
                return None
            return self._decode_override(value, as_type)

    async def __call__(self, route: R, as_type: Any = None) -> Any:
        return await self.call(route, as_type)

    async def _execute(self, route: R) -> bytes:
        resolved = await resolve_route(route)  # type: ignore[arg-type]
        try:
            return await self._executor.execute(resolved)
        except SuparouteError:
            raise
        except Exception as exc:
            msg = f"{type(exc).__name__}: {exc}"
            raise TransportError(msg) from exc

    def _decode_override(self, value: Any, as_type: Any) -> Any:
        try:
            return self._codec.decode(self._codec.encode(value), as_type)
        except (DecodeError, EncodeError) as exc:
            name = getattr(as_type, "__name__", None) or repr(as_type)
            msg = f"Override value {value!r:.80} cannot be decoded as {name}: {exc}"
            raise OverrideMismatchError(msg) from exc

    @contextmanager
    def _log_errors(self, prefix: str) -> Iterator[None]:
        try:
            yield
        except Exception as exc:
            self._logger.error("%s %s", prefix, exc)
            raise

    # -- Overrides --

    def override(
        self,
        rule: OverrideRule[R] | CasePath[R, Any] | Override[R],
        result: DatabaseResult | Producer | Any = VOID,
    ) -> None:
        """Register an override. The newest registration wins.

        ``rule`` is an ``OverrideRule``, a ``CasePath`` (shorthand for
        ``OverrideRule.case(path)``), or a ready-made ``Override``.
        ``result`` is a ``DatabaseResult``, a producer, a plain value, or
        omitted for a void success::

            router.override(todos_fetch, [todo])
            router.override(OverrideRule.method(Method.DELETE, "todos"))
            router.override(OverrideRule.id("complete-all"), DatabaseResult.failure(Offline()))
            router.override(todos_fetch, lambda fetch: [t for t in TODOS if t.done])
        """
        if isinstance(rule, Override):
            if result is not VOID:
                msg = "An Override already carries its result; pass the result or the Override, not both"
                raise TypeError(msg)
            self._overrides.insert(rule)
            return
        if isinstance(rule, CasePath):
            rule = OverrideRule.case(rule)
        self._overrides.insert(Override.build(rule, result))

    def reset_overrides(self) -> None:
        """Remove every override."""
        self._overrides.reset()

    # -- Scoping --

    def scoped[V](self, path: CasePath[R, V]) -> RouterProxy[R, V]:
        """A view of this router bound to the case ``path`` points at.

        The proxy has no overrides of its own; it embeds values and calls
        this router.
        """
        return RouterProxy(self, path)

    # -- Lifecycle --

    async def aclose(self) -> None:
        """Close the executor when it holds resources, e.g. the client ``live()`` opened."""
        aclose = getattr(self._executor, "aclose", None)
        if aclose is not None:
            await aclose()

    async def __aenter__(self) -> DatabaseRouter[R]:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return f"DatabaseRouter(executor={self._executor!r}, overrides={len(self._overrides)})"
