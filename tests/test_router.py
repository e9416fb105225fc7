"""Tests for suparoute.routing.router — override precedence and live execution."""

import logging

import pytest

from suparoute.codec import JSONCodec
from suparoute.config import ClientConfig
from suparoute.context import AuthUser, authenticated
from suparoute.errors import (
    DecodeError,
    EncodeError,
    NotAuthenticatedError,
    OverrideMismatchError,
    RouteResolutionError,
    TransportError,
    UnimplementedError,
)
from suparoute.execution import ResultExecutor
from suparoute.routing.case_path import CasePath
from suparoute.routing.filters import Filter
from suparoute.routing.override import DatabaseResult, Override, OverrideRule
from suparoute.routing.proxy import RouterProxy
from suparoute.routing.route import DatabaseRoute, Method
from suparoute.routing.router import DatabaseRouter
from suparoute.testing import RecordingExecutor, assert_executed, assert_not_executed

from todo_routes import (
    DELETE_TODO,
    FETCH_TODOS,
    INSERT_TODO,
    OTHER_ID,
    TODO_ID,
    TODOS,
    TODOS_PATH,
    CompleteAll,
    DeleteTodo,
    FetchTodo,
    FetchTodos,
    InsertTodo,
    Todo,
    TodoInsert,
    Todos,
)

MILK = Todo(id=TODO_ID, description="Buy milk")
EGGS = Todo(id=OTHER_ID, description="Buy eggs", is_complete=True)


class Offline(Exception):
    pass


def _router(result: object = None) -> tuple[DatabaseRouter, RecordingExecutor]:
    executor = RecordingExecutor(result)
    return DatabaseRouter(executor), executor


class TestOverrideHit:
    async def test_typed_value(self) -> None:
        router, executor = _router()
        router.override(FETCH_TODOS, [MILK, EGGS])

        todos = await router.call(Todos(FetchTodos()), list[Todo])

        assert todos == [MILK, EGGS]
        assert_not_executed(executor)

    async def test_empty_list(self) -> None:
        """A case override with ``[]`` answers a fetch without touching the executor."""
        router, executor = _router()
        router.override(FETCH_TODOS, [])

        assert await router.call(Todos(FetchTodos()), list[Todo]) == []
        assert_not_executed(executor)

    async def test_method_override_covers_every_id(self) -> None:
        router, executor = _router()
        router.override(OverrideRule.method(Method.DELETE, TODOS))

        assert await router.call(Todos(DeleteTodo("5"))) is None
        assert await router.call(Todos(DeleteTodo("9"))) is None
        assert_not_executed(executor)

    async def test_broad_failure_narrow_success(self) -> None:
        router, executor = _router()
        error = Offline("network down")
        router.override(TODOS_PATH, DatabaseResult.failure(error))
        router.override(FETCH_TODOS, [MILK])

        assert await router.call(Todos(FetchTodos()), list[Todo]) == [MILK]

        with pytest.raises(Offline) as exc_info:
            await router.call(Todos(DeleteTodo("1")))
        assert exc_info.value is error
        assert_not_executed(executor)

    async def test_most_recent_registration_wins(self) -> None:
        router, _ = _router()
        router.override(FETCH_TODOS, [MILK])
        router.override(OverrideRule.method(Method.FETCH), [EGGS])
        router.override(FETCH_TODOS, [])

        assert await router.call(Todos(FetchTodos()), list[Todo]) == []

    async def test_producer_gets_case_payload(self) -> None:
        router, _ = _router()
        todos = {TODO_ID: MILK, OTHER_ID: EGGS}
        router.override(TODOS_PATH / CasePath.case(FetchTodo), lambda fetch: todos[fetch.id])

        assert await router.call(Todos(FetchTodo(OTHER_ID)), Todo) == EGGS

    async def test_exact_route_override_ignores_payload(self) -> None:
        router, executor = _router()
        router.override(OverrideRule.route(DatabaseRoute.insert(TODOS, {"placeholder": True})), MILK)

        with authenticated(AuthUser(id="user-1")):
            todo = await router.call(Todos(InsertTodo("anything")), Todo)

        assert todo == MILK
        assert_not_executed(executor)

    async def test_id_override(self) -> None:
        router, executor = _router()
        router.override(OverrideRule.id("complete-all"))

        await router.call(Todos(CompleteAll()))
        assert_not_executed(executor)

    async def test_void_override_typed_call_decodes_empty_object(self) -> None:
        router, _ = _router()
        router.override(OverrideRule.method(Method.DELETE))

        assert await router.call(Todos(DeleteTodo("1")), dict) == {}

    async def test_void_call_ignores_value(self) -> None:
        router, _ = _router()
        router.override(DELETE_TODO, ["not", "void"])

        assert await router.call(Todos(DeleteTodo("1"))) is None

    async def test_mismatched_override_value(self) -> None:
        router, _ = _router()
        router.override(FETCH_TODOS, {"unexpected": "shape"})

        with pytest.raises(OverrideMismatchError) as exc_info:
            await router.call(Todos(FetchTodos()), list[Todo])
        assert isinstance(exc_info.value.__cause__, DecodeError)

    async def test_unencodable_override_value(self) -> None:
        router, _ = _router()
        router.override(FETCH_TODOS, object())

        with pytest.raises(OverrideMismatchError) as exc_info:
            await router.call(Todos(FetchTodos()), list[Todo])
        assert isinstance(exc_info.value.__cause__, EncodeError)

    async def test_override_decoded_as_bare_tuple(self) -> None:
        router, _ = _router()
        router.override(FETCH_TODOS, (1, 2))

        assert await router.call(Todos(FetchTodos()), tuple) == (1, 2)

    async def test_ready_made_override(self) -> None:
        router, _ = _router()
        router.override(Override.build(OverrideRule.case(FETCH_TODOS), [MILK]))

        assert await router.call(Todos(FetchTodos()), list[Todo]) == [MILK]

    def test_ready_made_override_rejects_extra_result(self) -> None:
        router, _ = _router()
        with pytest.raises(TypeError, match="not both"):
            router.override(Override.build(OverrideRule.case(FETCH_TODOS)), [MILK])

    async def test_call_alias(self) -> None:
        router, _ = _router()
        router.override(FETCH_TODOS, [MILK])

        assert await router(Todos(FetchTodos()), list[Todo]) == [MILK]


class TestLiveExecution:
    async def test_insert_reaches_executor(self) -> None:
        router, executor = _router({"id": str(TODO_ID), "description": "Buy milk", "complete": False})

        with authenticated(AuthUser(id="user-1")):
            todo = await router.call(Todos(InsertTodo("Buy milk")), Todo)

        assert todo == MILK
        assert len(executor.calls) == 1
        route = executor.last_route
        assert route.method is Method.INSERT
        assert route.table == TODOS
        assert route.payload == TodoInsert("Buy milk", owner_id="user-1")

    async def test_executes_once_per_call(self) -> None:
        router, executor = _router([])

        await router.call(Todos(FetchTodos()), list[Todo])
        await router.call(Todos(FetchTodos((Filter.equals("complete", True),))), list[Todo])

        assert len(executor.calls) == 2
        assert executor.calls[1] == DatabaseRoute.fetch(TODOS, Filter.equals("complete", True))

    async def test_unmatched_override_falls_through(self) -> None:
        router, executor = _router()
        router.override(FETCH_TODOS, [])

        await router.call(Todos(DeleteTodo("5")))
        assert_executed(executor, DatabaseRoute.delete(TODOS, by_id="5"), times=1)

    async def test_void_call_discards_response(self) -> None:
        router, executor = _router(b"not json at all")

        assert await router.call(Todos(DeleteTodo("5"))) is None
        assert len(executor.calls) == 1

    async def test_decode_error(self) -> None:
        router, _ = _router([{"id": "not-a-uuid", "description": "x"}])

        with pytest.raises(DecodeError, match=r"\$\[0\]\.id"):
            await router.call(Todos(FetchTodos()), list[Todo])

    async def test_reset_falls_back_to_execution(self) -> None:
        router, executor = _router([])
        router.override(FETCH_TODOS, [MILK])
        assert await router.call(Todos(FetchTodos()), list[Todo]) == [MILK]

        router.reset_overrides()

        assert await router.call(Todos(FetchTodos()), list[Todo]) == []
        assert len(executor.calls) == 1
        assert len(router.overrides) == 0

    async def test_plain_function_executor(self) -> None:
        seen = []

        async def execute(route: DatabaseRoute) -> bytes:
            seen.append(route)
            return b'{"ok":true}'

        router = DatabaseRouter(execute)
        assert await router.call(Todos(CompleteAll()), dict[str, bool]) == {"ok": True}
        assert seen[0].route_id == "complete-all"

    async def test_result_executor(self) -> None:
        router = DatabaseRouter(ResultExecutor(lambda route: [MILK]))
        assert await router.call(Todos(FetchTodos()), list[Todo]) == [MILK]


class TestErrors:
    async def test_unimplemented_by_default(self) -> None:
        router = DatabaseRouter()
        with pytest.raises(UnimplementedError, match="not configured"):
            await router.call(Todos(FetchTodos()), list[Todo])

    async def test_unauthenticated_resolution_never_executes(self) -> None:
        router, executor = _router()
        produced = []
        router.override(FETCH_TODOS, lambda fetch: produced.append(fetch))

        with pytest.raises(RouteResolutionError) as exc_info:
            await router.call(Todos(InsertTodo("Buy milk")), Todo)

        assert isinstance(exc_info.value, NotAuthenticatedError)
        assert_not_executed(executor)
        assert produced == []

    async def test_unauthenticated_resolution_with_resolving_rule(self) -> None:
        router, executor = _router()
        router.override(OverrideRule.method(Method.INSERT), MILK)

        with pytest.raises(NotAuthenticatedError):
            await router.call(Todos(InsertTodo("Buy milk")), Todo)
        assert_not_executed(executor)

    async def test_case_override_skips_resolution(self) -> None:
        """Case rules never resolve the value, so they answer even without a user."""
        router, _ = _router()
        router.override(INSERT_TODO, MILK)

        assert await router.call(Todos(InsertTodo("Buy milk")), Todo) == MILK

    async def test_executor_failure_wrapped(self) -> None:
        def execute(route: DatabaseRoute) -> bytes:
            raise ConnectionResetError("peer reset")

        router = DatabaseRouter(execute)
        with pytest.raises(TransportError, match="ConnectionResetError: peer reset") as exc_info:
            await router.call(Todos(FetchTodos()))
        assert exc_info.value.status is None
        assert isinstance(exc_info.value.__cause__, ConnectionResetError)

    async def test_library_errors_not_rewrapped(self) -> None:
        def execute(route: DatabaseRoute) -> bytes:
            raise TransportError("Not found", status=404)

        router = DatabaseRouter(execute)
        with pytest.raises(TransportError) as exc_info:
            await router.call(Todos(FetchTodos()))
        assert exc_info.value.status == 404

    async def test_errors_are_logged(self, caplog: pytest.LogCaptureFixture) -> None:
        router = DatabaseRouter()
        with caplog.at_level(logging.ERROR, logger="suparoute.router"):
            with pytest.raises(UnimplementedError):
                await router.call(Todos(FetchTodos()))

        assert len(caplog.records) == 1
        assert caplog.records[0].getMessage().startswith("Run route: Unimplemented")

    async def test_injected_logger(self, caplog: pytest.LogCaptureFixture) -> None:
        router = DatabaseRouter(logger=logging.getLogger("app.db"))
        with caplog.at_level(logging.DEBUG, logger="app.db"):
            router.override(FETCH_TODOS, [])
            await router.call(Todos(FetchTodos()), list[Todo])

        assert any("Override matched" in r.getMessage() for r in caplog.records)


class TestConstruction:
    async def test_live_router(self) -> None:
        config = ClientConfig(url="https://example.supabase.co", api_key="anon")
        async with DatabaseRouter.live(config) as router:
            assert "PostgrestExecutor" in repr(router)

    async def test_aclose_without_resources(self) -> None:
        router, executor = _router([])
        async with router:
            await router.call(Todos(FetchTodos()))
        assert len(executor.calls) == 1

    def test_shared_codec(self) -> None:
        codec = JSONCodec()
        assert DatabaseRouter(codec=codec).codec is codec

    def test_rejects_non_executor(self) -> None:
        with pytest.raises(TypeError, match="Executor or a callable"):
            DatabaseRouter(42)  # type: ignore[arg-type]

    def test_scoped_returns_proxy(self) -> None:
        router = DatabaseRouter()
        proxy = router.scoped(TODOS_PATH)
        assert isinstance(proxy, RouterProxy)
        assert proxy.router is router

    def test_repr(self) -> None:
        router = DatabaseRouter()
        router.override(FETCH_TODOS, [])
        assert repr(router) == "DatabaseRouter(executor=unimplemented('DatabaseRouter.execute'), overrides=1)"
