"""Tests for suparoute.routing.proxy — routers scoped to a case path."""

import pytest

from suparoute.errors import UnimplementedError
from suparoute.routing.case_path import CasePath
from suparoute.routing.override import DatabaseResult, OverrideRule
from suparoute.routing.route import DatabaseRoute, Method
from suparoute.routing.router import DatabaseRouter
from suparoute.testing import RecordingExecutor, assert_executed, assert_not_executed

from todo_routes import (
    ARCHIVED,
    ARCHIVED_PATH,
    FETCH_ARCHIVED,
    FETCH_TODOS,
    TODO_ID,
    TODOS,
    TODOS_PATH,
    Archived,
    DeleteTodo,
    FetchArchived,
    FetchTodos,
    History,
    PurgeArchived,
    Todo,
)

MILK = Todo(id=TODO_ID, description="Buy milk")


class TestScopedCalls:
    async def test_override_applies_through_proxy(self) -> None:
        executor = RecordingExecutor()
        router = DatabaseRouter(executor)
        router.override(FETCH_TODOS, [MILK])

        todos = router.scoped(TODOS_PATH)

        assert await todos.call(FetchTodos(), list[Todo]) == [MILK]
        assert_not_executed(executor)

    async def test_same_effect_as_parent_call(self) -> None:
        executor = RecordingExecutor([])
        router = DatabaseRouter(executor)
        todos = router.scoped(TODOS_PATH)

        via_proxy = await todos.call(FetchTodos(), list[Todo])
        via_router = await router.call(TODOS_PATH.embed(FetchTodos()), list[Todo])

        assert via_proxy == via_router == []
        assert executor.calls[0] == executor.calls[1] == DatabaseRoute.fetch(TODOS)

    async def test_void_call(self) -> None:
        executor = RecordingExecutor()
        router = DatabaseRouter(executor)

        assert await router.scoped(TODOS_PATH).call(DeleteTodo("5")) is None
        assert_executed(executor, DatabaseRoute.delete(TODOS, by_id="5"))

    async def test_call_alias(self) -> None:
        router = DatabaseRouter()
        router.override(FETCH_TODOS, [MILK])

        assert await router.scoped(TODOS_PATH)(FetchTodos(), list[Todo]) == [MILK]

    async def test_failures_propagate(self) -> None:
        router = DatabaseRouter()
        with pytest.raises(UnimplementedError):
            await router.scoped(TODOS_PATH).call(DeleteTodo("5"))


class TestNestedScopes:
    async def test_two_levels(self) -> None:
        executor = RecordingExecutor([])
        router = DatabaseRouter(executor)

        archived = router.scoped(CasePath.wrapped(History)).scoped(CasePath.wrapped(Archived))
        await archived.call(FetchArchived(), list[Todo])

        assert executor.last_route.table == ARCHIVED
        assert executor.last_route.method is Method.FETCH

    async def test_nested_proxy_equals_composed_path(self) -> None:
        router = DatabaseRouter()
        nested = router.scoped(CasePath.wrapped(History)).scoped(CasePath.wrapped(Archived))
        assert nested.path.name == ARCHIVED_PATH.name == "History.Archived"
        assert nested.path.embed(FetchArchived()) == History(Archived(FetchArchived()))

    async def test_overrides_registered_on_root_apply(self) -> None:
        router = DatabaseRouter()
        router.override(FETCH_ARCHIVED, [MILK])
        router.override(OverrideRule.method(Method.DELETE, ARCHIVED), DatabaseResult.failure(PermissionError("nope")))

        archived = router.scoped(ARCHIVED_PATH)

        assert await archived.call(FetchArchived(), list[Todo]) == [MILK]
        with pytest.raises(PermissionError):
            await archived.call(PurgeArchived("2024-01-01"))

    async def test_overrides_registered_later_are_seen(self) -> None:
        router = DatabaseRouter()
        archived = router.scoped(ARCHIVED_PATH)
        router.override(FETCH_ARCHIVED, [])

        assert await archived.call(FetchArchived(), list[Todo]) == []


class TestProxySurface:
    def test_has_no_override_api(self) -> None:
        proxy = DatabaseRouter().scoped(TODOS_PATH)
        assert not hasattr(proxy, "override")
        assert not hasattr(proxy, "reset_overrides")

    def test_frozen(self) -> None:
        proxy = DatabaseRouter().scoped(TODOS_PATH)
        with pytest.raises(AttributeError):
            proxy.path = FETCH_TODOS  # type: ignore[misc]

    def test_repr(self) -> None:
        assert repr(DatabaseRouter().scoped(ARCHIVED_PATH)) == "RouterProxy(History.Archived)"
