"""Test doubles and assertions for code built on suparoute.

``RecordingExecutor`` stands in for the live executor: it remembers every
route that reached it and answers with a canned result::

    executor = RecordingExecutor([{"id": "1", "description": "Milk", "complete": False}])
    router = DatabaseRouter[AppRoute](executor)

    await router.call(Todos(FetchTodos()), list[Todo])
    assert_executed(executor, DatabaseRoute.fetch("todos"))
"""

from typing import Any

from suparoute._internal.invoke import invoke
from suparoute.codec import JSONCodec
from suparoute.routing.override import VOID, DatabaseResult
from suparoute.routing.route import DatabaseRoute


class RecordingExecutor:
    __test__ = False  # Tell pytest this is not a test class
    """Records executed routes and answers each with ``result``.

    ``result`` may be raw ``bytes`` (returned as-is), a ``DatabaseResult``
    (failures are raised), a plain value (encoded with ``codec``), or a
    function of the route returning any of those.
    """

    __slots__ = ("_codec", "_result", "calls")

    def __init__(self, result: Any = VOID, *, codec: JSONCodec | None = None) -> None:
        self._result = result
        self._codec = codec or JSONCodec()
        self.calls: list[DatabaseRoute] = []

    async def execute(self, route: DatabaseRoute) -> bytes:
        self.calls.append(route)
        outcome = self._result
        if callable(outcome):
            outcome = await invoke(outcome, route)
        if isinstance(outcome, DatabaseResult):
            outcome = outcome.get()
        if isinstance(outcome, bytes):
            return outcome
        return self._codec.encode(outcome)

    @property
    def last_route(self) -> DatabaseRoute | None:
        return self.calls[-1] if self.calls else None

    def reset(self) -> None:
        self.calls.clear()

    def __repr__(self) -> str:
        return f"RecordingExecutor({len(self.calls)} calls)"


def assert_executed(executor: RecordingExecutor, route: DatabaseRoute, *, times: int | None = None) -> None:
    """Assert ``route`` reached the executor (exactly ``times`` times, if given)."""
    count = sum(1 for call in executor.calls if call == route)
    assert count > 0, (
        f"Route {route!r} was never executed.\n"
        f"Executed: {executor.calls!r}"
    )
    if times is not None:
        assert count == times, f"Expected {route!r} to be executed {times} times, got {count}"


def assert_not_executed(executor: RecordingExecutor) -> None:
    """Assert nothing reached the executor."""
    assert not executor.calls, f"Expected no executed routes, got {executor.calls!r}"
