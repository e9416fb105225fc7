"""Todo List — typed routes, a scoped router, and an in-memory preview.

Demonstrates two killer features together:
1. Database operations as plain frozen dataclasses (route collections)
2. The same feature code runs against Supabase or against overrides

With ``SUPABASE_URL`` and ``SUPABASE_KEY`` set, todos live in the
``todos`` table. Without them the app runs on preview overrides backed by
a dict, so nothing touches the network.

Run:
    pip install suparoute
    python app.py
"""

import asyncio
import logging
import os
from dataclasses import dataclass, field, replace
from uuid import UUID, uuid4

from suparoute import (
    AuthUser,
    CasePath,
    ClientConfig,
    DatabaseRoute,
    DatabaseRouter,
    Filter,
    Order,
    OverrideRule,
    RouterProxy,
    Table,
    authenticated,
    require_user,
)

TODOS = Table("todos")

# ---------------------------------------------------------------------------
# Data model: frozen dataclasses, same shape on the wire and in the app
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Todo:
    id: UUID
    description: str
    is_complete: bool = field(default=False, metadata={"column": "complete"})


@dataclass(frozen=True, slots=True)
class NewTodo:
    description: str
    owner_id: str
    is_complete: bool = field(default=False, metadata={"column": "complete"})


# ---------------------------------------------------------------------------
# Routes describe operations, they never perform them
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FetchTodos:
    only_open: bool = False

    def resolve(self) -> DatabaseRoute:
        filters = (Filter.equals("complete", False),) if self.only_open else ()
        return DatabaseRoute.fetch(TODOS, *filters, order=Order.asc("description"))


@dataclass(frozen=True, slots=True)
class AddTodo:
    description: str

    async def resolve(self) -> DatabaseRoute:
        # Ownership comes from the signed-in user, never from the caller
        user = require_user()
        return DatabaseRoute.insert(TODOS, NewTodo(self.description, owner_id=user.id))


@dataclass(frozen=True, slots=True)
class SetComplete:
    id: UUID
    is_complete: bool

    def resolve(self) -> DatabaseRoute:
        return DatabaseRoute.update(TODOS, {"complete": self.is_complete}, by_id=self.id)


@dataclass(frozen=True, slots=True)
class RemoveTodo:
    id: UUID

    def resolve(self) -> DatabaseRoute:
        return DatabaseRoute.delete(TODOS, by_id=self.id)


type TodoRoute = FetchTodos | AddTodo | SetComplete | RemoveTodo


@dataclass(frozen=True, slots=True)
class Todos:
    route: TodoRoute

    def resolve(self):
        return self.route.resolve()


type AppRoute = Todos

TODOS_PATH = CasePath.wrapped(Todos)

# ---------------------------------------------------------------------------
# Feature code only sees a router scoped to todos
# ---------------------------------------------------------------------------


async def list_todos(todos: RouterProxy, *, only_open: bool = False) -> list[Todo]:
    return await todos.call(FetchTodos(only_open), list[Todo])


async def add_todo(todos: RouterProxy, description: str) -> Todo:
    return await todos.call(AddTodo(description), Todo)


async def toggle(todos: RouterProxy, todo: Todo) -> Todo:
    return await todos.call(SetComplete(todo.id, not todo.is_complete), Todo)


async def remove(todos: RouterProxy, todo: Todo) -> None:
    await todos.call(RemoveTodo(todo.id))


# ---------------------------------------------------------------------------
# Routers: live, or preview overrides over an in-memory table
# ---------------------------------------------------------------------------


def preview_router(seed: tuple[str, ...] = ()) -> DatabaseRouter[AppRoute]:
    """A router answering every todo route from a dict. No executor needed."""
    rows: dict[UUID, Todo] = {}
    for description in seed:
        todo = Todo(id=uuid4(), description=description)
        rows[todo.id] = todo

    def fetch(route: FetchTodos) -> list[Todo]:
        found = [t for t in rows.values() if not (route.only_open and t.is_complete)]
        return sorted(found, key=lambda t: t.description)

    def add(route: AddTodo) -> Todo:
        require_user()
        todo = Todo(id=uuid4(), description=route.description)
        rows[todo.id] = todo
        return todo

    def set_complete(route: SetComplete) -> Todo:
        rows[route.id] = replace(rows[route.id], is_complete=route.is_complete)
        return rows[route.id]

    def delete(route: RemoveTodo) -> None:
        rows.pop(route.id, None)

    router = DatabaseRouter[AppRoute]()
    router.override(TODOS_PATH / CasePath.case(FetchTodos), fetch)
    router.override(TODOS_PATH / CasePath.case(AddTodo), add)
    router.override(TODOS_PATH / CasePath.case(SetComplete), set_complete)
    router.override(TODOS_PATH / CasePath.case(RemoveTodo), delete)
    return router


def live_router() -> DatabaseRouter[AppRoute]:
    router = DatabaseRouter[AppRoute].live(ClientConfig.from_env())
    # Keep the demo from mass-deleting real rows
    router.override(OverrideRule.method("delete", TODOS))
    return router


router = preview_router(seed=("Buy milk", "Walk the dog"))


async def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    app_router = live_router() if os.environ.get("SUPABASE_URL") else router
    async with app_router:
        todos = app_router.scoped(TODOS_PATH)

        with authenticated(AuthUser(id="demo-user")):
            milk = next(t for t in await list_todos(todos) if t.description == "Buy milk")
            await toggle(todos, milk)
            await add_todo(todos, "Water the plants")

        for todo in await list_todos(todos):
            print(f"[{'x' if todo.is_complete else ' '}] {todo.description}")


if __name__ == "__main__":
    asyncio.run(main())
