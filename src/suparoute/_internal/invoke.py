"""Invoke helpers — call sync or async callables uniformly.

Route collections, override predicates, override producers, and executors
can all be ``def`` or ``async def``. This module keeps the awaitable check
in one place.

Usage::

    from suparoute._internal.invoke import invoke

    route = await invoke(value.resolve)
"""

import inspect
from typing import Any


async def invoke(func: Any, *args: Any, **kwargs: Any) -> Any:
    """Call ``func`` and await the result if it is awaitable.

    ::

        # sync resolve, returned directly
        def resolve(self) -> DatabaseRoute:
            return DatabaseRoute.fetch("todos")

        # async resolve, awaited
        async def resolve(self) -> DatabaseRoute:
            user = await load_user()
            return DatabaseRoute.insert("todos", {"owner_id": user.id})
    """
    result = func(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
