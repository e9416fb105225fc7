"""Live execution against a PostgREST (Supabase) API.

Optional: the router only needs something with ``execute(route) -> bytes``.
This package supplies one over httpx::

    from suparoute.postgrest import PostgrestExecutor

    router = DatabaseRouter[AppRoute](PostgrestExecutor(ClientConfig.from_env()))
"""

from suparoute.postgrest.executor import PostgrestExecutor
from suparoute.postgrest.request import SINGLE_OBJECT, PostgrestRequest, build_request

__all__ = [
    "SINGLE_OBJECT",
    "PostgrestExecutor",
    "PostgrestRequest",
    "build_request",
]
