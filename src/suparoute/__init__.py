"""Suparoute — typed database routes for PostgREST, with overridable results.

Describe database operations as values, group them into route
collections, and call them through a router that answers from overrides
in tests and previews and from the live service otherwise.

Basic usage::

    from suparoute import CasePath, DatabaseRouter

    router = DatabaseRouter[AppRoute].live(ClientConfig.from_env())
    todos = await router.call(Todos(FetchTodos()), list[Todo])

Tests and previews::

    router = DatabaseRouter[AppRoute]()
    router.override(CasePath.wrapped(Todos) / CasePath.case(FetchTodos), [todo])

Live execution needs ``httpx``.
"""

import importlib

__version__ = "0.1.0-dev"
__all__ = [
    "VOID",
    "AuthUser",
    "CasePath",
    "ClientConfig",
    "Column",
    "DatabaseResult",
    "DatabaseRoute",
    "DatabaseRouter",
    "DecodeError",
    "EncodeError",
    "Filter",
    "JSONCodec",
    "Method",
    "NotAuthenticatedError",
    "Operator",
    "Order",
    "Override",
    "OverrideMismatchError",
    "OverrideRule",
    "PostgrestExecutor",
    "Returning",
    "RouteCollection",
    "RouteResolutionError",
    "RouterProxy",
    "SuparouteError",
    "Table",
    "TransportError",
    "UnimplementedError",
    "authenticated",
    "get_current_user",
    "require_user",
    "unimplemented",
]

# Public name -> defining module
_LAZY_IMPORTS: dict[str, str] = {
    "VOID": "suparoute.routing.override",
    "AuthUser": "suparoute.context",
    "CasePath": "suparoute.routing.case_path",
    "ClientConfig": "suparoute.config",
    "Column": "suparoute.routing.filters",
    "DatabaseResult": "suparoute.routing.override",
    "DatabaseRoute": "suparoute.routing.route",
    "DatabaseRouter": "suparoute.routing.router",
    "DecodeError": "suparoute.errors",
    "EncodeError": "suparoute.errors",
    "Filter": "suparoute.routing.filters",
    "JSONCodec": "suparoute.codec",
    "Method": "suparoute.routing.route",
    "NotAuthenticatedError": "suparoute.errors",
    "Operator": "suparoute.routing.filters",
    "Order": "suparoute.routing.filters",
    "Override": "suparoute.routing.override",
    "OverrideMismatchError": "suparoute.errors",
    "OverrideRule": "suparoute.routing.override",
    "PostgrestExecutor": "suparoute.postgrest.executor",
    "Returning": "suparoute.routing.route",
    "RouteCollection": "suparoute.routing.collection",
    "RouteResolutionError": "suparoute.errors",
    "RouterProxy": "suparoute.routing.proxy",
    "SuparouteError": "suparoute.errors",
    "Table": "suparoute.routing.filters",
    "TransportError": "suparoute.errors",
    "UnimplementedError": "suparoute.errors",
    "authenticated": "suparoute.context",
    "get_current_user": "suparoute.context",
    "require_user": "suparoute.context",
    "unimplemented": "suparoute.execution",
}


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import suparoute`` fast (and httpx-free) while providing a
    clean top-level API.
    """
    module_name = _LAZY_IMPORTS.get(name)
    if module_name is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)
    return getattr(importlib.import_module(module_name), name)
