"""Suparoute exception hierarchy.

Shared across the router, override store, codec, and executors so every
module raises and catches the same types. The router never recovers from
any of these; it logs and re-raises.
"""


class SuparouteError(Exception):
    """Base for all suparoute-specific errors."""


class ConfigurationError(SuparouteError):
    """Raised when client or router configuration is invalid."""


class CustomBuilderNotSuppliedError(ConfigurationError):
    """Raised when a ``custom`` route reaches an executor without a builder."""


class RouteResolutionError(SuparouteError):
    """A route collection could not produce its ``DatabaseRoute``.

    Domain failure, not a transport failure. Raised before the executor
    is ever consulted.
    """


class NotAuthenticatedError(RouteResolutionError):
    """Resolution needed the current user but none is authenticated."""

    def __init__(self, detail: str = "An authenticated user is required") -> None:
        super().__init__(detail)


class DataNotSuppliedError(RouteResolutionError):
    """A mutating route was built without a payload."""


class TransportError(SuparouteError):
    """The execution collaborator failed (network, protocol, or server).

    ``status`` is the HTTP status when the backing store answered,
    ``None`` when the request never completed.
    """

    def __init__(self, detail: str, *, status: int | None = None) -> None:
        self.status = status
        self.detail = detail
        if status is None:
            super().__init__(detail)
        else:
            super().__init__(f"{status}: {detail}")


class DecodeError(SuparouteError):
    """Raw bytes did not match the requested shape."""


class EncodeError(SuparouteError, TypeError):
    """A value has no JSON representation.

    Raised client-side, before anything is sent. Subclasses ``TypeError``
    so callers treating it like ``json.dumps`` failures still catch it.
    """


class OverrideMismatchError(SuparouteError):
    """An override's value cannot be decoded into the type the caller asked for.

    Overrides are registered untyped, so the mismatch only surfaces when a
    call requests a concrete type.
    """


class UnexpectedRouteError(SuparouteError):
    """A case override was handed a route outside its case."""


class UnimplementedError(SuparouteError):
    """An unimplemented placeholder was called.

    The default executor of a ``DatabaseRouter``: any call that is neither
    overridden nor wired to a live executor fails loudly.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unimplemented: {name!r} is not configured for this environment")
