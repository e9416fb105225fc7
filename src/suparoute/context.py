"""Request-scoped authentication context via ContextVar.

Provides:
- ``current_user_var``: The authenticated user for this task, if any.
- ``require_user()``: For route resolution that stamps ownership into
  payloads and cannot proceed anonymously.

Route collections read this while resolving; the live executor reads it
to forward the user's access token. Nothing in suparoute sets it. The
application's auth layer does, typically through ``authenticated()``::

    with authenticated(AuthUser(id=session.user_id, access_token=session.token)):
        todo = await router.call(Todos(InsertTodo("Buy milk")), Todo)

Thread safety:
    ``ContextVar`` is task-local under asyncio and thread-local under
    free-threading. No locks needed.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass

from suparoute.errors import NotAuthenticatedError


@dataclass(frozen=True, slots=True)
class AuthUser:
    """The authenticated user, as route resolution sees it."""

    id: str
    email: str | None = None
    access_token: str | None = None


current_user_var: ContextVar[AuthUser | None] = ContextVar("suparoute_user", default=None)
"""The current user. ``None`` when nobody is signed in."""


def get_current_user() -> AuthUser | None:
    """Return the current user, or ``None``."""
    return current_user_var.get()


def require_user() -> AuthUser:
    """Return the current user.

    Raises ``NotAuthenticatedError`` if nobody is signed in.
    """
    user = current_user_var.get()
    if user is None:
        raise NotAuthenticatedError
    return user


@contextmanager
def authenticated(user: AuthUser | None) -> Iterator[AuthUser | None]:
    """Make ``user`` the current user for the duration of the block."""
    token = current_user_var.set(user)
    try:
        yield user
    finally:
        current_user_var.reset(token)
