"""Case paths — addressing one case of a route-collection union.

A case path pairs ``extract`` (union value -> case payload, or ``None``)
with ``embed`` (case payload -> union value). Paths compose, so an override
or a scoped router can point at a case several unions deep without knowing
the full nesting.

Two shapes cover hand-written route collections:

``CasePath.case(FetchTodos)``
    A leaf case. The payload *is* the case value; ``extract`` is an
    ``isinstance`` check and ``embed`` is the identity.

``CasePath.wrapped(Todos)``
    A case wrapping a sub-collection in its single field. The payload is
    that field's value.

::

    todos = CasePath.wrapped(Todos)
    todos_fetch = todos / CasePath.case(FetchTodos)

    todos_fetch.embed(FetchTodos())        # Todos(route=FetchTodos())
    todos_fetch.extract(Todos(FetchTodos()))  # FetchTodos()
    todos_fetch.extract(Todos(DeleteTodo("5")))  # None

Payloads are never ``None``: a path that extracts ``None`` does not match.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, cast


@dataclass(frozen=True, slots=True)
class CasePath[Root, Value]:
    """A bidirectional mapping between a union value and one case's payload."""

    extract: Callable[[Root], Value | None]
    embed: Callable[[Value], Root]
    name: str = "<case>"

    def matches(self, root: Root) -> bool:
        """True if ``root`` is in this path's case."""
        return self.extract(root) is not None

    def appending[Sub](self, path: CasePath[Value, Sub]) -> CasePath[Root, Sub]:
        """Compose with a path that starts where this one ends."""
        outer_extract = self.extract
        outer_embed = self.embed
        inner_extract = path.extract
        inner_embed = path.embed

        def extract(root: Root) -> Sub | None:
            value = outer_extract(root)
            if value is None:
                return None
            return inner_extract(value)

        def embed(sub: Sub) -> Root:
            return outer_embed(inner_embed(sub))

        return CasePath(extract, embed, f"{self.name}.{path.name}")

    def __truediv__[Sub](self, path: CasePath[Value, Sub]) -> CasePath[Root, Sub]:
        return self.appending(path)

    def __repr__(self) -> str:
        return f"CasePath({self.name})"

    # -- Constructors --

    @classmethod
    def case(cls, variant: type[Value]) -> CasePath[Any, Value]:
        """Path to a leaf case whose payload is the case value itself."""

        def extract(root: Any) -> Value | None:
            return root if isinstance(root, variant) else None

        def embed(value: Value) -> Any:
            return value

        return CasePath(extract, embed, variant.__name__)

    @classmethod
    def wrapped(cls, variant: type[Root], field: str | None = None) -> CasePath[Root, Any]:
        """Path through a case that wraps a sub-collection.

        ``variant`` must be a dataclass. ``field`` names the wrapped
        payload and defaults to the dataclass' only field.
        """
        if not dataclasses.is_dataclass(variant):
            msg = f"{variant.__name__} is not a dataclass; wrapped case paths need a dataclass case"
            raise TypeError(msg)

        if field is None:
            names = [f.name for f in dataclasses.fields(variant)]
            if len(names) != 1:
                msg = (
                    f"{variant.__name__} has {len(names)} fields; "
                    "pass field= to choose the wrapped payload"
                )
                raise TypeError(msg)
            field = names[0]

        attr = field

        def extract(root: Root) -> Any | None:
            if not isinstance(root, variant):
                return None
            return getattr(root, attr)

        def embed(value: Any) -> Root:
            return cast(Callable[..., Root], variant)(**{attr: value})

        return CasePath(extract, embed, variant.__name__)
