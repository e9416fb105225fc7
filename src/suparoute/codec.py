"""JSON encoding and typed decoding for route payloads and results.

Encodes payloads (dataclasses, UUIDs, dates, enums, containers) to JSON
bytes, and decodes raw response bytes into the type a caller asks for.
Mapping goes through ``dataclasses.fields``, with per-field column aliases.

Field names map to columns one-to-one unless a field carries ``column``
metadata::

    @dataclass(frozen=True, slots=True)
    class Todo:
        id: UUID
        description: str
        is_complete: bool = field(metadata={"column": "complete"})
        created_at: datetime

Decoding is strict: a value of the wrong shape raises ``DecodeError``
naming where in the document it was found. Extra keys in objects are
ignored, so ``select=*`` is fine even if the dataclass has fewer fields.
"""

import dataclasses
import datetime
import enum
import json
import types
import typing
import uuid
from collections.abc import Mapping
from typing import Any, get_args, get_origin

from suparoute.errors import DecodeError, EncodeError
from suparoute.routing.override import VOID


def column_name(f: dataclasses.Field[Any]) -> str:
    """The column a dataclass field maps to."""
    return f.metadata.get("column", f.name)


class JSONCodec:
    """Encoder/decoder pair shared by the router and the executors.

    ``dumps_options`` are passed through to ``json.dumps``.
    """

    __slots__ = ("_dumps_options",)

    def __init__(self, **dumps_options: Any) -> None:
        self._dumps_options = {"separators": (",", ":"), **dumps_options}

    # -- Encoding --

    def encode(self, value: object) -> bytes:
        """Encode ``value`` to JSON bytes."""
        return json.dumps(self.to_json(value), **self._dumps_options).encode()

    def to_json(self, value: object) -> Any:
        """Convert ``value`` to plain JSON-compatible Python data."""
        if value is VOID:
            return {}
        if value is None or isinstance(value, (str, int, float, bool)):
            return value
        if isinstance(value, enum.Enum):
            return self.to_json(value.value)
        if isinstance(value, uuid.UUID):
            return str(value)
        if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
            return value.isoformat()
        if dataclasses.is_dataclass(value) and not isinstance(value, type):
            return {
                column_name(f): self.to_json(getattr(value, f.name))
                for f in dataclasses.fields(value)
            }
        if isinstance(value, Mapping):
            return {str(k): self.to_json(v) for k, v in value.items()}
        if isinstance(value, (list, tuple, set, frozenset)):
            return [self.to_json(v) for v in value]
        msg = f"Cannot encode {type(value).__name__} as JSON"
        raise EncodeError(msg)

    # -- Decoding --

    def decode[T](self, raw: bytes, as_type: type[T]) -> T:
        """Decode JSON bytes into ``as_type``.

        Empty bodies decode as ``null``.
        """
        if raw.strip():
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as exc:
                msg = f"Response is not valid JSON: {exc}"
                raise DecodeError(msg) from exc
        else:
            data = None
        return self.convert(data, as_type)

    def convert[T](self, data: Any, as_type: type[T]) -> T:
        """Convert already-parsed JSON data into ``as_type``."""
        return _convert(data, as_type, "$")


def _fail(path: str, expected: Any, data: Any) -> DecodeError:
    name = getattr(expected, "__name__", None) or str(expected)
    return DecodeError(f"Expected {name} at {path}, got {type(data).__name__}: {data!r:.80}")


def _convert(data: Any, target: Any, path: str) -> Any:
    if target is Any or target is object:
        return data

    if target is None or target is type(None):
        if data is not None:
            raise _fail(path, None, data)
        return None

    origin = get_origin(target)

    if origin is types.UnionType or origin is typing.Union:
        return _convert_union(data, get_args(target), path)

    if isinstance(target, typing.TypeAliasType):
        return _convert(data, target.__value__, path)

    if origin in (list, tuple, set, frozenset):
        if not isinstance(data, list):
            raise _fail(path, target, data)
        args = get_args(target)
        if origin is tuple and args and not (len(args) == 2 and args[1] is Ellipsis):
            if len(args) != len(data):
                raise _fail(path, target, data)
            return tuple(
                _convert(v, t, f"{path}[{i}]")
                for i, (v, t) in enumerate(zip(data, args, strict=True))
            )
        item = args[0] if args else Any
        return origin(_convert(v, item, f"{path}[{i}]") for i, v in enumerate(data))

    if origin is dict or target is dict:
        if not isinstance(data, dict):
            raise _fail(path, target, data)
        args = get_args(target)
        value_type = args[1] if len(args) == 2 else Any
        return {k: _convert(v, value_type, f"{path}.{k}") for k, v in data.items()}

    if target in (list, tuple, set, frozenset):
        if not isinstance(data, list):
            raise _fail(path, target, data)
        try:
            return target(data)
        except TypeError as exc:
            raise _fail(path, target, data) from exc

    if isinstance(target, type):
        if dataclasses.is_dataclass(target):
            return _convert_dataclass(data, target, path)
        if issubclass(target, enum.Enum):
            try:
                return target(data)
            except ValueError as exc:
                raise _fail(path, target, data) from exc
        scalar = _SCALARS.get(target)
        if scalar is not None:
            return scalar(data, target, path)

    msg = f"Cannot decode into {target!r} at {path}"
    raise DecodeError(msg)


def _convert_union(data: Any, options: tuple[Any, ...], path: str) -> Any:
    if data is None and type(None) in options:
        return None
    errors: list[str] = []
    for option in options:
        if option is type(None):
            continue
        try:
            return _convert(data, option, path)
        except DecodeError as exc:
            errors.append(str(exc))
    msg = f"No union member matched at {path}: " + "; ".join(errors)
    raise DecodeError(msg)


def _convert_dataclass(data: Any, cls: type, path: str) -> Any:
    if not isinstance(data, dict):
        raise _fail(path, cls, data)
    try:
        hints = typing.get_type_hints(cls)
    except NameError as exc:
        msg = f"Cannot resolve field types of {cls.__name__}: {exc}"
        raise DecodeError(msg) from exc

    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        if not f.init:
            continue
        key = column_name(f)
        if key not in data:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                msg = f"Missing required field {key!r} at {path}"
                raise DecodeError(msg)
            continue
        kwargs[f.name] = _convert(data[key], hints.get(f.name, Any), f"{path}.{key}")
    try:
        return cls(**kwargs)
    except (TypeError, ValueError) as exc:
        msg = f"Failed to construct {cls.__name__} at {path}: {exc}"
        raise DecodeError(msg) from exc


# -- Scalars --


def _as_bool(data: Any, target: type, path: str) -> bool:
    if not isinstance(data, bool):
        raise _fail(path, target, data)
    return data


def _as_int(data: Any, target: type, path: str) -> int:
    if isinstance(data, bool) or not isinstance(data, int):
        raise _fail(path, target, data)
    return data


def _as_float(data: Any, target: type, path: str) -> float:
    if isinstance(data, bool) or not isinstance(data, (int, float)):
        raise _fail(path, target, data)
    return float(data)


def _as_str(data: Any, target: type, path: str) -> str:
    if not isinstance(data, str):
        raise _fail(path, target, data)
    return data


def _as_uuid(data: Any, target: type, path: str) -> uuid.UUID:
    if not isinstance(data, str):
        raise _fail(path, target, data)
    try:
        return uuid.UUID(data)
    except ValueError as exc:
        raise _fail(path, target, data) from exc


def _as_datetime(data: Any, target: type, path: str) -> datetime.datetime:
    if not isinstance(data, str):
        raise _fail(path, target, data)
    try:
        return datetime.datetime.fromisoformat(data)
    except ValueError as exc:
        raise _fail(path, target, data) from exc


def _as_date(data: Any, target: type, path: str) -> datetime.date:
    if not isinstance(data, str):
        raise _fail(path, target, data)
    try:
        return datetime.date.fromisoformat(data)
    except ValueError as exc:
        raise _fail(path, target, data) from exc


_SCALARS: dict[type, Any] = {
    bool: _as_bool,
    int: _as_int,
    float: _as_float,
    str: _as_str,
    uuid.UUID: _as_uuid,
    datetime.datetime: _as_datetime,
    datetime.date: _as_date,
}
