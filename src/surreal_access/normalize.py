"""Response normalization: raw driver output into caller-shaped values.

The driver hands back a sequence whose length says nothing about what the
caller asked for: selecting ``item:1`` and selecting ``item`` both return a
list. The caller states the shape through the decode target instead:

- ``decode_many`` (or a collection target such as ``list[Item]``) keeps the
  whole sequence.
- ``decode_one`` (or any non-collection target) takes the first element in
  driver order, or returns ``None`` when the sequence is empty.

Values cross the boundary by re-encoding into plain JSON-like data and then
validating into the target with pydantic, so targets may be pydantic models,
dataclasses, TypedDicts or plain ``dict``.
"""

from __future__ import annotations

import collections.abc
from functools import lru_cache
import typing
from typing import Any, TypeVar, overload

from pydantic import BaseModel, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from surreal_access.errors import DecodeError, InvalidResponseError

T = TypeVar("T")

_COLLECTION_ORIGINS: frozenset[Any] = frozenset(
    {
        list,
        tuple,
        set,
        frozenset,
        collections.abc.Sequence,
        collections.abc.MutableSequence,
        collections.abc.Iterable,
        collections.abc.Collection,
        collections.abc.Set,
        collections.abc.MutableSet,
    }
)


def is_collection_target(target: Any) -> bool:
    """Return True when *target* declares a collection shape.

    Only parameterized or bare sequence/set types count. ``dict``, ``str``,
    models and dataclasses are single-item targets.
    """
    if target in (list, tuple, set, frozenset):
        return True
    return typing.get_origin(target) in _COLLECTION_ORIGINS


@lru_cache(maxsize=256)
def _adapter(target: Any) -> TypeAdapter[Any]:
    return TypeAdapter(target)


def _target_name(target: Any) -> str:
    return getattr(target, "__name__", None) or repr(target)


def _to_plain(value: Any) -> Any:
    """Re-encode a driver value into plain JSON-compatible data.

    Driver-specific scalars (record ids, tables, durations, decimals) have no
    JSON form of their own and fall back to their string rendering.
    """
    try:
        return to_jsonable_python(value, fallback=str)
    except PydanticSerializationError as e:
        raise DecodeError(
            f"Could not re-encode driver value: {e}",
            hint="The driver returned a value with no JSON representation.",
        ) from e


def _as_sequence(raw: Any) -> list[Any]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidResponseError(
            f"invalid SurrealDB response: expected a sequence, got {type(raw).__name__}",
            hint="The driver must return a list of items for every call.",
        )
    return list(raw)


def _validate(data: Any, target: Any) -> Any:
    try:
        return _adapter(target).validate_python(data)
    except ValidationError as e:
        name = _target_name(target)
        raise DecodeError(
            f"Could not decode response into {name}: {e.error_count()} validation error(s)",
            hint="Check that the target's fields match the stored record.",
            target=name,
            error_count=e.error_count(),
        ) from e


def decode_one(raw: Any, item_type: type[T] | Any = dict) -> T | None:
    """Decode the first item of *raw* into *item_type*.

    Returns ``None`` for an empty sequence. When more than one item is
    present, only the first (in the order the driver returned) is used.

    Raises:
        InvalidResponseError: If *raw* is not a sequence.
        DecodeError: If the first item does not fit *item_type*.
    """
    items = _as_sequence(raw)
    if not items:
        return None
    return _validate(_to_plain(items[0]), item_type)


def decode_many(raw: Any, item_type: type[T] | Any = dict) -> list[T]:
    """Decode every item of *raw* into *item_type*, preserving order.

    Raises:
        InvalidResponseError: If *raw* is not a sequence.
        DecodeError: If any item does not fit *item_type*.
    """
    items = _as_sequence(raw)
    return _validate(_to_plain(items), list[item_type])  # type: ignore[valid-type]


@overload
def decode(raw: Any, target: type[list[T]]) -> list[T]: ...
@overload
def decode(raw: Any, target: type[T]) -> T | None: ...
def decode(raw: Any, target: Any) -> Any:
    """Decode *raw* into *target*, choosing the shape from *target* itself.

    ``decode(raw, list[Item])`` keeps all items, ``decode(raw, Item)`` takes
    the first one (or ``None``).
    """
    items = _as_sequence(raw)
    if is_collection_target(target):
        return _validate(_to_plain(items), target)
    if not items:
        return None
    return _validate(_to_plain(items[0]), target)


def to_entry(value: Any) -> dict[str, Any]:
    """Convert a payload (model, dataclass, mapping) into a plain dict.

    Raises:
        DecodeError: If *value* does not encode to a mapping.
    """
    if isinstance(value, BaseModel):
        data = value.model_dump(mode="json", by_alias=True)
    else:
        data = _to_plain(value)
    if not isinstance(data, dict):
        raise DecodeError(
            f"Payload must encode to a mapping, got {type(data).__name__}",
            hint="Pass a dict, a dataclass or a pydantic model.",
            target=type(value).__name__,
        )
    return data
