"""JSON-like value types and their runtime kinds.

Kinds use the vocabulary of declared type expressions (``integer``,
``double``, ``boolean``...) so strict mode can compare a value's kind with the
kinds a declared type admits without a translation table at every call site.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import TypeAlias


JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]
JSONObject: TypeAlias = dict[str, JSONValue]
JSONArray: TypeAlias = list[JSONValue]

KIND_NULL = "NULL"
KIND_BOOLEAN = "boolean"
KIND_INTEGER = "integer"
KIND_DOUBLE = "double"
KIND_STRING = "string"
KIND_ARRAY = "array"
KIND_OBJECT = "object"

SCALAR_KINDS: tuple[str, ...] = (
    KIND_BOOLEAN,
    KIND_INTEGER,
    KIND_DOUBLE,
    KIND_STRING,
    KIND_ARRAY,
    KIND_OBJECT,
    KIND_NULL,
)
FLAT_KINDS: frozenset[str] = frozenset(
    {KIND_NULL, KIND_BOOLEAN, KIND_INTEGER, KIND_DOUBLE, KIND_STRING}
)


def json_kind(value: object) -> str:
    # bool before int: bool is an int subclass.
    if value is None:
        return KIND_NULL
    if isinstance(value, bool):
        return KIND_BOOLEAN
    if isinstance(value, int):
        return KIND_INTEGER
    if isinstance(value, float):
        return KIND_DOUBLE
    if isinstance(value, str):
        return KIND_STRING
    if isinstance(value, (list, tuple)):
        return KIND_ARRAY
    return KIND_OBJECT


def is_flat(value: object) -> bool:
    return json_kind(value) in FLAT_KINDS


def is_array_shaped(value: object) -> bool:
    return isinstance(value, (list, tuple, Mapping))


def iter_json_items(value: object) -> Iterator[tuple[object, object]]:
    """Key/value pairs of a JSON container in document order.

    Arrays yield their indexes; plain objects yield their instance attributes.
    """
    if isinstance(value, Mapping):
        yield from value.items()
    elif isinstance(value, (list, tuple)):
        yield from enumerate(value)
    else:
        yield from vars(value).items()
