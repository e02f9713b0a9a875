from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import TypeAlias

from jsonbind.invariants import never
from jsonbind.resolution.type_expr import ABSOLUTE_MARKER


@dataclass(frozen=True)
class DirectOverride:
    target: str


@dataclass(frozen=True)
class ComputedOverride:
    compute: Callable[[str, object], "str | type"]


TypeOverride: TypeAlias = DirectOverride | ComputedOverride
OverrideTable: TypeAlias = Mapping[str, TypeOverride]


def type_name_of(cls: type) -> str:
    if cls.__module__ == "builtins":
        return cls.__qualname__
    return f"{cls.__module__}.{cls.__qualname__}"


def as_override(entry: object) -> TypeOverride:
    match entry:
        case DirectOverride() | ComputedOverride():
            return entry
        case str():
            return DirectOverride(entry.removeprefix(ABSOLUTE_MARKER))
        case type():
            return DirectOverride(type_name_of(entry))
    if callable(entry):
        return ComputedOverride(entry)
    never("unsupported class override entry", entry_type=type(entry).__name__)


def normalize_override_table(table: Mapping[object, object] | None) -> dict[str, TypeOverride]:
    normalized: dict[str, TypeOverride] = {}
    for key, entry in (table or {}).items():
        match key:
            case type():
                name = type_name_of(key)
            case str():
                name = key.removeprefix(ABSOLUTE_MARKER)
            case _:
                never("class override keys must be names or classes", key=key)
        normalized[name] = as_override(entry)
    return normalized


def resolve_override(
    type_name: str,
    value: object,
    table: OverrideTable,
    *,
    declared: str | None = None,
) -> str:
    """Apply the class override table to an already-qualified type name.

    The qualified name is looked up first, then the name as it was declared,
    so tables may be keyed either way.
    """
    if not table:
        return type_name
    entry = table.get(type_name)
    if entry is None:
        entry = table.get(type_name.removeprefix(ABSOLUTE_MARKER))
    if entry is None and declared is not None:
        entry = table.get(declared.removeprefix(ABSOLUTE_MARKER))
    match entry:
        case None:
            return type_name
        case DirectOverride(target=target):
            return target
        case ComputedOverride(compute=compute):
            computed = compute(type_name, value)
            if isinstance(computed, type):
                return type_name_of(computed)
            return str(computed)
    never("unsupported class override entry", type_name=type_name)
