from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from enum import Enum
from pathlib import Path

from jsonbind.json_types import JSONValue

_STDIN_ALIAS = "-"


def load_json_text(text: str) -> JSONValue:
    return json.loads(text)


def load_json_source(source: str | Path | None) -> JSONValue:
    """Decode JSON from a file path, or from stdin for ``None`` and ``-``."""
    if source is None or str(source) == _STDIN_ALIAS:
        return load_json_text(sys.stdin.read())
    return load_json_text(Path(source).read_text(encoding="utf-8"))


def to_json_compatible(value: object, *, _active: frozenset[int] = frozenset()) -> JSONValue:
    """Convert a mapped object graph back into plain JSON values.

    Public instance attributes become object keys. Reference cycles raise
    ``ValueError``.
    """
    if value is None or isinstance(value, (str, bool, int, float)):
        return value
    if isinstance(value, Enum):
        return to_json_compatible(value.value, _active=_active)
    marker = id(value)
    if marker in _active:
        raise ValueError(f"cycle detected at {type(value).__name__}")
    active = _active | {marker}
    if isinstance(value, Mapping):
        return {str(key): to_json_compatible(item, _active=active) for key, item in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_json_compatible(item, _active=active) for item in value]
    return {
        name: to_json_compatible(item, _active=active)
        for name, item in _public_attributes(value).items()
    }


def _public_attributes(value: object) -> dict[str, object]:
    attributes: dict[str, object] = {}
    for klass in reversed(type(value).__mro__):
        slots = klass.__dict__.get("__slots__", ())
        for slot in (slots,) if isinstance(slots, str) else slots:
            if not slot.startswith("_") and hasattr(value, slot):
                attributes[slot] = getattr(value, slot)
    for name, item in getattr(value, "__dict__", {}).items():
        if not name.startswith("_"):
            attributes[name] = item
    return attributes


def dump_json(payload: object) -> str:
    return json.dumps(payload, indent=2, sort_keys=True)
