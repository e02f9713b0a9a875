from __future__ import annotations

import math
import re
from collections.abc import Mapping

from jsonbind.invariants import never
from jsonbind.json_types import (
    KIND_ARRAY,
    KIND_BOOLEAN,
    KIND_DOUBLE,
    KIND_INTEGER,
    KIND_OBJECT,
    KIND_STRING,
)

_NUMERIC_PREFIX_RE = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")
_INTEGER_PREFIX_RE = re.compile(r"^\s*[+-]?\d+(?![.eE\d])")
_FALSE_STRINGS = frozenset({"", "0"})


def _numeric_prefix(text: str) -> float:
    match = _NUMERIC_PREFIX_RE.match(text)
    if match is None:
        return 0.0
    return float(match.group(0))


def _is_composite(value: object) -> bool:
    return isinstance(value, (list, tuple, Mapping))


def to_string(value: object) -> str:
    if _is_composite(value):
        raise TypeError(f"{type(value).__name__} cannot be converted to a string")
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else ""
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e15:
        return str(int(value))
    return str(value)


def to_float(value: object) -> float:
    if value is None:
        return 0.0
    if isinstance(value, (bool, int, float)):
        return float(value)
    if isinstance(value, str):
        return _numeric_prefix(value)
    if _is_composite(value):
        return 1.0 if len(value) else 0.0
    return 1.0


def to_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        exact = _INTEGER_PREFIX_RE.match(value)
        if exact is not None:
            return int(exact.group(0))
    number = to_float(value)
    if math.isnan(number) or math.isinf(number):
        return 0
    return int(number)


def to_bool(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return value not in _FALSE_STRINGS
    if isinstance(value, (bool, int, float)):
        return value != 0
    if _is_composite(value):
        return bool(len(value))
    return True


def to_array(value: object) -> list[object] | dict[str, object]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    if isinstance(value, tuple):
        return list(value)
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (str, int, float)):
        return [value]
    return dict(vars(value))


def to_object(value: object) -> object:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        return dict(value)
    if isinstance(value, (list, tuple)):
        return {str(index): item for index, item in enumerate(value)}
    if isinstance(value, (str, int, float)):
        return {"scalar": value}
    return value


def coerce_scalar(value: object, kind: str) -> object:
    """Convert ``value`` to a basic ``kind`` the way a lenient binder would.

    Numeric strings become numbers, numbers become strings, and anything has
    a truth value. Composite values cannot become strings.
    """
    if kind == KIND_STRING:
        return to_string(value)
    if kind == KIND_INTEGER:
        return to_int(value)
    if kind == KIND_DOUBLE:
        return to_float(value)
    if kind == KIND_BOOLEAN:
        return to_bool(value)
    if kind == KIND_ARRAY:
        return to_array(value)
    if kind == KIND_OBJECT:
        return to_object(value)
    never("unknown scalar kind", kind=kind)
