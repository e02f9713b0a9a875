from __future__ import annotations

import re

_SEPARATOR_RE = re.compile(r"[_\-\s]+")
_CAMEL_BOUNDARY_RE = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


def camel_case_name(value: str) -> str:
    """``foo_bar-baz`` -> ``FooBarBaz``."""
    parts = [p for p in _SEPARATOR_RE.split(value) if p]
    return "".join(p[:1].upper() + p[1:] for p in parts)


def safe_name(key: str) -> str:
    # Hyphens cannot appear in attribute names; other keys pass through.
    if "-" in key:
        return camel_case_name(key)
    return key


def snake_case_name(value: str) -> str:
    spaced = _CAMEL_BOUNDARY_RE.sub("_", value)
    return _SEPARATOR_RE.sub("_", spaced).strip("_").lower()


def loose_key(value: str) -> str:
    """Comparison key ignoring case, underscores and a leading privacy marker."""
    return value.lstrip("_").replace("_", "").replace("-", "").lower()
