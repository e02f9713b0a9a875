"""Invariant markers for jsonbind."""

from __future__ import annotations

from typing import NoReturn

from jsonbind.exceptions import NeverThrown


def _render_env(env: dict[str, object]) -> str:
    if not env:
        return ""
    parts = [f"{key}={env[key]!r}" for key in sorted(env)]
    return " (" + ", ".join(parts) + ")"


def never(reason: str = "", **env: object) -> NoReturn:
    """Mark a code path as intentionally unreachable.

    The env payload is attached to the raised exception for diagnostics only.
    """
    message = (reason or "never() marker reached") + _render_env(env)
    raise NeverThrown(message, env=env)

