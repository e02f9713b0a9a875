"""``jsonbind.toml`` loading.

Only the ``[mapper]`` table is used. A missing file means no defaults; an
unreadable or malformed file is reported on the ``jsonbind.config`` logger
and treated as empty.
"""

from __future__ import annotations

from datetime import date, datetime, time
from pathlib import Path
from typing import TypeAlias
import logging
import tomllib

DEFAULT_CONFIG_NAME = "jsonbind.toml"
MAPPER_SECTION = "mapper"

TomlScalar: TypeAlias = str | int | float | bool | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

logger = logging.getLogger(__name__)


def config_path_for(root: Path | None = None, config_path: Path | None = None) -> Path:
    if config_path is not None:
        return config_path
    return (root if root is not None else Path.cwd()) / DEFAULT_CONFIG_NAME


def read_config(path: Path) -> TomlTable:
    try:
        with path.open("rb") as handle:
            return tomllib.load(handle)
    except FileNotFoundError:
        return {}
    except OSError as error:
        logger.warning("cannot read config %s: %s", path, error)
    except tomllib.TOMLDecodeError as error:
        logger.warning("ignoring malformed config %s: %s", path, error)
    return {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    return read_config(config_path_for(root, config_path))


def mapper_defaults(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    section = load_config(root, config_path).get(MAPPER_SECTION)
    return section if isinstance(section, dict) else {}


def type_precedence(section: TomlTable | None) -> list[str]:
    """``type_precedence`` as a list; accepts ``"a, b"`` or ``["a", "b"]``."""
    if not isinstance(section, dict):
        return []
    raw = section.get("type_precedence")
    chunks = [raw] if isinstance(raw, str) else raw if isinstance(raw, list) else []
    return [
        name.strip()
        for chunk in chunks
        if isinstance(chunk, str)
        for name in chunk.split(",")
        if name.strip()
    ]


def merge_payload(payload: TomlTable, defaults: TomlTable) -> TomlTable:
    """Overlay ``payload`` on ``defaults``; ``None`` in ``payload`` means unset."""
    merged = dict(defaults)
    merged.update({key: value for key, value in payload.items() if value is not None})
    return merged
