from __future__ import annotations

import builtins
import importlib
import inspect
import logging
import threading
from collections.abc import MutableMapping, MutableSequence

from jsonbind.exceptions import ErrorKind, MappingError
from jsonbind.resolution.overrides import type_name_of
from jsonbind.resolution.type_expr import ABSOLUTE_MARKER

logger = logging.getLogger(__name__)


def _needs_arguments(cls: type) -> bool:
    try:
        signature = inspect.signature(cls)
    except (TypeError, ValueError):
        return False
    for param in signature.parameters.values():
        if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
            continue
        if param.default is param.empty:
            return True
    return False


class DefaultInstanceFactory:
    """Resolve dotted type names to classes and construct instances.

    ``pkg.mod.Outer.Inner`` is resolved by importing the longest importable
    module prefix and walking the remaining attributes. Classes that cannot
    be reached by import (for example classes defined in a function) can be
    made known with :meth:`register`.
    """

    def __init__(self) -> None:
        self._types: dict[str, type] = {}
        self._lock = threading.Lock()

    def register(self, cls: type, name: str | None = None) -> None:
        with self._lock:
            self._types[name or type_name_of(cls)] = cls

    def resolve(self, type_name: str) -> type:
        name = type_name.removeprefix(ABSOLUTE_MARKER)
        cached = self._types.get(name)
        if cached is not None:
            return cached
        resolved = self._import(name)
        if resolved is None:
            raise MappingError(
                ErrorKind.UNKNOWN_TYPE,
                f'Type "{name}" cannot be resolved',
                declared_type=type_name,
            )
        with self._lock:
            self._types[name] = resolved
        logger.debug("resolved type %s to %r", name, resolved)
        return resolved

    def _import(self, name: str) -> type | None:
        parts = name.split(".")
        if len(parts) == 1:
            found = getattr(builtins, name, None)
            return found if isinstance(found, type) else None
        for index in range(len(parts) - 1, 0, -1):
            module_name = ".".join(parts[:index])
            try:
                found: object = importlib.import_module(module_name)
            except ImportError:
                continue
            for attr in parts[index:]:
                found = getattr(found, attr, None)
                if found is None:
                    break
            if isinstance(found, type):
                return found
        return None

    def create(self, type_name: str) -> object:
        """Instance for structural mapping.

        Classes whose constructor requires arguments are allocated without
        running it; mapping fills the attributes afterwards.
        """
        cls = self.resolve(type_name)
        if _needs_arguments(cls):
            return cls.__new__(cls)
        try:
            return cls()
        except (TypeError, ValueError) as error:
            raise MappingError(
                ErrorKind.INSTANTIATION_FAILED,
                f"Cannot create an instance of {type_name}: {error}",
                declared_type=type_name,
                cause=error,
            ) from error

    def create_from_value(self, type_name: str, value: object) -> object:
        cls = self.resolve(type_name)
        try:
            return cls(value)
        except (TypeError, ValueError) as error:
            raise MappingError(
                ErrorKind.INSTANTIATION_FAILED,
                f"Cannot create an instance of {type_name} from {value!r}: {error}",
                declared_type=type_name,
                cause=error,
            ) from error

    def is_instance(self, type_name: str, value: object) -> bool:
        if isinstance(value, (str, int, float, bool, list, tuple, dict)) or value is None:
            return False
        try:
            return isinstance(value, self.resolve(type_name))
        except MappingError:
            return False

    def is_array_like(self, type_name: str) -> bool:
        try:
            cls = self.resolve(type_name)
        except MappingError:
            return False
        return issubclass(cls, (MutableSequence, MutableMapping))
