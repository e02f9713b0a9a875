from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from jsonbind.introspection.model import PropertySchema, SchemaProvider
from jsonbind.introspection.reflection import DEFAULT_SCHEMA_PROVIDER
from jsonbind.resolution.priority import prioritize
from jsonbind.resolution.type_expr import TypeExpression, parse_type_expression

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheStats:
    hits: int
    misses: int
    classes: int
    properties: int
    expressions: int


@dataclass
class _ClassEntry:
    properties: dict[str, PropertySchema] = field(default_factory=dict)
    required: tuple[str, ...] | None = None
    lock: threading.Lock = field(default_factory=threading.Lock)


class IntrospectionCache:
    """Memoized property schemas and parsed type expressions.

    Entries are computed at most once per ``(class, name)`` and are never
    invalidated; classes are assumed not to change shape after first use.
    Lookups are safe from several threads: each class has its own lock and
    readers of an already-populated entry do not take it.
    """

    def __init__(self, provider: SchemaProvider = DEFAULT_SCHEMA_PROVIDER) -> None:
        self.provider = provider
        self._classes: dict[type, _ClassEntry] = {}
        self._expressions: dict[tuple[str | None, bool], TypeExpression] = {}
        self._lock = threading.Lock()
        self._counter_lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def _entry(self, cls: type) -> _ClassEntry:
        entry = self._classes.get(cls)
        if entry is None:
            with self._lock:
                entry = self._classes.setdefault(cls, _ClassEntry())
        return entry

    def property_schema(self, cls: type, name: str) -> PropertySchema:
        entry = self._entry(cls)
        schema = entry.properties.get(name)
        if schema is not None:
            self._count(hit=True)
            return schema
        with entry.lock:
            schema = entry.properties.get(name)
            if schema is None:
                self._count(hit=False)
                schema = self.provider.property_schema(cls, name)
                entry.properties[name] = schema
                logger.debug(
                    "cached property %s.%s exists=%s type=%s",
                    cls.__qualname__,
                    name,
                    schema.exists,
                    schema.declared_type,
                )
            else:
                self._count(hit=True)
        return schema

    def _count(self, *, hit: bool) -> None:
        with self._counter_lock:
            if hit:
                self._hits += 1
            else:
                self._misses += 1

    def required_properties(self, cls: type) -> tuple[str, ...]:
        entry = self._entry(cls)
        if entry.required is not None:
            return entry.required
        with entry.lock:
            if entry.required is None:
                entry.required = tuple(self.provider.required_properties(cls))
        return entry.required

    def type_expression(
        self,
        declared: str | None,
        *,
        preserve_declared_order: bool = False,
    ) -> TypeExpression:
        key = (declared, preserve_declared_order)
        expression = self._expressions.get(key)
        if expression is None:
            expression = prioritize(
                parse_type_expression(declared),
                preserve_declared_order=preserve_declared_order,
            )
            with self._lock:
                expression = self._expressions.setdefault(key, expression)
        return expression

    def stats(self) -> CacheStats:
        with self._counter_lock:
            hits, misses = self._hits, self._misses
        return CacheStats(
            hits=hits,
            misses=misses,
            classes=len(self._classes),
            properties=sum(len(entry.properties) for entry in self._classes.values()),
            expressions=len(self._expressions),
        )


_SHARED_CACHE = IntrospectionCache(DEFAULT_SCHEMA_PROVIDER)


def shared_cache() -> IntrospectionCache:
    return _SHARED_CACHE
