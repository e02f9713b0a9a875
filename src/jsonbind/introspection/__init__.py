from jsonbind.introspection.cache import CacheStats, IntrospectionCache, shared_cache
from jsonbind.introspection.factory import DefaultInstanceFactory
from jsonbind.introspection.model import (
    FieldAccessor,
    InstanceFactory,
    PropertySchema,
    SchemaProvider,
    SetterAccessor,
)
from jsonbind.introspection.reflection import (
    DEFAULT_SCHEMA_PROVIDER,
    REQUIRED,
    ReflectionSchemaProvider,
)

__all__ = [
    "CacheStats",
    "DEFAULT_SCHEMA_PROVIDER",
    "DefaultInstanceFactory",
    "FieldAccessor",
    "InstanceFactory",
    "IntrospectionCache",
    "PropertySchema",
    "REQUIRED",
    "ReflectionSchemaProvider",
    "SchemaProvider",
    "SetterAccessor",
    "shared_cache",
]
