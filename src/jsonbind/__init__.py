"""Bind decoded JSON onto typed Python objects."""

from jsonbind.exceptions import ErrorKind, MappingError, NeverRaise, NeverThrown
from jsonbind.introspection import (
    REQUIRED,
    DefaultInstanceFactory,
    IntrospectionCache,
    ReflectionSchemaProvider,
)
from jsonbind.invariants import never
from jsonbind.mapper import JsonMapper
from jsonbind.policy import MappingPolicy, policy_from_config

__all__ = [
    "__version__",
    "DefaultInstanceFactory",
    "ErrorKind",
    "IntrospectionCache",
    "JsonMapper",
    "MappingError",
    "MappingPolicy",
    "NeverRaise",
    "NeverThrown",
    "REQUIRED",
    "ReflectionSchemaProvider",
    "never",
    "policy_from_config",
]

__version__ = "0.1.0"
