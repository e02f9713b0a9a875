from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, TypeAlias, runtime_checkable


@dataclass(frozen=True)
class SetterAccessor:
    """Write through a setter method taking the value as its only argument."""

    name: str
    public: bool = True

    def write(self, target: object, value: object) -> None:
        getattr(target, self.name)(value)


@dataclass(frozen=True)
class FieldAccessor:
    """Write the attribute directly."""

    name: str
    public: bool = True

    def write(self, target: object, value: object) -> None:
        setattr(target, self.name, value)


Accessor: TypeAlias = SetterAccessor | FieldAccessor


@dataclass(frozen=True)
class PropertySchema:
    name: str
    exists: bool = False
    accessor: Accessor | None = None
    declared_type: str | None = None
    nullable: bool = False
    required: bool = False

    @classmethod
    def missing(cls, name: str) -> PropertySchema:
        return cls(name=name)


@runtime_checkable
class SchemaProvider(Protocol):
    def property_schema(self, cls: type, name: str) -> PropertySchema: ...

    def required_properties(self, cls: type) -> tuple[str, ...]: ...


@runtime_checkable
class InstanceFactory(Protocol):
    def resolve(self, type_name: str) -> type: ...

    def create(self, type_name: str) -> object: ...

    def create_from_value(self, type_name: str, value: object) -> object: ...

    def is_instance(self, type_name: str, value: object) -> bool: ...

    def is_array_like(self, type_name: str) -> bool: ...
