"""Binding of a single JSON value against a declared type.

Every candidate attempt produces a :class:`CoercionResult`. Failures of one
candidate are values, not exceptions, until the union is exhausted; only
then is an error raised. Exceptions raised by nested mapping are converted
to results at the recursion boundary, except for depth exhaustion which
always propagates.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol, TypeAlias

from jsonbind.exceptions import ErrorKind, MappingError
from jsonbind.introspection.cache import IntrospectionCache
from jsonbind.introspection.model import Accessor, InstanceFactory
from jsonbind.invariants import never
from jsonbind.json_types import KIND_STRING, is_array_shaped, is_flat, json_kind
from jsonbind.policy import MappingPolicy
from jsonbind.resolution.overrides import resolve_override, type_name_of
from jsonbind.resolution.priority import prefer_matching_kind
from jsonbind.resolution.scalars import coerce_scalar
from jsonbind.resolution.type_expr import (
    MAPPING_CONTAINERS,
    ArrayType,
    ContainerType,
    MixedType,
    NominalType,
    ScalarType,
    TypeCandidate,
    TypeExpression,
    kind_closure,
    parse_candidate,
    qualify,
)


@dataclass(frozen=True)
class Accepted:
    value: object


@dataclass(frozen=True)
class Rejected:
    error: MappingError


CoercionResult: TypeAlias = Accepted | Rejected


@dataclass(frozen=True)
class Bound:
    accessor: Accessor
    value: object


@dataclass(frozen=True)
class Skipped:
    reason: ErrorKind


PropertyOutcome: TypeAlias = Bound | Skipped


@dataclass(frozen=True)
class ResolutionContext:
    property_name: str
    class_name: str
    namespace: str = ""
    declared_type: str | None = None


class NestedMapper(Protocol):
    def map(self, json_object: object, target: object) -> object: ...

    def map_array(
        self,
        json_array: object,
        container: object,
        element_type: str | None = None,
        context_label: str = "",
    ) -> object: ...


def _error(kind: ErrorKind, message: str, context: ResolutionContext) -> MappingError:
    return MappingError(
        kind,
        message,
        property_name=context.property_name,
        class_name=context.class_name,
        declared_type=context.declared_type,
    )


def empty_container_for(value: object, container: str | None = None) -> object:
    if isinstance(value, Mapping) or container in MAPPING_CONTAINERS:
        return {}
    return []


class TypeResolver:
    def __init__(
        self,
        *,
        policy: MappingPolicy,
        factory: InstanceFactory,
        cache: IntrospectionCache,
        mapper: NestedMapper,
        logger: logging.Logger,
    ) -> None:
        self.policy = policy
        self.factory = factory
        self.cache = cache
        self.mapper = mapper
        self.logger = logger

    # -- properties ----------------------------------------------------

    def resolve_property(self, target: object, key: str, value: object) -> PropertyOutcome:
        cls = type(target)
        schema = self.cache.property_schema(cls, key)
        context = ResolutionContext(
            property_name=key,
            class_name=type_name_of(cls),
            namespace=cls.__module__,
            declared_type=schema.declared_type,
        )
        if not schema.exists:
            return self._undefined(target, key, value, context)
        accessor = schema.accessor
        if accessor is None or (not accessor.public and not self.policy.allow_non_public_accessors):
            return self._inaccessible(context)
        if value is None:
            if schema.nullable or not self.policy.fail_on_null_for_non_nullable:
                return Bound(accessor, None)
            raise _error(
                ErrorKind.NULL_NOT_ALLOWED,
                f'JSON property "{key}" in class "{context.class_name}" must not be NULL',
                context,
            )
        expression = self.cache.type_expression(
            schema.declared_type,
            preserve_declared_order=self.policy.preserve_declared_union_order,
        )
        return Bound(accessor, self.resolve(value, expression, context))

    def _undefined(
        self, target: object, key: str, value: object, context: ResolutionContext
    ) -> Skipped:
        if self.policy.fail_on_undefined_property:
            raise _error(
                ErrorKind.UNDEFINED_PROPERTY,
                f'JSON property "{key}" does not exist in object of type {context.class_name}',
                context,
            )
        callback = self.policy.undefined_property_callback
        if callback is not None:
            callback(target, key, value)
        else:
            self.logger.info(
                "Property %s does not exist in %s",
                key,
                context.class_name,
                extra={"property": key, "class_name": context.class_name},
            )
        return Skipped(ErrorKind.UNDEFINED_PROPERTY)

    def _inaccessible(self, context: ResolutionContext) -> Skipped:
        if self.policy.fail_on_undefined_property:
            raise _error(
                ErrorKind.NO_PUBLIC_ACCESSOR,
                f'JSON property "{context.property_name}" has no public setter method '
                f"in object of type {context.class_name}",
                context,
            )
        self.logger.info(
            "Property %s has no public setter method in %s",
            context.property_name,
            context.class_name,
            extra={"property": context.property_name, "class_name": context.class_name},
        )
        return Skipped(ErrorKind.NO_PUBLIC_ACCESSOR)

    # -- unions --------------------------------------------------------

    def ordered_candidates(
        self, expression: TypeExpression, value: object
    ) -> tuple[TypeCandidate, ...]:
        candidates = expression.candidates
        if (
            expression.is_union
            and not self.policy.strict_value_type_checking
            and not self.policy.preserve_declared_union_order
        ):
            candidates = prefer_matching_kind(candidates, json_kind(value))
        return candidates

    def resolve(
        self, value: object, expression: TypeExpression, context: ResolutionContext
    ) -> object:
        """Bind ``value`` to the first candidate of ``expression`` that accepts it.

        A sole candidate raises its own error. When several candidates all
        reject the value, ``CONVERSION_FAILED_ALL_CANDIDATES`` is raised with
        the last rejection as its cause.
        """
        if value is None and expression.nullable:
            return None
        candidates = self.ordered_candidates(expression, value)
        last: MappingError | None = None
        for candidate in candidates:
            match self.attempt(candidate, value, context):
                case Accepted(value=bound):
                    return bound
                case Rejected(error=error):
                    last = error
                    self.logger.debug(
                        "candidate %s rejected for %s: %s",
                        candidate.text,
                        context.property_name,
                        error.message,
                    )
        if last is None:
            never("type expression without candidates", declared=context.declared_type)
        if len(candidates) == 1:
            raise last
        raise MappingError(
            ErrorKind.CONVERSION_FAILED_ALL_CANDIDATES,
            f'JSON property "{context.property_name}" in class "{context.class_name}" '
            f'is of type "{json_kind(value)}" and cannot be converted to a value of type '
            f'"{expression.source or expression.render()}"',
            property_name=context.property_name,
            class_name=context.class_name,
            declared_type=context.declared_type,
            cause=last,
        ) from last

    def attempt(
        self, candidate: TypeCandidate, value: object, context: ResolutionContext
    ) -> CoercionResult:
        if self.policy.strict_value_type_checking:
            kind = json_kind(value)
            if kind not in kind_closure(candidate):
                return Rejected(
                    _error(
                        ErrorKind.TYPE_MISMATCH,
                        f'JSON property "{context.property_name}" of type "{kind}" in class '
                        f'"{context.class_name}" should not be converted to a value of type '
                        f"{candidate.text}",
                        context,
                    )
                )
        try:
            text = qualify(candidate.text, context.namespace)
            text = resolve_override(
                text, value, self.policy.class_override_table, declared=candidate.text
            )
            resolved = parse_candidate(text)
        except MappingError as error:
            return Rejected(error)
        return self.dispatch(resolved, value, context)

    # -- dispatch ------------------------------------------------------

    def dispatch(
        self, candidate: TypeCandidate, value: object, context: ResolutionContext
    ) -> CoercionResult:
        match candidate:
            case MixedType():
                return Accepted(value)
            case ScalarType(kind=kind):
                if kind == KIND_STRING and not is_flat(value):
                    return Rejected(
                        _error(
                            ErrorKind.TYPE_MISMATCH,
                            f'JSON property "{context.property_name}" in class '
                            f'"{context.class_name}" is an object/array and cannot be '
                            "converted to a string",
                            context,
                        )
                    )
                return Accepted(coerce_scalar(value, kind))
            case ArrayType():
                if not is_array_shaped(value):
                    return self._array_expected(value, context)
                return self._guard(
                    lambda: self.mapper.map_array(
                        value,
                        empty_container_for(value),
                        candidate.element_text(),
                        context.property_name,
                    )
                )
            case ContainerType(container=container, element=element):
                if not is_array_shaped(value):
                    return self._array_expected(value, context)
                return self._guard(
                    lambda: self.mapper.map_array(
                        value,
                        empty_container_for(value, container)
                        if candidate.builtin
                        else self.factory.create(container),
                        element,
                        context.property_name,
                    )
                )
            case NominalType(name=name):
                return self._dispatch_nominal(name, value, context)
        never("unsupported type candidate", candidate=candidate)

    def _dispatch_nominal(
        self, name: str, value: object, context: ResolutionContext
    ) -> CoercionResult:
        if self.factory.is_instance(name, value):
            return Accepted(value)
        if self.factory.is_array_like(name):
            if not is_array_shaped(value):
                return self._array_expected(value, context)
            return self._guard(
                lambda: self.mapper.map_array(
                    value, self.factory.create(name), None, context.property_name
                )
            )
        if is_flat(value):
            if self.policy.fail_on_non_object_for_object_type:
                return Rejected(
                    _error(
                        ErrorKind.OBJECT_EXPECTED,
                        f'JSON property "{context.property_name}" must be an object, '
                        f"{json_kind(value)} given",
                        context,
                    )
                )
            return self._guard(lambda: self.factory.create_from_value(name, value))
        return self._guard(lambda: self.mapper.map(value, self.factory.create(name)))

    def _array_expected(self, value: object, context: ResolutionContext) -> Rejected:
        return Rejected(
            _error(
                ErrorKind.ARRAY_EXPECTED,
                f'JSON property "{context.property_name}" must be an array, '
                f"{json_kind(value)} given",
                context,
            )
        )

    def _guard(self, produce: Callable[[], object]) -> CoercionResult:
        try:
            return Accepted(produce())
        except MappingError as error:
            if error.kind is ErrorKind.DEPTH_EXCEEDED:
                raise
            return Rejected(error)
