from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, MutableMapping, MutableSequence
from contextlib import contextmanager
from contextvars import ContextVar

from jsonbind.exceptions import ErrorKind, MappingError
from jsonbind.introspection.cache import IntrospectionCache, shared_cache
from jsonbind.introspection.factory import DefaultInstanceFactory
from jsonbind.introspection.model import FieldAccessor, InstanceFactory, SchemaProvider
from jsonbind.introspection.naming import safe_name
from jsonbind.invariants import never
from jsonbind.json_types import (
    KIND_BOOLEAN,
    KIND_DOUBLE,
    KIND_INTEGER,
    KIND_OBJECT,
    KIND_STRING,
    is_array_shaped,
    is_flat,
    iter_json_items,
    json_kind,
)
from jsonbind.policy import MappingPolicy
from jsonbind.resolution.engine import (
    Bound,
    ResolutionContext,
    Skipped,
    TypeResolver,
    empty_container_for,
)
from jsonbind.resolution.overrides import resolve_override, type_name_of
from jsonbind.resolution.scalars import coerce_scalar
from jsonbind.resolution.type_expr import (
    ArrayType,
    ContainerType,
    MixedType,
    NominalType,
    ScalarType,
    TypeExpression,
    kind_closure,
    parse_candidate,
)

_DEPTH: ContextVar[int] = ContextVar("jsonbind_mapping_depth", default=0)

_FLAT_ELEMENT_KINDS = frozenset({KIND_STRING, KIND_INTEGER, KIND_DOUBLE, KIND_BOOLEAN})


class JsonMapper:
    """Bind decoded JSON onto instances of annotated Python classes.

    Example::

        person = JsonMapper().map({"name": "Ada", "age": "36"}, Person())

    Property types come from the schema provider (annotations and docstring
    fields by default). Behaviour on unknown keys, ``null`` values, kind
    mismatches and so on is controlled by :class:`MappingPolicy`.
    """

    def __init__(
        self,
        policy: MappingPolicy | None = None,
        *,
        schema_provider: SchemaProvider | None = None,
        factory: InstanceFactory | None = None,
        cache: IntrospectionCache | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        if cache is None:
            cache = shared_cache() if schema_provider is None else IntrospectionCache(schema_provider)
        self.policy = policy if policy is not None else MappingPolicy()
        self.cache = cache
        self.factory = factory if factory is not None else DefaultInstanceFactory()
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._resolver = TypeResolver(
            policy=self.policy,
            factory=self.factory,
            cache=self.cache,
            mapper=self,
            logger=self.logger,
        )

    def with_policy(self, **changes: object) -> JsonMapper:
        return JsonMapper(
            self.policy.with_changes(**changes),
            factory=self.factory,
            cache=self.cache,
            logger=self.logger,
        )

    @contextmanager
    def _depth_scope(self) -> Iterator[int]:
        depth = _DEPTH.get() + 1
        if depth > self.policy.max_depth:
            raise MappingError(
                ErrorKind.DEPTH_EXCEEDED,
                f"Maximum mapping depth of {self.policy.max_depth} exceeded",
            )
        token = _DEPTH.set(depth)
        try:
            yield depth
        finally:
            _DEPTH.reset(token)

    # -- objects -------------------------------------------------------

    def map(self, json_object: object, target: object) -> object:
        """Map the keys of ``json_object`` onto ``target`` and return it."""
        if isinstance(target, type) or not _is_object_target(target):
            raise TypeError(
                "JsonMapper.map() requires second argument to be an object, "
                f"{json_kind(target) if not isinstance(target, type) else 'class'} given"
            )
        if json_kind(json_object) != KIND_OBJECT:
            if self.policy.require_object_input_for_map or is_flat(json_object):
                raise MappingError(
                    ErrorKind.OBJECT_EXPECTED,
                    "JsonMapper.map() requires first argument to be an object, "
                    f"{json_kind(json_object)} given",
                    class_name=type_name_of(type(target)),
                )
        cls = type(target)
        provided: dict[str, None] = {}
        with self._depth_scope():
            for raw_key, value in iter_json_items(json_object):
                key = safe_name(str(raw_key))
                provided[key] = None
                match self._resolver.resolve_property(target, key, value):
                    case Bound(accessor=accessor, value=bound):
                        accessor.write(target, bound)
                        if isinstance(accessor, FieldAccessor):
                            provided[accessor.name] = None
                    case Skipped():
                        continue
            if self.policy.fail_on_missing_required:
                self._check_missing(cls, provided)
            if self.policy.remove_unset_attributes:
                self._remove_unset(target, provided)
            self._post_mapping(target)
        return target

    def _check_missing(self, cls: type, provided: Mapping[str, None]) -> None:
        for name in self.cache.required_properties(cls):
            if name not in provided:
                raise MappingError(
                    ErrorKind.REQUIRED_PROPERTY_MISSING,
                    f'Required property "{name}" of class {type_name_of(cls)} '
                    "is missing in JSON data",
                    property_name=name,
                    class_name=type_name_of(cls),
                )

    def _remove_unset(self, target: object, provided: Mapping[str, None]) -> None:
        for name in _public_attributes(target):
            if name not in provided:
                delattr(target, name)

    def _post_mapping(self, target: object) -> None:
        hook = self.policy.post_mapping_hook
        if not hook:
            return
        if callable(getattr(type(target), hook, None)):
            getattr(target, hook)()

    # -- arrays --------------------------------------------------------

    def map_array(
        self,
        json_array: object,
        container: object,
        element_type: str | None = None,
        context_label: str = "",
    ) -> object:
        """Fill ``container`` with the elements of ``json_array``.

        Keys are preserved: sequences are appended to in order, mappings get
        the original keys. Each element is bound to ``element_type``; a
        nullable element type is treated as its non-null part and ``null``
        elements stay ``None``.
        """
        if not is_array_shaped(json_array):
            raise MappingError(
                ErrorKind.ARRAY_EXPECTED,
                f'JSON property "{context_label}" must be an array, {json_kind(json_array)} given',
                property_name=context_label or None,
            )
        expression = None
        if element_type is not None:
            expression = self.cache.type_expression(
                element_type,
                preserve_declared_order=self.policy.preserve_declared_union_order,
            )
        context = ResolutionContext(
            property_name=context_label,
            class_name=type_name_of(type(container)),
            declared_type=element_type,
        )
        with self._depth_scope():
            for key, item in iter_json_items(json_array):
                _store(container, key, self._map_element(item, expression, context))
        return container

    def _map_element(
        self,
        item: object,
        expression: TypeExpression | None,
        context: ResolutionContext,
    ) -> object:
        if expression is None or item is None:
            return item
        if expression.is_union:
            return self._resolver.resolve(item, expression, context)
        text = expression.candidates[0].text
        text = resolve_override(text, item, self.policy.class_override_table)
        candidate = parse_candidate(text)
        match candidate:
            case ArrayType():
                return self._nested_array(
                    item, empty_container_for(item), candidate.element_text(), context
                )
            case ContainerType(container=container, element=element):
                target = (
                    empty_container_for(item, container)
                    if candidate.builtin
                    else self.factory.create(container)
                )
                return self._nested_array(item, target, element, context)
            case MixedType():
                return item
            case ScalarType(kind=kind):
                if not is_flat(item) and kind in _FLAT_ELEMENT_KINDS:
                    raise MappingError(
                        ErrorKind.ARRAY_ELEMENT_TYPE_MISMATCH,
                        f'JSON property "{context.property_name}" is an array of type '
                        f'"{candidate.text}" but contained a value of type "{json_kind(item)}"',
                        property_name=context.property_name or None,
                        declared_type=context.declared_type,
                    )
                if self.policy.strict_value_type_checking and json_kind(item) not in kind_closure(
                    candidate
                ):
                    raise MappingError(
                        ErrorKind.TYPE_MISMATCH,
                        f'JSON property "{context.property_name}" of type "{candidate.text}[]" '
                        f'should not contain a value of type "{json_kind(item)}"',
                        property_name=context.property_name or None,
                        declared_type=context.declared_type,
                    )
                return coerce_scalar(item, kind)
            case NominalType(name=name):
                if is_flat(item):
                    return self.factory.create_from_value(name, item)
                if self.factory.is_instance(name, item):
                    return item
                if self.factory.is_array_like(name):
                    return self.map_array(item, self.factory.create(name), None, context.property_name)
                return self.map(item, self.factory.create(name))
        never("unsupported array element type", element=text)

    def _nested_array(
        self,
        item: object,
        container: object,
        element_type: str,
        context: ResolutionContext,
    ) -> object:
        if not is_array_shaped(item):
            raise MappingError(
                ErrorKind.ARRAY_EXPECTED,
                f'JSON property "{context.property_name}" must be an array, '
                f"{json_kind(item)} given",
                property_name=context.property_name or None,
                declared_type=context.declared_type,
            )
        return self.map_array(item, container, element_type, context.property_name)


def _is_object_target(target: object) -> bool:
    return not (target is None or isinstance(target, (str, int, float, bool, list, tuple, dict)))


def _store(container: object, key: object, value: object) -> None:
    if isinstance(container, MutableMapping):
        container[key] = value
    elif isinstance(container, MutableSequence):
        container.append(value)
    else:
        never("unsupported array container", container=type(container).__name__)


def _public_attributes(target: object) -> list[str]:
    names: dict[str, None] = {}
    for name in getattr(target, "__dict__", {}):
        if not name.startswith("_"):
            names[name] = None
    for klass in type(target).__mro__:
        slots = klass.__dict__.get("__slots__", ())
        for slot in (slots,) if isinstance(slots, str) else slots:
            if not slot.startswith("_") and hasattr(target, slot):
                names[slot] = None
    return list(names)
