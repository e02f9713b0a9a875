"""Schema provider backed by Python class introspection.

A JSON key binds to the first of:

* a setter method ``set_<key>`` / ``set<Key>`` (``_set_<key>`` is non-public),
* an attribute declared on the class or one of its bases: annotations,
  dataclass fields, ``__slots__``, properties and plain class attributes.

Names match exactly first and then ignoring case, underscores and a leading
underscore. Declared types come from two sources whose precedence is
configurable: reST docstring fields (``:vartype name: T`` on the class,
``:type param: T`` on a setter, ``:rtype: T`` on a property getter) and type
annotations. Annotations are rendered into the type expression grammar, so
``list[Foo] | None`` becomes ``pkg.mod.Foo[]|null``.
"""

from __future__ import annotations

import dataclasses
import inspect
import re
import types
import typing
from collections.abc import Mapping, Sequence, Set
from typing import Annotated, Any, ClassVar, ForwardRef, Literal, Union

from jsonbind.introspection.model import FieldAccessor, PropertySchema, SetterAccessor
from jsonbind.introspection.naming import loose_key
from jsonbind.order_contract import sort_once
from jsonbind.resolution.overrides import type_name_of
from jsonbind.resolution.type_expr import (
    MAPPING_CONTAINERS,
    SEQUENCE_CONTAINERS,
    UNION_DELIMITER,
    is_null_token,
    split_top_level,
)

TYPE_SOURCE_DOCSTRING = "docstring"
TYPE_SOURCE_ANNOTATION = "annotation"
DEFAULT_TYPE_PRECEDENCE: tuple[str, ...] = (TYPE_SOURCE_DOCSTRING, TYPE_SOURCE_ANNOTATION)
TYPE_SOURCES = frozenset(DEFAULT_TYPE_PRECEDENCE)


class _RequiredMarker:
    _instance: _RequiredMarker | None = None

    def __new__(cls) -> _RequiredMarker:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "REQUIRED"


REQUIRED = _RequiredMarker()

_DOC_FIELD_RE = re.compile(
    r"^[ \t]*:(?P<field>\w+)(?:[ \t]+(?P<arg>[^:\s]+))?[ \t]*:[ \t]*(?P<value>[^\n]*?)[ \t]*$",
    re.MULTILINE,
)
_SETTER_RE = re.compile(r"^(?P<private>_?)set(?:_|(?=[A-Z]))(?P<rest>\w+)$")
_MISSING = object()

_ANNOTATION_NAMES: dict[str, str] = {
    "str": "string",
    "Any": "mixed",
    "object": "mixed",
    "None": "null",
    "NoneType": "null",
}
_RUNTIME_NAMES: dict[type, str] = {
    str: "string",
    int: "int",
    float: "float",
    bool: "bool",
    dict: "object",
    list: "array",
    tuple: "array",
    set: "array",
    frozenset: "array",
    object: "mixed",
}
_ABSTRACT_CONTAINER_MODULES = frozenset({"builtins", "collections.abc", "typing"})


def doc_fields(doc: str | None) -> list[tuple[str, str | None, str]]:
    if not doc:
        return []
    return [
        (match.group("field"), match.group("arg"), match.group("value"))
        for match in _DOC_FIELD_RE.finditer(doc)
    ]


def doc_field(doc: str | None, field: str, arg: str | None = None) -> str | None:
    for name, found_arg, value in doc_fields(doc):
        if name == field and found_arg == arg and value:
            return value
    return None


def _strip_known_prefix(name: str) -> str:
    for prefix in ("typing.", "builtins.", "collections.abc."):
        if name.startswith(prefix):
            return name[len(prefix) :]
    return name


def _normalize_base(name: str) -> str:
    base = _strip_known_prefix(name.strip())
    if base.lower() in {"list", "dict", "set", "tuple", "frozenset"}:
        return base.lower()
    return base


def _sequence_of(element: str) -> str:
    if UNION_DELIMITER in element:
        return f"list[{element}]"
    return element + "[]"


def render_annotation_text(raw: str) -> str | None:
    """Render an unevaluated annotation string as a type expression."""
    text = raw.strip()
    if not text:
        return None
    parts = split_top_level(text, UNION_DELIMITER)
    if len(parts) > 1:
        return UNION_DELIMITER.join(_rendered_parts(parts))
    if "[" in text and text.endswith("]"):
        base, inner = text.split("[", 1)
        base = _normalize_base(base)
        params = split_top_level(inner[:-1], ",")
        match base:
            case "Optional":
                return UNION_DELIMITER.join([*_rendered_parts(params), "null"])
            case "Union":
                return UNION_DELIMITER.join(_rendered_parts(params))
            case "Annotated" | "Required" | "NotRequired" | "Final":
                return render_annotation_text(params[0]) if params else None
            case "ClassVar":
                return None
        rendered = _rendered_parts(params)
        if base in SEQUENCE_CONTAINERS:
            return _sequence_of(rendered[0]) if rendered else "array"
        if base in MAPPING_CONTAINERS:
            return f"dict[{', '.join(rendered)}]"
        return f"{base}[{', '.join(rendered)}]"
    base = _normalize_base(text)
    return _ANNOTATION_NAMES.get(base, base)


def _rendered_parts(parts: Sequence[str]) -> list[str]:
    return [r for r in (render_annotation_text(p) for p in parts) if r]


def _is_abstract_container(origin: type) -> bool:
    return origin.__module__ in _ABSTRACT_CONTAINER_MODULES


def render_annotation(annotation: object) -> str | None:
    """Render an annotation object as a type expression, or ``None``."""
    if annotation is None or annotation is type(None):
        return "null"
    if isinstance(annotation, str):
        return render_annotation_text(annotation)
    if isinstance(annotation, ForwardRef):
        return render_annotation_text(annotation.__forward_arg__)
    if annotation is Any:
        return "mixed"
    origin = typing.get_origin(annotation)
    args = typing.get_args(annotation)
    if origin is Annotated:
        return render_annotation(args[0])
    if origin is ClassVar:
        return None
    if origin is Union or origin is types.UnionType:
        return UNION_DELIMITER.join(r for r in (render_annotation(a) for a in args) if r)
    if origin is Literal:
        return render_annotation(type(args[0])) if args else "mixed"
    if isinstance(origin, type):
        rendered = [r for r in (render_annotation(a) for a in args if a is not Ellipsis) if r]
        if _is_abstract_container(origin):
            if issubclass(origin, Mapping):
                return f"dict[{', '.join(rendered)}]" if rendered else "object"
            if issubclass(origin, (Sequence, Set)) and not issubclass(origin, str):
                return _sequence_of(rendered[0]) if rendered else "array"
        if not rendered:
            return type_name_of(origin)
        return f"{type_name_of(origin)}[{', '.join(rendered)}]"
    if isinstance(annotation, type):
        return _RUNTIME_NAMES.get(annotation) or type_name_of(annotation)
    return "mixed"


def _is_nullable(declared: str | None) -> bool:
    if declared is None:
        return False
    return any(is_null_token(token) for token in split_top_level(declared, UNION_DELIMITER))


def _has_required_marker(annotation: object) -> bool:
    if typing.get_origin(annotation) is not Annotated:
        return False
    return any(meta is REQUIRED for meta in getattr(annotation, "__metadata__", ()))


def _own_annotations(klass: type) -> dict[str, object]:
    return dict(inspect.get_annotations(klass))


def _is_class_var(annotation: object) -> bool:
    if isinstance(annotation, str):
        return _strip_known_prefix(annotation.strip()).startswith("ClassVar")
    return typing.get_origin(annotation) is ClassVar or annotation is ClassVar


def _hints(obj: object) -> dict[str, object]:
    try:
        return typing.get_type_hints(obj, include_extras=True)
    except (NameError, TypeError, AttributeError):
        if isinstance(obj, type):
            merged: dict[str, object] = {}
            for klass in reversed(obj.__mro__):
                merged.update(_own_annotations(klass))
            return merged
        return dict(getattr(obj, "__annotations__", {}) or {})


class ReflectionSchemaProvider:
    def __init__(self, type_precedence: Sequence[str] = DEFAULT_TYPE_PRECEDENCE) -> None:
        precedence = tuple(type_precedence)
        unknown = [source for source in precedence if source not in TYPE_SOURCES]
        if unknown or not precedence:
            raise ValueError(f"unsupported type precedence: {list(precedence)}")
        self.type_precedence = precedence
        self._fields: dict[type, tuple[str, ...]] = {}
        self._setters: dict[type, dict[str, tuple[str, bool]]] = {}
        self._class_hints: dict[type, dict[str, object]] = {}

    def __repr__(self) -> str:
        return f"ReflectionSchemaProvider(type_precedence={self.type_precedence!r})"

    # -- lookup --------------------------------------------------------

    def property_schema(self, cls: type, name: str) -> PropertySchema:
        required = name in self._required_names(cls)
        setter = self._find_setter(cls, name)
        if setter is not None:
            method_name, public = setter
            declared = self._setter_type(cls, method_name)
            return PropertySchema(
                name=name,
                exists=True,
                accessor=SetterAccessor(method_name, public),
                declared_type=declared,
                nullable=_is_nullable(declared),
                required=required,
            )
        field = self._find_field(cls, name)
        if field is None:
            return PropertySchema.missing(name)
        required = required or field in self._required_names(cls)
        attr = inspect.getattr_static(cls, field, None)
        if isinstance(attr, property) and attr.fset is None:
            return PropertySchema(name=name, exists=True, required=required)
        declared = self._field_type(cls, field)
        return PropertySchema(
            name=name,
            exists=True,
            accessor=FieldAccessor(field, public=not field.startswith("_")),
            declared_type=declared,
            nullable=_is_nullable(declared),
            required=required,
        )

    def required_properties(self, cls: type) -> tuple[str, ...]:
        required = self._required_names(cls)
        ordered = [field for field in self.declared_fields(cls) if field in required]
        extras = sort_once(
            (name for name in required if name not in ordered),
            source="reflection.required_properties.extras",
        )
        return tuple(ordered + extras)

    def declared_fields(self, cls: type) -> tuple[str, ...]:
        cached = self._fields.get(cls)
        if cached is not None:
            return cached
        names: dict[str, None] = {}
        for klass in reversed(cls.__mro__):
            if klass is object:
                continue
            for field, annotation in _own_annotations(klass).items():
                if not _is_class_var(annotation):
                    names[field] = None
            if dataclasses.is_dataclass(klass):
                for item in dataclasses.fields(klass):
                    names[item.name] = None
            slots = klass.__dict__.get("__slots__", ())
            for slot in (slots,) if isinstance(slots, str) else slots:
                if slot not in ("__dict__", "__weakref__"):
                    names[slot] = None
            for field, attr in klass.__dict__.items():
                if field.startswith("__") or field.startswith("_abc_"):
                    continue
                if isinstance(attr, (staticmethod, classmethod)) or inspect.isroutine(attr):
                    continue
                names[field] = None
        fields = tuple(names)
        self._fields[cls] = fields
        return fields

    def _find_field(self, cls: type, name: str) -> str | None:
        fields = self.declared_fields(cls)
        if name in fields:
            return name
        key = loose_key(name)
        for field in fields:
            if loose_key(field) == key:
                return field
        return None

    def _find_setter(self, cls: type, name: str) -> tuple[str, bool] | None:
        setters = self._setters.get(cls)
        if setters is None:
            setters = {}
            for method_name in dir(cls):
                match = _SETTER_RE.match(method_name)
                if match is None:
                    continue
                if not inspect.isfunction(inspect.getattr_static(cls, method_name, None)):
                    continue
                key = loose_key(match.group("rest"))
                public = not match.group("private")
                if key not in setters or (public and not setters[key][1]):
                    setters[key] = (method_name, public)
            self._setters[cls] = setters
        return setters.get(loose_key(name))

    # -- declared types ------------------------------------------------

    def _first_declared(self, sources: Mapping[str, typing.Callable[[], str | None]]) -> str | None:
        for source in self.type_precedence:
            declared = sources[source]()
            if declared is not None:
                return declared
        return None

    def _setter_type(self, cls: type, method_name: str) -> str | None:
        func = inspect.getattr_static(cls, method_name)
        params = list(inspect.signature(func).parameters.values())[1:]
        if not params:
            return None
        param = params[0].name

        def from_docstring() -> str | None:
            return doc_field(inspect.getdoc(func), "type", param)

        def from_annotation() -> str | None:
            annotation = _hints(func).get(param, _MISSING)
            return None if annotation is _MISSING else render_annotation(annotation)

        return self._first_declared(
            {TYPE_SOURCE_DOCSTRING: from_docstring, TYPE_SOURCE_ANNOTATION: from_annotation}
        )

    def _field_type(self, cls: type, field: str) -> str | None:
        attr = inspect.getattr_static(cls, field, None)
        if isinstance(attr, property):
            return self._property_type(cls, field, attr)

        def from_docstring() -> str | None:
            return self._class_doc_field(cls, "vartype", field)

        def from_annotation() -> str | None:
            annotation = self._hints_for(cls).get(field, _MISSING)
            return None if annotation is _MISSING else render_annotation(annotation)

        return self._first_declared(
            {TYPE_SOURCE_DOCSTRING: from_docstring, TYPE_SOURCE_ANNOTATION: from_annotation}
        )

    def _property_type(self, cls: type, field: str, attr: property) -> str | None:
        def from_docstring() -> str | None:
            declared = self._class_doc_field(cls, "vartype", field)
            if declared is None and attr.fget is not None:
                declared = doc_field(inspect.getdoc(attr.fget), "rtype")
            return declared

        def from_annotation() -> str | None:
            if attr.fget is not None:
                annotation = _hints(attr.fget).get("return", _MISSING)
                if annotation is not _MISSING:
                    return render_annotation(annotation)
            if attr.fset is not None:
                params = list(inspect.signature(attr.fset).parameters)[1:]
                if params:
                    annotation = _hints(attr.fset).get(params[0], _MISSING)
                    if annotation is not _MISSING:
                        return render_annotation(annotation)
            return None

        return self._first_declared(
            {TYPE_SOURCE_DOCSTRING: from_docstring, TYPE_SOURCE_ANNOTATION: from_annotation}
        )

    def _class_doc_field(self, cls: type, field: str, arg: str) -> str | None:
        for klass in cls.__mro__:
            if klass is object:
                continue
            declared = doc_field(klass.__dict__.get("__doc__"), field, arg)
            if declared is not None:
                return declared
        return None

    def _hints_for(self, cls: type) -> dict[str, object]:
        hints = self._class_hints.get(cls)
        if hints is None:
            hints = _hints(cls)
            self._class_hints[cls] = hints
        return hints

    def _required_names(self, cls: type) -> frozenset[str]:
        names = {
            field
            for field, annotation in self._hints_for(cls).items()
            if _has_required_marker(annotation)
        }
        for klass in cls.__mro__[:-1]:
            for field, arg, _ in doc_fields(klass.__dict__.get("__doc__")):
                if field == "required" and arg:
                    names.add(arg)
        return frozenset(names)


DEFAULT_SCHEMA_PROVIDER = ReflectionSchemaProvider()
