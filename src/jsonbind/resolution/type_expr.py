from __future__ import annotations

from dataclasses import dataclass
from typing import TypeAlias

from jsonbind.exceptions import ErrorKind, MappingError
from jsonbind.json_types import (
    KIND_ARRAY,
    KIND_BOOLEAN,
    KIND_DOUBLE,
    KIND_INTEGER,
    KIND_OBJECT,
    KIND_STRING,
    SCALAR_KINDS,
)

UNION_DELIMITER = "|"
ARRAY_SUFFIX = "[]"
ABSOLUTE_MARKER = "\\"

SCALAR_ALIASES: dict[str, str] = {
    "string": KIND_STRING,
    "str": KIND_STRING,
    "integer": KIND_INTEGER,
    "int": KIND_INTEGER,
    "double": KIND_DOUBLE,
    "float": KIND_DOUBLE,
    "boolean": KIND_BOOLEAN,
    "bool": KIND_BOOLEAN,
    "array": KIND_ARRAY,
    "list": KIND_ARRAY,
    "object": KIND_OBJECT,
    "dict": KIND_OBJECT,
}
MIXED_NAMES: frozenset[str] = frozenset({"mixed", "Any", "typing.Any"})
NULL_NAMES: frozenset[str] = frozenset({"null", "none", "nonetype"})
SEQUENCE_CONTAINERS: frozenset[str] = frozenset(
    {
        "array",
        "list",
        "tuple",
        "set",
        "frozenset",
        "Sequence",
        "MutableSequence",
        "Collection",
        "Iterable",
    }
)
MAPPING_CONTAINERS: frozenset[str] = frozenset({"dict", "Mapping", "MutableMapping"})


@dataclass(frozen=True)
class ScalarType:
    text: str
    kind: str


@dataclass(frozen=True)
class MixedType:
    text: str


@dataclass(frozen=True)
class NominalType:
    text: str
    name: str


@dataclass(frozen=True)
class ArrayType:
    text: str
    element: str
    depth: int

    def element_text(self) -> str:
        return self.element + ARRAY_SUFFIX * (self.depth - 1)


@dataclass(frozen=True)
class ContainerType:
    text: str
    container: str
    element: str

    @property
    def builtin(self) -> bool:
        return self.container in SEQUENCE_CONTAINERS or self.container in MAPPING_CONTAINERS


TypeCandidate: TypeAlias = ScalarType | MixedType | NominalType | ArrayType | ContainerType


@dataclass(frozen=True)
class TypeExpression:
    """Parsed form of a declared type such as ``string|int|Foo[]|null``."""

    candidates: tuple[TypeCandidate, ...]
    nullable: bool = False
    source: str | None = None

    @property
    def is_union(self) -> bool:
        return len(self.candidates) > 1

    def render(self) -> str:
        return UNION_DELIMITER.join(candidate.text for candidate in self.candidates)

    def with_candidates(self, candidates: tuple[TypeCandidate, ...]) -> TypeExpression:
        return TypeExpression(candidates=candidates, nullable=self.nullable, source=self.source)


MIXED_EXPRESSION = TypeExpression(candidates=(MixedType("mixed"),), nullable=True, source=None)


def split_top_level(value: str, sep: str) -> list[str]:
    parts: list[str] = []
    buf: list[str] = []
    depth = 0
    for ch in value:
        if ch in "[({":
            depth += 1
        elif ch in "])}":
            depth = max(depth - 1, 0)
        if ch == sep and depth == 0:
            part = "".join(buf).strip()
            if part:
                parts.append(part)
            buf = []
            continue
        buf.append(ch)
    tail = "".join(buf).strip()
    if tail:
        parts.append(tail)
    return parts


def is_null_token(token: str) -> bool:
    return token.strip().lower() in NULL_NAMES


def _empty_type(raw: str | None) -> MappingError:
    return MappingError(
        ErrorKind.EMPTY_TYPE,
        f'Empty type in declaration "{raw}"',
        declared_type=raw,
    )


def parse_candidate(text: str) -> TypeCandidate:
    token = text.strip()
    base = token
    depth = 0
    while base.endswith(ARRAY_SUFFIX):
        base = base[: -len(ARRAY_SUFFIX)].rstrip()
        depth += 1
    if not base:
        raise _empty_type(text)
    if depth:
        return ArrayType(text=token, element=base, depth=depth)
    if base.endswith("]") and "[" in base:
        container, inner = base.split("[", 1)
        params = split_top_level(inner[:-1], ",")
        if not container.strip() or not params:
            raise _empty_type(text)
        return ContainerType(text=token, container=container.strip(), element=params[-1])
    kind = SCALAR_ALIASES.get(base)
    if kind is not None:
        return ScalarType(text=token, kind=kind)
    if base in MIXED_NAMES:
        return MixedType(text=token)
    return NominalType(text=token, name=base)


def parse_type_expression(raw: str | None) -> TypeExpression:
    """Parse a declared type into ordered candidates plus a nullable flag.

    ``None`` (no declaration) parses to a nullable ``mixed``. A declaration
    that is empty once ``null`` tokens are removed raises ``EMPTY_TYPE``.
    Candidate order is the order of appearance.
    """
    if raw is None:
        return MIXED_EXPRESSION
    nullable = False
    candidates: list[TypeCandidate] = []
    for token in split_top_level(raw, UNION_DELIMITER):
        if is_null_token(token):
            nullable = True
            continue
        candidates.append(parse_candidate(token))
    if not candidates:
        raise _empty_type(raw)
    return TypeExpression(candidates=tuple(candidates), nullable=nullable, source=raw)


def kind_closure(candidate: TypeCandidate) -> frozenset[str]:
    """Runtime JSON kinds a candidate admits under strict type checking."""
    match candidate:
        case ScalarType(kind=kind):
            return frozenset({kind})
        case MixedType():
            return frozenset(SCALAR_KINDS)
        case ArrayType():
            return frozenset({KIND_ARRAY})
        case ContainerType(container=container) if container in SEQUENCE_CONTAINERS:
            return frozenset({KIND_ARRAY})
        case ContainerType(container=container) if container in MAPPING_CONTAINERS:
            return frozenset({KIND_OBJECT})
        case ContainerType():
            return frozenset({KIND_ARRAY, KIND_OBJECT})
        case NominalType():
            return frozenset({KIND_OBJECT})
    return frozenset()


def _qualify_name(name: str, namespace: str) -> str:
    if name.startswith(ABSOLUTE_MARKER):
        return name[len(ABSOLUTE_MARKER) :]
    if "." in name or not namespace:
        return name
    return f"{namespace}.{name}"


def qualify(text: str, namespace: str) -> str:
    """Return ``text`` with nominal names made absolute against ``namespace``.

    Dotted names are already absolute; a leading backslash also marks an
    absolute name and is dropped. Scalars and ``mixed`` are left untouched.
    """
    parts = split_top_level(text, UNION_DELIMITER)
    if len(parts) > 1:
        return UNION_DELIMITER.join(
            part if is_null_token(part) else qualify(part, namespace) for part in parts
        )
    candidate = parse_candidate(text)
    match candidate:
        case NominalType(name=name):
            return _qualify_name(name, namespace)
        case ArrayType(element=element, depth=depth):
            return qualify(element, namespace) + ARRAY_SUFFIX * depth
        case ContainerType(container=container, element=element):
            head = container if candidate.builtin else _qualify_name(container, namespace)
            return f"{head}[{qualify(element, namespace)}]"
    return candidate.text
