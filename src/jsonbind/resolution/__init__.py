from jsonbind.resolution.priority import candidate_cost, prioritize
from jsonbind.resolution.type_expr import (
    ArrayType,
    ContainerType,
    MixedType,
    NominalType,
    ScalarType,
    TypeCandidate,
    TypeExpression,
    parse_type_expression,
)

__all__ = [
    "ArrayType",
    "ContainerType",
    "MixedType",
    "NominalType",
    "ScalarType",
    "TypeCandidate",
    "TypeExpression",
    "candidate_cost",
    "parse_type_expression",
    "prioritize",
]
