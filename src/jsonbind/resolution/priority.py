"""Ordering of union candidates.

A union is tried candidate by candidate, so the order decides which binding
wins when several would succeed. Array-shaped candidates go first because the
shape of a JSON value tells them apart; basic scalars go last because a
lenient scalar conversion succeeds on nearly anything. Class names sit in
between, just ahead of arrays of basic scalars.
"""

from __future__ import annotations

import re

from jsonbind.order_contract import OrderPolicy, get_order_policy, ordered_or_sorted
from jsonbind.resolution.type_expr import TypeCandidate, TypeExpression, kind_closure

TYPE_PRIORITY_RULES: tuple[tuple[re.Pattern[str], int], ...] = (
    # by complexity
    (re.compile(r"^((.*\[\])|(.+\[.+\])|array|list)$"), -100),
    (re.compile(r"^(bool(ean)?|int(eger)?|double|float|str(ing)?|mixed|Any)(\[\])?$"), 100),
    # by basic type
    (re.compile(r"^(object|dict)(\[\])?$"), 1),
    (re.compile(r"^(str(ing)?)(\[\])?$"), 2),
    (re.compile(r"^(double|float)(\[\])?$"), 3),
    (re.compile(r"^(int(eger)?)(\[\])?$"), 4),
    (re.compile(r"^(bool(ean)?)(\[\])?$"), 5),
    (re.compile(r"^(mixed|Any)(\[\])?$"), 6),
)

BASIC_SCALAR_COST = 100

_REPORTING_POLICIES = frozenset({OrderPolicy.CHECK, OrderPolicy.ENFORCE})

_COST_CACHE: dict[str, int] = {}


def candidate_cost(text: str) -> int:
    cached = _COST_CACHE.get(text)
    if cached is not None:
        return cached
    total = 0
    for pattern, weight in TYPE_PRIORITY_RULES:
        if pattern.match(text):
            total += weight
    _COST_CACHE[text] = total
    return total


def priority_key(candidate: TypeCandidate) -> tuple[int, str, str]:
    return (candidate_cost(candidate.text), candidate.text.lower(), candidate.text)


def prioritize(
    expression: TypeExpression,
    *,
    preserve_declared_order: bool = False,
) -> TypeExpression:
    """Order the candidates of a union by :func:`priority_key`.

    Unions are always sorted unless ``preserve_declared_order`` is set. An
    ambient ``check`` or ``enforce`` policy records unions declared out of
    priority order in the order telemetry; neither rejects them.
    """
    if preserve_declared_order or not expression.is_union:
        return expression
    ambient = get_order_policy()
    ordered = ordered_or_sorted(
        expression.candidates,
        source="priority.prioritize.candidates",
        key=priority_key,
        policy=OrderPolicy.CHECK if ambient in _REPORTING_POLICIES else OrderPolicy.SORT,
    )
    return expression.with_candidates(tuple(ordered))


def prefer_matching_kind(
    candidates: tuple[TypeCandidate, ...],
    value_kind: str,
) -> tuple[TypeCandidate, ...]:
    """Move basic scalars admitting ``value_kind`` ahead of the other scalars.

    Only the basic-scalar group is reordered; class names and arrays keep
    their place in front of it.
    """
    leading = [c for c in candidates if candidate_cost(c.text) < BASIC_SCALAR_COST]
    scalars = [c for c in candidates if candidate_cost(c.text) >= BASIC_SCALAR_COST]
    matching = [c for c in scalars if value_kind in kind_closure(c)]
    if not matching or len(matching) == len(scalars):
        return candidates
    rest = [c for c in scalars if value_kind not in kind_closure(c)]
    return tuple(leading + matching + rest)
