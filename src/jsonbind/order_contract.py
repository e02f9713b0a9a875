"""Deterministic ordering with a switchable trust level for caller order.

Union candidates and required-property lists are ordered through here so a
single knob decides whether a declared order is re-sorted, checked, trusted
or enforced. The knob is resolved from an explicit argument, then the
surrounding :func:`order_policy` scope, then ``JSONBIND_ORDER_POLICY``, and
defaults to ``sort``.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, TypeVar

from jsonbind.invariants import never

T = TypeVar("T")

ORDER_POLICY_ENV = "JSONBIND_ORDER_POLICY"

_POLICY: ContextVar["OrderPolicy | None"] = ContextVar("jsonbind_order_policy", default=None)
_TELEMETRY: ContextVar[list[dict[str, object]] | None] = ContextVar(
    "jsonbind_order_telemetry", default=None
)


class OrderPolicy(str, Enum):
    SORT = "sort"
    CHECK = "check"
    TRUST = "trust"
    ENFORCE = "enforce"


@dataclass(frozen=True)
class OrderViolation:
    source: str
    previous_index: int
    current_index: int
    previous_key: str
    current_key: str
    violation_kind: str
    policy: str

    def payload(self) -> dict[str, object]:
        return asdict(self)


def ordered_or_sorted(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
    policy: OrderPolicy | str | None = None,
) -> list[T]:
    """Return ``values`` in key order, or in caller order where trusted.

    ``check`` keeps caller order when it is already sorted and otherwise
    sorts and records the violation in the active :func:`order_telemetry`.
    ``enforce`` raises ``NeverThrown`` instead of sorting.
    """
    items = list(values)
    resolved = _resolve(policy)
    match resolved:
        case OrderPolicy.SORT:
            return sorted(items, key=key)
        case OrderPolicy.TRUST:
            return items
    violation = _first_violation(items, key=key, source=source, policy=resolved)
    if violation is None:
        return items
    if resolved is OrderPolicy.ENFORCE:
        never(
            "declared order is not comparable"
            if violation.violation_kind == "incomparable"
            else "declared order violated",
            **violation.payload(),
        )
    sink = _TELEMETRY.get()
    if sink is not None:
        sink.append({**violation.payload(), "action": "fallback_sort"})
    return sorted(items, key=key)


def sort_once(
    values: Iterable[T],
    *,
    source: str,
    key: Callable[[T], Any] | None = None,
) -> list[T]:
    return ordered_or_sorted(values, source=source, key=key, policy=OrderPolicy.SORT)


def get_order_policy() -> OrderPolicy:
    return _resolve(None)


def set_order_policy(policy: OrderPolicy | str) -> Token[OrderPolicy | None]:
    return _POLICY.set(_coerce(policy))


def reset_order_policy(token: Token[OrderPolicy | None]) -> None:
    _POLICY.reset(token)


@contextmanager
def order_policy(policy: OrderPolicy | str) -> Iterator[None]:
    token = set_order_policy(policy)
    try:
        yield
    finally:
        reset_order_policy(token)


@contextmanager
def order_telemetry() -> Iterator[list[dict[str, object]]]:
    """Collect ``check`` fallbacks recorded inside the block."""
    events: list[dict[str, object]] = []
    token = _TELEMETRY.set(events)
    try:
        yield events
    finally:
        _TELEMETRY.reset(token)


def _resolve(policy: OrderPolicy | str | None) -> OrderPolicy:
    if policy is not None:
        return _coerce(policy)
    scoped = _POLICY.get()
    if scoped is not None:
        return scoped
    raw = os.environ.get(ORDER_POLICY_ENV, "").strip()
    return _coerce(raw) if raw else OrderPolicy.SORT


def _coerce(policy: OrderPolicy | str) -> OrderPolicy:
    if isinstance(policy, OrderPolicy):
        return policy
    try:
        return OrderPolicy(policy.strip().lower())
    except ValueError:
        never(
            "unknown order policy",
            policy=policy,
            allowed=[member.value for member in OrderPolicy],
        )


def _first_violation(
    items: list[T],
    *,
    key: Callable[[T], Any] | None,
    source: str,
    policy: OrderPolicy,
) -> OrderViolation | None:
    markers = [key(item) if key is not None else item for item in items]
    for index in range(1, len(markers)):
        previous, current = markers[index - 1], markers[index]
        try:
            regressed = bool(previous > current)
        except TypeError:
            kind = "incomparable"
        else:
            if not regressed:
                continue
            kind = "out_of_order"
        return OrderViolation(
            source=source,
            previous_index=index - 1,
            current_index=index,
            previous_key=repr(previous),
            current_key=repr(current),
            violation_kind=kind,
            policy=policy.value,
        )
    return None
