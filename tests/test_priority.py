from __future__ import annotations

import pytest

from jsonbind.order_contract import OrderPolicy, order_policy, order_telemetry
from jsonbind.resolution.priority import (
    candidate_cost,
    prefer_matching_kind,
    prioritize,
)
from jsonbind.resolution.type_expr import parse_type_expression


@pytest.mark.parametrize(
    ("text", "cost"),
    [
        ("Foo[]", -100),
        ("array", -100),
        ("dict[string, int]", -100),
        ("Foo", 0),
        ("object", 1),
        ("string[]", 2),
        ("int[]", 4),
        ("string", 102),
        ("float", 103),
        ("int", 104),
        ("bool", 105),
        ("mixed", 106),
    ],
)
def test_candidate_cost(text: str, cost: int) -> None:
    assert candidate_cost(text) == cost


def _texts(expression) -> list[str]:
    return [c.text for c in expression.candidates]


def test_prioritize_orders_by_cost() -> None:
    parsed = parse_type_expression("string|int|string[]|int[]|Foo|null")
    ordered = prioritize(parsed)
    assert _texts(ordered) == ["Foo", "string[]", "int[]", "string", "int"]
    assert ordered.nullable is True


def test_prioritize_is_idempotent_and_deterministic() -> None:
    parsed = parse_type_expression("b.Foo|int|a.Foo|array")
    once = prioritize(parsed)
    assert _texts(once) == ["array", "a.Foo", "b.Foo", "int"]
    assert prioritize(once) == once
    reversed_input = parse_type_expression("array|a.Foo|int|b.Foo")
    assert _texts(prioritize(reversed_input)) == _texts(once)


def test_prioritize_preserves_declared_order_on_request() -> None:
    parsed = parse_type_expression("string|int|float")
    assert _texts(prioritize(parsed, preserve_declared_order=True)) == ["string", "int", "float"]


@pytest.mark.parametrize("preserve", [True, False])
def test_single_candidate_is_unchanged(preserve: bool) -> None:
    parsed = parse_type_expression("Foo|null")
    assert prioritize(parsed, preserve_declared_order=preserve) == parsed


def test_prefer_matching_kind_is_a_stable_partition() -> None:
    ordered = prioritize(parse_type_expression("string|int|float")).candidates
    assert [c.text for c in prefer_matching_kind(ordered, "integer")] == ["int", "string", "float"]
    assert prefer_matching_kind(ordered, "boolean") == ordered


def test_prefer_matching_kind_keeps_class_names_first() -> None:
    ordered = prioritize(parse_type_expression("string|int|Foo")).candidates
    assert [c.text for c in prefer_matching_kind(ordered, "integer")] == ["Foo", "int", "string"]
    assert [c.text for c in prefer_matching_kind(ordered, "string")] == ["Foo", "string", "int"]


def test_check_policy_reports_unions_declared_out_of_order() -> None:
    with order_policy(OrderPolicy.CHECK), order_telemetry() as events:
        ordered = prioritize(parse_type_expression("int|string"))
        prioritize(parse_type_expression("string|int"))
    assert _texts(ordered) == ["string", "int"]
    assert [event["source"] for event in events] == ["priority.prioritize.candidates"]


def test_enforce_policy_reports_but_still_sorts_unions() -> None:
    with order_policy(OrderPolicy.ENFORCE), order_telemetry() as events:
        ordered = prioritize(parse_type_expression("int|string"))
    assert _texts(ordered) == ["string", "int"]
    assert [event["action"] for event in events] == ["fallback_sort"]


def test_sort_policy_records_nothing() -> None:
    with order_policy(OrderPolicy.SORT), order_telemetry() as events:
        prioritize(parse_type_expression("int|string"))
    assert events == []


def test_ambient_trust_policy_still_sorts() -> None:
    with order_policy(OrderPolicy.TRUST):
        assert _texts(prioritize(parse_type_expression("int|string"))) == ["string", "int"]
