from __future__ import annotations

import pytest
from pydantic import ValidationError

from jsonbind.exceptions import ErrorKind, MappingError
from jsonbind.mapper import JsonMapper
from jsonbind.policy import DEFAULT_MAX_DEPTH, MappingPolicy, policy_from_config
from jsonbind.resolution.overrides import DirectOverride
from tests.models import (
    Circle,
    Drawing,
    Hooked,
    Node,
    PrivateFields,
    ReadOnly,
    RequiredFields,
    Shape,
    Square,
    WithDefaults,
)


def _chain(depth: int) -> dict[str, object]:
    payload: dict[str, object] = {"name": f"n{depth}"}
    for level in range(depth - 1, 0, -1):
        payload = {"name": f"n{level}", "parent": payload}
    return payload


def test_required_properties_are_enforced(make_mapper) -> None:
    mapper = make_mapper(fail_on_missing_required=True)
    target = mapper.map({"id": "1", "code": "A"}, RequiredFields())
    assert (target.id, target.code) == (1, "A")
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"id": 1, "note": "n"}, RequiredFields())
    error = excinfo.value
    assert error.kind is ErrorKind.REQUIRED_PROPERTY_MISSING
    assert error.property_name == "code"
    assert error.class_name == "tests.models.RequiredFields"


def test_required_properties_ignored_by_default(mapper) -> None:
    assert mapper.map({}, RequiredFields()).code == ""


def test_required_key_matched_loosely(make_mapper) -> None:
    mapper = make_mapper(fail_on_missing_required=True)
    target = mapper.map({"ID": 2, "Code": "B"}, RequiredFields())
    assert (target.id, target.code) == (2, "B")


def test_remove_unset_attributes(make_mapper) -> None:
    target = make_mapper(remove_unset_attributes=True).map({"kept": "x"}, WithDefaults())
    assert target.kept == "x"
    assert not hasattr(target, "dropped")


def test_remove_unset_keeps_private_storage(make_mapper) -> None:
    remover = make_mapper(remove_unset_attributes=True)
    assert remover.map({"writable": "x"}, ReadOnly()).writable == "x"

    target = PrivateFields()
    target._token = "secret"
    target.visible = "old"
    remover.map({}, target)
    assert target._token == "secret"
    assert "visible" not in vars(target)


def test_unset_attributes_kept_by_default(mapper) -> None:
    target = mapper.map({"kept": "x"}, WithDefaults())
    assert target.dropped == "default"


def test_post_mapping_hook(make_mapper) -> None:
    assert make_mapper().map({"value": 1}, Hooked()).hook_calls == 0
    hooked = make_mapper(post_mapping_hook="post_mapping").map({"value": "2"}, Hooked())
    assert (hooked.value, hooked.hook_calls) == (2, 1)
    missing = make_mapper(post_mapping_hook="not_there").map({"value": 3}, Hooked())
    assert missing.hook_calls == 0


def test_direct_class_override(make_mapper) -> None:
    mapper = make_mapper(class_override_table={Shape: Circle})
    drawing = mapper.map({"shape": {"kind": "c", "radius": "2"}}, Drawing())
    assert isinstance(drawing.shape, Circle)
    assert (drawing.shape.kind, drawing.shape.radius) == ("c", 2.0)


def test_override_keys_accept_backslash_names(make_mapper) -> None:
    mapper = make_mapper(class_override_table={"\\tests.models.Shape": "\\tests.models.Square"})
    assert mapper.policy.class_override_table["tests.models.Shape"] == DirectOverride(
        "tests.models.Square"
    )
    assert isinstance(mapper.map({"shape": {"side": 1}}, Drawing()).shape, Square)


def test_computed_class_override_for_elements(make_mapper) -> None:
    def pick(type_name: str, value: object) -> type:
        assert type_name == "tests.models.Shape"
        return Circle if "radius" in value else Square

    mapper = make_mapper(class_override_table={Shape: pick})
    drawing = mapper.map({"shapes": [{"radius": 1}, {"side": 2}]}, Drawing())
    assert [type(shape) for shape in drawing.shapes] == [Circle, Square]


def test_shape_without_override_drops_unknown_keys(mapper) -> None:
    drawing = mapper.map({"shape": {"kind": "c", "radius": 2}}, Drawing())
    assert type(drawing.shape) is Shape
    assert not hasattr(drawing.shape, "radius")


def test_depth_limit(make_mapper) -> None:
    mapper = make_mapper(max_depth=3)
    node = mapper.map(_chain(3), Node())
    assert node.parent.parent.name == "n3"
    with pytest.raises(MappingError) as excinfo:
        mapper.map(_chain(4), Node())
    assert excinfo.value.kind is ErrorKind.DEPTH_EXCEEDED


def test_depth_limit_is_not_hidden_by_arrays(make_mapper) -> None:
    mapper = make_mapper(max_depth=4)
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"children": [{"children": [{"name": "deep"}]}]}, Node())
    assert excinfo.value.kind is ErrorKind.DEPTH_EXCEEDED


def test_depth_counter_resets_between_calls(make_mapper) -> None:
    mapper = make_mapper(max_depth=2)
    for _ in range(3):
        assert mapper.map(_chain(2), Node()).parent.name == "n2"


def test_default_depth_limit_stops_deep_documents(mapper) -> None:
    assert mapper.policy.max_depth == DEFAULT_MAX_DEPTH
    with pytest.raises(MappingError) as excinfo:
        mapper.map(_chain(DEFAULT_MAX_DEPTH + 1), Node())
    assert excinfo.value.kind is ErrorKind.DEPTH_EXCEEDED


def test_with_policy_returns_new_mapper(mapper) -> None:
    strict = mapper.with_policy(strict_value_type_checking=True)
    assert strict is not mapper
    assert strict.policy.strict_value_type_checking is True
    assert mapper.policy.strict_value_type_checking is False
    assert strict.cache is mapper.cache
    assert strict.factory is mapper.factory


def test_policy_rejects_non_positive_depth() -> None:
    with pytest.raises(ValueError):
        MappingPolicy(max_depth=0)


def test_policy_from_config_merges_overrides() -> None:
    policy = policy_from_config(
        {
            "strict_value_type_checking": True,
            "fail_on_undefined_property": False,
            "class_map": {"tests.models.Shape": "tests.models.Circle"},
            "type_precedence": ["annotation"],
        },
        strict_value_type_checking=None,
        fail_on_undefined_property=True,
    )
    assert policy.strict_value_type_checking is True
    assert policy.fail_on_undefined_property is True
    assert policy.class_override_table == {
        "tests.models.Shape": DirectOverride("tests.models.Circle")
    }
    assert policy.max_depth == DEFAULT_MAX_DEPTH


@pytest.mark.parametrize(
    "payload",
    [{"max_depth": 0}, {"unknown_switch": True}, {"class_map": ["not", "a", "table"]}],
)
def test_policy_from_config_validates(payload) -> None:
    with pytest.raises(ValidationError):
        policy_from_config(payload)


def test_policy_drives_mapper_built_from_config() -> None:
    policy = policy_from_config({"class_map": {"tests.models.Shape": "tests.models.Square"}})
    drawing = JsonMapper(policy).map({"shape": {"side": "3"}}, Drawing())
    assert isinstance(drawing.shape, Square)
    assert drawing.shape.side == 3.0
