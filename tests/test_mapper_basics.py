from __future__ import annotations

import logging

import pytest

from jsonbind.exceptions import ErrorKind, MappingError
from tests.models import (
    Address,
    Celsius,
    IntList,
    Inventory,
    MixedBag,
    Person,
    Point,
    PrivateFields,
    ReadOnly,
    Relative,
    Segment,
    SimpleObject,
    Slotted,
    Thermometer,
    WithSetters,
)


def test_map_person_graph(mapper) -> None:
    person = mapper.map(
        {
            "name": "Ada",
            "age": "36",
            "height": 1,
            "active": 1,
            "address": {"street": "Main", "city": "Leeds", "zip-code": 123},
            "addresses": [{"street": "a"}, {"street": "b"}],
            "tags": ["x", 2],
            "scores": {"math": "5"},
            "matrix": [[1, "2"], [3]],
            "extra": {"free": [1]},
            "nickname": None,
        },
        Person(),
    )
    assert person.name == "Ada"
    assert person.age == 36
    assert person.height == 1.0 and isinstance(person.height, float)
    assert person.active is True
    assert isinstance(person.address, Address)
    assert (person.address.street, person.address.city) == ("Main", "Leeds")
    assert person.address.zip_code == "123"
    assert [a.street for a in person.addresses] == ["a", "b"]
    assert person.tags == ["x", "2"]
    assert person.scores == {"math": 5}
    assert person.matrix == [[1, 2], [3]]
    assert person.extra == {"free": [1]}
    assert person.nickname is None


def test_map_returns_same_instance(mapper) -> None:
    target = SimpleObject()
    assert mapper.map({"name": "x"}, target) is target


def test_array_property_keeps_object_keys(mapper) -> None:
    person = mapper.map({"addresses": {"home": {"city": "York"}}}, Person())
    assert list(person.addresses) == ["home"]
    assert person.addresses["home"].city == "York"


def test_undefined_property_is_logged(mapper, caplog) -> None:
    caplog.set_level(logging.INFO, logger="jsonbind")
    person = mapper.map({"unknown": 1, "name": "Ada"}, Person())
    assert person.name == "Ada"
    assert not hasattr(person, "unknown")
    records = [r for r in caplog.records if r.levelno == logging.INFO]
    assert [r.getMessage() for r in records] == [
        "Property unknown does not exist in tests.models.Person"
    ]
    assert records[0].property == "unknown"
    assert records[0].class_name == "tests.models.Person"


def test_undefined_property_callback(make_mapper) -> None:
    seen: list[tuple[object, str, object]] = []
    mapper = make_mapper(undefined_property_callback=lambda t, k, v: seen.append((t, k, v)))
    target = SimpleObject()
    mapper.map({"other": [1], "count": "3"}, target)
    assert seen == [(target, "other", [1])]
    assert target.count == 3


def test_undefined_property_fails_when_configured(make_mapper) -> None:
    mapper = make_mapper(fail_on_undefined_property=True)
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"unknown": 1}, SimpleObject())
    error = excinfo.value
    assert error.kind is ErrorKind.UNDEFINED_PROPERTY
    assert error.property_name == "unknown"
    assert error.class_name == "tests.models.SimpleObject"


def test_setters_are_preferred_and_hyphen_keys_are_camelized(mapper) -> None:
    target = mapper.map({"title": "hello", "display-name": "Ada"}, WithSetters())
    assert target.title == "HELLO"
    assert target.display_name == "Ada"
    assert target.calls == [("title", "hello"), ("display_name", "Ada")]


def test_setter_docstring_type_is_used(mapper) -> None:
    target = mapper.map({"displayName": 42}, WithSetters())
    assert target.display_name == "42"


def test_non_public_accessors_are_skipped_by_default(mapper, caplog) -> None:
    caplog.set_level(logging.INFO, logger="jsonbind")
    target = mapper.map({"secret": "s", "token": "t", "visible": "v"}, PrivateFields())
    assert target.visible == "v"
    assert target._token == ""
    assert "Property token has no public setter method in tests.models.PrivateFields" in [
        r.getMessage() for r in caplog.records
    ]

    setters = mapper.map({"secret": "s"}, WithSetters())
    assert not hasattr(setters, "secret")


def test_non_public_accessors_when_allowed(make_mapper) -> None:
    mapper = make_mapper(allow_non_public_accessors=True)
    assert mapper.map({"token": "t"}, PrivateFields())._token == "t"
    assert mapper.map({"secret": "s"}, WithSetters()).secret == "s"


def test_read_only_property(mapper, make_mapper) -> None:
    target = mapper.map({"computed": 1, "writable": 5}, ReadOnly())
    assert target.computed == 42
    assert target.writable == "5"
    with pytest.raises(MappingError) as excinfo:
        make_mapper(fail_on_undefined_property=True).map({"computed": 1}, ReadOnly())
    assert excinfo.value.kind is ErrorKind.NO_PUBLIC_ACCESSOR


def test_null_for_non_nullable_property(mapper, make_mapper) -> None:
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"name": None}, Person())
    assert excinfo.value.kind is ErrorKind.NULL_NOT_ALLOWED
    assert excinfo.value.property_name == "name"

    person = make_mapper(fail_on_null_for_non_nullable=False).map({"name": None}, Person())
    assert person.name is None


def test_null_for_nullable_property(mapper) -> None:
    assert mapper.map({"address": None}, Person()).address is None


def test_null_for_untyped_property_needs_lenient_nulls(mapper, make_mapper) -> None:
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"anything": None}, MixedBag())
    assert excinfo.value.kind is ErrorKind.NULL_NOT_ALLOWED

    lenient = make_mapper(fail_on_null_for_non_nullable=False)
    assert lenient.map({"anything": None}, MixedBag()).anything is None


def test_null_is_rejected_even_for_any(mapper) -> None:
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"hinted": None}, MixedBag())
    assert excinfo.value.kind is ErrorKind.NULL_NOT_ALLOWED


def test_untyped_properties_pass_values_through(mapper) -> None:
    bag = mapper.map({"anything": {"a": [1, 2]}, "hinted": 3.5}, MixedBag())
    assert bag.anything == {"a": [1, 2]}
    assert bag.hinted == 3.5


@pytest.mark.parametrize("target", [Person, [1], "text", 3, None])
def test_map_rejects_non_object_targets(mapper, target) -> None:
    with pytest.raises(TypeError):
        mapper.map({}, target)


@pytest.mark.parametrize("payload", [[1, 2], "text", 5, None, True])
def test_map_requires_object_input(mapper, payload) -> None:
    with pytest.raises(MappingError) as excinfo:
        mapper.map(payload, SimpleObject())
    assert excinfo.value.kind is ErrorKind.OBJECT_EXPECTED


def test_map_accepts_list_input_when_object_input_not_required(make_mapper) -> None:
    mapper = make_mapper(require_object_input_for_map=False)
    target = mapper.map(["ignored"], SimpleObject())
    assert target.name is None
    with pytest.raises(MappingError):
        mapper.map("flat", SimpleObject())


def test_map_accepts_plain_object_input(mapper) -> None:
    source = SimpleObject()
    source.name = "from-object"
    source.count = 4
    target = mapper.map(source, SimpleObject())
    assert (target.name, target.count) == ("from-object", 4)


def test_constructor_arguments_are_not_required_for_nested_objects(mapper) -> None:
    segment = mapper.map({"start": {"x": 1, "y": "2.5"}}, Segment())
    assert isinstance(segment.start, Point)
    assert (segment.start.x, segment.start.y, segment.start.label) == (1.0, 2.5, "")
    assert segment.end is None


def test_flat_values_construct_classes(mapper) -> None:
    thermometer = mapper.map({"temperature": "21.5", "readings": [20, "19"]}, Thermometer())
    assert isinstance(thermometer.temperature, Celsius)
    assert thermometer.temperature.degrees == 21.5
    assert [r.degrees for r in thermometer.readings] == [20.0, 19.0]


def test_flat_value_construction_failure(mapper) -> None:
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"start": 5}, Segment())
    assert excinfo.value.kind is ErrorKind.INSTANTIATION_FAILED


def test_flat_value_rejected_for_object_type(make_mapper) -> None:
    mapper = make_mapper(fail_on_non_object_for_object_type=True)
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"temperature": 20}, Thermometer())
    assert excinfo.value.kind is ErrorKind.OBJECT_EXPECTED
    assert excinfo.value.property_name == "temperature"


def test_existing_instance_is_kept(mapper) -> None:
    reading = Celsius(3)
    thermometer = mapper.map({"temperature": reading}, Thermometer())
    assert thermometer.temperature is reading


def test_slotted_class(mapper) -> None:
    slotted = mapper.map({"first": "3", "second": 4}, Slotted())
    assert (slotted.first, slotted.second) == (3, "4")


def test_array_like_class(mapper) -> None:
    inventory = mapper.map({"items": [1, "two"]}, Inventory())
    assert isinstance(inventory.items, IntList)
    assert list(inventory.items) == [1, "two"]


def test_docstring_class_name_is_resolved_in_declaring_module(mapper) -> None:
    relative = mapper.map({"friend": {"name": "Bo", "count": "2"}}, Relative())
    assert isinstance(relative.friend, SimpleObject)
    assert (relative.friend.name, relative.friend.count) == ("Bo", 2)


def test_array_expected_for_array_property(mapper) -> None:
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"tags": "solo"}, Person())
    assert excinfo.value.kind is ErrorKind.ARRAY_EXPECTED
    assert excinfo.value.property_name == "tags"


def test_string_property_rejects_composite_value(mapper) -> None:
    with pytest.raises(MappingError) as excinfo:
        mapper.map({"name": {"first": "Ada"}}, Person())
    assert excinfo.value.kind is ErrorKind.TYPE_MISMATCH
