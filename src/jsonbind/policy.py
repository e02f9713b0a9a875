from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import TypeAlias

from jsonbind.config import merge_payload
from jsonbind.resolution.overrides import TypeOverride, normalize_override_table
from jsonbind.schema import MappingPolicyDTO

DEFAULT_MAX_DEPTH = 64

UndefinedPropertyCallback: TypeAlias = Callable[[object, str, object], None]


@dataclass(frozen=True)
class MappingPolicy:
    """Switches controlling how strictly JSON is bound.

    The defaults are lenient: unknown keys and missing required properties
    are tolerated and scalars are converted between kinds. ``null`` is still
    rejected for non-nullable properties.
    """

    fail_on_undefined_property: bool = False
    fail_on_missing_required: bool = False
    require_object_input_for_map: bool = True
    fail_on_non_object_for_object_type: bool = False
    strict_value_type_checking: bool = False
    preserve_declared_union_order: bool = False
    fail_on_null_for_non_nullable: bool = True
    allow_non_public_accessors: bool = False
    remove_unset_attributes: bool = False
    class_override_table: Mapping[str, TypeOverride] = field(default_factory=dict)
    undefined_property_callback: UndefinedPropertyCallback | None = None
    post_mapping_hook: str | None = None
    max_depth: int = DEFAULT_MAX_DEPTH

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "class_override_table",
            normalize_override_table(self.class_override_table),
        )
        if int(self.max_depth) <= 0:
            raise ValueError(f"max_depth must be positive, got {self.max_depth!r}")
        object.__setattr__(self, "max_depth", int(self.max_depth))

    def with_changes(self, **changes: object) -> MappingPolicy:
        return replace(self, **changes)


def policy_from_config(payload: Mapping[str, object], **overrides: object) -> MappingPolicy:
    """Build a policy from a validated config section plus explicit overrides.

    ``overrides`` whose value is ``None`` are ignored so CLI flags that were
    not given keep the configured value.
    """
    merged = merge_payload(dict(overrides), dict(payload))
    dto = MappingPolicyDTO.model_validate(merged)
    data = dto.model_dump()
    data.pop("type_precedence", None)
    class_map = data.pop("class_map")
    return MappingPolicy(class_override_table=class_map, **data)
