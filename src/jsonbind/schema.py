from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class MappingPolicyDTO(BaseModel):
    model_config = ConfigDict(extra="forbid")

    fail_on_undefined_property: bool = False
    fail_on_missing_required: bool = False
    require_object_input_for_map: bool = True
    fail_on_non_object_for_object_type: bool = False
    strict_value_type_checking: bool = False
    preserve_declared_union_order: bool = False
    fail_on_null_for_non_nullable: bool = True
    allow_non_public_accessors: bool = False
    remove_unset_attributes: bool = False
    class_map: Dict[str, str] = {}
    post_mapping_hook: Optional[str] = None
    max_depth: int = Field(default=64, gt=0)
    type_precedence: List[str] = ["docstring", "annotation"]


class CandidateDTO(BaseModel):
    text: str
    variant: str
    cost: int
    kinds: List[str]


class TypeExpressionResponse(BaseModel):
    source: Optional[str] = None
    nullable: bool
    candidates: List[CandidateDTO]


class PropertySchemaDTO(BaseModel):
    name: str
    exists: bool
    accessor: Optional[str] = None
    accessor_kind: Optional[str] = None
    public: Optional[bool] = None
    declared_type: Optional[str] = None
    nullable: bool
    required: bool


class InspectResponse(BaseModel):
    target: str
    properties: List[PropertySchemaDTO]
    required: List[str] = []

