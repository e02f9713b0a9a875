"""Error taxonomy for jsonbind mapping."""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    UNDEFINED_PROPERTY = "undefined_property"
    NO_PUBLIC_ACCESSOR = "no_public_accessor"
    NULL_NOT_ALLOWED = "null_not_allowed"
    TYPE_MISMATCH = "type_mismatch"
    ARRAY_EXPECTED = "array_expected"
    OBJECT_EXPECTED = "object_expected"
    ARRAY_ELEMENT_TYPE_MISMATCH = "array_element_type_mismatch"
    EMPTY_TYPE = "empty_type"
    REQUIRED_PROPERTY_MISSING = "required_property_missing"
    CONVERSION_FAILED_ALL_CANDIDATES = "conversion_failed_all_candidates"
    UNKNOWN_TYPE = "unknown_type"
    INSTANTIATION_FAILED = "instantiation_failed"
    DEPTH_EXCEEDED = "depth_exceeded"


class MappingError(ValueError):
    """Raised when a JSON value cannot be bound onto its declared type.

    ``kind`` is the machine-readable category; the remaining attributes name
    where the failure happened. ``cause`` is the last underlying failure for
    errors that summarize several attempts (it is also chained as
    ``__cause__`` when raised with ``raise ... from``).
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        *,
        property_name: str | None = None,
        class_name: str | None = None,
        declared_type: str | None = None,
        cause: MappingError | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.property_name = property_name
        self.class_name = class_name
        self.declared_type = declared_type
        self.cause = cause

    def details(self) -> dict[str, object]:
        payload: dict[str, object] = {"kind": self.kind.value, "message": self.message}
        if self.property_name is not None:
            payload["property"] = self.property_name
        if self.class_name is not None:
            payload["class"] = self.class_name
        if self.declared_type is not None:
            payload["declared_type"] = self.declared_type
        if self.cause is not None:
            payload["cause"] = self.cause.details()
        return payload


class NeverRaise(RuntimeError):
    """Sentinel exception for code paths that must be unreachable.

    Reaching one means an internal contract was broken (an unknown candidate
    variant, a malformed policy value), not that the input JSON was bad.
    """

    def __init__(self, message: str, *, env: dict[str, object] | None = None):
        super().__init__(message)
        self.env = dict(env or {})


class NeverThrown(NeverRaise):
    """Alias for NeverRaise used by the explicit never() marker."""
