"""Reference resolution for template property values.

A property that points at another resource comes in one of four shapes:

    "PostTable"                                   literal
    {"Ref": "PostTable"}                          direct name
    {"Fn::GetAtt": ["GetPostFn", "FunctionId"]}   attribute lookup
    {"Fn::If": [cond, {...}, {"Fn::Sub": "..."}]} interpolation

``parse_reference`` turns a raw value into one of the reference types
below and ``resolve_reference`` turns that into a concrete name. Nothing
here mutates the resource map.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Optional, Union

from .constants import FN_IF, FN_JOIN, FN_SUB, GET_ATT, REF
from .errors import DanglingReference, InvalidTemplate
from .template import ResourceMap, TemplateResource

_SEGMENT_SEPARATORS = re.compile(r"[:/]")
_INTERPOLATIONS = (FN_IF, FN_SUB, FN_JOIN)


@dataclass(frozen=True)
class LiteralReference:
    value: str


@dataclass(frozen=True)
class NameReference:
    name: str


@dataclass(frozen=True)
class AttributeReference:
    resource: str
    attribute: str


@dataclass(frozen=True)
class InterpolationReference:
    function: str
    payload: Any

    def to_raw(self) -> dict:
        return {self.function: self.payload}


Reference = Union[LiteralReference, NameReference, AttributeReference, InterpolationReference]


def parse_reference(value: Any) -> Optional[Reference]:
    """Classify a raw property value. ``None`` means the property is absent."""
    if value is None:
        return None
    if isinstance(value, str):
        return LiteralReference(value)
    if isinstance(value, dict) and len(value) == 1:
        fn, payload = next(iter(value.items()))
        if fn == REF and isinstance(payload, str):
            return NameReference(payload)
        if fn == GET_ATT:
            return _parse_get_att(payload)
        if fn in _INTERPOLATIONS:
            return InterpolationReference(fn, payload)
    raise InvalidTemplate("Unrecognised reference expression", details={"value": value})


def _parse_get_att(payload: Any) -> AttributeReference:
    if isinstance(payload, str) and "." in payload:
        resource, attribute = payload.split(".", 1)
        return AttributeReference(resource, attribute)
    if isinstance(payload, list) and len(payload) == 2 and all(isinstance(p, str) for p in payload):
        return AttributeReference(payload[0], payload[1])
    raise InvalidTemplate("Malformed Fn::GetAtt", details={"value": payload})


def resolve_literal(
    ref: LiteralReference, resources: ResourceMap, strict: bool = True, stack: Optional[str] = None
) -> Optional[str]:
    return ref.value


def resolve_name(
    ref: NameReference, resources: ResourceMap, strict: bool = True, stack: Optional[str] = None
) -> Optional[str]:
    return ref.name


def resolve_attribute(
    ref: AttributeReference,
    resources: ResourceMap,
    strict: bool = True,
    stack: Optional[str] = None,
) -> Optional[str]:
    if ref.resource in resources:
        return ref.resource
    if strict:
        raise DanglingReference(ref.resource, stack=stack, details={"attribute": ref.attribute})
    return None


def resolve_interpolation(
    ref: InterpolationReference, resources: ResourceMap, strict: bool = True, stack: Optional[str] = None
) -> Optional[str]:
    carrier = interpolated_value(ref.to_raw())
    if carrier is None:
        return None
    return trailing_segment(carrier)


_RESOLVERS = {
    LiteralReference: resolve_literal,
    NameReference: resolve_name,
    AttributeReference: resolve_attribute,
    InterpolationReference: resolve_interpolation,
}


def resolve_reference(
    ref: Optional[Reference],
    resources: ResourceMap,
    strict: bool = True,
    stack: Optional[str] = None,
) -> Optional[str]:
    """Resolve a parsed reference to a concrete name.

    Args:
        ref: Parsed reference, or None when the property was absent
        resources: Resource map of the current stack
        strict: Raise DanglingReference for attribute lookups on unknown
            resources; when False they resolve to None instead
        stack: Stack name, for error context

    Returns:
        Resource name, function name or endpoint, or None when the
        reference has no target
    """
    if ref is None:
        return None
    return _RESOLVERS[type(ref)](ref, resources, strict=strict, stack=stack)


def resolve_value(
    value: Any,
    resources: ResourceMap,
    strict: bool = True,
    stack: Optional[str] = None,
) -> Optional[str]:
    """Parse and resolve a raw property value.

    With ``strict`` off, an expression that is not a reference at all
    (e.g. Fn::ImportValue) resolves to None instead of raising.
    """
    try:
        ref = parse_reference(value)
    except InvalidTemplate:
        if strict:
            raise
        return None
    return resolve_reference(ref, resources, strict=strict, stack=stack)


def lookup(
    value: Any,
    resources: ResourceMap,
    strict: bool = True,
    stack: Optional[str] = None,
) -> Optional[TemplateResource]:
    """Parse, resolve and fetch the referenced resource from the stack."""
    name = resolve_value(value, resources, strict=strict, stack=stack)
    if name is None:
        return None
    return resources.get(name)


def interpolated_value(expr: Any) -> Optional[str]:
    """Descend an interpolation to the string that carries the value.

    Fn::If yields its else-branch, Fn::Sub its format string and Fn::Join
    its last part.
    """
    if isinstance(expr, str):
        return expr
    if not isinstance(expr, dict) or len(expr) != 1:
        return None
    fn, payload = next(iter(expr.items()))
    if fn == FN_IF:
        if isinstance(payload, list) and len(payload) == 3:
            return interpolated_value(payload[2])
        return None
    if fn == FN_SUB:
        if isinstance(payload, list) and payload:
            payload = payload[0]
        return payload if isinstance(payload, str) else None
    if fn == FN_JOIN:
        if isinstance(payload, list) and len(payload) == 2 and isinstance(payload[1], list) and payload[1]:
            return interpolated_value(payload[1][-1])
        return None
    return None


def trailing_segment(value: str) -> Optional[str]:
    """Return the part after the last ':' or '/', or None if empty."""
    segment = _SEGMENT_SEPARATORS.split(value)[-1]
    return segment or None


def render_literal(expr: Any) -> Optional[str]:
    """Render an expression that is a string in disguise.

    Works for plain strings, variable-free Fn::Sub, Fn::Join over
    renderable parts and Fn::If (else-branch). Returns None otherwise.
    """
    if isinstance(expr, str):
        return expr
    if not isinstance(expr, dict) or len(expr) != 1:
        return None
    fn, payload = next(iter(expr.items()))
    if fn == FN_SUB:
        if isinstance(payload, list):
            if len(payload) != 1:
                return None
            payload = payload[0]
        if isinstance(payload, str) and "${" not in payload:
            return payload
        return None
    if fn == FN_JOIN:
        if not (isinstance(payload, list) and len(payload) == 2 and isinstance(payload[1], list)):
            return None
        parts = [render_literal(p) for p in payload[1]]
        if any(p is None for p in parts) or not isinstance(payload[0], str):
            return None
        return payload[0].join(parts)
    if fn == FN_IF:
        if isinstance(payload, list) and len(payload) == 3:
            return render_literal(payload[2])
    return None
