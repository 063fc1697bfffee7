"""Pydantic models for the compiler's template resource graph.

Provides input validation for the stack -> resource map consumed by the
normalizer.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import TEMPLATE_SECTIONS
from .errors import InvalidTemplate


class TemplateResource(BaseModel):
    """A single named resource in a stack template."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    kind: str = Field(..., alias="Type", min_length=1)
    properties: Dict[str, Any] = Field(default_factory=dict, alias="Properties")
    depends_on: Optional[Union[str, List[str]]] = Field(default=None, alias="DependsOn")

    @field_validator("properties", mode="before")
    @classmethod
    def default_properties(cls, v: Any) -> Any:
        return {} if v is None else v

    def prop(self, name: str, default: Any = None) -> Any:
        return self.properties.get(name, default)

    @property
    def dependencies(self) -> List[str]:
        """``DependsOn`` as a list, preserving declared order."""
        if self.depends_on is None:
            return []
        if isinstance(self.depends_on, str):
            return [self.depends_on]
        return list(self.depends_on)


ResourceMap = Dict[str, TemplateResource]


class StackTemplate(BaseModel):
    """A stack template; only ``Resources`` matters here."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    resources: ResourceMap = Field(default_factory=dict, alias="Resources")

    @field_validator("resources", mode="before")
    @classmethod
    def default_resources(cls, v: Any) -> Any:
        return {} if v is None else v


def parse_resource_map(raw: Dict[str, Any], stack: Optional[str] = None) -> ResourceMap:
    """Validate a raw ``{name: resource}`` mapping, keeping declared order."""
    if not isinstance(raw, dict):
        raise InvalidTemplate("Resource map must be an object", stack=stack)
    resources: ResourceMap = {}
    for name, record in raw.items():
        if isinstance(record, TemplateResource):
            resources[name] = record
            continue
        try:
            resources[name] = TemplateResource.model_validate(record)
        except ValidationError as e:
            raise InvalidTemplate(
                "Resource is not a template resource",
                stack=stack,
                resource=name,
                details={"errors": [err["msg"] for err in e.errors()]},
            ) from e
    return resources


def load_stacks(document: Dict[str, Any]) -> Dict[str, ResourceMap]:
    """Accept the shapes the upstream compiler writes and return stack -> resources.

    Supported:
        {"stacks": {"PostStack": {"Resources": {...}}}}
        {"PostStack": {"Resources": {...}}}
        {"PostStack": {"PostTable": {"Type": ...}}}

    A stack body with any top-level template section is read as a
    template; one without ``Resources`` yields an empty resource map.
    """
    if not isinstance(document, dict):
        raise InvalidTemplate("Deployment document must be an object")
    stacks_raw = document.get("stacks", document)
    if not isinstance(stacks_raw, dict):
        raise InvalidTemplate("'stacks' must be an object")

    stacks: Dict[str, ResourceMap] = {}
    for stack_name, body in stacks_raw.items():
        if isinstance(body, dict) and any(section in body for section in TEMPLATE_SECTIONS):
            try:
                template = StackTemplate.model_validate(body)
            except ValidationError as e:
                raise InvalidTemplate(
                    "Stack template is invalid",
                    stack=stack_name,
                    details={"errors": [err["msg"] for err in e.errors()]},
                ) from e
            stacks[stack_name] = template.resources
        else:
            stacks[stack_name] = parse_resource_map(body, stack=stack_name)
    return stacks
