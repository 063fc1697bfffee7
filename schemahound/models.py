"""Normalized API domain model.

Tables, resolvers and data-source bindings reconstructed from a
template resource graph, plus the per-stack bundle that owns them.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from .errors import AmbiguousTemplateReference


class AttributeType(str, Enum):
    STRING = "S"
    NUMBER = "N"
    BINARY = "B"

    @classmethod
    def values(cls) -> list[str]:
        return [t.value for t in cls]


class DataSourceKind(str, Enum):
    DYNAMODB = "AMAZON_DYNAMODB"
    LAMBDA = "AWS_LAMBDA"
    HTTP = "HTTP"
    NONE = "NONE"


@dataclass
class TableKey:
    name: str
    type: AttributeType

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type.value}


@dataclass
class TableTtl:
    attribute_name: str
    enabled: bool

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class SecondaryIndex:
    """A local or global secondary index.

    Local indexes inherit the table's partition key, so only global
    indexes carry ``partition_key``.
    """

    index_name: str
    projection: Dict[str, Any] = field(default_factory=dict)
    partition_key: Optional[TableKey] = None
    sort_key: Optional[TableKey] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index_name": self.index_name,
            "projection": self.projection,
            "partition_key": self.partition_key.to_dict() if self.partition_key else None,
            "sort_key": self.sort_key.to_dict() if self.sort_key else None,
        }


@dataclass
class Table:
    name: str
    partition_key: TableKey
    sort_key: Optional[TableKey] = None
    ttl: Optional[TableTtl] = None
    local_indexes: List[SecondaryIndex] = field(default_factory=list)
    global_indexes: List[SecondaryIndex] = field(default_factory=list)
    resolver_names: List[str] = field(default_factory=list)
    secondary_index_resolver_names: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "partition_key": self.partition_key.to_dict(),
            "sort_key": self.sort_key.to_dict() if self.sort_key else None,
            "ttl": self.ttl.to_dict() if self.ttl else None,
            "local_indexes": [i.to_dict() for i in self.local_indexes],
            "global_indexes": [i.to_dict() for i in self.global_indexes],
            "resolver_names": list(self.resolver_names),
            "secondary_index_resolver_names": list(self.secondary_index_resolver_names),
        }


@dataclass(frozen=True)
class DataSourceBinding:
    """What a pipeline stage talks to.

    Only the field matching ``kind`` is set; use the constructors below.
    """

    kind: DataSourceKind
    table_name: Optional[str] = None
    function_name: Optional[str] = None
    endpoint: Optional[str] = None

    @classmethod
    def dynamodb(cls, table_name: str) -> "DataSourceBinding":
        return cls(kind=DataSourceKind.DYNAMODB, table_name=table_name)

    @classmethod
    def lambda_function(cls, function_name: str) -> "DataSourceBinding":
        return cls(kind=DataSourceKind.LAMBDA, function_name=function_name)

    @classmethod
    def http(cls, endpoint: str) -> "DataSourceBinding":
        return cls(kind=DataSourceKind.HTTP, endpoint=endpoint)

    @classmethod
    def none(cls) -> "DataSourceBinding":
        return cls(kind=DataSourceKind.NONE)

    @property
    def target(self) -> Optional[str]:
        if self.kind is DataSourceKind.DYNAMODB:
            return self.table_name
        if self.kind is DataSourceKind.LAMBDA:
            return self.function_name
        if self.kind is DataSourceKind.HTTP:
            return self.endpoint
        return None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"kind": self.kind.value}
        if self.kind is DataSourceKind.DYNAMODB:
            out["table_name"] = self.table_name
        elif self.kind is DataSourceKind.LAMBDA:
            out["function_name"] = self.function_name
        elif self.kind is DataSourceKind.HTTP:
            out["endpoint"] = self.endpoint
        return out


@dataclass(frozen=True)
class TemplateRef:
    """Either an inline mapping template or a bare template file name.

    An inline template that is not a plain string after rendering (one
    built with Fn::Sub variables, say) is kept as its raw intrinsic
    expression.
    """

    inline: Optional[Union[str, Dict[str, Any]]] = None
    file_name: Optional[str] = None

    def __post_init__(self) -> None:
        if (self.inline is None) == (self.file_name is None):
            raise AmbiguousTemplateReference(
                "Template reference needs exactly one of inline template or file name",
                details={"inline": self.inline is not None, "file_name": self.file_name},
            )

    @classmethod
    def from_inline(cls, template: Union[str, Dict[str, Any]]) -> "TemplateRef":
        return cls(inline=template)

    @classmethod
    def from_file(cls, file_name: str) -> "TemplateRef":
        return cls(file_name=file_name)

    @property
    def is_file(self) -> bool:
        return self.file_name is not None

    def to_dict(self) -> Dict[str, Any]:
        if self.is_file:
            return {"file_name": self.file_name}
        return {"inline": self.inline}


@dataclass
class PipelineStage:
    name: str
    data_source: DataSourceBinding
    request_template: TemplateRef
    response_template: TemplateRef

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "data_source": self.data_source.to_dict(),
            "request_template": self.request_template.to_dict(),
            "response_template": self.response_template.to_dict(),
        }


@dataclass
class Resolver:
    type_name: str
    field_name: str
    stages: List[PipelineStage] = field(default_factory=list)
    request_template: Optional[TemplateRef] = None
    response_template: Optional[TemplateRef] = None

    @property
    def key(self) -> str:
        """Composite key used for non-root resolvers."""
        return f"{self.type_name}{self.field_name}"

    def bindings(self, kind: DataSourceKind) -> List[DataSourceBinding]:
        return [s.data_source for s in self.stages if s.data_source.kind is kind]

    def table_names(self) -> List[str]:
        return [b.table_name for b in self.bindings(DataSourceKind.DYNAMODB) if b.table_name]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type_name": self.type_name,
            "field_name": self.field_name,
            "stages": [s.to_dict() for s in self.stages],
            "request_template": self.request_template.to_dict() if self.request_template else None,
            "response_template": self.response_template.to_dict() if self.response_template else None,
        }


@dataclass
class StackBundle:
    """Everything normalized out of one stack's resource map."""

    name: str
    tables: Dict[str, Table] = field(default_factory=dict)
    model_resolvers: Dict[str, Resolver] = field(default_factory=dict)
    function_resolvers: Dict[str, List[Resolver]] = field(default_factory=dict)
    http_resolvers: Dict[str, List[Resolver]] = field(default_factory=dict)
    secondary_index_resolvers: Dict[str, Resolver] = field(default_factory=dict)
    secondary_index_resolver_tables: Dict[str, str] = field(default_factory=dict)
    dropped_resolvers: Dict[str, Resolver] = field(default_factory=dict)

    @property
    def dropped_count(self) -> int:
        return len(self.dropped_resolvers)

    def all_resolvers(self) -> List[Resolver]:
        """Every classified resolver, in bucket order."""
        out: List[Resolver] = list(self.model_resolvers.values())
        for group in self.http_resolvers.values():
            out.extend(group)
        for group in self.function_resolvers.values():
            out.extend(group)
        out.extend(self.secondary_index_resolvers.values())
        return out

    def summary(self) -> Dict[str, int]:
        return {
            "tables": len(self.tables),
            "model_resolvers": len(self.model_resolvers),
            "function_resolvers": sum(len(v) for v in self.function_resolvers.values()),
            "http_resolvers": sum(len(v) for v in self.http_resolvers.values()),
            "secondary_index_resolvers": len(self.secondary_index_resolvers),
            "dropped_resolvers": self.dropped_count,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "tables": {k: t.to_dict() for k, t in self.tables.items()},
            "model_resolvers": {k: r.to_dict() for k, r in self.model_resolvers.items()},
            "function_resolvers": {k: [r.to_dict() for r in v] for k, v in self.function_resolvers.items()},
            "http_resolvers": {k: [r.to_dict() for r in v] for k, v in self.http_resolvers.items()},
            "secondary_index_resolvers": {k: r.to_dict() for k, r in self.secondary_index_resolvers.items()},
            "secondary_index_resolver_tables": dict(self.secondary_index_resolver_tables),
            "dropped_resolvers": {k: r.to_dict() for k, r in self.dropped_resolvers.items()},
        }
