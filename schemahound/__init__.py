"""schemahound - rebuild an API domain model from a compiled resource graph.

Takes the stack -> resource map an API schema compiler emits and infers:
- Tables with their keys, indexes and TTL
- Pipeline resolvers with per-stage data-source bindings
- Which resolvers target which table
"""

__version__ = "0.1.0"

from schemahound.errors import (
    AmbiguousTemplateReference,
    DanglingReference,
    InvalidTemplate,
    MalformedKeySchema,
    NormalizationError,
    UnresolvableEndpoint,
    UnresolvableFunctionTarget,
    UnsupportedDataSourceType,
    UnsupportedResolverShape,
)
from schemahound.models import (
    AttributeType,
    DataSourceBinding,
    DataSourceKind,
    PipelineStage,
    Resolver,
    SecondaryIndex,
    StackBundle,
    Table,
    TableKey,
    TableTtl,
    TemplateRef,
)
from schemahound.normalize import merge_bundles, normalize, normalize_stack

__all__ = [
    "__version__",
    # Entry points
    "normalize",
    "normalize_stack",
    "merge_bundles",
    # Model
    "AttributeType",
    "DataSourceBinding",
    "DataSourceKind",
    "PipelineStage",
    "Resolver",
    "SecondaryIndex",
    "StackBundle",
    "Table",
    "TableKey",
    "TableTtl",
    "TemplateRef",
    # Errors
    "NormalizationError",
    "InvalidTemplate",
    "MalformedKeySchema",
    "UnsupportedResolverShape",
    "UnsupportedDataSourceType",
    "UnresolvableFunctionTarget",
    "UnresolvableEndpoint",
    "AmbiguousTemplateReference",
    "DanglingReference",
]
