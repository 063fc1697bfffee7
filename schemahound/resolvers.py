"""Pipeline resolver classification.

Walks each pipeline resolver's function list in declared order, binds
every stage to its data source and files the resolver under exactly one
bucket of the stack bundle.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Collection, Dict, List, Optional, Tuple

from .constants import (
    APPSYNC_FUNCTION,
    DEFAULT_ROOT_TYPE_NAMES,
    LAMBDA_FUNCTION,
    PIPELINE_KIND,
    TEMPLATE_EXTENSION,
)
from .errors import (
    AmbiguousTemplateReference,
    InvalidTemplate,
    UnresolvableEndpoint,
    UnresolvableFunctionTarget,
    UnsupportedDataSourceType,
    UnsupportedResolverShape,
)
from .models import DataSourceBinding, DataSourceKind, PipelineStage, Resolver, StackBundle, TemplateRef
from .references import (
    InterpolationReference,
    LiteralReference,
    interpolated_value,
    lookup,
    parse_reference,
    render_literal,
    resolve_reference,
    resolve_value,
    trailing_segment,
)
from .template import ResourceMap, TemplateResource

logger = logging.getLogger(__name__)

REQUEST = "Request"
RESPONSE = "Response"


class ResolverBucket(str, Enum):
    MODEL = "model"
    SECONDARY_INDEX = "secondary_index"
    HTTP = "http"
    FUNCTION = "function"
    DROPPED = "dropped"


# ---------------------------------------------------------------------------
# Templates
# ---------------------------------------------------------------------------

def template_file_name(location: Any, extension: str = TEMPLATE_EXTENSION) -> Optional[str]:
    """Reduce an S3 location expression to a bare template file name.

    {"Fn::Join": ["", ["s3://", {"Ref": "Bucket"}, "/resolvers/Query.getPost.req.vtl"]]}
    -> "Query.getPost.req"
    """
    carrier = interpolated_value(location)
    if carrier is None:
        return None
    name = trailing_segment(carrier)
    if name and extension and name.endswith(extension):
        name = name[: -len(extension)]
    return name or None


def template_ref(
    properties: Dict[str, Any],
    direction: str,
    extension: str = TEMPLATE_EXTENSION,
    required: bool = True,
    stack: Optional[str] = None,
    resource: Optional[str] = None,
) -> Optional[TemplateRef]:
    """Read the inline template or S3 location for one direction."""
    inline = properties.get(f"{direction}MappingTemplate")
    location = properties.get(f"{direction}MappingTemplateS3Location")

    if inline is not None and location is not None:
        raise AmbiguousTemplateReference(
            f"{direction} template declared both inline and as a file",
            stack=stack,
            resource=resource,
        )
    if location is not None:
        file_name = template_file_name(location, extension)
        if file_name is None:
            raise InvalidTemplate(
                f"{direction} template location has no file name",
                stack=stack,
                resource=resource,
                details={"location": location},
            )
        return TemplateRef.from_file(file_name)
    if inline is not None:
        rendered = render_literal(inline)
        return TemplateRef.from_inline(rendered if rendered is not None else inline)
    if required:
        raise AmbiguousTemplateReference(
            f"{direction} template declared neither inline nor as a file",
            stack=stack,
            resource=resource,
        )
    return None


# ---------------------------------------------------------------------------
# Data sources
# ---------------------------------------------------------------------------

def lambda_function_name(arn: Any, resources: ResourceMap, stack: Optional[str] = None) -> Optional[str]:
    """Extract the function name a lambda data source invokes."""
    if arn is None:
        return None
    try:
        ref = parse_reference(arn)
    except InvalidTemplate:
        logger.debug(f"{stack}: lambda ARN {arn!r} is not a recognised expression")
        return None
    if isinstance(ref, (InterpolationReference, LiteralReference)):
        carrier = interpolated_value(arn)
        return trailing_segment(carrier) if carrier else None

    # Ref / GetAtt to a function declared in this stack
    target = lookup(arn, resources, strict=False, stack=stack)
    if target is None or target.kind != LAMBDA_FUNCTION:
        return None
    return render_literal(target.prop("FunctionName"))


def bind_data_source(
    function_name: str,
    function: TemplateResource,
    resources: ResourceMap,
    stack: Optional[str] = None,
) -> DataSourceBinding:
    """Resolve a function configuration's data source into a binding."""
    data_source_name = resolve_value(function.prop("DataSourceName"), resources, strict=False, stack=stack)
    data_source = resources.get(data_source_name) if data_source_name else None
    if data_source is None:
        return DataSourceBinding.none()

    ds_type = data_source.prop("Type")
    if ds_type == DataSourceKind.DYNAMODB.value:
        table_name = render_literal(data_source.prop("Name"))
        if not table_name:
            raise InvalidTemplate("DynamoDB data source has no name", stack=stack, resource=data_source_name)
        return DataSourceBinding.dynamodb(table_name)

    if ds_type == DataSourceKind.LAMBDA.value:
        arn = (data_source.prop("LambdaConfig") or {}).get("LambdaFunctionArn")
        target = lambda_function_name(arn, resources, stack)
        if not target:
            raise UnresolvableFunctionTarget(
                "Cannot extract lambda function name",
                stack=stack,
                resource=data_source_name,
                details={"function": function_name, "arn": arn},
            )
        return DataSourceBinding.lambda_function(target)

    if ds_type == DataSourceKind.HTTP.value:
        raw_endpoint = (data_source.prop("HttpConfig") or {}).get("Endpoint")
        endpoint = render_literal(raw_endpoint)
        if not endpoint:
            raise UnresolvableEndpoint(
                "HTTP data source endpoint is not a plain string",
                stack=stack,
                resource=data_source_name,
                details={"endpoint": raw_endpoint},
            )
        return DataSourceBinding.http(endpoint)

    if ds_type == DataSourceKind.NONE.value:
        return DataSourceBinding.none()

    raise UnsupportedDataSourceType(ds_type, stack=stack, resource=data_source_name)


# ---------------------------------------------------------------------------
# Resolvers
# ---------------------------------------------------------------------------

def pipeline_functions(
    resource_name: str,
    resource: TemplateResource,
    resources: ResourceMap,
    stack: Optional[str] = None,
) -> List[Tuple[str, TemplateResource]]:
    """Function configurations of a pipeline, in declared order.

    Entries that do not resolve to a function configuration in this stack
    are skipped. With no function list, ``DependsOn`` is used instead.
    """
    config = resource.prop("PipelineConfig") or {}
    entries = config.get("Functions") or []
    functions: List[Tuple[str, TemplateResource]] = []

    for entry in entries:
        name = resolve_reference(parse_reference(entry), resources, strict=True, stack=stack)
        record = resources.get(name) if name else None
        if record is None or record.kind != APPSYNC_FUNCTION:
            logger.debug(f"{stack}/{resource_name}: skipping pipeline entry {entry!r}")
            continue
        functions.append((name, record))

    if not entries:
        for name in resource.dependencies:
            record = resources.get(name)
            if record is not None and record.kind == APPSYNC_FUNCTION:
                functions.append((name, record))

    return functions


def build_stage(
    function_name: str,
    function: TemplateResource,
    resources: ResourceMap,
    extension: str = TEMPLATE_EXTENSION,
    stack: Optional[str] = None,
) -> PipelineStage:
    return PipelineStage(
        name=function.prop("Name") or function_name,
        data_source=bind_data_source(function_name, function, resources, stack),
        request_template=template_ref(function.properties, REQUEST, extension, stack=stack, resource=function_name),
        response_template=template_ref(function.properties, RESPONSE, extension, stack=stack, resource=function_name),
    )


def build_resolver(
    resource_name: str,
    resource: TemplateResource,
    resources: ResourceMap,
    extension: str = TEMPLATE_EXTENSION,
    stack: Optional[str] = None,
) -> Resolver:
    """Build a Resolver with its stages from a pipeline resolver resource."""
    if resource.prop("Kind") != PIPELINE_KIND:
        raise UnsupportedResolverShape(
            "Invalid resolver type. All resolvers should be pipelines.",
            stack=stack,
            resource=resource_name,
            details={"kind": resource.prop("Kind")},
        )

    props = resource.properties
    missing = [p for p in ("TypeName", "FieldName") if not isinstance(props.get(p), str) or not props[p]]
    if missing:
        raise InvalidTemplate(
            "Resolver has no type or field name",
            stack=stack,
            resource=resource_name,
            details={"missing": missing},
        )
    resolver = Resolver(
        type_name=props.get("TypeName"),
        field_name=props.get("FieldName"),
        request_template=template_ref(props, REQUEST, extension, required=False, stack=stack, resource=resource_name),
        response_template=template_ref(props, RESPONSE, extension, required=False, stack=stack, resource=resource_name),
    )
    for function_name, function in pipeline_functions(resource_name, resource, resources, stack):
        resolver.stages.append(build_stage(function_name, function, resources, extension, stack))
    return resolver


def classify_resolver(
    resolver: Resolver,
    bundle: StackBundle,
    root_type_names: Collection[str] = DEFAULT_ROOT_TYPE_NAMES,
) -> ResolverBucket:
    """File a resolver into one bucket: DynamoDB, then HTTP, then Lambda.

    DynamoDB-bound resolvers on non-root types are secondary-index
    resolvers. Resolvers with no bound stage are dropped but recorded.
    """
    dynamo = resolver.bindings(DataSourceKind.DYNAMODB)
    if dynamo:
        if resolver.type_name in root_type_names:
            if resolver.field_name in bundle.model_resolvers:
                logger.warning(f"{bundle.name}: model resolver {resolver.field_name} declared twice, keeping last")
            bundle.model_resolvers[resolver.field_name] = resolver
            return ResolverBucket.MODEL
        bundle.secondary_index_resolvers[resolver.key] = resolver
        bundle.secondary_index_resolver_tables[resolver.key] = dynamo[0].table_name
        return ResolverBucket.SECONDARY_INDEX

    http = resolver.bindings(DataSourceKind.HTTP)
    if http:
        bundle.http_resolvers.setdefault(http[0].endpoint, []).append(resolver)
        return ResolverBucket.HTTP

    functions = resolver.bindings(DataSourceKind.LAMBDA)
    if functions:
        bundle.function_resolvers.setdefault(functions[0].function_name, []).append(resolver)
        return ResolverBucket.FUNCTION

    logger.debug(f"{bundle.name}: dropping {resolver.type_name}.{resolver.field_name}, no bound data source")
    bundle.dropped_resolvers[resolver.key] = resolver
    return ResolverBucket.DROPPED
