"""Resource graph normalization: tables, resolvers and their cross-references."""

from __future__ import annotations

import logging
from typing import Any, Collection, Dict, Iterable, Mapping, Optional

from .constants import (
    APPSYNC_RESOLVER,
    DEFAULT_ROOT_TYPE_NAMES,
    DYNAMODB_TABLE,
    TABLE_NAME_SUFFIX,
    TEMPLATE_EXTENSION,
)
from .crossref import link_tables
from .errors import NormalizationError
from .models import StackBundle
from .resolvers import build_resolver, classify_resolver
from .tables import extract_table
from .template import ResourceMap, TemplateResource, load_stacks, parse_resource_map

logger = logging.getLogger(__name__)


def normalize(
    stacks: Mapping[str, Any],
    root_type_names: Optional[Collection[str]] = None,
    table_suffix: str = TABLE_NAME_SUFFIX,
    template_extension: str = TEMPLATE_EXTENSION,
) -> Dict[str, StackBundle]:
    """Convert a stack -> resource map graph into per-stack bundles.

    ``stacks`` may hold raw dicts or already-validated resource maps, in
    any shape ``load_stacks`` accepts.
    """
    if all(_is_resource_map(v) for v in stacks.values()):
        resource_maps: Dict[str, ResourceMap] = dict(stacks)
    else:
        resource_maps = load_stacks(dict(stacks))

    bundles: Dict[str, StackBundle] = {}
    for stack_name, resources in resource_maps.items():
        bundles[stack_name] = normalize_stack(
            stack_name,
            resources,
            root_type_names=root_type_names,
            table_suffix=table_suffix,
            template_extension=template_extension,
        )
    return bundles


def normalize_stack(
    stack_name: str,
    resources: Mapping[str, Any],
    root_type_names: Optional[Collection[str]] = None,
    table_suffix: str = TABLE_NAME_SUFFIX,
    template_extension: str = TEMPLATE_EXTENSION,
) -> StackBundle:
    """Normalize one stack: tables and resolvers, then cross-reference."""
    if not _is_resource_map(resources):
        resources = parse_resource_map(dict(resources), stack=stack_name)
    roots = frozenset(root_type_names if root_type_names is not None else DEFAULT_ROOT_TYPE_NAMES)
    bundle = StackBundle(name=stack_name)

    for resource_name, resource in resources.items():
        try:
            if resource.kind == DYNAMODB_TABLE:
                table = extract_table(resource_name, resource, table_suffix)
                if table.name in bundle.tables:
                    logger.warning(f"{stack_name}: table {table.name} declared twice, keeping last")
                bundle.tables[table.name] = table
            elif resource.kind == APPSYNC_RESOLVER:
                resolver = build_resolver(resource_name, resource, resources, template_extension, stack_name)
                bucket = classify_resolver(resolver, bundle, roots)
                logger.debug(f"{stack_name}/{resource_name}: {resolver.type_name}.{resolver.field_name} -> {bucket.value}")
        except NormalizationError as e:
            if e.stack is None:
                e.stack = stack_name
            if e.resource is None:
                e.resource = resource_name
            raise

    link_tables(bundle)
    logger.info(f"Normalized stack {stack_name}: {bundle.summary()}")
    return bundle


def merge_bundles(bundles: Iterable[StackBundle], name: str = "merged") -> StackBundle:
    """Fold per-stack bundles into one.

    Keyed maps merge with later stacks winning; function and HTTP resolver
    lists are concatenated per key.
    """
    merged = StackBundle(name=name)
    for bundle in bundles:
        _merge_keyed(merged.tables, bundle.tables, "table", bundle.name)
        _merge_keyed(merged.model_resolvers, bundle.model_resolvers, "model resolver", bundle.name)
        _merge_keyed(
            merged.secondary_index_resolvers,
            bundle.secondary_index_resolvers,
            "secondary-index resolver",
            bundle.name,
        )
        merged.secondary_index_resolver_tables.update(bundle.secondary_index_resolver_tables)
        merged.dropped_resolvers.update(bundle.dropped_resolvers)
        for function_name, resolvers in bundle.function_resolvers.items():
            merged.function_resolvers.setdefault(function_name, []).extend(resolvers)
        for endpoint, resolvers in bundle.http_resolvers.items():
            merged.http_resolvers.setdefault(endpoint, []).extend(resolvers)
    return merged


def _merge_keyed(target: Dict[str, Any], source: Dict[str, Any], label: str, stack_name: str) -> None:
    for key, value in source.items():
        if key in target:
            logger.warning(f"Merging {stack_name}: {label} {key} already present, overriding")
        target[key] = value


def _is_resource_map(value: Any) -> bool:
    return isinstance(value, dict) and all(isinstance(v, TemplateResource) for v in value.values())
