"""DynamoDB table extraction."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .constants import KEY_TYPE_HASH, KEY_TYPE_RANGE, TABLE_NAME_SUFFIX
from .errors import MalformedKeySchema
from .models import AttributeType, SecondaryIndex, Table, TableKey, TableTtl
from .template import TemplateResource

logger = logging.getLogger(__name__)


def derive_table_name(identifier: str, suffix: str = TABLE_NAME_SUFFIX) -> str:
    """Strip compiler noise after the suffix and re-append it.

    "PostTable" -> "PostTable", "Post" -> "PostTable",
    "PostTable8A2F" -> "PostTable".
    """
    idx = identifier.find(suffix)
    base = identifier[:idx] if idx >= 0 else identifier
    return base + suffix


def parse_key_schema(
    key_schema: List[Dict[str, Any]],
    attribute_definitions: List[Dict[str, Any]],
    resource: Optional[str] = None,
) -> Tuple[Optional[TableKey], Optional[TableKey]]:
    """Return (partition_key, sort_key) for a key schema."""
    partition_key: Optional[TableKey] = None
    sort_key: Optional[TableKey] = None
    definitions = {d.get("AttributeName"): d for d in attribute_definitions or []}

    for entry in key_schema or []:
        name = entry.get("AttributeName")
        attribute = definitions.get(name)
        if attribute is None:
            raise MalformedKeySchema(
                f"Key attribute '{name}' has no attribute definition",
                resource=resource,
                details={"attribute": name},
            )
        key = TableKey(name=name, type=_attribute_type(attribute, resource))
        key_type = entry.get("KeyType")
        if key_type == KEY_TYPE_HASH:
            partition_key = key
        elif key_type == KEY_TYPE_RANGE:
            sort_key = key
        else:
            raise MalformedKeySchema(
                f"Unknown key type '{key_type}' for attribute '{name}'",
                resource=resource,
                details={"attribute": name, "key_type": key_type},
            )

    return partition_key, sort_key


def _attribute_type(attribute: Dict[str, Any], resource: Optional[str]) -> AttributeType:
    raw = attribute.get("AttributeType")
    try:
        return AttributeType(raw)
    except ValueError:
        raise MalformedKeySchema(
            f"Unsupported attribute type '{raw}'",
            resource=resource,
            details={"attribute": attribute.get("AttributeName"), "allowed": AttributeType.values()},
        ) from None


def extract_table(
    resource_name: str,
    resource: TemplateResource,
    suffix: str = TABLE_NAME_SUFFIX,
) -> Table:
    """Build a Table from an ``AWS::DynamoDB::Table`` resource."""
    definitions = resource.prop("AttributeDefinitions") or []
    partition_key, sort_key = parse_key_schema(resource.prop("KeySchema") or [], definitions, resource_name)
    if partition_key is None:
        raise MalformedKeySchema("Table has no partition key", resource=resource_name)

    ttl = None
    ttl_spec = resource.prop("TimeToLiveSpecification")
    if ttl_spec:
        ttl = TableTtl(attribute_name=ttl_spec.get("AttributeName"), enabled=bool(ttl_spec.get("Enabled")))

    table = Table(
        name=derive_table_name(resource_name, suffix),
        partition_key=partition_key,
        sort_key=sort_key,
        ttl=ttl,
    )

    for lsi in resource.prop("LocalSecondaryIndexes") or []:
        _, lsi_sort = parse_key_schema(lsi.get("KeySchema") or [], definitions, resource_name)
        table.local_indexes.append(
            SecondaryIndex(
                index_name=lsi.get("IndexName"),
                projection=lsi.get("Projection") or {},
                sort_key=lsi_sort,
            )
        )

    for gsi in resource.prop("GlobalSecondaryIndexes") or []:
        gsi_partition, gsi_sort = parse_key_schema(gsi.get("KeySchema") or [], definitions, resource_name)
        if gsi_partition is None:
            raise MalformedKeySchema(
                f"Global index '{gsi.get('IndexName')}' has no partition key",
                resource=resource_name,
            )
        table.global_indexes.append(
            SecondaryIndex(
                index_name=gsi.get("IndexName"),
                projection=gsi.get("Projection") or {},
                partition_key=gsi_partition,
                sort_key=gsi_sort,
            )
        )

    logger.debug(
        f"Extracted table {table.name} from {resource_name}: "
        f"{len(table.local_indexes)} LSI, {len(table.global_indexes)} GSI"
    )
    return table
