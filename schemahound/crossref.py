"""Second pass: link tables to the resolvers that target them."""

from __future__ import annotations

import logging

from .models import StackBundle

logger = logging.getLogger(__name__)


def link_tables(bundle: StackBundle) -> StackBundle:
    """Append resolver names onto each table of the bundle.

    ``resolver_names`` gets every model resolver with a stage bound to the
    table; ``secondary_index_resolver_names`` gets every secondary-index
    resolver whose bound table matches. Reads the resolver buckets only,
    creates nothing.
    """
    for table_name, table in bundle.tables.items():
        for field_name, resolver in bundle.model_resolvers.items():
            if table_name in resolver.table_names():
                table.resolver_names.append(field_name)

        for key, bound_table in bundle.secondary_index_resolver_tables.items():
            if bound_table == table_name:
                table.secondary_index_resolver_names.append(key)

        if table.resolver_names or table.secondary_index_resolver_names:
            logger.debug(
                f"{bundle.name}/{table_name}: {len(table.resolver_names)} resolvers, "
                f"{len(table.secondary_index_resolver_names)} secondary-index resolvers"
            )
    return bundle
