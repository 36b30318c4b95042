"""
Column field resolver
"""

from __future__ import annotations

from typing import Any

from graphql import GraphQLResolveInfo

from ..bindings import ColumnBinding
from ..context import RowRef, get_context
from ..types import to_graphql_value


async def resolve_column(binding: ColumnBinding, parent: RowRef, info: GraphQLResolveInfo) -> Any:
    """Resolve one column of one row through the request's column loader.

    The key column is answered from the RowRef itself without a fetch.
    """
    if binding.is_key:
        return to_graphql_value(binding.kind, parent.pk)

    value = await get_context(info).loaders.load_column(binding.key, parent.pk)
    return to_graphql_value(binding.kind, value)
