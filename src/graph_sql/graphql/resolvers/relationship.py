"""
Relationship field resolver: foreign-key column -> referenced row
"""

from __future__ import annotations

from graphql import GraphQLResolveInfo

from ...errors import ReferentialIntegrityError
from ...logging import get_logger
from ..bindings import RelationBinding
from ..context import RowRef, get_context

logger = get_logger(__name__)


async def resolve_relationship(
    binding: RelationBinding, parent: RowRef, info: GraphQLResolveInfo
) -> RowRef | None:
    """
    Resolve the row referenced by the parent's foreign key.

    Returns None when the foreign key is null.

    Raises:
        NotFound: If the owning row itself no longer exists
        ReferentialIntegrityError: If a non-null foreign key matches no row
    """
    key = binding.key
    target = await get_context(info).loaders.load_relation(key, parent.pk)

    if target.fk_value is None:
        return None

    if target.ref_pk is None:
        logger.warning(
            "Dangling foreign key",
            table=key.table,
            column=key.fk_column,
            value=target.fk_value,
            ref_table=key.ref_table,
        )
        raise ReferentialIntegrityError(
            f"'{key.table}.{key.fk_column}' = {target.fk_value!r} matches no row in "
            f"'{key.ref_table}.{key.ref_column}'",
            table=key.table,
            column=key.fk_column,
            ref_table=key.ref_table,
        )

    return RowRef(table=key.ref_table, pk=target.ref_pk)
