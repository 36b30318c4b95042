"""
Table-level resolvers: list, view, insert, update, delete.

Every resolver follows the same stages: parse arguments, build a statement,
execute it, translate the result into RowRefs. Column values are never read
here; they are fetched lazily by the column resolver through the loaders.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from graphql import GraphQLResolveInfo
from sqlalchemy import Select

from ...database.statements import (
    delete_statement,
    insert_statement,
    list_statement,
    update_statement,
    view_statement,
)
from ...errors import NotFound, ValidationError
from ...logging import get_logger
from ..bindings import TableBinding
from ..context import RowRef, TableRoot, get_context
from ..types import column_kind, to_store_value

logger = get_logger(__name__)


def _store_values(
    binding: TableBinding, fields: Mapping[str, Any], data: Mapping[str, Any]
) -> dict[str, Any]:
    """Translate supplied input fields into column values.

    Only keys present in ``data`` are returned; an explicit null stays None.
    """
    values: dict[str, Any] = {}
    for field_name, value in data.items():
        column = fields.get(field_name)
        if column is None:
            raise ValidationError(
                f"Unknown field '{field_name}' for table '{binding.table_name}'",
                table=binding.table_name,
                field=field_name,
            )
        values[column.name] = to_store_value(column_kind(column), value, column.name)
    return values


def _key(binding: TableBinding, value: Any) -> Any:
    return to_store_value(binding.pk_kind, value, binding.pk_column)


async def _read(info: GraphQLResolveInfo, statement: Select) -> list[Any]:
    rows = await get_context(info).executor.fetch_all(statement)
    return [row[0] for row in rows]


# Query resolvers
async def resolve_table_root(
    binding: TableBinding, parent: Any, info: GraphQLResolveInfo
) -> TableRoot:
    return TableRoot(table=binding.table_name)


async def resolve_list(
    binding: TableBinding, parent: Any, info: GraphQLResolveInfo, input: dict[str, Any]
) -> list[RowRef]:
    """
    Resolve one page of row identities in store order.

    Raises:
        ValidationError: If page or limit is smaller than 1
    """
    page, limit = input["page"], input["limit"]
    if page < 1:
        raise ValidationError("page must be >= 1", table=binding.table_name, page=page)
    if limit < 1:
        raise ValidationError("limit must be >= 1", table=binding.table_name, limit=limit)

    keys = await _read(
        info, list_statement(binding.table_name, binding.pk_column, page, limit)
    )
    logger.debug("Listed rows", table=binding.table_name, page=page, limit=limit, rows=len(keys))
    return [RowRef(table=binding.table_name, pk=key) for key in keys]


async def resolve_view(
    binding: TableBinding, parent: Any, info: GraphQLResolveInfo, input: dict[str, Any]
) -> RowRef | None:
    """Resolve a single row by key; a missing row is null, not an error."""
    pk = _key(binding, input["id"])
    keys = await _read(info, view_statement(binding.table_name, binding.pk_column, pk))
    if not keys:
        logger.info("Row not found", table=binding.table_name, id=pk)
        return None
    return RowRef(table=binding.table_name, pk=keys[0])


# Mutation resolvers
async def resolve_insert(
    binding: TableBinding,
    parent: Any,
    info: GraphQLResolveInfo,
    input: dict[str, Any] | None = None,
) -> RowRef:
    """
    Insert a row built from the supplied fields only.

    Raises:
        ConstraintViolation: If the store rejects the row
    """
    context = get_context(info)
    values = _store_values(binding, binding.insert_fields, input or {})

    result = await context.executor.execute_write(
        insert_statement(binding.table_name, binding.pk_column, values), returning=True
    )
    pk = result.returned[0][0]
    context.loaders.invalidate(binding.table_name, pk)

    logger.info("Inserted row", table=binding.table_name, id=pk)
    return RowRef(table=binding.table_name, pk=pk)


async def resolve_update(
    binding: TableBinding,
    parent: Any,
    info: GraphQLResolveInfo,
    id: Any,
    input: dict[str, Any],
) -> RowRef:
    """
    Partially update one row: only supplied fields are written.

    Raises:
        NotFound: If no row has the given key
        ConstraintViolation: If the store rejects the new values
    """
    context = get_context(info)
    pk = _key(binding, id)
    values = _store_values(binding, binding.update_fields, input)

    if values:
        result = await context.executor.execute_write(
            update_statement(binding.table_name, binding.pk_column, pk, values), returning=True
        )
        keys = [row[0] for row in result.returned]
    else:
        # Nothing to write; still report a missing row
        keys = await _read(info, view_statement(binding.table_name, binding.pk_column, pk))

    if not keys:
        raise NotFound(
            f"No row in '{binding.table_name}' with {binding.pk_column} = {pk!r}",
            table=binding.table_name,
        )

    context.loaders.invalidate(binding.table_name, keys[0])
    logger.info("Updated row", table=binding.table_name, id=pk, columns=sorted(values))
    return RowRef(table=binding.table_name, pk=keys[0])


async def resolve_delete(
    binding: TableBinding, parent: Any, info: GraphQLResolveInfo, id: Any
) -> int:
    """Delete one row and return the number of rows removed (0 or 1)."""
    context = get_context(info)
    pk = _key(binding, id)

    result = await context.executor.execute_write(
        delete_statement(binding.table_name, binding.pk_column, pk)
    )
    context.loaders.invalidate(binding.table_name, pk)

    logger.info("Deleted row", table=binding.table_name, id=pk, affected=result.rowcount)
    return result.rowcount
