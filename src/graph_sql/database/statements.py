"""
Statement builders for every piece of generated SQL.

Tables are described with lightweight ``table()``/``column()`` constructs so
no ORM metadata is needed; SQLAlchemy quotes identifiers and binds values.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import (
    Delete,
    Insert,
    Select,
    TableClause,
    Update,
    column,
    delete,
    insert,
    select,
    table,
    update,
)


def sql_table(name: str, *column_names: str) -> TableClause:
    """Lightweight table with the given columns (duplicates collapsed)."""
    return table(name, *(column(c) for c in dict.fromkeys(column_names)))


def list_statement(table_name: str, pk_column: str, page: int, limit: int) -> Select:
    """Key page: ``SELECT pk FROM t LIMIT limit OFFSET (page-1)*limit``, store order."""
    t = sql_table(table_name, pk_column)
    return select(t.c[pk_column]).limit(limit).offset((page - 1) * limit)


def view_statement(table_name: str, pk_column: str, pk: Any) -> Select:
    t = sql_table(table_name, pk_column)
    return select(t.c[pk_column]).where(t.c[pk_column] == pk)


def insert_statement(table_name: str, pk_column: str, values: Mapping[str, Any]) -> Insert:
    """INSERT of the supplied columns only, returning the generated key."""
    t = sql_table(table_name, pk_column, *values)
    stmt = insert(t)
    if values:
        stmt = stmt.values(dict(values))
    return stmt.returning(t.c[pk_column])


def update_statement(
    table_name: str, pk_column: str, pk: Any, values: Mapping[str, Any]
) -> Update:
    """UPDATE setting exactly the supplied columns, returning the matched key."""
    t = sql_table(table_name, pk_column, *values)
    return (
        update(t)
        .where(t.c[pk_column] == pk)
        .values(dict(values))
        .returning(t.c[pk_column])
    )


def delete_statement(table_name: str, pk_column: str, pk: Any) -> Delete:
    t = sql_table(table_name, pk_column)
    return delete(t).where(t.c[pk_column] == pk)


def column_statement(
    table_name: str, pk_column: str, target_column: str, pks: Sequence[Any]
) -> Select:
    """Coalesced fetch: ``SELECT pk, target FROM t WHERE pk IN (...)``."""
    t = sql_table(table_name, pk_column, target_column)
    return select(t.c[pk_column], t.c[target_column]).where(t.c[pk_column].in_(pks))


def relation_statement(
    table_name: str,
    pk_column: str,
    fk_column: str,
    ref_table: str,
    ref_column: str,
    ref_pk_column: str,
    pks: Sequence[Any],
) -> Select:
    """Coalesced foreign-key lookup for many owner rows.

    Rows: ``(owner_key, fk_value, ref_key)``; ``ref_key`` is NULL when the
    foreign key is NULL or dangling.
    """
    owner = sql_table(table_name, pk_column, fk_column).alias("owner")
    ref = sql_table(ref_table, ref_column, ref_pk_column).alias("ref")
    return (
        select(
            owner.c[pk_column].label("owner_key"),
            owner.c[fk_column].label("fk_value"),
            ref.c[ref_pk_column].label("ref_key"),
        )
        .select_from(owner.outerjoin(ref, ref.c[ref_column] == owner.c[fk_column]))
        .where(owner.c[pk_column].in_(pks))
    )
