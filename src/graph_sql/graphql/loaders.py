"""
Batched loading of column values and relationship targets.

One Loaders instance lives for exactly one request. Every distinct batch key
gets its own DataLoader, so all loads for that key issued in the same
event-loop tick are coalesced into a single ``WHERE pk IN (...)`` statement
and each key is fetched at most once per request.
"""

from dataclasses import dataclass
from functools import partial
from typing import Any

from strawberry.dataloader import DataLoader

from ..database.executor import QueryExecutor
from ..database.statements import column_statement, relation_statement
from ..errors import BatchExecutionError, NotFound, StoreError
from ..logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ColumnBatchKey:
    table: str
    pk_column: str
    column: str


@dataclass(frozen=True)
class RelationBatchKey:
    table: str
    pk_column: str
    fk_column: str
    ref_table: str
    ref_column: str
    ref_pk_column: str


@dataclass(frozen=True)
class RelationTarget:
    """Foreign-key value of one owner row and the referenced row's key, if any."""

    fk_value: Any
    ref_pk: Any


async def load_column_values(
    executor: QueryExecutor, key: ColumnBatchKey, pks: list[Any]
) -> list[Any]:
    """Batch load one column for many rows; missing rows yield NotFound."""
    logger.debug("Loading column batch", table=key.table, column=key.column, size=len(pks))
    try:
        rows = await executor.fetch_all(
            column_statement(key.table, key.pk_column, key.column, pks)
        )
    except StoreError as e:
        logger.error(
            "Column batch failed", table=key.table, column=key.column, error=e.message
        )
        raise BatchExecutionError(
            f"Batch load of '{key.table}.{key.column}' failed: {e.message}",
            table=key.table,
            column=key.column,
        ) from e

    values = {row[0]: row[1] for row in rows}
    return [
        values[pk]
        if pk in values
        else NotFound(f"No row in '{key.table}' with {key.pk_column} = {pk!r}", table=key.table)
        for pk in pks
    ]


async def load_relation_targets(
    executor: QueryExecutor, key: RelationBatchKey, pks: list[Any]
) -> list[RelationTarget | NotFound]:
    """Batch resolve one foreign key for many owner rows."""
    logger.debug(
        "Loading relationship batch",
        table=key.table,
        fk_column=key.fk_column,
        ref_table=key.ref_table,
        size=len(pks),
    )
    try:
        rows = await executor.fetch_all(
            relation_statement(
                key.table,
                key.pk_column,
                key.fk_column,
                key.ref_table,
                key.ref_column,
                key.ref_pk_column,
                pks,
            )
        )
    except StoreError as e:
        logger.error(
            "Relationship batch failed", table=key.table, fk_column=key.fk_column, error=e.message
        )
        raise BatchExecutionError(
            f"Batch load of '{key.table}.{key.fk_column}' -> '{key.ref_table}' failed: {e.message}",
            table=key.table,
            column=key.fk_column,
        ) from e

    targets: dict[Any, RelationTarget] = {}
    for owner_key, fk_value, ref_key in rows:
        # A non-unique referenced column may match several rows; the first wins
        targets.setdefault(owner_key, RelationTarget(fk_value=fk_value, ref_pk=ref_key))

    return [
        targets[pk]
        if pk in targets
        else NotFound(f"No row in '{key.table}' with {key.pk_column} = {pk!r}", table=key.table)
        for pk in pks
    ]


class Loaders:
    """Request-scoped registry of DataLoaders, one per batch key."""

    def __init__(self, executor: QueryExecutor, max_batch_size: int | None = None):
        self.executor = executor
        self.max_batch_size = max_batch_size
        self._columns: dict[ColumnBatchKey, DataLoader] = {}
        self._relations: dict[RelationBatchKey, DataLoader] = {}

    def column(self, key: ColumnBatchKey) -> DataLoader:
        loader = self._columns.get(key)
        if loader is None:
            loader = DataLoader(
                load_fn=partial(load_column_values, self.executor, key),
                max_batch_size=self.max_batch_size,
            )
            self._columns[key] = loader
        return loader

    def relation(self, key: RelationBatchKey) -> DataLoader:
        loader = self._relations.get(key)
        if loader is None:
            loader = DataLoader(
                load_fn=partial(load_relation_targets, self.executor, key),
                max_batch_size=self.max_batch_size,
            )
            self._relations[key] = loader
        return loader

    async def load_column(self, key: ColumnBatchKey, pk: Any) -> Any:
        return await self.column(key).load(pk)

    async def load_relation(self, key: RelationBatchKey, pk: Any) -> RelationTarget:
        return await self.relation(key).load(pk)

    def invalidate(self, table_name: str, pk: Any) -> None:
        """Drop cached results for one row after it was written."""
        for key, loader in self._columns.items():
            if key.table == table_name:
                loader.clear(pk)
        for key, loader in self._relations.items():
            if key.ref_table == table_name:
                # Owners cached against the written row may now dangle
                loader.clear_all()
            elif key.table == table_name:
                loader.clear(pk)
