"""
Compile-time facts a resolver needs, captured once per table/field.

The schema compiler creates one binding per generated field and partially
applies it to the resolver function, so resolvers never look anything up by
name at execution time.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from ..catalog.models import ColumnDef, TableDef
from .loaders import ColumnBatchKey, RelationBatchKey
from .types import ScalarKind


@dataclass(frozen=True)
class TableBinding:
    """One supported table and how its input fields map back onto columns."""

    table: TableDef
    pk_column: str
    pk_kind: ScalarKind
    # GraphQL input field name -> column
    insert_fields: Mapping[str, ColumnDef] = field(default_factory=lambda: MappingProxyType({}))
    update_fields: Mapping[str, ColumnDef] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def table_name(self) -> str:
        return self.table.name


@dataclass(frozen=True)
class ColumnBinding:
    key: ColumnBatchKey
    kind: ScalarKind

    @property
    def is_key(self) -> bool:
        return self.key.column == self.key.pk_column


@dataclass(frozen=True)
class RelationBinding:
    key: RelationBatchKey
