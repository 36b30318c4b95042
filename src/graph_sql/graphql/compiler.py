"""
Schema compiler: table descriptors -> type registry.

For every supported table ``t`` the compiler emits, in descriptor order:

- ``t_node``: one field per column plus one relationship field per
  single-column foreign key whose target is part of the schema
- ``t``: the ``list`` and ``view`` navigation fields
- ``list_t_input``, ``view_t_input``, ``insert_t_input``, ``update_t_input``
- ``Query.t`` and ``Mutation.insert_t`` / ``update_t`` / ``delete_t``

The output depends only on the input descriptors, so the same catalog always
compiles to the same registry and the same SDL.
"""

import re
from collections.abc import Sequence
from functools import partial
from types import MappingProxyType

from ..catalog.models import ROWID, ColumnDef, TableDef
from ..logging import get_logger
from .bindings import ColumnBinding, RelationBinding, TableBinding
from .loaders import ColumnBatchKey, RelationBatchKey
from .registry import (
    MUTATION_TYPE,
    QUERY_TYPE,
    ArgumentDescriptor,
    FieldDescriptor,
    RegistryBuilder,
    TypeDescriptor,
    TypeKind,
    TypeRef,
    TypeRegistry,
)
from .resolvers.column import resolve_column
from .resolvers.relationship import resolve_relationship
from .resolvers.table import (
    resolve_delete,
    resolve_insert,
    resolve_list,
    resolve_table_root,
    resolve_update,
    resolve_view,
)
from .types import (
    GRAPHQL_SCALARS,
    ScalarKind,
    column_kind,
    graphql_scalar,
    is_insert_required,
    is_output_non_null,
)

logger = get_logger(__name__)

_INVALID_NAME_CHARS = re.compile(r"[^_0-9A-Za-z]")
_ID_SUFFIX = "_id"


def sanitize_name(name: str) -> str:
    """Turn an arbitrary identifier into a valid GraphQL name."""
    sanitized = _INVALID_NAME_CHARS.sub("_", name)
    if not sanitized or sanitized[0].isdigit():
        sanitized = f"_{sanitized}"
    return sanitized


def relationship_name(column_name: str) -> str:
    """``author_id`` -> ``author``; names without the suffix are kept."""
    if column_name.endswith(_ID_SUFFIX) and len(column_name) > len(_ID_SUFFIX):
        return sanitize_name(column_name[: -len(_ID_SUFFIX)])
    return sanitize_name(column_name)


def node_type_name(table_name: str) -> str:
    return f"{sanitize_name(table_name)}_node"


def _key_kind(table: TableDef) -> ScalarKind:
    column = table.column(table.primary_key)
    return ScalarKind.INTEGER if column is None else column_kind(column)


def _key_scalar(table: TableDef) -> str:
    return GRAPHQL_SCALARS[_key_kind(table)]


def supported_tables(tables: Sequence[TableDef]) -> list[TableDef]:
    """Drop tables whose row identity cannot be expressed as a single key."""
    supported = []
    for table in tables:
        if table.primary_key is None:
            logger.warning(
                "Skipping table without a single-column key",
                table=table.name,
                primary_key=list(table.primary_key_columns),
                without_rowid=table.without_rowid,
            )
            continue
        supported.append(table)
    return supported


def resolve_relations(
    table: TableDef, tables_by_name: dict[str, TableDef]
) -> dict[str, RelationBatchKey]:
    """Map each foreign-key column of ``table`` to its batch key.

    Foreign keys to tables outside the schema, or to columns the referenced
    table does not have, produce no relationship.
    """
    relations: dict[str, RelationBatchKey] = {}
    for columns in table.composite_foreign_keys:
        logger.warning(
            "Composite foreign key not exposed as relationship",
            table=table.name,
            columns=list(columns),
        )

    for fk in table.foreign_keys:
        ref = tables_by_name.get(fk.ref_table)
        if ref is None:
            logger.warning(
                "Foreign key target not in schema",
                table=table.name,
                column=fk.column,
                ref_table=fk.ref_table,
            )
            continue

        ref_column = fk.ref_column or ref.primary_key
        if ref_column != ROWID and ref.column(ref_column) is None:
            logger.warning(
                "Foreign key target column does not exist",
                table=table.name,
                column=fk.column,
                ref_table=ref.name,
                ref_column=ref_column,
            )
            continue

        relations[fk.column] = RelationBatchKey(
            table=table.name,
            pk_column=table.primary_key,
            fk_column=fk.column,
            ref_table=ref.name,
            ref_column=ref_column,
            ref_pk_column=ref.primary_key,
        )
    return relations


class SchemaCompiler:
    """Compiles one list of table descriptors into a TypeRegistry.

    A compiler instance is single-use; call ``compile`` once.
    """

    def __init__(self, tables: Sequence[TableDef]):
        self.tables = supported_tables(tables)
        self._by_name = {table.name: table for table in self.tables}
        self._builder = RegistryBuilder()
        self._query_fields: list[FieldDescriptor] = []
        self._mutation_fields: list[FieldDescriptor] = []

    def compile(self) -> TypeRegistry:
        """
        Build the registry.

        Raises:
            SchemaConflict: If two generated types or two fields of one type
                share a name
        """
        for table in self.tables:
            self._compile_table(table)

        if not self._query_fields:
            logger.warning("No tables to expose; the schema has an empty Query type")
        self._builder.add_type(
            TypeDescriptor(name=QUERY_TYPE, kind=TypeKind.OBJECT, fields=tuple(self._query_fields))
        )
        if self._mutation_fields:
            self._builder.add_type(
                TypeDescriptor(
                    name=MUTATION_TYPE, kind=TypeKind.OBJECT, fields=tuple(self._mutation_fields)
                )
            )

        registry = self._builder.build()
        logger.info(
            "Schema compiled",
            tables=[t.name for t in self.tables],
            types=len(registry),
        )
        return registry

    def _compile_table(self, table: TableDef) -> None:
        base = sanitize_name(table.name)
        node = node_type_name(table.name)
        binding = self._table_binding(table)
        self._builder.add_table(base, table)

        self._add_node(table, node)

        # Navigation type: t { list, view }
        list_input = f"list_{base}_input"
        view_input = f"view_{base}_input"
        self._builder.add_type(
            TypeDescriptor(
                name=list_input,
                kind=TypeKind.INPUT_OBJECT,
                fields=(
                    FieldDescriptor("page", TypeRef("Int", non_null=True)),
                    FieldDescriptor("limit", TypeRef("Int", non_null=True)),
                ),
            )
        )
        self._builder.add_type(
            TypeDescriptor(
                name=view_input,
                kind=TypeKind.INPUT_OBJECT,
                fields=(FieldDescriptor("id", TypeRef(_key_scalar(table), non_null=True)),),
            )
        )
        self._builder.add_type(
            TypeDescriptor(
                name=base,
                kind=TypeKind.OBJECT,
                description=f"Queries over table '{table.name}'",
                fields=(
                    FieldDescriptor(
                        "list",
                        TypeRef(node, non_null=True, is_list=True, item_non_null=True),
                        args=(ArgumentDescriptor("input", TypeRef(list_input, non_null=True)),),
                    ),
                    FieldDescriptor(
                        "view",
                        TypeRef(node),
                        args=(ArgumentDescriptor("input", TypeRef(view_input, non_null=True)),),
                    ),
                ),
            )
        )
        self._builder.bind(base, "list", partial(resolve_list, binding))
        self._builder.bind(base, "view", partial(resolve_view, binding))

        self._query_fields.append(FieldDescriptor(base, TypeRef(base, non_null=True)))
        self._builder.bind(QUERY_TYPE, base, partial(resolve_table_root, binding))

        self._add_mutations(table, binding, base, node)

    def _table_binding(self, table: TableDef) -> TableBinding:
        insert_fields: dict[str, ColumnDef] = {}
        update_fields: dict[str, ColumnDef] = {}
        for column in table.columns:
            if column.generated:
                continue
            name = sanitize_name(column.name)
            if column.name == table.primary_key:
                # Only a rowid alias is assigned by the store
                if not table.has_generated_key:
                    insert_fields[name] = column
                continue
            insert_fields[name] = column
            update_fields[name] = column

        return TableBinding(
            table=table,
            pk_column=table.primary_key,
            pk_kind=_key_kind(table),
            insert_fields=MappingProxyType(insert_fields),
            update_fields=MappingProxyType(update_fields),
        )

    def _add_node(self, table: TableDef, node: str) -> None:
        relations = resolve_relations(table, self._by_name)
        fields: list[FieldDescriptor] = []
        trailing: list[FieldDescriptor] = []

        if table.has_implicit_rowid:
            fields.append(FieldDescriptor(ROWID, TypeRef("Int", non_null=True)))
            key = ColumnBatchKey(table=table.name, pk_column=ROWID, column=ROWID)
            self._builder.bind(
                node, ROWID, partial(resolve_column, ColumnBinding(key, ScalarKind.INTEGER))
            )

        for column in table.columns:
            name = sanitize_name(column.name)
            relation = relations.get(column.name)
            if column.name == table.primary_key and relationship_name(column.name) == name:
                # Keep the key field; a same-named relationship would hide it
                relation = None
            if relation is not None:
                relation_field = FieldDescriptor(
                    relationship_name(column.name),
                    TypeRef(
                        node_type_name(relation.ref_table),
                        non_null=is_output_non_null(column),
                    ),
                    description=f"Row of '{relation.ref_table}' referenced by '{column.name}'",
                )
                self._builder.bind(
                    node,
                    relation_field.name,
                    partial(resolve_relationship, RelationBinding(relation)),
                )
                if relation_field.name == name:
                    # The relationship takes the place of the raw key column
                    fields.append(relation_field)
                    continue
                trailing.append(relation_field)

            fields.append(
                FieldDescriptor(
                    name, TypeRef(graphql_scalar(column), non_null=is_output_non_null(column))
                )
            )
            key = ColumnBatchKey(table=table.name, pk_column=table.primary_key, column=column.name)
            self._builder.bind(
                node, name, partial(resolve_column, ColumnBinding(key, column_kind(column)))
            )

        self._builder.add_type(
            TypeDescriptor(
                name=node,
                kind=TypeKind.OBJECT,
                description=f"Row of table '{table.name}'",
                fields=tuple(fields + trailing),
            )
        )

    def _add_mutations(self, table: TableDef, binding: TableBinding, base: str, node: str) -> None:
        key_ref = TypeRef(_key_scalar(table), non_null=True)

        insert_name = f"insert_{base}"
        insert_args: tuple[ArgumentDescriptor, ...] = ()
        if binding.insert_fields:
            insert_input = f"{insert_name}_input"
            self._builder.add_type(
                TypeDescriptor(
                    name=insert_input,
                    kind=TypeKind.INPUT_OBJECT,
                    fields=tuple(
                        FieldDescriptor(
                            name,
                            TypeRef(
                                graphql_scalar(column),
                                non_null=(
                                    column.name == table.primary_key
                                    or is_insert_required(column)
                                ),
                            ),
                        )
                        for name, column in binding.insert_fields.items()
                    ),
                )
            )
            insert_args = (ArgumentDescriptor("input", TypeRef(insert_input, non_null=True)),)
        self._mutation_fields.append(FieldDescriptor(insert_name, TypeRef(node), args=insert_args))
        self._builder.bind(MUTATION_TYPE, insert_name, partial(resolve_insert, binding))

        # A table with nothing but its key has nothing to update
        if binding.update_fields:
            update_name = f"update_{base}"
            update_input = f"{update_name}_input"
            self._builder.add_type(
                TypeDescriptor(
                    name=update_input,
                    kind=TypeKind.INPUT_OBJECT,
                    fields=tuple(
                        FieldDescriptor(name, TypeRef(graphql_scalar(column)))
                        for name, column in binding.update_fields.items()
                    ),
                )
            )
            self._mutation_fields.append(
                FieldDescriptor(
                    update_name,
                    TypeRef(node),
                    args=(
                        ArgumentDescriptor("id", key_ref),
                        ArgumentDescriptor("input", TypeRef(update_input, non_null=True)),
                    ),
                )
            )
            self._builder.bind(MUTATION_TYPE, update_name, partial(resolve_update, binding))

        delete_name = f"delete_{base}"
        self._mutation_fields.append(
            FieldDescriptor(delete_name, TypeRef("Int"), args=(ArgumentDescriptor("id", key_ref),))
        )
        self._builder.bind(MUTATION_TYPE, delete_name, partial(resolve_delete, binding))


def compile_registry(tables: Sequence[TableDef]) -> TypeRegistry:
    """Compile table descriptors into an immutable TypeRegistry."""
    return SchemaCompiler(tables).compile()
