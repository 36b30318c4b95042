"""
Type registry: tagged type descriptors plus a (type, field) -> resolver table.

A registry is built once by RegistryBuilder and never mutated afterwards.
"""

from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any

from ..catalog.models import TableDef
from ..errors import SchemaConflict
from ..logging import get_logger

logger = get_logger(__name__)

QUERY_TYPE = "Query"
MUTATION_TYPE = "Mutation"
BUILTIN_SCALARS = ("Int", "Float", "String", "Boolean", "ID")

Resolver = Callable[..., Awaitable[Any]]


class TypeKind(Enum):
    SCALAR = "scalar"
    OBJECT = "object"
    INPUT_OBJECT = "input_object"


@dataclass(frozen=True)
class TypeRef:
    """Reference to a named type with list and non-null wrappers."""

    name: str
    non_null: bool = False
    is_list: bool = False
    item_non_null: bool = False

    def __str__(self) -> str:
        inner = self.name
        if self.is_list:
            inner = f"[{inner}{'!' if self.item_non_null else ''}]"
        return f"{inner}{'!' if self.non_null else ''}"


@dataclass(frozen=True)
class ArgumentDescriptor:
    name: str
    type_ref: TypeRef


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    type_ref: TypeRef
    args: tuple[ArgumentDescriptor, ...] = ()
    description: str | None = None


@dataclass(frozen=True)
class TypeDescriptor:
    name: str
    kind: TypeKind
    fields: tuple[FieldDescriptor, ...] = ()
    description: str | None = None

    def field(self, name: str) -> FieldDescriptor | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None


class TypeRegistry:
    """Read-only view over the compiled types and their resolver bindings."""

    def __init__(
        self,
        types: Mapping[str, TypeDescriptor],
        resolvers: Mapping[tuple[str, str], Resolver],
        tables: Mapping[str, TableDef],
    ):
        self._types = MappingProxyType(dict(types))
        self._resolvers = MappingProxyType(dict(resolvers))
        self.tables = MappingProxyType(dict(tables))

    def __iter__(self) -> Iterator[TypeDescriptor]:
        return iter(self._types.values())

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def get(self, name: str) -> TypeDescriptor | None:
        return self._types.get(name)

    def resolver_for(self, type_name: str, field_name: str) -> Resolver | None:
        return self._resolvers.get((type_name, field_name))

    @property
    def bindings(self) -> Mapping[tuple[str, str], Resolver]:
        return self._resolvers


class RegistryBuilder:
    """Accumulates descriptors and rejects name collisions."""

    def __init__(self) -> None:
        self._types: dict[str, TypeDescriptor] = {}
        self._resolvers: dict[tuple[str, str], Resolver] = {}
        self._tables: dict[str, TableDef] = {}
        for name in BUILTIN_SCALARS:
            self._types[name] = TypeDescriptor(name=name, kind=TypeKind.SCALAR)

    def add_type(self, descriptor: TypeDescriptor) -> TypeDescriptor:
        """Register a type.

        Raises:
            SchemaConflict: If the type name or one of its field names is taken
        """
        if descriptor.name in self._types:
            raise SchemaConflict(
                f"Generated type name '{descriptor.name}' is already defined",
                type_name=descriptor.name,
            )
        seen: set[str] = set()
        for field in descriptor.fields:
            if field.name in seen:
                raise SchemaConflict(
                    f"Type '{descriptor.name}' defines field '{field.name}' twice",
                    type_name=descriptor.name,
                    field_name=field.name,
                )
            seen.add(field.name)

        self._types[descriptor.name] = descriptor
        return descriptor

    def bind(self, type_name: str, field_name: str, resolver: Resolver) -> None:
        self._resolvers[(type_name, field_name)] = resolver

    def add_table(self, graphql_name: str, table: TableDef) -> None:
        self._tables[graphql_name] = table

    def build(self) -> TypeRegistry:
        for type_name, field_name in self._resolvers:
            descriptor = self._types.get(type_name)
            if descriptor is None or descriptor.field(field_name) is None:
                raise SchemaConflict(
                    f"Resolver bound to unknown field '{type_name}.{field_name}'",
                    type_name=type_name,
                    field_name=field_name,
                )
        logger.debug("Registry built", types=len(self._types), resolvers=len(self._resolvers))
        return TypeRegistry(self._types, self._resolvers, self._tables)
