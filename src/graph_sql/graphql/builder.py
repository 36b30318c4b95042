"""
Turn a TypeRegistry into an executable graphql-core schema, and export SDL.

Resolvers are not attached to the graphql-core fields; execution dispatches
through ``registry.resolver_for`` instead (see ``schema.dispatch_resolver``).
"""

from graphql import (
    GraphQLArgument,
    GraphQLBoolean,
    GraphQLField,
    GraphQLFloat,
    GraphQLID,
    GraphQLInputField,
    GraphQLInputObjectType,
    GraphQLInt,
    GraphQLList,
    GraphQLNamedType,
    GraphQLNonNull,
    GraphQLObjectType,
    GraphQLSchema,
    GraphQLString,
    print_schema,
)

from .registry import MUTATION_TYPE, QUERY_TYPE, TypeDescriptor, TypeKind, TypeRef, TypeRegistry

_BUILTIN: dict[str, GraphQLNamedType] = {
    "Int": GraphQLInt,
    "Float": GraphQLFloat,
    "String": GraphQLString,
    "Boolean": GraphQLBoolean,
    "ID": GraphQLID,
}


class SchemaBuilder:
    """Materializes registry descriptors as graphql-core types.

    Field maps are thunks, so types may reference each other in any order.
    """

    def __init__(self, registry: TypeRegistry):
        self.registry = registry
        self._types: dict[str, GraphQLNamedType] = dict(_BUILTIN)

    def build(self) -> GraphQLSchema:
        for descriptor in self.registry:
            if descriptor.kind is TypeKind.OBJECT:
                self._types[descriptor.name] = self._object_type(descriptor)
            elif descriptor.kind is TypeKind.INPUT_OBJECT:
                self._types[descriptor.name] = self._input_type(descriptor)

        mutation = self._types.get(MUTATION_TYPE)
        return GraphQLSchema(
            query=self._types[QUERY_TYPE],
            mutation=mutation,
            # Keep registry order in the printed schema
            types=[
                self._types[d.name] for d in self.registry if d.kind is not TypeKind.SCALAR
            ],
        )

    def _wrap(self, ref: TypeRef):
        gql_type = self._types[ref.name]
        if ref.is_list:
            item = GraphQLNonNull(gql_type) if ref.item_non_null else gql_type
            gql_type = GraphQLList(item)
        return GraphQLNonNull(gql_type) if ref.non_null else gql_type

    def _object_type(self, descriptor: TypeDescriptor) -> GraphQLObjectType:
        def fields() -> dict[str, GraphQLField]:
            return {
                field.name: GraphQLField(
                    self._wrap(field.type_ref),
                    args={
                        arg.name: GraphQLArgument(self._wrap(arg.type_ref)) for arg in field.args
                    },
                    description=field.description,
                )
                for field in descriptor.fields
            }

        return GraphQLObjectType(descriptor.name, fields, description=descriptor.description)

    def _input_type(self, descriptor: TypeDescriptor) -> GraphQLInputObjectType:
        def fields() -> dict[str, GraphQLInputField]:
            return {
                field.name: GraphQLInputField(
                    self._wrap(field.type_ref), description=field.description
                )
                for field in descriptor.fields
            }

        return GraphQLInputObjectType(descriptor.name, fields, description=descriptor.description)


def build_schema(registry: TypeRegistry) -> GraphQLSchema:
    """Build an executable schema from a registry."""
    return SchemaBuilder(registry).build()


def export_sdl(schema: GraphQLSchema) -> str:
    """Render a schema as SDL text."""
    return print_schema(schema)
