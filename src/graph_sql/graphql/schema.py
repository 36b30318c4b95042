"""
Schema lifecycle: introspect, compile, build, publish, execute.

The published CompiledSchema is process-wide and read-only. ``rebuild``
produces a complete new one and swaps a single reference; a request captures
the current one when it starts and keeps it until it finishes.
"""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from functools import partial
from inspect import isawaitable
from typing import Any

from graphql import (
    ExecutionResult,
    GraphQLError,
    GraphQLResolveInfo,
    GraphQLSchema,
    NoSchemaIntrospectionCustomRule,
    default_field_resolver,
    execute,
    parse,
    specified_rules,
    validate,
    validate_schema,
)

from ..catalog.reader import CatalogReader
from ..database.executor import QueryExecutor
from ..errors import InvalidSchema
from ..logging import get_logger
from .builder import build_schema, export_sdl
from .compiler import compile_registry
from .context import create_request_context
from .registry import TypeRegistry
from .validation import depth_limit_rule, strip_suggestions

logger = get_logger(__name__)


@dataclass(frozen=True)
class CompiledSchema:
    """A registry and the executable schema built from it, published together."""

    registry: TypeRegistry
    schema: GraphQLSchema
    version: int
    built_at: datetime

    def sdl(self) -> str:
        return export_sdl(self.schema)


def dispatch_resolver(registry: TypeRegistry, source: Any, info: GraphQLResolveInfo, **args: Any):
    """Field resolver that looks up ``(parent type, field)`` in the registry."""
    resolver = registry.resolver_for(info.parent_type.name, info.field_name)
    if resolver is None:
        return default_field_resolver(source, info, **args)
    return resolver(source, info, **args)


def build_compiled_schema(registry: TypeRegistry, version: int) -> CompiledSchema:
    """Build and validate the executable schema for a registry.

    Raises:
        InvalidSchema: If graphql-core rejects the generated schema
    """
    schema = build_schema(registry)
    errors = validate_schema(schema)
    if errors:
        messages = [error.message for error in errors]
        logger.error("Generated schema is invalid", errors=messages)
        raise InvalidSchema(f"Generated schema is invalid: {'; '.join(messages)}", errors=messages)
    return CompiledSchema(
        registry=registry, schema=schema, version=version, built_at=datetime.now(UTC)
    )


class SchemaManager:
    """Owns the published schema and executes requests against it."""

    def __init__(
        self,
        executor: QueryExecutor,
        excluded_tables: list[str] | None = None,
        max_batch_size: int | None = None,
        disable_introspection: bool = False,
        max_query_depth: int | None = None,
        disable_suggestions: bool = False,
    ):
        self.executor = executor
        self.excluded_tables = excluded_tables
        self.max_batch_size = max_batch_size
        self.disable_introspection = disable_introspection
        self.max_query_depth = max_query_depth
        self._depth_rule = (
            depth_limit_rule(max_query_depth) if max_query_depth is not None else None
        )
        self.disable_suggestions = disable_suggestions
        self._current: CompiledSchema | None = None
        self._lock = asyncio.Lock()

    @property
    def current(self) -> CompiledSchema:
        if self._current is None:
            raise RuntimeError("Schema has not been built; call rebuild() first")
        return self._current

    @property
    def is_ready(self) -> bool:
        return self._current is not None

    async def rebuild(self) -> CompiledSchema:
        """
        Introspect the catalog and publish a freshly compiled schema.

        On failure the previously published schema stays in place.

        Raises:
            ParseError: If a table definition cannot be parsed
            SchemaConflict: If generated names collide
            InvalidSchema: If the generated schema fails validation
        """
        async with self._lock:
            version = self._current.version + 1 if self._current else 1
            logger.info("Rebuilding schema", version=version)

            reader = CatalogReader(self.executor, excluded_tables=self.excluded_tables)
            tables = await reader.introspect()
            registry = compile_registry(tables)
            compiled = build_compiled_schema(registry, version)

            self._current = compiled
            logger.info("Schema published", version=version, tables=list(registry.tables))
            return compiled

    def validation_rules(self) -> list:
        rules = list(specified_rules)
        if self.disable_introspection:
            rules.append(NoSchemaIntrospectionCustomRule)
        if self._depth_rule is not None:
            rules.append(self._depth_rule)
        return rules

    def _errors(self, errors: list[GraphQLError]) -> list[GraphQLError]:
        if not self.disable_suggestions:
            return errors
        return [strip_suggestions(error) for error in errors]

    async def execute(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        operation_name: str | None = None,
    ) -> ExecutionResult:
        """Run one GraphQL request against the schema current at call time."""
        compiled = self.current

        try:
            document = parse(query)
        except GraphQLError as e:
            logger.info("Rejected unparsable query", error=e.message)
            return ExecutionResult(data=None, errors=self._errors([e]))

        errors = validate(compiled.schema, document, self.validation_rules())
        if errors:
            logger.info("Rejected invalid query", errors=[e.message for e in errors])
            return ExecutionResult(data=None, errors=self._errors(errors))

        context = create_request_context(
            self.executor, compiled.registry, max_batch_size=self.max_batch_size
        )
        result = execute(
            compiled.schema,
            document,
            context_value=context,
            variable_values=variables,
            operation_name=operation_name,
            field_resolver=partial(dispatch_resolver, compiled.registry),
        )
        if isawaitable(result):
            result = await result

        if result.errors:
            logger.info(
                "Request finished with field errors",
                schema_version=compiled.version,
                errors=[e.message for e in result.errors],
            )
            if self.disable_suggestions:
                result = ExecutionResult(
                    data=result.data,
                    errors=self._errors(result.errors),
                    extensions=result.extensions,
                )
        return result
