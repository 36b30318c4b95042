"""
Tests for the schema lifecycle: build, publish by swap, execute
"""

import pytest

from graph_sql.database.executor import QueryExecutor
from graph_sql.errors import InvalidSchema, SchemaConflict
from graph_sql.graphql.schema import SchemaManager


class TestRebuild:
    """Publishing new schemas."""

    @pytest.mark.asyncio
    async def test_current_requires_build(self, executor):
        manager = SchemaManager(executor, excluded_tables=[])

        assert manager.is_ready is False
        with pytest.raises(RuntimeError):
            _ = manager.current

    @pytest.mark.asyncio
    async def test_rebuild_swaps_and_keeps_old_snapshot(self, engine, manager):
        """Test that a rebuild publishes a new pair and leaves the old one intact."""
        before = manager.current
        assert before.version == 1

        async with engine.begin() as conn:
            await conn.exec_driver_sql("CREATE TABLE note(id INTEGER PRIMARY KEY, body TEXT)")

        after = await manager.rebuild()

        assert manager.current is after
        assert after.version == 2
        assert "note" in after.registry.tables
        assert "note" not in before.registry.tables
        assert "note_node" not in before.schema.type_map

    @pytest.mark.asyncio
    async def test_failed_rebuild_keeps_previous_schema(self, engine, manager):
        before = manager.current

        async with engine.begin() as conn:
            await conn.exec_driver_sql('CREATE TABLE "Query"(id INTEGER PRIMARY KEY)')

        with pytest.raises(SchemaConflict):
            await manager.rebuild()

        assert manager.current is before

    @pytest.mark.asyncio
    async def test_empty_database_is_invalid(self, make_engine, tmp_path):
        engine = await make_engine([], path=tmp_path / "empty.db")
        manager = SchemaManager(QueryExecutor(engine), excluded_tables=[])

        with pytest.raises(InvalidSchema):
            await manager.rebuild()

    @pytest.mark.asyncio
    async def test_sdl_export(self, manager):
        sdl = manager.current.sdl()

        assert "type Query {" in sdl
        assert "type Mutation {" in sdl
        assert "input insert_cake_input {" in sdl
        assert "list(input: list_cake_input!): [cake_node!]!" in sdl


class TestExecute:
    """Request execution."""

    @pytest.mark.asyncio
    async def test_syntax_error(self, manager):
        result = await manager.execute("{ cake { ")

        assert result.data is None
        assert len(result.errors) == 1

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, manager):
        result = await manager.execute("{ cake { list(input: {page: 1, limit: 1}) { nope } } }")

        assert result.data is None
        assert "nope" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_introspection_enabled_by_default(self, manager):
        result = await manager.execute("{ __schema { queryType { name } } }")

        assert result.errors is None
        assert result.data == {"__schema": {"queryType": {"name": "Query"}}}

    @pytest.mark.asyncio
    async def test_introspection_can_be_disabled(self, executor):
        manager = SchemaManager(executor, excluded_tables=[], disable_introspection=True)
        await manager.rebuild()

        result = await manager.execute("{ __schema { queryType { name } } }")

        assert result.data is None
        assert result.errors

        # Ordinary queries still work, including __typename
        ok = await manager.execute("{ cake { __typename } }")
        assert ok.errors is None
        assert ok.data == {"cake": {"__typename": "cake"}}

    @pytest.mark.asyncio
    async def test_operation_name_selects_operation(self, manager):
        document = """
            query A { cake { __typename } }
            query B { filling { __typename } }
        """

        result = await manager.execute(document, operation_name="B")

        assert result.data == {"filling": {"__typename": "filling"}}


class TestSafeguards:
    """Depth limit and suggestion-free messages."""

    DEEP = "{ cake { list(input: {page: 1, limit: 1}) { name } } }"

    @pytest.mark.asyncio
    async def test_depth_unlimited_by_default(self, manager):
        result = await manager.execute(self.DEEP)

        assert result.errors is None

    @pytest.mark.asyncio
    async def test_depth_limit_rejects_deep_operation(self, executor):
        """Test that an operation nested past the limit is rejected before execution."""
        manager = SchemaManager(executor, excluded_tables=[], max_query_depth=2)
        await manager.rebuild()

        result = await manager.execute(self.DEEP)

        assert result.data is None
        assert "exceeds maximum depth of 2" in result.errors[0].message
        assert result.errors[0].extensions == {"code": "QUERY_TOO_DEEP"}

        shallow = await manager.execute("{ cake { __typename } }")
        assert shallow.errors is None

    @pytest.mark.asyncio
    async def test_depth_limit_follows_fragments(self, executor):
        manager = SchemaManager(executor, excluded_tables=[], max_query_depth=2)
        await manager.rebuild()

        result = await manager.execute(
            """
            query Deep { ...Cakes }
            fragment Cakes on Query {
              cake { ... on cake { list(input: {page: 1, limit: 1}) { id } } }
            }
            """
        )

        assert result.data is None
        assert "'Deep' exceeds maximum depth of 2" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_depth_limit_ignores_introspection(self, executor):
        manager = SchemaManager(executor, excluded_tables=[], max_query_depth=2)
        await manager.rebuild()

        result = await manager.execute("{ __schema { types { fields { type { name } } } } }")

        assert result.errors is None

    @pytest.mark.asyncio
    async def test_suggestions_shown_by_default(self, manager):
        result = await manager.execute("{ cak { __typename } }")

        assert "Did you mean 'cake'?" in result.errors[0].message

    @pytest.mark.asyncio
    async def test_suggestions_can_be_disabled(self, executor):
        manager = SchemaManager(executor, excluded_tables=[], disable_suggestions=True)
        await manager.rebuild()

        result = await manager.execute("{ cak { __typename } }")

        assert result.errors[0].message == "Cannot query field 'cak' on type 'Query'."
        assert result.errors[0].locations
