"""
Tests for the catalog reader
"""

import pytest

from graph_sql.catalog.reader import CatalogReader
from graph_sql.database.executor import QueryExecutor
from graph_sql.errors import ParseError


class TestCatalogReader:
    """Tests for CatalogReader.introspect."""

    @pytest.mark.asyncio
    async def test_reads_user_tables_in_name_order(self, executor):
        """Test that user tables come back sorted and internal tables are excluded."""
        tables = await CatalogReader(executor, excluded_tables=[]).introspect()

        # AUTOINCREMENT creates sqlite_sequence, which must not appear
        assert [t.name for t in tables] == ["cake", "cake_filling", "filling", "fruit"]

    @pytest.mark.asyncio
    async def test_excluded_tables(self, executor):
        """Test that configured exclusions are honoured."""
        tables = await CatalogReader(executor, excluded_tables=["fruit"]).introspect()

        assert "fruit" not in [t.name for t in tables]

    @pytest.mark.asyncio
    async def test_migration_tables_excluded(self, make_engine, tmp_path):
        """Test that migration bookkeeping tables are never introspected."""
        engine = await make_engine(
            [
                "CREATE TABLE _sqlx_migrations(version INTEGER PRIMARY KEY, description TEXT)",
                "CREATE TABLE alembic_version(version_num VARCHAR(32) NOT NULL PRIMARY KEY)",
                "CREATE TABLE note(id INTEGER PRIMARY KEY, body TEXT)",
            ],
            path=tmp_path / "migrations.db",
        )

        tables = await CatalogReader(QueryExecutor(engine), excluded_tables=[]).introspect()

        assert [t.name for t in tables] == ["note"]

    @pytest.mark.asyncio
    async def test_views_are_not_tables(self, make_engine, tmp_path):
        """Test that views in the catalog produce no descriptor."""
        engine = await make_engine(
            [
                "CREATE TABLE note(id INTEGER PRIMARY KEY, body TEXT)",
                "CREATE VIEW note_bodies AS SELECT body FROM note",
            ],
            path=tmp_path / "views.db",
        )

        tables = await CatalogReader(QueryExecutor(engine), excluded_tables=[]).introspect()

        assert [t.name for t in tables] == ["note"]

    @pytest.mark.asyncio
    async def test_parse_failure_aborts(self, executor, monkeypatch):
        """Test that one unparsable definition fails the whole pass."""
        reader = CatalogReader(executor, excluded_tables=[])

        async def fake_definitions():
            return [
                ("good", "CREATE TABLE good(id INTEGER PRIMARY KEY)"),
                ("bad", "CREATE TABLE bad(id INTEGER PRIMARY KEY,,,"),
            ]

        monkeypatch.setattr(reader, "read_definitions", fake_definitions)

        with pytest.raises(ParseError):
            await reader.introspect()
