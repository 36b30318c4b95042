"""
Shared pytest fixtures and configuration for all tests.
"""

from collections.abc import AsyncGenerator
from pathlib import Path
from typing import Any

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine

from graph_sql.database.connection import create_engine_for
from graph_sql.database.executor import QueryExecutor
from graph_sql.graphql.schema import SchemaManager

BAKERY_SCHEMA = [
    """
    CREATE TABLE cake(
      id integer NOT NULL PRIMARY KEY AUTOINCREMENT,
      name text NOT NULL,
      price real,
      is_vegan integer,
      description text,
      image BLOB,
      rating numeric
    )
    """,
    """
    CREATE TABLE filling(
      id integer NOT NULL PRIMARY KEY AUTOINCREMENT,
      name text NOT NULL,
      calories integer
    )
    """,
    """
    CREATE TABLE fruit(
      id integer NOT NULL PRIMARY KEY AUTOINCREMENT,
      name text NOT NULL,
      cake_id integer NOT NULL REFERENCES cake(id) ON DELETE CASCADE,
      color text
    )
    """,
    """
    CREATE TABLE cake_filling(
      id integer PRIMARY KEY,
      cake_id integer NOT NULL REFERENCES cake(id),
      filling_id integer NOT NULL REFERENCES filling(id),
      amount integer
    )
    """,
]


def sqlite_url(path: Path) -> str:
    return f"sqlite:///{path}"


@pytest.fixture
def database_path(tmp_path: Path) -> Path:
    return tmp_path / "bakery.db"


@pytest_asyncio.fixture
async def make_engine(database_path: Path) -> AsyncGenerator[Any, None]:
    """Factory creating engines on a fresh SQLite file with the given DDL."""
    engines: list[AsyncEngine] = []

    async def _make(statements: list[str], path: Path | None = None) -> AsyncEngine:
        engine = create_engine_for(
            sqlite_url(path or database_path), foreign_keys=True, busy_timeout=5, echo=False
        )
        async with engine.begin() as conn:
            for statement in statements:
                await conn.exec_driver_sql(statement)
        engines.append(engine)
        return engine

    yield _make

    for engine in engines:
        await engine.dispose()


@pytest_asyncio.fixture
async def engine(make_engine) -> AsyncEngine:
    """Engine over a SQLite file holding the bakery schema."""
    return await make_engine(BAKERY_SCHEMA)


@pytest.fixture
def executor(engine: AsyncEngine) -> QueryExecutor:
    return QueryExecutor(engine)


@pytest_asyncio.fixture
async def manager(executor: QueryExecutor) -> SchemaManager:
    """SchemaManager with the bakery schema already published."""
    schema_manager = SchemaManager(executor, excluded_tables=[])
    await schema_manager.rebuild()
    return schema_manager


@pytest.fixture
def statements(engine: AsyncEngine):
    """Record every SQL statement sent to the driver."""
    captured: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        captured.append(statement)

    event.listen(engine.sync_engine, "before_cursor_execute", _record)
    yield captured
    event.remove(engine.sync_engine, "before_cursor_execute", _record)


@pytest.fixture
def gql(manager: SchemaManager):
    """Execute a GraphQL document against the published schema.

    Returns the formatted result; pass ``ok=True`` to assert there were no errors
    and get ``data`` back directly.
    """

    async def _run(query: str, variables: dict[str, Any] | None = None, ok: bool = False):
        result = (await manager.execute(query, variables=variables)).formatted
        if ok:
            assert "errors" not in result, result["errors"]
            return result["data"]
        return result

    return _run
