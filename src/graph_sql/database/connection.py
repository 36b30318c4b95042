"""
Database connection management
"""

import os
import threading
from typing import Any

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from ..config import settings
from ..logging import get_logger

logger = get_logger(__name__)

# Global shared connection pool
_async_engine: AsyncEngine | None = None
_initialized = False
_init_lock = threading.Lock()  # Protect initialization from race conditions


def get_database_url() -> str:
    """Get database URL, checking environment variables first for test compatibility."""
    return os.getenv("GRAPHSQL_DATABASE_URL") or settings.database_url


def to_async_url(database_url: str) -> str:
    """Normalize a SQLite URL onto the aiosqlite driver.

    ``sqlite://local.db`` (the sqlx form) and ``sqlite:///local.db`` (the
    SQLAlchemy form) both become ``sqlite+aiosqlite:///local.db``.
    """
    if database_url.startswith("sqlite+aiosqlite://"):
        return database_url
    if database_url.startswith("sqlite:///"):
        return database_url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
    if database_url.startswith("sqlite://"):
        rest = database_url[len("sqlite://") :]
        if rest in ("", ":memory:"):
            return "sqlite+aiosqlite://"
        return f"sqlite+aiosqlite:///{rest}"
    raise ValueError(f"Unsupported database URL (SQLite only): {database_url}")


def create_engine_for(
    database_url: str,
    *,
    foreign_keys: bool | None = None,
    busy_timeout: int | None = None,
    echo: bool | None = None,
) -> AsyncEngine:
    """Create an async engine and install the per-connection SQLite pragmas."""
    foreign_keys = settings.sqlite_foreign_keys if foreign_keys is None else foreign_keys
    busy_timeout = settings.sqlite_busy_timeout if busy_timeout is None else busy_timeout

    engine = create_async_engine(
        to_async_url(database_url),
        echo=settings.sql_echo if echo is None else echo,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _apply_pragmas(dbapi_connection: Any, connection_record: Any) -> None:
        _ = connection_record
        cursor = dbapi_connection.cursor()
        cursor.execute(f"PRAGMA foreign_keys={'ON' if foreign_keys else 'OFF'}")
        cursor.execute(f"PRAGMA busy_timeout={int(busy_timeout) * 1000}")
        cursor.close()

    return engine


def init_database(database_url: str | None = None, force_reinit: bool = False) -> AsyncEngine:
    """Initialize the shared engine.

    Thread-safe initialization using a lock to prevent race conditions
    when multiple threads attempt to initialize simultaneously.
    """
    global _async_engine, _initialized

    if _initialized and not force_reinit and database_url is None:
        assert _async_engine is not None
        return _async_engine

    with _init_lock:
        if _initialized and not force_reinit and database_url is None:
            assert _async_engine is not None
            return _async_engine

        db_url = database_url or get_database_url()
        _async_engine = create_engine_for(db_url)
        _initialized = True
        logger.info("Database initialized", database_url=db_url)
        return _async_engine


def get_async_engine() -> AsyncEngine:
    """Get the shared async SQLAlchemy engine."""
    if _async_engine is None:
        return init_database()
    return _async_engine


def reset_database() -> None:
    """Forget the shared engine without disposing it (for tests)."""
    global _async_engine, _initialized
    _async_engine = None
    _initialized = False


async def dispose_database() -> None:
    """Close every pooled connection and forget the shared engine."""
    engine = _async_engine
    reset_database()
    if engine is not None:
        await engine.dispose()
        logger.info("Database connections disposed")


async def test_database_connection(engine: AsyncEngine | None = None) -> tuple[bool, str | None]:
    """
    Test the database connection and return helpful error messages.

    Returns:
        tuple: (success: bool, error_message: str | None)
    """
    engine = engine or _async_engine
    if engine is None:
        return False, "Database engine not initialized"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
            return True, None
    except Exception as e:
        error_str = str(e)
        if "unable to open database file" in error_str:
            return False, (
                f"Cannot open database file: {error_str}\n"
                f"Please check that the directory exists and is writable."
            )
        return False, f"Database connection error ({type(e).__name__}): {error_str}"


# Not a pytest test despite the name
test_database_connection.__test__ = False  # type: ignore[attr-defined]
