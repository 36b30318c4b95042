"""
Main FastAPI application for graph-sql
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI

from .. import __version__
from ..config import Settings, settings
from ..database import QueryExecutor, dispose_database, init_database
from ..database.connection import test_database_connection
from ..graphql.schema import SchemaManager
from ..logging import configure_logging, get_logger
from ..middleware import LoggingContextMiddleware

logger = get_logger(__name__)


def create_app(database_url: str | None = None, app_settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        database_url: Overrides ``Settings.database_url``
        app_settings: Settings to use instead of the global instance
    """
    config = app_settings or settings
    configure_logging(debug=config.debug)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Connect, publish the first schema, and dispose connections on shutdown."""
        logger.info("Starting graph-sql API...")
        engine = init_database(database_url or config.database_url, force_reinit=True)

        ok, error = await test_database_connection(engine)
        if not ok:
            logger.error("Database connection failed", error=error)
            raise RuntimeError(error)

        manager = SchemaManager(
            QueryExecutor(engine),
            excluded_tables=config.excluded_tables,
            max_batch_size=config.max_batch_size,
            disable_introspection=config.disable_introspection,
            max_query_depth=config.max_query_depth,
            disable_suggestions=config.disable_suggestions,
        )
        # Fail fast: the server does not start without a valid schema
        await manager.rebuild()
        app.state.schema_manager = manager

        yield

        logger.info("Shutting down graph-sql API...")
        app.state.schema_manager = None
        await dispose_database()

    app = FastAPI(
        title="graph-sql",
        description="Instant GraphQL API over an existing SQLite database",
        version=__version__,
        lifespan=lifespan,
        debug=config.debug,
    )
    app.state.schema_manager = None

    app.add_middleware(LoggingContextMiddleware)

    @app.get("/health")
    async def health_check():  # pyright: ignore [reportUnusedFunction]
        """Health check endpoint."""
        manager = app.state.schema_manager
        return {
            "status": "healthy" if manager is not None and manager.is_ready else "starting",
            "version": __version__,
            "schema_version": manager.current.version if manager and manager.is_ready else None,
        }

    from .endpoints import graphql, schema

    app.include_router(graphql.router, tags=["GraphQL"])
    app.include_router(schema.router, prefix="/schema", tags=["Schema"])
    if config.enable_schema_reload:
        app.include_router(schema.reload_router, prefix="/schema", tags=["Schema"])
        logger.info("Schema reload endpoint enabled", endpoint="/schema/reload")

    return app
