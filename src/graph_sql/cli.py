#!/usr/bin/env python3
"""
Main CLI entry point for graph-sql.
"""

import asyncio
import sys
from pathlib import Path

import click
import uvicorn

from graph_sql import __version__
from graph_sql.config import settings
from graph_sql.logging import configure_logging, get_logger

logger = get_logger(__name__)


@click.group()
@click.version_option(version=__version__, prog_name="graph-sql")
def cli() -> None:
    """graph-sql - serve a SQLite database as a GraphQL API."""
    pass


@cli.command()
@click.option(
    "--host",
    default=settings.api_host,
    show_default=True,
    help="Host to bind to",
)
@click.option(
    "--port",
    default=settings.api_port,
    type=int,
    show_default=True,
    help="Port to bind to",
)
@click.option(
    "--database-url",
    default=None,
    help="SQLite URL, e.g. sqlite://local.db (default: GRAPHSQL_DATABASE_URL)",
)
@click.option(
    "--log-level",
    default=settings.log_level.lower(),
    type=click.Choice(["debug", "info", "warning", "error"]),
    show_default=True,
    help="Log level",
)
def serve(host: str, port: int, database_url: str | None, log_level: str) -> None:
    """Start the GraphQL API server."""
    configure_logging(debug=(log_level == "debug"))

    logger.info(
        "Starting graph-sql server",
        host=host,
        port=port,
        database_url=database_url or settings.database_url,
        log_level=log_level,
    )

    try:
        from graph_sql.api.app import create_app

        app = create_app(database_url=database_url)
        uvicorn.run(app, host=host, port=port, log_level=log_level, access_log=True)
    except KeyboardInterrupt:
        logger.info("Server shutdown requested by user")
    except Exception as e:
        logger.error("Server startup failed", error=str(e))
        sys.exit(1)


@cli.command()
@click.option(
    "--database-url",
    default=None,
    help="SQLite URL, e.g. sqlite://local.db (default: GRAPHSQL_DATABASE_URL)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the SDL to this file instead of stdout",
)
def introspect(database_url: str | None, output: Path | None) -> None:
    """Print the GraphQL schema generated for a database."""
    from graph_sql.database import QueryExecutor, dispose_database, init_database
    from graph_sql.errors import GraphSQLError
    from graph_sql.graphql.schema import SchemaManager

    # stdout carries the SDL
    configure_logging(debug=settings.debug, stream=sys.stderr)

    async def do_introspect() -> str:
        engine = init_database(database_url or settings.database_url, force_reinit=True)
        try:
            manager = SchemaManager(QueryExecutor(engine), excluded_tables=settings.excluded_tables)
            compiled = await manager.rebuild()
            return compiled.sdl()
        finally:
            await dispose_database()

    try:
        sdl = asyncio.run(do_introspect())
    except GraphSQLError as e:
        logger.error("Introspection failed", error=e.message, code=e.code)
        click.echo(f"✗ {e.code}: {e.message}", err=True)
        sys.exit(1)

    if output is None:
        click.echo(sdl)
    else:
        output.write_text(sdl + "\n", encoding="utf-8")
        click.echo(f"✓ Schema written to {output}")


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
