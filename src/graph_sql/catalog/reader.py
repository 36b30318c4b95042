"""
Catalog reader: fetch table definitions from sqlite_master
"""

from ..config import is_internal_table, settings
from ..database.executor import QueryExecutor
from ..logging import get_logger
from .models import TableDef
from .parser import parse_table_definition

logger = get_logger(__name__)

CATALOG_QUERY = """
    SELECT name, sql
    FROM sqlite_master
    WHERE type = 'table'
    ORDER BY name
"""


class CatalogReader:
    """Reads every user table definition and parses it.

    One call to ``introspect`` is one introspection pass: it either returns
    descriptors for every table or raises, never a partial list.
    """

    def __init__(self, executor: QueryExecutor, excluded_tables: list[str] | None = None):
        self.executor = executor
        self.excluded_tables = list(
            settings.excluded_tables if excluded_tables is None else excluded_tables
        )

    async def read_definitions(self) -> list[tuple[str, str]]:
        """Return ``(name, definition text)`` for every non-internal table."""
        rows = await self.executor.fetch_text(CATALOG_QUERY)
        definitions = []
        for name, sql in rows:
            if is_internal_table(name, self.excluded_tables):
                logger.debug("Excluding internal table", table=name)
                continue
            if not sql:
                # Auto-created tables carry no definition text
                continue
            definitions.append((name, sql))
        return definitions

    async def introspect(self) -> list[TableDef]:
        """Parse every definition into a TableDef.

        Raises:
            ParseError: If any definition is unparsable
        """
        logger.info("Starting database introspection")
        tables = []
        for name, sql in await self.read_definitions():
            table = parse_table_definition(name, sql)
            if table is not None:
                tables.append(table)

        logger.info("Introspection complete", tables=[t.name for t in tables])
        return tables
