"""
Query executor: the single boundary between generated statements and the driver.

Driver failures leave this module as GraphSQLError subclasses carrying only the
driver's message; statement text and bound parameters never reach a client.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from sqlalchemy import Row, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.sql import Executable

from ..errors import ConstraintViolation, StoreError
from ..logging import get_logger

logger = get_logger(__name__)


def driver_message(error: SQLAlchemyError) -> str:
    """Message of the underlying driver error, without SQL text or parameters."""
    orig = getattr(error, "orig", None)
    return str(orig) if orig is not None else type(error).__name__


@dataclass(frozen=True)
class WriteResult:
    """Outcome of a single write statement."""

    rowcount: int
    returned: tuple[Row[Any], ...] = ()


class QueryExecutor:
    """Runs statements against a shared engine.

    Reads use a plain connection; each write runs in its own ``begin()`` block
    so it commits on its own. There is no transaction spanning a request.
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine

    async def fetch_all(self, statement: Executable) -> Sequence[Row[Any]]:
        """Execute a read statement and return every row.

        Raises:
            StoreError: If the store cannot run the statement
        """
        logger.debug("Executing read", statement=str(statement))
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(statement)
                return result.all()
        except SQLAlchemyError as e:
            message = driver_message(e)
            logger.error("Read failed", error=message)
            raise StoreError(message) from e

    async def fetch_text(
        self, sql: str, params: dict[str, Any] | None = None
    ) -> Sequence[Row[Any]]:
        """Execute raw SQL (catalog queries only) and return every row."""
        try:
            async with self.engine.connect() as conn:
                result = await conn.execute(text(sql), params or {})
                return result.all()
        except SQLAlchemyError as e:
            message = driver_message(e)
            logger.error("Catalog query failed", error=message)
            raise StoreError(message) from e

    async def execute_write(self, statement: Executable, returning: bool = False) -> WriteResult:
        """Execute a write statement in its own transaction.

        Raises:
            ConstraintViolation: If the store rejects the write
            StoreError: If the store cannot run the statement
        """
        logger.debug("Executing write", statement=str(statement))
        try:
            async with self.engine.begin() as conn:
                result = await conn.execute(statement)
                rows = tuple(result.all()) if returning else ()
                return WriteResult(rowcount=result.rowcount, returned=rows)
        except IntegrityError as e:
            message = driver_message(e)
            logger.info("Write rejected by constraint", error=message)
            raise ConstraintViolation(message) from e
        except SQLAlchemyError as e:
            message = driver_message(e)
            logger.error("Write failed", error=message)
            raise StoreError(message) from e
