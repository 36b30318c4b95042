"""
Schema export and reload endpoints
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import PlainTextResponse

from ...errors import GraphSQLError
from ...graphql.schema import SchemaManager
from ...logging import get_logger
from ..dependencies import get_schema_manager

logger = get_logger(__name__)

router = APIRouter()

# Mounted only when schema reloads are enabled
reload_router = APIRouter()


@router.get("", response_class=PlainTextResponse)
async def get_schema_sdl(manager: SchemaManager = Depends(get_schema_manager)) -> str:
    """Return the published schema as SDL."""
    return manager.current.sdl()


@reload_router.post("/reload")
async def reload_schema(manager: SchemaManager = Depends(get_schema_manager)) -> dict[str, Any]:
    """
    Re-introspect the database and publish a new schema.

    The previous schema keeps serving if the rebuild fails.
    """
    try:
        compiled = await manager.rebuild()
    except GraphSQLError as e:
        logger.error("Schema reload failed", error=e.message, code=e.code)
        raise HTTPException(status_code=422, detail=e.extensions | {"message": e.message}) from e

    return {
        "version": compiled.version,
        "tables": list(compiled.registry.tables),
        "built_at": compiled.built_at.isoformat(),
    }

