"""
FastAPI dependencies
"""

from fastapi import HTTPException, Request

from ..graphql.schema import SchemaManager


def get_schema_manager(request: Request) -> SchemaManager:
    """Return the app's SchemaManager once a schema has been published."""
    manager: SchemaManager | None = getattr(request.app.state, "schema_manager", None)
    if manager is None or not manager.is_ready:
        raise HTTPException(status_code=503, detail="Schema is not available yet")
    return manager
