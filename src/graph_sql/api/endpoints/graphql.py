"""
GraphQL endpoint
"""

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from ...graphql.schema import SchemaManager
from ..dependencies import get_schema_manager

router = APIRouter()


class GraphQLRequest(BaseModel):
    """Standard GraphQL-over-HTTP request body."""

    model_config = ConfigDict(populate_by_name=True)

    query: str = Field(..., min_length=1, description="GraphQL document")
    variables: dict[str, Any] | None = Field(default=None, description="Variable values")
    operation_name: str | None = Field(
        default=None, alias="operationName", description="Operation to run"
    )


@router.post("/graphql")
async def graphql_endpoint(
    body: GraphQLRequest,
    manager: SchemaManager = Depends(get_schema_manager),
) -> dict[str, Any]:
    """Execute one GraphQL request; errors are reported next to partial data."""
    result = await manager.execute(
        body.query,
        variables=body.variables,
        operation_name=body.operation_name,
    )
    return result.formatted
