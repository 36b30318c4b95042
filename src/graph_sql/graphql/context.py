"""
Per-request state and the values threaded between parent and child fields
"""

from dataclasses import dataclass
from typing import Any

from graphql import GraphQLResolveInfo

from ..database.executor import QueryExecutor
from .loaders import Loaders
from .registry import TypeRegistry


@dataclass(frozen=True)
class RowRef:
    """Identity of one row: the only parent value a record field ever sees."""

    table: str
    pk: Any


@dataclass(frozen=True)
class TableRoot:
    """Value of a root ``Query.<table>`` field; anchors ``list`` and ``view``."""

    table: str


@dataclass
class RequestContext:
    """Everything a resolver may touch during one request."""

    executor: QueryExecutor
    registry: TypeRegistry
    loaders: Loaders


def create_request_context(
    executor: QueryExecutor,
    registry: TypeRegistry,
    max_batch_size: int | None = None,
) -> RequestContext:
    """Allocate fresh request-scoped state; nothing here outlives the request."""
    return RequestContext(
        executor=executor,
        registry=registry,
        loaders=Loaders(executor, max_batch_size=max_batch_size),
    )


def get_context(info: GraphQLResolveInfo) -> RequestContext:
    return info.context
