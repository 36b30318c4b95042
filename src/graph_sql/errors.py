"""
Error taxonomy for graph-sql.

ParseError, SchemaConflict and InvalidSchema abort introspection or
compilation as a whole. All other errors are raised inside resolvers and
surface as field-scoped GraphQL errors; graphql-core copies ``extensions``
from the original error.
"""

from typing import Any


class GraphSQLError(Exception):
    """Base exception for graph-sql."""

    code = "INTERNAL"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def extensions(self) -> dict[str, Any]:
        return {"code": self.code, **self.details}


class ParseError(GraphSQLError):
    """A catalog definition could not be parsed."""

    code = "PARSE_ERROR"


class SchemaConflict(GraphSQLError):
    """Two generated types (or two fields of one type) share a name."""

    code = "SCHEMA_CONFLICT"


class ValidationError(GraphSQLError):
    """Arguments to a generated field are out of range or malformed."""

    code = "VALIDATION_ERROR"


class NotFound(GraphSQLError):
    """The addressed row does not exist."""

    code = "NOT_FOUND"


class ConstraintViolation(GraphSQLError):
    """The store rejected a write (NOT NULL, UNIQUE, FOREIGN KEY, CHECK)."""

    code = "CONSTRAINT_VIOLATION"


class ReferentialIntegrityError(GraphSQLError):
    """A non-null foreign key points at a row that does not exist."""

    code = "REFERENTIAL_INTEGRITY"


class BatchExecutionError(GraphSQLError):
    """A coalesced batch statement failed; every load sharing its key fails."""

    code = "BATCH_EXECUTION_ERROR"


class InvalidSchema(GraphSQLError):
    """The generated schema does not pass GraphQL schema validation."""

    code = "INVALID_SCHEMA"


class StoreError(GraphSQLError):
    """The store failed to run a statement (locked database, I/O error, ...)."""

    code = "STORE_ERROR"
