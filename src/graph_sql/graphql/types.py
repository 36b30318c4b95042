"""
Type mapper: column type keyword -> scalar kind, GraphQL scalar, and value codecs.
"""

import base64
import binascii
from enum import Enum
from typing import Any

from ..catalog.models import ColumnDef
from ..errors import ValidationError


class ScalarKind(Enum):
    """Storage-level kind of a column."""

    INTEGER = "integer"
    TEXT = "text"
    REAL = "real"
    BLOB = "blob"
    NUMERIC = "numeric"


# Checked in order against the upper-cased keyword; first prefix wins.
_PREFIXES: tuple[tuple[str, ScalarKind], ...] = (
    ("INT", ScalarKind.INTEGER),
    ("BIGINT", ScalarKind.INTEGER),
    ("SMALLINT", ScalarKind.INTEGER),
    ("TINYINT", ScalarKind.INTEGER),
    ("MEDIUMINT", ScalarKind.INTEGER),
    ("UBIGINT", ScalarKind.INTEGER),
    ("UINT", ScalarKind.INTEGER),
    ("USMALLINT", ScalarKind.INTEGER),
    ("UTINYINT", ScalarKind.INTEGER),
    ("UMEDIUMINT", ScalarKind.INTEGER),
    ("BOOL", ScalarKind.INTEGER),
    ("REAL", ScalarKind.REAL),
    ("FLOAT", ScalarKind.REAL),
    ("DOUBLE", ScalarKind.REAL),
    ("BLOB", ScalarKind.BLOB),
    ("VARBINARY", ScalarKind.BLOB),
    ("BINARY", ScalarKind.BLOB),
    ("BYTEA", ScalarKind.BLOB),
    ("NUMERIC", ScalarKind.NUMERIC),
    ("DECIMAL", ScalarKind.NUMERIC),
    ("BIGDECIMAL", ScalarKind.NUMERIC),
    ("NUMBER", ScalarKind.NUMERIC),
    ("MONEY", ScalarKind.NUMERIC),
)

GRAPHQL_SCALARS: dict[ScalarKind, str] = {
    ScalarKind.INTEGER: "Int",
    ScalarKind.REAL: "Float",
    ScalarKind.TEXT: "String",
    ScalarKind.BLOB: "String",
    ScalarKind.NUMERIC: "String",
}


def scalar_kind(type_keyword: str) -> ScalarKind:
    """Map a declared type keyword to its kind; unknown keywords are text."""
    keyword = type_keyword.strip().upper()
    for prefix, kind in _PREFIXES:
        if keyword.startswith(prefix):
            return kind
    return ScalarKind.TEXT


def column_kind(column: ColumnDef) -> ScalarKind:
    return scalar_kind(column.type_keyword)


def graphql_scalar(column: ColumnDef) -> str:
    return GRAPHQL_SCALARS[column_kind(column)]


def is_output_non_null(column: ColumnDef) -> bool:
    """A column is non-null in the schema iff NOT NULL is declared or it is the key."""
    return column.primary_key or not column.nullable


def is_insert_required(column: ColumnDef) -> bool:
    return not column.nullable and not column.has_default


def to_graphql_value(kind: ScalarKind, value: Any) -> Any:
    """Convert a stored value into its GraphQL representation."""
    if value is None:
        return None
    if kind is ScalarKind.BLOB:
        # Always encoded, whatever the content
        raw = value.encode("utf-8") if isinstance(value, str) else bytes(value)
        return base64.b64encode(raw).decode("ascii")
    if kind is ScalarKind.NUMERIC or kind is ScalarKind.TEXT:
        return value if isinstance(value, str) else str(value)
    return value


def to_store_value(kind: ScalarKind, value: Any, column: str = "") -> Any:
    """Convert a GraphQL input value into the value bound to the statement.

    Raises:
        ValidationError: If a blob value is not valid base64
    """
    if value is None:
        return None
    if kind is ScalarKind.BLOB:
        try:
            return base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValidationError(
                f"Value for blob column '{column}' must be base64 encoded", column=column
            ) from e
    return value
