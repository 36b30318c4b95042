"""
Tests for the column type mapper
"""

import base64

import pytest

from graph_sql.catalog.models import ColumnDef
from graph_sql.errors import ValidationError
from graph_sql.graphql.types import (
    ScalarKind,
    graphql_scalar,
    is_insert_required,
    is_output_non_null,
    scalar_kind,
    to_graphql_value,
    to_store_value,
)


@pytest.mark.parametrize(
    ("keyword", "kind"),
    [
        ("INTEGER", ScalarKind.INTEGER),
        ("int", ScalarKind.INTEGER),
        ("BIGINT", ScalarKind.INTEGER),
        ("BOOLEAN", ScalarKind.INTEGER),
        ("REAL", ScalarKind.REAL),
        ("double", ScalarKind.REAL),
        ("FLOAT", ScalarKind.REAL),
        ("BLOB", ScalarKind.BLOB),
        ("VARBINARY", ScalarKind.BLOB),
        ("NUMERIC", ScalarKind.NUMERIC),
        ("DECIMAL", ScalarKind.NUMERIC),
        ("TEXT", ScalarKind.TEXT),
        ("VARCHAR", ScalarKind.TEXT),
        ("DATETIME", ScalarKind.TEXT),
        ("", ScalarKind.TEXT),
    ],
)
def test_scalar_kind(keyword, kind):
    assert scalar_kind(keyword) is kind


def test_graphql_scalars():
    """Test the GraphQL surface of each kind."""
    assert graphql_scalar(ColumnDef("a", "INTEGER")) == "Int"
    assert graphql_scalar(ColumnDef("a", "REAL")) == "Float"
    assert graphql_scalar(ColumnDef("a", "TEXT")) == "String"
    assert graphql_scalar(ColumnDef("a", "BLOB")) == "String"
    assert graphql_scalar(ColumnDef("a", "NUMERIC")) == "String"


def test_nullability_rules():
    """Test that only NOT NULL and key columns are non-null outputs."""
    assert is_output_non_null(ColumnDef("id", "INTEGER", primary_key=True)) is True
    assert is_output_non_null(ColumnDef("name", "TEXT", nullable=False)) is True
    assert is_output_non_null(ColumnDef("price", "REAL")) is False

    assert is_insert_required(ColumnDef("name", "TEXT", nullable=False)) is True
    status = ColumnDef("status", "TEXT", nullable=False, has_default=True)
    assert is_insert_required(status) is False
    assert is_insert_required(ColumnDef("price", "REAL")) is False


class TestValueConversion:
    """Output and input conversion."""

    def test_blob_always_base64(self):
        """Test that blob values are encoded whatever their content."""
        assert to_graphql_value(ScalarKind.BLOB, b"hello") == base64.b64encode(b"hello").decode()
        # Text that happens to be stored in a blob column is encoded as well
        assert to_graphql_value(ScalarKind.BLOB, "hi") == base64.b64encode(b"hi").decode()

    def test_numeric_as_string(self):
        assert to_graphql_value(ScalarKind.NUMERIC, 4.8) == "4.8"
        assert to_graphql_value(ScalarKind.NUMERIC, 10) == "10"

    def test_text_stringified(self):
        assert to_graphql_value(ScalarKind.TEXT, 12) == "12"

    def test_null_passes_through(self):
        for kind in ScalarKind:
            assert to_graphql_value(kind, None) is None
            assert to_store_value(kind, None) is None

    def test_blob_input_decoded(self):
        encoded = base64.b64encode(b"\x00\x01binary").decode()
        assert to_store_value(ScalarKind.BLOB, encoded, "image") == b"\x00\x01binary"

    def test_malformed_blob_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            to_store_value(ScalarKind.BLOB, "not base64!!", "image")

        assert exc_info.value.details["column"] == "image"
