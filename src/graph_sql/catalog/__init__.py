"""
Catalog introspection: read table definitions and parse them into descriptors
"""

from .models import ROWID, ColumnDef, ForeignKeyDef, TableDef
from .parser import parse_table_definition
from .reader import CatalogReader

__all__ = [
    "ROWID",
    "CatalogReader",
    "ColumnDef",
    "ForeignKeyDef",
    "TableDef",
    "parse_table_definition",
]
