"""
Database module for graph-sql
"""

from .connection import dispose_database, get_async_engine, init_database, reset_database
from .executor import QueryExecutor

__all__ = [
    "QueryExecutor",
    "dispose_database",
    "get_async_engine",
    "init_database",
    "reset_database",
]
