"""
graph-sql
Instant GraphQL API over an existing SQLite database
"""

__version__ = "0.1.0"

from .config import settings

__all__ = ["settings", "__version__"]
