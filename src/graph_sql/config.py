"""
Configuration management for graph-sql
"""

from pydantic_settings import BaseSettings, SettingsConfigDict

# Tables owned by SQLite itself or by migration tooling; never exposed.
INTERNAL_TABLES: frozenset[str] = frozenset({"_sqlx_migrations", "alembic_version"})
INTERNAL_TABLE_PREFIX = "sqlite_"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="GRAPHSQL_",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///local.db"
    sql_echo: bool = False
    sqlite_foreign_keys: bool = True
    sqlite_busy_timeout: int = 5  # seconds

    # Introspection
    excluded_tables: list[str] = []

    # Execution
    max_batch_size: int | None = None
    disable_introspection: bool = False
    disable_suggestions: bool = False
    max_query_depth: int | None = None
    enable_schema_reload: bool = False

    # API Settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000

    # Environment
    debug: bool = False
    log_level: str = "INFO"


# Global settings instance
settings = Settings()


def is_internal_table(name: str, extra: list[str] | None = None) -> bool:
    """Return True for tables that must never be introspected."""
    if name.startswith(INTERNAL_TABLE_PREFIX) or name in INTERNAL_TABLES:
        return True
    return name in (extra if extra is not None else settings.excluded_tables)
