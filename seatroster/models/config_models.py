from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the seat roster tool.

Filled by :func:`seatroster.config.loader.load_config` after schema validation.
"""

__all__ = [
    "DatabaseConfig",
    "TableNames",
    "AppConfig",
]


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallbacks.

    Environment variables (DATABASE_URL / PGDSN / PG*) take precedence.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class TableNames:
    users: str = "users"
    admins: str = "admins"
    changelog: str = "changelog"
    roles: str = "roles"
    locks: str = "locks"


@dataclass(frozen=True)
class AppConfig:
    """Root configuration object."""
    batch_size: int = 50  # upsert chunk size
    logs_directory: str = "./logs"
    tables: TableNames = field(default_factory=TableNames)
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
