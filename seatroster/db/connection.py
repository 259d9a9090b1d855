from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from ..models.config_models import DatabaseConfig

"""PostgreSQL connection handling.

DSN resolution order:
    1. DATABASE_URL / PGDSN environment variables (``.env`` is loaded first, overriding)
    2. ``database.dsn`` from the config file
    3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, each falling back to
       the matching ``database`` config field
"""

logger = logging.getLogger(__name__)

__all__ = [
    "db_connection",
    "load_env_file",
    "resolve_dsn",
]


def load_env_file(path: Path, override: bool = True) -> None:
    """Load ``.env`` with python-dotenv; a failure only logs a warning."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except Exception as e:  # pragma: no cover
        logger.warning("failed to load .env via python-dotenv: %s", e)


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_connection(db_cfg: DatabaseConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Yield a psycopg2 cursor on an autocommit connection.

    Transaction boundaries are explicit BEGIN/COMMIT issued by the stores, one
    per batch, so committed batches survive a later failure.
    """
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = True
    cur = None
    try:
        cur = conn.cursor()
        yield cur
    finally:
        if cur is not None:
            try:
                cur.close()
            except Exception:
                logger.debug("cursor close failed", exc_info=True)
        conn.close()
