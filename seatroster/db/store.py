from __future__ import annotations

import json
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from ..models.config_models import TableNames
from ..models.roster_record import COLUMN_TO_FIELD, LobRoles, RosterRecord
from .batch_upsert import BatchMetrics, BatchPersistenceError, batch_upsert

"""Roster persistence.

PostgresRosterStore is the live implementation; MemoryRosterStore backs mock
mode and the tests. Both upsert by ``id`` with "new value wins, missing value
keeps the stored one" semantics, and both treat every ``upsert_many`` call as
one atomic unit.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "USER_COLUMNS",
    "PostgresRosterStore",
    "MemoryRosterStore",
    "coalesce_duplicates",
    "ensure_schema",
]

USER_COLUMNS: tuple[str, ...] = (*COLUMN_TO_FIELD.keys(), "modifierName", "modifierEmail")

_BOOLEAN_SQL_COLUMNS = {"internetAccess", "externalEmailSending", "workEmailMobile", "vpnAccess"}


def ensure_schema(cursor: Any, tables: TableNames | None = None) -> None:
    """Create the tables this tool reads and writes, if missing."""
    tables = tables or TableNames()
    user_cols = ",\n  ".join(
        f'"{c}" BOOLEAN' if c in _BOOLEAN_SQL_COLUMNS else f'"{c}" TEXT'
        for c in USER_COLUMNS
        if c not in ("id", "email")
    )
    statements = [
        f'CREATE TABLE IF NOT EXISTS "{tables.users}" (\n  "id" TEXT PRIMARY KEY,\n'
        f'  "email" TEXT NOT NULL,\n  {user_cols}\n)',
        f'CREATE TABLE IF NOT EXISTS "{tables.admins}" ("email" TEXT PRIMARY KEY)',
        f'CREATE TABLE IF NOT EXISTS "{tables.changelog}" ('
        '"id" TEXT PRIMARY KEY, "timestamp" TEXT NOT NULL, "userName" TEXT NOT NULL, '
        '"userEmail" TEXT NOT NULL, "userRolesJson" TEXT NOT NULL, "action" TEXT NOT NULL, '
        '"detailsJson" TEXT)',
        f'CREATE TABLE IF NOT EXISTS "{tables.roles}" ("lob" TEXT PRIMARY KEY, "groupHead" TEXT, "delegatesJson" TEXT)',
        f'CREATE TABLE IF NOT EXISTS "{tables.locks}" ("lob" TEXT PRIMARY KEY, "isLocked" BOOLEAN NOT NULL)',
    ]
    for sql in statements:
        cursor.execute(sql)


def coalesce_duplicates(records: Iterable[RosterRecord]) -> list[RosterRecord]:
    """Collapse repeated ids within one batch (later rows win), keeping first-seen order.

    PostgreSQL refuses to touch the same row twice in one ON CONFLICT statement.
    """
    merged: dict[str, RosterRecord] = {}
    for record in records:
        existing = merged.get(record.id)
        merged[record.id] = existing.merged_with(record) if existing else record
    return list(merged.values())


class PostgresRosterStore:
    """Users table accessed through a psycopg2 cursor.

    The connection is expected in autocommit mode; every ``upsert_many`` and
    ``delete_all`` call runs in its own BEGIN/COMMIT block.
    """

    def __init__(
        self,
        cursor: Any,
        tables: TableNames | None = None,
        *,
        page_size: int = 1000,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> None:
        self._cursor = cursor
        self._tables = tables or TableNames()
        self._page_size = page_size
        self.metrics_callback = metrics_callback

    def _rollback(self) -> None:
        try:
            self._cursor.execute("ROLLBACK")
        except Exception:
            logger.debug("rollback failed", exc_info=True)

    def _fetch_dicts(self, sql: str) -> list[dict[str, Any]]:
        self._cursor.execute(sql)
        names = [d[0] for d in self._cursor.description]
        return [dict(zip(names, row)) for row in self._cursor.fetchall()]

    def list_all(self) -> list[RosterRecord]:
        cols = ",".join(f'"{c}"' for c in USER_COLUMNS)
        rows = self._fetch_dicts(f'SELECT {cols} FROM "{self._tables.users}" ORDER BY "id"')
        return [RosterRecord.from_row(r) for r in rows]

    def upsert_many(self, records: Sequence[RosterRecord]) -> None:
        batch = coalesce_duplicates(records)
        if not batch:
            return
        rows = []
        for record in batch:
            flat = record.to_row()
            rows.append([flat[c] for c in USER_COLUMNS])
        self._cursor.execute("BEGIN")
        try:
            batch_upsert(
                self._cursor,
                table=self._tables.users,
                columns=USER_COLUMNS,
                rows=rows,
                conflict_key="id",
                page_size=self._page_size,
                metrics_callback=self.metrics_callback,
            )
            self._cursor.execute("COMMIT")
        except BatchPersistenceError:
            self._rollback()
            raise
        except Exception as e:
            self._rollback()
            raise BatchPersistenceError(f"commit failed: {e}") from e

    def delete_all(self) -> None:
        self._cursor.execute("BEGIN")
        try:
            self._cursor.execute(f'DELETE FROM "{self._tables.users}"')
            self._cursor.execute("COMMIT")
        except Exception:
            self._rollback()
            raise

    def load_roles(self) -> dict[str, LobRoles]:
        rows = self._fetch_dicts(
            f'SELECT "lob", "groupHead", "delegatesJson" FROM "{self._tables.roles}"'
        )
        roles: dict[str, LobRoles] = {}
        for r in rows:
            try:
                delegates = json.loads(r["delegatesJson"]) if r["delegatesJson"] else []
            except json.JSONDecodeError:
                logger.warning("lob=%s has unreadable delegatesJson; treating as empty", r["lob"])
                delegates = []
            roles[r["lob"]] = LobRoles(group_head=r["groupHead"], delegates=list(delegates))
        return roles

    def load_locks(self) -> dict[str, bool]:
        rows = self._fetch_dicts(f'SELECT "lob", "isLocked" FROM "{self._tables.locks}"')
        return {r["lob"]: bool(r["isLocked"]) for r in rows}


class MemoryRosterStore:
    """Dict-backed RosterStore (mock mode / tests).

    ``fail_on_calls`` holds 1-based ``upsert_many`` call numbers that raise
    BatchPersistenceError without writing anything.
    """

    def __init__(
        self,
        records: Iterable[RosterRecord] = (),
        *,
        roles: dict[str, LobRoles] | None = None,
        locks: dict[str, bool] | None = None,
        fail_on_calls: Iterable[int] = (),
    ) -> None:
        self._records: dict[str, RosterRecord] = {}
        for record in records:
            self._records[record.id] = record
        self._roles = dict(roles or {})
        self._locks = dict(locks or {})
        self._fail_on_calls = set(fail_on_calls)
        self.upsert_calls: list[int] = []  # 各呼び出しのバッチ件数

    def list_all(self) -> list[RosterRecord]:
        return list(self._records.values())

    def upsert_many(self, records: Sequence[RosterRecord]) -> None:
        call_number = len(self.upsert_calls) + 1
        self.upsert_calls.append(len(records))
        if call_number in self._fail_on_calls:
            raise BatchPersistenceError(f"simulated failure on upsert call {call_number}")
        for record in coalesce_duplicates(records):
            existing = self._records.get(record.id)
            self._records[record.id] = existing.merged_with(record) if existing else record

    def delete_all(self) -> None:
        self._records.clear()

    def load_roles(self) -> dict[str, LobRoles]:
        return dict(self._roles)

    def load_locks(self) -> dict[str, bool]:
        return dict(self._locks)
