from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

from psycopg2.extras import execute_values

from ..models.config_models import TableNames

"""Admin allowlist.

Emails are stored lower-cased; blanks are skipped and re-adding an existing
address is a no-op.
"""

__all__ = [
    "normalize_emails",
    "MemoryAdminStore",
    "PostgresAdminStore",
]


def normalize_emails(emails: Iterable[str]) -> list[str]:
    """Lower-case, trim, drop blanks and duplicates (first occurrence order)."""
    seen: dict[str, None] = {}
    for email in emails:
        if not email:
            continue
        normalized = email.strip().lower()
        if normalized:
            seen.setdefault(normalized, None)
    return list(seen)


class PostgresAdminStore:

    def __init__(self, cursor: Any, tables: TableNames | None = None) -> None:
        self._cursor = cursor
        self._table = (tables or TableNames()).admins

    def add_admins(self, emails: Sequence[str]) -> int:
        """Insert the normalized addresses; returns how many were submitted."""
        normalized = normalize_emails(emails)
        if not normalized:
            return 0
        self._cursor.execute("BEGIN")
        try:
            execute_values(
                self._cursor,
                f'INSERT INTO "{self._table}" ("email") VALUES %s ON CONFLICT ("email") DO NOTHING',
                [(e,) for e in normalized],
            )
            self._cursor.execute("COMMIT")
        except Exception:
            self._cursor.execute("ROLLBACK")
            raise
        return len(normalized)

    def list_admins(self) -> list[str]:
        self._cursor.execute(f'SELECT "email" FROM "{self._table}" ORDER BY "email"')
        return [row[0] for row in self._cursor.fetchall()]


class MemoryAdminStore:

    def __init__(self, emails: Iterable[str] = ()) -> None:
        self._emails: set[str] = set(normalize_emails(emails))

    def add_admins(self, emails: Sequence[str]) -> int:
        normalized = normalize_emails(emails)
        self._emails.update(normalized)
        return len(normalized)

    def list_admins(self) -> list[str]:
        return sorted(self._emails)
