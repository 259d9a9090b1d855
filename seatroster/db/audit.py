from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..models.config_models import TableNames
from .protocols import Actor

"""Change log (audit trail).

One entry per logical operation (an import, a restore, an allowlist change),
never per row or batch. Write failures are logged and swallowed so that a
broken change log never undoes a data operation that already committed.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "AuditEntry",
    "MemoryAuditLog",
    "PostgresAuditLog",
]


@dataclass(frozen=True)
class AuditEntry:
    id: str
    timestamp: str
    actor: Actor
    action: str
    details: dict[str, Any] | None = None

    @staticmethod
    def create(actor: Actor, action: str, details: dict[str, Any] | None = None) -> AuditEntry:
        return AuditEntry(
            id=uuid.uuid4().hex,
            timestamp=datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            actor=actor,
            action=action,
            details=details,
        )


class PostgresAuditLog:
    """``changelog`` table writer."""

    def __init__(self, cursor: Any, tables: TableNames | None = None) -> None:
        self._cursor = cursor
        self._table = (tables or TableNames()).changelog

    def record(self, actor: Actor, action: str, details: dict[str, Any] | None = None) -> None:
        entry = AuditEntry.create(actor, action, details)
        try:
            self._cursor.execute(
                f'INSERT INTO "{self._table}" '
                '("id", "timestamp", "userName", "userEmail", "userRolesJson", "action", "detailsJson") '
                "VALUES (%s, %s, %s, %s, %s, %s, %s)",
                (
                    entry.id,
                    entry.timestamp,
                    actor.name,
                    actor.email,
                    json.dumps(list(actor.roles)),
                    action,
                    json.dumps(details) if details is not None else None,
                ),
            )
        except Exception as e:
            logger.error("failed to write change log entry action=%r: %s", action, e)


class MemoryAuditLog:
    """List-backed AuditLog (mock mode / tests)."""

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def record(self, actor: Actor, action: str, details: dict[str, Any] | None = None) -> None:
        self.entries.append(AuditEntry.create(actor, action, details))

    @property
    def actions(self) -> list[str]:
        return [e.action for e in self.entries]
