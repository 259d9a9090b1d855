"""Protocol interfaces for the persistence collaborators.

The CSV engine and the import driver only talk to these; PostgreSQL and
in-memory implementations live in :mod:`seatroster.db.store`,
:mod:`seatroster.db.audit` and :mod:`seatroster.db.admins`.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from ..models.roster_record import LobRoles, RosterRecord

__all__ = [
    "Actor",
    "AdminStore",
    "AuditLog",
    "RosterStore",
]


@dataclass(frozen=True)
class Actor:
    """Person on whose behalf an operation runs (recorded in the change log)."""
    name: str
    email: str
    roles: list[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Roster
# ---------------------------------------------------------------------------

@runtime_checkable
class RosterStore(Protocol):
    """Users table keyed by ``id``."""

    def list_all(self) -> list[RosterRecord]: ...

    def upsert_many(self, records: Sequence[RosterRecord]) -> None: ...

    def delete_all(self) -> None: ...

    def load_roles(self) -> dict[str, LobRoles]: ...

    def load_locks(self) -> dict[str, bool]: ...


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

@runtime_checkable
class AuditLog(Protocol):
    """Change log; one entry per logical operation."""

    def record(self, actor: Actor, action: str, details: dict[str, Any] | None = None) -> None: ...


# ---------------------------------------------------------------------------
# Admin allowlist
# ---------------------------------------------------------------------------

@runtime_checkable
class AdminStore(Protocol):

    def add_admins(self, emails: Sequence[str]) -> int: ...

    def list_admins(self) -> list[str]: ...
