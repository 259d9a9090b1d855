from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

"""RosterRecord domain model.

One employee row of the roster as it moves between CSV files and the users
table. Column names on the CSV / table side are camelCase (``lineOfBusiness``),
attribute names are snake_case.
"""

__all__ = [
    "Modifier",
    "RosterRecord",
    "LobRoles",
    "COLUMN_TO_FIELD",
    "BOOLEAN_COLUMNS",
    "NOT_SELECTED",
]

# 選択解除済みを示す reason 値
NOT_SELECTED = "NOT_SELECTED"

# CSV / DB column name -> dataclass attribute
COLUMN_TO_FIELD: dict[str, str] = {
    "id": "id",
    "name": "name",
    "email": "email",
    "designation": "designation",
    "manager": "manager",
    "department": "department",
    "lineOfBusiness": "line_of_business",
    "location": "location",
    "city": "city",
    "reason": "reason",
    "modifiedAt": "modified_at",
    "internetAccess": "internet_access",
    "requestedSitesToUnblock": "requested_sites_to_unblock",
    "externalEmailSending": "external_email_sending",
    "externalEmailRecipients": "external_email_recipients",
    "workEmailMobile": "work_email_mobile",
    "vpnAccess": "vpn_access",
    "vpnType": "vpn_type",
}

BOOLEAN_COLUMNS: tuple[str, ...] = (
    "internetAccess",
    "externalEmailSending",
    "workEmailMobile",
    "vpnAccess",
)


@dataclass(frozen=True)
class Modifier:
    """Person who last changed the allocation of a record."""
    name: str
    email: str


@dataclass(frozen=True)
class RosterRecord:
    """Single employee entry of the roster.

    ``None`` means the column was absent from the source; an empty string means
    the column was present but blank. Only ``id`` and ``email`` are mandatory.
    """
    id: str
    email: str
    name: str | None = None
    designation: str | None = None
    manager: str | None = None
    department: str | None = None
    line_of_business: str | None = None
    location: str | None = None
    city: str | None = None
    # allocation provenance (restore files only)
    modifier: Modifier | None = None
    reason: str | None = None
    modified_at: str | None = None
    # IT access flags
    internet_access: bool | None = None
    requested_sites_to_unblock: str | None = None
    external_email_sending: bool | None = None
    external_email_recipients: str | None = None
    work_email_mobile: bool | None = None
    vpn_access: bool | None = None
    vpn_type: str | None = None

    @property
    def is_selected(self) -> bool:
        """True when the record holds a seat (reason set and not NOT_SELECTED)."""
        return bool(self.reason) and self.reason != NOT_SELECTED

    def to_row(self) -> dict[str, Any]:
        """Flatten to the column-name mapping used by storage and CSV export."""
        row: dict[str, Any] = {col: getattr(self, attr) for col, attr in COLUMN_TO_FIELD.items()}
        row["modifierName"] = self.modifier.name if self.modifier else None
        row["modifierEmail"] = self.modifier.email if self.modifier else None
        return row

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> RosterRecord:
        """Build a record from a stored row (inverse of :meth:`to_row`).

        Stored rows keep a modifier when either part is present, unlike CSV
        restore which requires both.
        """
        kwargs: dict[str, Any] = {}
        for col, attr in COLUMN_TO_FIELD.items():
            if col in row:
                value = row[col]
                if col in BOOLEAN_COLUMNS and value is not None:
                    value = bool(value)
                kwargs[attr] = value
        modifier_name = row.get("modifierName")
        modifier_email = row.get("modifierEmail")
        if modifier_name or modifier_email:
            kwargs["modifier"] = Modifier(name=modifier_name or "", email=modifier_email or "")
        return cls(**kwargs)

    def merged_with(self, newer: RosterRecord) -> RosterRecord:
        """Return ``self`` updated with every field that ``newer`` actually carries."""
        changes = {
            attr: getattr(newer, attr)
            for attr in (*COLUMN_TO_FIELD.values(), "modifier")
            if getattr(newer, attr) is not None
        }
        return replace(self, **changes)


@dataclass(frozen=True)
class LobRoles:
    """Role assignment of one line of business (employee ids)."""
    group_head: str | None = None
    delegates: list[str] = field(default_factory=list)
