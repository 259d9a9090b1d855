from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime

import pandas as pd

from ..csvio.errors import CsvEngineError
from ..csvio.schema import BASE_HEADERS, RESTORE_HEADERS
from ..csvio.writer import serialize
from ..models.roster_record import NOT_SELECTED, LobRoles, RosterRecord

"""CSV exports: import template, full backup and allocation reports.

Every export is rendered through :func:`seatroster.csvio.writer.serialize`, so
quoting follows one rule everywhere. Reports that would contain no data rows
raise NoDataError instead of producing a header-only file.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "NoDataError",
    "TEMPLATE_EXAMPLE_ROW",
    "LOB_REPORT_HEADERS",
    "CONSOLIDATED_HEADERS",
    "LOB_SUMMARY_HEADERS",
    "render_template",
    "render_backup",
    "backup_filename",
    "render_lob_report",
    "render_consolidated_report",
    "build_lob_summary",
    "render_lob_summary",
]

TEMPLATE_EXAMPLE_ROW: tuple[str, ...] = (
    "51",
    "Jane Doe",
    "jane.doe@example.com",
    "Project Manager",
    "David Lee",
    "Engineering",
    "Centralized Operations",
    "FTC",
    "Karachi",
)

LOB_REPORT_HEADERS: tuple[str, ...] = (
    "Name",
    "Email",
    "Designation",
    "Manager",
    "Department",
    "Modifier",
    "Reason",
)
CONSOLIDATED_HEADERS: tuple[str, ...] = (
    "Line of Business",
    "Department",
    "Name",
    "Email",
    "Designation",
    "Manager",
    "Location",
    "Modifier",
    "Reason",
)
LOB_SUMMARY_HEADERS: tuple[str, ...] = (
    "Line of Business",
    "Group Head",
    "Delegates",
    "Reasons",
    "Office Users",
    "LOB Strength",
    "Status",
)

NOT_SPECIFIED = "Not Specified"


class NoDataError(CsvEngineError):
    """Raised when an export has no rows to write."""


def _modifier_name(record: RosterRecord) -> str | None:
    return record.modifier.name if record.modifier else None


def render_template() -> str:
    """Header line of the import contract plus one example row."""
    return serialize(BASE_HEADERS, [dict(zip(BASE_HEADERS, TEMPLATE_EXAMPLE_ROW))])


def render_backup(records: Sequence[RosterRecord]) -> str:
    """Full roster in the restore column layout.

    Raises:
        NoDataError: the roster is empty
    """
    if not records:
        raise NoDataError("There is no user data to back up.")
    return serialize(RESTORE_HEADERS, (r.to_row() for r in records))


def backup_filename(now: datetime | None = None) -> str:
    """``the300_backup_<UTC ISO timestamp>.csv`` with ``:`` and ``.`` replaced by ``-``."""
    now = (now or datetime.now(UTC)).astimezone(UTC)
    stamp = now.strftime("%Y-%m-%dT%H:%M:%S") + f".{now.microsecond // 1000:03d}Z"
    return "the300_backup_" + stamp.replace(":", "-").replace(".", "-") + ".csv"


def render_lob_report(records: Iterable[RosterRecord], lob: str) -> str:
    """Selected employees of one line of business.

    Raises:
        NoDataError: nobody in ``lob`` is selected
    """
    selected = [r for r in records if r.line_of_business == lob and r.is_selected]
    if not selected:
        raise NoDataError(f"There are no selected employees to report for {lob}.")
    return serialize(
        LOB_REPORT_HEADERS,
        selected,
        ["name", "email", "designation", "manager", "department", _modifier_name, "reason"],
    )


def render_consolidated_report(records: Iterable[RosterRecord], locks: Mapping[str, bool]) -> str:
    """Every record with a reason that belongs to a locked line of business.

    Raises:
        NoDataError: no locked line of business has such records
    """
    locked = {lob for lob, is_locked in locks.items() if is_locked}
    rows = [r for r in records if r.reason and r.line_of_business in locked]
    if not rows:
        raise NoDataError("There is no locked data to export.")
    return serialize(
        CONSOLIDATED_HEADERS,
        rows,
        [
            "line_of_business",
            "department",
            "name",
            "email",
            "designation",
            "manager",
            "location",
            _modifier_name,
            "reason",
        ],
    )


def _reason_label(reason: str | None) -> str:
    if reason and reason != NOT_SELECTED:
        return reason
    return NOT_SPECIFIED


def build_lob_summary(
    records: Sequence[RosterRecord],
    roles: Mapping[str, LobRoles],
    locks: Mapping[str, bool],
) -> pd.DataFrame:
    """Aggregate the roster per line of business.

    Returns one row per line of business (sorted by name) with the columns of
    LOB_SUMMARY_HEADERS. Records without a line of business are not counted.
    """
    frame = pd.DataFrame(
        [
            {
                "id": r.id,
                "name": r.name or "",
                "lob": r.line_of_business,
                "reason": _reason_label(r.reason),
                "office": r.modifier is not None,
            }
            for r in records
            if r.line_of_business
        ],
        columns=["id", "name", "lob", "reason", "office"],
    )
    # id -> 表示名は LOB の有無に関係なく全員から引く (重複 id は先勝ち)
    people = pd.DataFrame([{"id": r.id, "name": r.name or ""} for r in records], columns=["id", "name"])
    names = people.drop_duplicates("id").set_index("id")["name"]

    rows: list[dict[str, object]] = []
    for lob, group in frame.groupby("lob", sort=True):
        lob_roles = roles.get(lob) or LobRoles()
        office = group[group["office"]]
        counts = office.groupby("reason", sort=False).size()

        group_head = names.get(lob_roles.group_head) if lob_roles.group_head else None
        delegates = [names[d] for d in lob_roles.delegates if d in names.index]
        reasons = "; ".join(f"{reason} ({int(n)})" for reason, n in counts.items())

        rows.append(
            {
                "Line of Business": lob,
                "Group Head": group_head or "Not Assigned",
                "Delegates": ", ".join(delegates) or "None",
                "Reasons": reasons or "None",
                "Office Users": int(len(office)),
                "LOB Strength": int(len(group)),
                "Status": "Locked" if locks.get(lob, False) else "",
            }
        )
    logger.debug("lob summary rows=%d", len(rows))
    return pd.DataFrame(rows, columns=list(LOB_SUMMARY_HEADERS))


def render_lob_summary(
    records: Sequence[RosterRecord],
    roles: Mapping[str, LobRoles],
    locks: Mapping[str, bool],
) -> str:
    """CSV rendering of :func:`build_lob_summary`.

    Raises:
        NoDataError: the roster has no line of business at all
    """
    summary = build_lob_summary(records, roles, locks)
    if summary.empty:
        raise NoDataError("There is no line of business to summarize.")
    return serialize(LOB_SUMMARY_HEADERS, summary.to_dict(orient="records"))
