from __future__ import annotations

from collections.abc import Sequence

from ..models.import_summary import ImportMode
from .errors import MissingColumnsError

"""Header contracts and header validation.

BASE_HEADERS is the roster import contract, RESTORE_HEADERS the backup /
restore contract. IT access columns are optional in both.
"""

__all__ = [
    "BASE_HEADERS",
    "PROVENANCE_HEADERS",
    "RESTORE_HEADERS",
    "IT_ACCESS_HEADERS",
    "HeaderMap",
    "build_header_map",
    "required_headers",
    "validate_headers",
]

BASE_HEADERS: tuple[str, ...] = (
    "id",
    "name",
    "email",
    "designation",
    "manager",
    "department",
    "lineOfBusiness",
    "location",
    "city",
)
PROVENANCE_HEADERS: tuple[str, ...] = ("modifierName", "modifierEmail", "reason", "modifiedAt")
RESTORE_HEADERS: tuple[str, ...] = BASE_HEADERS + PROVENANCE_HEADERS
IT_ACCESS_HEADERS: tuple[str, ...] = (
    "internetAccess",
    "requestedSitesToUnblock",
    "externalEmailSending",
    "externalEmailRecipients",
    "workEmailMobile",
    "vpnAccess",
    "vpnType",
)

HeaderMap = dict[str, int]


def build_header_map(headers: Sequence[str]) -> HeaderMap:
    """Map header name -> column index. A duplicated name keeps its last index."""
    header_map: HeaderMap = {}
    for idx, name in enumerate(headers):
        header_map[name.strip()] = idx
    return header_map


def required_headers(mode: ImportMode) -> tuple[str, ...]:
    return RESTORE_HEADERS if mode is ImportMode.RESTORE else BASE_HEADERS


def validate_headers(headers: Sequence[str], required: Sequence[str]) -> HeaderMap:
    """Check that every required column is present.

    Raises:
        MissingColumnsError: listing the absent names in ``required`` order
    """
    header_map = build_header_map(headers)
    missing = [name for name in required if name not in header_map]
    if missing:
        raise MissingColumnsError(missing)
    return header_map
