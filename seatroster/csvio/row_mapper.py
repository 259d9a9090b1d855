from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from ..models.import_summary import ImportMode
from ..models.roster_record import BOOLEAN_COLUMNS, COLUMN_TO_FIELD, Modifier, RosterRecord
from .errors import RowError
from .parser import CsvDocument
from .schema import BASE_HEADERS, HeaderMap, build_header_map

"""Row mapping and type coercion.

Turns raw parsed rows into RosterRecord instances:
- rows are padded / truncated to the header width
- ``id`` and ``email`` must be non-empty
- boolean-coded columns accept true/1/yes and false/0/no (case-insensitive)
- restore mode additionally reads modifier / reason / modifiedAt
"""

logger = logging.getLogger(__name__)

__all__ = [
    "parse_boolean",
    "normalize_width",
    "map_row",
    "map_rows",
    "source_row_number",
]

_TRUE_VALUES = frozenset({"true", "1", "yes"})
_FALSE_VALUES = frozenset({"false", "0", "no"})

# identity fields in check order
_IDENTITY_FIELDS = ("email", "id")
_TEXT_EXTRA_COLUMNS = ("requestedSitesToUnblock", "externalEmailRecipients", "vpnType")


def parse_boolean(value: Any) -> bool | None:
    """Coerce a CSV cell to bool. Unknown or empty values give None, never an error."""
    if value is None:
        return None
    normalized = str(value).strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    return None


def source_row_number(index: int) -> int:
    """0-based data row index -> 1-based file line number (header is line 1)."""
    return index + 2


def normalize_width(values: Sequence[str], width: int, *, index: int = 0) -> list[str]:
    """Pad short rows with empty strings and truncate long rows to ``width``."""
    out = list(values)
    if len(out) > width:
        logger.warning(
            "row %d has more columns than headers (%d > %d); truncating extra values",
            source_row_number(index),
            len(out),
            width,
        )
        out = out[:width]
    while len(out) < width:
        out.append("")
    return out


def _cell(values: Sequence[str], header_map: HeaderMap, column: str) -> str | None:
    # 列が存在しない -> None / 存在するが空 -> ""
    idx = header_map.get(column)
    if idx is None:
        return None
    return values[idx]


def _non_empty(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def map_row(
    values: Sequence[str],
    header_map: HeaderMap,
    mode: ImportMode,
    *,
    index: int,
    width: int | None = None,
) -> RosterRecord:
    """Map one raw row to a RosterRecord.

    Parameters
    ----------
    values: raw field values of the row
    header_map: header name -> column index
    mode: IMPORT or RESTORE
    index: 0-based data row index (used for error messages)
    width: header count; defaults to the widest index in ``header_map``

    Raises
    ------
    RowError: identity field missing, or any unexpected mapping failure
    """
    row_number = source_row_number(index)
    if width is None:
        width = max(header_map.values(), default=-1) + 1
    try:
        cells = normalize_width(values, width, index=index)

        for column in _IDENTITY_FIELDS:
            if not (_cell(cells, header_map, column) or "").strip():
                raise RowError(
                    row_number, f"Row {row_number} is missing the required '{column}' field", field=column
                )

        kwargs: dict[str, Any] = {}
        for column in BASE_HEADERS:
            kwargs[COLUMN_TO_FIELD[column]] = _cell(cells, header_map, column)
        kwargs["id"] = kwargs["id"].strip()
        kwargs["email"] = kwargs["email"].strip()

        for column in BOOLEAN_COLUMNS:
            kwargs[COLUMN_TO_FIELD[column]] = parse_boolean(_cell(cells, header_map, column))
        for column in _TEXT_EXTRA_COLUMNS:
            kwargs[COLUMN_TO_FIELD[column]] = _non_empty(_cell(cells, header_map, column))

        if mode is ImportMode.RESTORE:
            modifier_name = _non_empty(_cell(cells, header_map, "modifierName"))
            modifier_email = _non_empty(_cell(cells, header_map, "modifierEmail"))
            # 片方だけの modifier は捨てる
            if modifier_name and modifier_email:
                kwargs["modifier"] = Modifier(name=modifier_name, email=modifier_email)
            kwargs["reason"] = _non_empty(_cell(cells, header_map, "reason"))
            kwargs["modified_at"] = _non_empty(_cell(cells, header_map, "modifiedAt"))

        return RosterRecord(**kwargs)
    except RowError:
        raise
    except Exception as e:
        raise RowError(row_number, str(e)) from e


def map_rows(doc: CsvDocument, mode: ImportMode) -> list[RosterRecord]:
    """Map every data row of ``doc``; the first bad row aborts the whole file."""
    header_map = build_header_map(doc.headers)
    width = len(doc.headers)
    return [
        map_row(values, header_map, mode, index=index, width=width)
        for index, values in enumerate(doc.rows)
    ]
