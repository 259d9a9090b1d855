from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""DB batch upsert.

One ``INSERT ... ON CONFLICT (key) DO UPDATE`` statement per batch via
psycopg2.extras.execute_values. Values carried by the new row win; columns the
new row leaves NULL keep their stored value (``COALESCE(EXCLUDED.col, t.col)``),
so a plain roster import does not wipe allocation provenance.
"""

__all__ = [
    "BatchPersistenceError",
    "BatchMetrics",
    "UpsertResult",
    "batch_upsert",
    "build_upsert_sql",
]


class BatchPersistenceError(Exception):
    """A batch could not be written.

    ``summary`` is attached by the import driver and describes what was
    committed before the failure.
    """

    def __init__(self, message: str, *, summary: Any = None) -> None:
        super().__init__(message)
        self.summary = summary


@dataclass(frozen=True)
class BatchMetrics:
    """Timing of a single execute_values call."""
    batch_size: int
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float


@dataclass(frozen=True)
class UpsertResult:
    upserted_rows: int


def _quote(identifier: str) -> str:
    return '"' + identifier.replace('"', '""') + '"'


def build_upsert_sql(table: str, columns: Sequence[str], conflict_key: str = "id") -> str:
    """Build the execute_values statement (``VALUES %s`` placeholder included)."""
    if conflict_key not in columns:
        raise ValueError(f"conflict key '{conflict_key}' not among columns {list(columns)}")
    qtable = _quote(table)
    cols_sql = ",".join(_quote(c) for c in columns)
    updates = ", ".join(
        f"{_quote(c)} = COALESCE(EXCLUDED.{_quote(c)}, {qtable}.{_quote(c)})"
        for c in columns
        if c != conflict_key
    )
    sql = f"INSERT INTO {qtable} ({cols_sql}) VALUES %s ON CONFLICT ({_quote(conflict_key)})"
    if updates:
        sql += f" DO UPDATE SET {updates}"
    else:
        sql += " DO NOTHING"
    return sql


def batch_upsert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    conflict_key: str = "id",
    page_size: int = 1000,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> UpsertResult:
    """Upsert ``rows`` into ``table``.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (validated identifier)
    columns: column order of every row
    rows: row value sequences; keys must be unique within one call
    conflict_key: natural key column
    page_size: execute_values page size
    metrics_callback: receives BatchMetrics; not invoked for an empty ``rows``
    """
    rows_list = list(rows)
    if not rows_list:
        return UpsertResult(upserted_rows=0)

    sql = build_upsert_sql(table, columns, conflict_key)

    start_time = time.time()
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchPersistenceError(str(e)) from e
    finally:
        end_time = time.time()
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(
                    batch_size=len(rows_list),
                    elapsed_seconds=end_time - start_time,
                    start_time=start_time,
                    end_time=end_time,
                )
            )

    return UpsertResult(upserted_rows=len(rows_list))
