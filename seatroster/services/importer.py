from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from datetime import UTC, datetime

from ..csvio.errors import EmptyHeaderError, MissingColumnsError, RowError
from ..csvio.parser import parse_csv
from ..csvio.row_mapper import map_rows
from ..csvio.schema import required_headers, validate_headers
from ..db.batch_upsert import BatchMetrics, BatchPersistenceError
from ..db.protocols import Actor, AuditLog, RosterStore
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.import_summary import BatchStatsAccumulator, ImportMode, ImportSummary
from ..models.roster_record import RosterRecord

"""Chunked import driver.

Records are submitted to the store in fixed-size batches, strictly one after
another. A failing batch stops the run; batches that already committed stay
committed and the partial outcome travels on the raised BatchPersistenceError.
The change log gets one entry per logical operation, only after every batch
went through.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "DEFAULT_BATCH_SIZE",
    "ProgressCallback",
    "import_records",
    "import_csv",
    "chunked",
    "load_records",
]

DEFAULT_BATCH_SIZE = 50

ProgressCallback = Callable[[int, int], None]


def chunked(records: Sequence[RosterRecord], size: int) -> list[Sequence[RosterRecord]]:
    """Split ``records`` into consecutive slices of at most ``size`` items."""
    if size <= 0:
        raise ValueError(f"batch size must be positive, got {size}")
    return [records[i : i + size] for i in range(0, len(records), size)]


def _action_text(mode: ImportMode, count: int) -> str:
    verb = "Restored" if mode is ImportMode.RESTORE else "Imported"
    return f"{verb} {count} Users"


def _build_summary(
    mode: ImportMode,
    total: int,
    imported: int,
    start_time: datetime,
    stats: BatchStatsAccumulator,
    failed_batch: int | None,
) -> ImportSummary:
    end_time = datetime.now(UTC)
    elapsed = (end_time - start_time).total_seconds()
    batches, avg_batch, p95_batch = stats.get_stats()
    throughput = imported / elapsed if elapsed > 0 else 0.0
    return ImportSummary(
        mode=mode,
        total=total,
        imported=imported,
        batches=batches,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed,
        throughput_rows_per_sec=throughput,
        failed_batch=failed_batch,
        avg_batch_seconds=avg_batch,
        p95_batch_seconds=p95_batch,
    )


def import_records(
    records: Sequence[RosterRecord],
    store: RosterStore,
    actor: Actor,
    *,
    mode: ImportMode = ImportMode.IMPORT,
    audit: AuditLog | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress: ProgressCallback | None = None,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "<input>",
) -> ImportSummary:
    """Upsert ``records`` in batches of ``batch_size``.

    Args:
        records: mapped roster records, in file order
        store: persistence target; each ``upsert_many`` call is atomic
        actor: recorded in the change log entry
        mode: selects the change log wording
        audit: change log; None skips auditing
        batch_size: records per ``upsert_many`` call
        progress: called as ``progress(imported, total)`` after each committed batch
        metrics_callback: receives per-batch BatchMetrics
        error_log: receives a BATCH_PERSISTENCE_ERROR record on failure
        file_name: source name used in error records

    Returns:
        ImportSummary of a fully committed run

    Raises:
        BatchPersistenceError: a batch failed; ``.summary`` holds the partial outcome
    """
    total = len(records)
    start_time = datetime.now(UTC)
    stats = BatchStatsAccumulator()
    imported = 0

    for batch_no, batch in enumerate(chunked(records, batch_size), start=1):
        t0 = time.time()
        try:
            store.upsert_many(batch)
        except Exception as e:
            first_row = imported + 1
            summary = _build_summary(mode, total, imported, start_time, stats, failed_batch=batch_no)
            message = (
                f"Batch {batch_no} (records {first_row}-{first_row + len(batch) - 1}) failed: {e}. "
                f"{imported} of {total} records were committed before the failure."
            )
            logger.error(message)
            if error_log is not None:
                error_log.append(
                    ErrorRecord.create(
                        file=file_name,
                        row=first_row,
                        error_type="BATCH_PERSISTENCE_ERROR",
                        message=str(e),
                    )
                )
            raise BatchPersistenceError(message, summary=summary) from e
        t1 = time.time()
        elapsed = t1 - t0
        stats.add_batch_time(elapsed)
        imported += len(batch)
        if metrics_callback is not None:
            metrics_callback(
                BatchMetrics(batch_size=len(batch), elapsed_seconds=elapsed, start_time=t0, end_time=t1)
            )
        logger.debug("batch=%d rows=%d elapsed=%.4fs", batch_no, len(batch), elapsed)
        if progress is not None:
            progress(imported, total)

    summary = _build_summary(mode, total, imported, start_time, stats, failed_batch=None)
    if audit is not None:
        audit.record(actor, _action_text(mode, imported), {"count": imported, "source": file_name})
    return summary


def _log_engine_error(
    error_log: ErrorLogBuffer | None, file_name: str, row: int, error_type: str, message: str
) -> None:
    if error_log is not None:
        error_log.append(ErrorRecord.create(file=file_name, row=row, error_type=error_type, message=message))


def load_records(
    text: str,
    mode: ImportMode,
    *,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "<input>",
) -> list[RosterRecord]:
    """Parse, validate and map a whole CSV text. Nothing is persisted.

    Raises:
        EmptyHeaderError / MissingColumnsError / RowError
    """
    doc = parse_csv(text)
    try:
        if not doc.headers or not any(h.strip() for h in doc.headers):
            raise EmptyHeaderError()
        validate_headers(doc.headers, required_headers(mode))
        return map_rows(doc, mode)
    except (EmptyHeaderError, MissingColumnsError) as e:
        _log_engine_error(error_log, file_name, 1, "HEADER_ERROR", str(e))
        raise
    except RowError as e:
        _log_engine_error(error_log, file_name, e.row_number, "ROW_ERROR", str(e))
        raise


def import_csv(
    text: str,
    store: RosterStore,
    actor: Actor,
    *,
    mode: ImportMode = ImportMode.IMPORT,
    audit: AuditLog | None = None,
    batch_size: int = DEFAULT_BATCH_SIZE,
    progress: ProgressCallback | None = None,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "<input>",
) -> ImportSummary:
    """Run the full CSV pipeline for ``import`` or ``restore``.

    The file is parsed, validated and mapped completely before anything is
    written. In restore mode the roster is cleared only after that succeeded.
    """
    records = load_records(text, mode, error_log=error_log, file_name=file_name)
    logger.info("file=%s mode=%s records=%d", file_name, mode.value, len(records))

    if mode is ImportMode.RESTORE:
        store.delete_all()
        if audit is not None:
            audit.record(actor, "Removed All Users", {"source": file_name})

    return import_records(
        records,
        store,
        actor,
        mode=mode,
        audit=audit,
        batch_size=batch_size,
        progress=progress,
        metrics_callback=metrics_callback,
        error_log=error_log,
        file_name=file_name,
    )
