from __future__ import annotations

import statistics
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

"""Import result models.

ImportSummary aggregates the outcome of one import / restore run, including
batch timing statistics used for the SUMMARY line.
"""

__all__ = [
    "ImportMode",
    "ImportSummary",
    "BatchStatsAccumulator",
]


class ImportMode(Enum):
    """CSV calling contract.

    - IMPORT: roster columns only, upsert by id
    - RESTORE: roster + provenance columns, replaces the whole roster
    """
    IMPORT = "import"
    RESTORE = "restore"


@dataclass(frozen=True)
class ImportSummary:
    """Outcome of a chunked import.

    ``failed_batch`` is the 1-based number of the batch whose persistence call
    failed, or None when every batch committed. Batches before it stay committed.
    """
    mode: ImportMode
    total: int  # mapped records
    imported: int  # committed records
    batches: int  # committed batches
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    failed_batch: int | None = None
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0

    @property
    def succeeded(self) -> bool:
        return self.failed_batch is None

    @property
    def partial(self) -> bool:
        """True when a batch failed after at least one batch was committed."""
        return self.failed_batch is not None and self.imported > 0


class BatchStatsAccumulator:
    """Collects per-batch timings and computes count / mean / p95."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return ``(total_batches, avg_batch_seconds, p95_batch_seconds)``."""
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)

        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method="inclusive"
            )[18]  # 19th of 20 cut points

        return (total_batches, avg_batch_seconds, p95_batch_seconds)
