from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from ..models.roster_record import RosterRecord

"""Debounced write buffer for single-record edits.

Edits are collected per record id (the latest edit wins) and submitted as one
batch once no new edit arrived for ``delay_seconds``. ``close()`` flushes
whatever is still pending.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "PendingWriteBuffer",
]

SubmitFn = Callable[[list[RosterRecord]], Any]


class PendingWriteBuffer:
    """Coalesces record edits and submits them in one call after a quiet period."""

    def __init__(self, submit: SubmitFn, delay_seconds: float = 3.0) -> None:
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds must be >= 0, got {delay_seconds}")
        self._submit = submit
        self.delay_seconds = delay_seconds
        self._pending: dict[str, RosterRecord] = {}
        self._lock = threading.Lock()
        # drain と submit をまとめて直列化する (古いバッチが新しいバッチを上書きしないように)
        self._flush_lock = threading.Lock()
        self._timer: threading.Timer | None = None
        self._closed = False

    @property
    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    def pending_ids(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def queue(self, record: RosterRecord) -> None:
        """Stage ``record``, replacing any pending edit with the same id, and re-arm the timer."""
        with self._lock:
            if self._closed:
                raise RuntimeError("PendingWriteBuffer is closed")
            self._pending[record.id] = record
            self._cancel_timer()
            self._timer = threading.Timer(self.delay_seconds, self._flush_from_timer)
            self._timer.daemon = True
            self._timer.start()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _drain(self) -> list[RosterRecord]:
        with self._lock:
            self._cancel_timer()
            batch = list(self._pending.values())
            self._pending.clear()
        return batch

    def flush(self) -> int:
        """Submit everything pending as one batch. Returns the number of records submitted.

        Only one flush runs at a time, so batches reach ``submit`` in queue order.
        Raises whatever ``submit`` raised; the drained records are not re-queued.
        """
        with self._flush_lock:
            batch = self._drain()
            if not batch:
                return 0
            try:
                self._submit(batch)
            except Exception as e:
                logger.error("failed to save %d pending change(s): %s", len(batch), e)
                raise
        logger.debug("flushed %d pending change(s)", len(batch))
        return len(batch)

    def _flush_from_timer(self) -> None:
        try:
            self.flush()
        except Exception:
            # flush() はログ済み。タイマースレッドでは再送出しない
            logger.debug("timer flush failed", exc_info=True)

    def close(self) -> int:
        """Cancel the timer and flush what is pending. Further ``queue`` calls raise."""
        with self._lock:
            self._closed = True
        return self.flush()

    def __enter__(self) -> PendingWriteBuffer:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
