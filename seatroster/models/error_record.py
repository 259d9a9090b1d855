from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

Structured error record written as JSON Lines by
:class:`seatroster.logging.error_log.ErrorLogBuffer`. ``row`` is the 1-based
source line number of the CSV file (header line = 1), or -1 for file-level
errors where no single row is to blame.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV filename being processed
        row: Row number (1-based, header is row 1). -1 for file-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human readable error message
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int  # 行番号。不明な場合 -1 許容
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines entry (fixed key set)."""
        return json.dumps(asdict(self), ensure_ascii=False)
