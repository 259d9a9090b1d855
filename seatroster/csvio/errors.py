from __future__ import annotations

"""CSV engine error taxonomy.

All engine errors abort the whole operation; messages are meant to be shown to
the user verbatim.
"""

__all__ = [
    "CsvEngineError",
    "EmptyHeaderError",
    "MissingColumnsError",
    "RowError",
]


class CsvEngineError(Exception):
    """Base class for CSV parse / validation errors."""


class EmptyHeaderError(CsvEngineError):
    """Raised when the header line is missing or blank."""

    def __init__(self, message: str = "CSV file is empty or has no header.") -> None:
        super().__init__(message)


class MissingColumnsError(CsvEngineError):
    """Raised when required columns are absent from the header line."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = list(missing)
        super().__init__(f"Invalid CSV header. Missing columns: {', '.join(self.missing)}.")


class RowError(CsvEngineError):
    """Raised when a data row cannot be turned into a record.

    ``row_number`` is the 1-based line number in the file (header = line 1).
    """

    def __init__(self, row_number: int, reason: str, field: str | None = None) -> None:
        self.row_number = row_number
        self.reason = reason
        self.field = field
        super().__init__(f"Error parsing row {row_number}: {reason}.")
