"""CSV engine: parse, validate, map and serialize roster CSV files."""

from .errors import CsvEngineError, EmptyHeaderError, MissingColumnsError, RowError
from .parser import CsvDocument, parse_csv, parse_line
from .row_mapper import map_row, map_rows, parse_boolean
from .schema import (
    BASE_HEADERS,
    IT_ACCESS_HEADERS,
    PROVENANCE_HEADERS,
    RESTORE_HEADERS,
    build_header_map,
    required_headers,
    validate_headers,
)
from .writer import escape_field, serialize

__all__ = [
    "BASE_HEADERS",
    "IT_ACCESS_HEADERS",
    "PROVENANCE_HEADERS",
    "RESTORE_HEADERS",
    "CsvDocument",
    "CsvEngineError",
    "EmptyHeaderError",
    "MissingColumnsError",
    "RowError",
    "build_header_map",
    "escape_field",
    "map_row",
    "map_rows",
    "parse_boolean",
    "parse_csv",
    "parse_line",
    "required_headers",
    "serialize",
    "validate_headers",
]
