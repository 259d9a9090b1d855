from __future__ import annotations

import pytest

from seatroster.csvio.errors import EmptyHeaderError, MissingColumnsError
from seatroster.csvio.schema import (
    BASE_HEADERS,
    RESTORE_HEADERS,
    build_header_map,
    required_headers,
    validate_headers,
)
from seatroster.models.import_summary import ImportMode


def test_required_headers_per_mode():
    assert required_headers(ImportMode.IMPORT) == BASE_HEADERS
    assert required_headers(ImportMode.RESTORE) == RESTORE_HEADERS
    assert len(BASE_HEADERS) == 9
    assert len(RESTORE_HEADERS) == 13


def test_missing_column_is_named_exactly():
    with pytest.raises(MissingColumnsError) as ei:
        validate_headers(["id", "name", "email"], ["id", "name", "email", "department"])
    assert ei.value.missing == ["department"]
    assert str(ei.value) == "Invalid CSV header. Missing columns: department."


def test_missing_columns_listed_in_required_order():
    with pytest.raises(MissingColumnsError) as ei:
        validate_headers(["email"], ["id", "name", "email", "city"])
    assert str(ei.value) == "Invalid CSV header. Missing columns: id, name, city."


def test_extra_columns_are_allowed_in_any_order():
    headers = ["city", "extra", *reversed(BASE_HEADERS)]
    header_map = validate_headers(headers, BASE_HEADERS)
    assert header_map["city"] == 2  # 重複名は最後の位置
    assert header_map["id"] == len(headers) - 1
    assert header_map["extra"] == 1


def test_duplicate_header_last_occurrence_wins():
    assert build_header_map(["id", "email", "id"]) == {"id": 2, "email": 1}


def test_empty_header_error_message():
    assert str(EmptyHeaderError()) == "CSV file is empty or has no header."
