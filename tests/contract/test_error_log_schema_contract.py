from __future__ import annotations

import json
from pathlib import Path

import pytest

from seatroster.csvio.errors import RowError
from seatroster.db.protocols import Actor
from seatroster.db.store import MemoryRosterStore
from seatroster.logging.error_log import ErrorLogBuffer
from seatroster.services.importer import import_csv

REQUIRED_KEYS = {"timestamp", "file", "row", "error_type", "message"}


def test_row_error_json_line_contract(temp_workdir: Path, roster_csv):
    buf = ErrorLogBuffer()
    text = roster_csv(1) + "\n,Missing Id,x@example.com,Dev,Boss,Dept,Ops,FTC,Karachi"
    with pytest.raises(RowError):
        import_csv(text, MemoryRosterStore(), Actor("a", "a@x"), error_log=buf, file_name="roster.csv")
    path = buf.flush()
    assert path is not None
    [raw] = path.read_text(encoding="utf-8").splitlines()
    obj = json.loads(raw)
    assert set(obj) == REQUIRED_KEYS
    assert obj["row"] == 3
    assert obj["error_type"] == "ROW_ERROR"
    assert obj["message"] == "Error parsing row 3: Row 3 is missing the required 'id' field."
    assert obj["timestamp"].endswith("Z")


def test_file_level_errors_use_header_row(temp_workdir: Path):
    buf = ErrorLogBuffer()
    with pytest.raises(Exception):
        import_csv("name\nx", MemoryRosterStore(), Actor("a", "a@x"), error_log=buf)
    assert buf.records[0].row == 1
