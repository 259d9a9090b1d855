from __future__ import annotations

import json
from pathlib import Path

from seatroster.logging.error_log import ErrorLogBuffer, ErrorRecord

KEYS = {"timestamp", "file", "row", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(file="roster.csv", row=10, error_type="ROW_ERROR", message="bad row")
    data = json.loads(rec.to_json_line())
    assert data["file"] == "roster.csv"
    assert data["row"] == 10
    assert data["error_type"] == "ROW_ERROR"
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == KEYS


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("a.csv", 1, "HEADER_ERROR", "missing"))
    buf.append(ErrorRecord.create("a.csv", 51, "BATCH_PERSISTENCE_ERROR", "boom"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("./logs")
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    # flush 後バッファクリア
    assert len(buf) == 0


def test_error_log_buffer_empty_flush_creates_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_error_log_buffer_multiple_flushes_append(tmp_path: Path):
    buf = ErrorLogBuffer(tmp_path)
    buf.append(ErrorRecord.create("f.csv", 2, "ROW_ERROR", "one"))
    path = buf.flush()
    buf.append(ErrorRecord.create("f.csv", 3, "ROW_ERROR", "two"))
    assert buf.flush() == path
    assert len(path.read_text(encoding="utf-8").splitlines()) == 2
    assert path.name.startswith("errors-") and path.suffix == ".log"


def test_error_record_non_ascii_kept():
    rec = ErrorRecord.create("名簿.csv", -1, "HEADER_ERROR", "ヘッダ不足")
    assert "名簿.csv" in rec.to_json_line()
