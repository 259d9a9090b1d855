from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from seatroster.cli import main as cli_main

RESTORE_HEADER = (
    "id,name,email,designation,manager,department,lineOfBusiness,location,city,"
    "modifierName,modifierEmail,reason,modifiedAt"
)


@pytest.fixture()
def roster_file(temp_workdir: Path, roster_csv) -> Path:
    f = temp_workdir / "data" / "roster.csv"
    f.write_text(roster_csv(3), encoding="utf-8")
    return f


def test_cli_import_mock_mode(write_config, roster_file: Path, mock_db, capsys):
    code = cli_main(["import", str(roster_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO mode=mock file=roster.csv imported=3" in out
    assert "SUMMARY mode=import rows=3/3 batches=1 failed_batches=0" in out


def test_cli_without_config_uses_defaults(temp_workdir: Path, roster_file: Path, mock_db, capsys):
    assert cli_main(["import", str(roster_file)]) == 0


def test_cli_explicit_missing_config_is_fatal(temp_workdir: Path, roster_file: Path, mock_db, capsys):
    code = cli_main(["--config", "config/missing.yml", "import", str(roster_file)])
    assert code == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_cli_invalid_config_is_fatal(write_config: Path, roster_file: Path, mock_db, capsys):
    write_config.write_text("batch_size: 0\n", encoding="utf-8")
    code = cli_main(["import", str(roster_file)])
    assert code == 1
    assert "config validation failed" in capsys.readouterr().out


def test_cli_missing_file(write_config, temp_workdir: Path, mock_db, capsys):
    code = cli_main(["import", str(temp_workdir / "data" / "nope.csv")])
    assert code == 1
    assert "ERROR cannot read" in capsys.readouterr().out


def test_cli_header_error_writes_error_log(write_config, temp_workdir: Path, mock_db, capsys):
    bad = temp_workdir / "data" / "bad.csv"
    bad.write_text("id,name,email\n1,a,a@x\n", encoding="utf-8")
    code = cli_main(["import", str(bad)])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR Invalid CSV header. Missing columns: designation" in out
    logs = list((temp_workdir / "logs").glob("errors-*.log"))
    assert len(logs) == 1
    entry = json.loads(logs[0].read_text(encoding="utf-8").splitlines()[0])
    assert entry["error_type"] == "HEADER_ERROR"
    assert entry["file"] == "bad.csv"


def test_cli_restore_mock_mode(write_config, temp_workdir: Path, mock_db, capsys):
    f = temp_workdir / "data" / "backup.csv"
    f.write_text(
        RESTORE_HEADER + "\n1,Ann,ann@x.com,Dev,Bob,Eng,Ops,FTC,Karachi,Mod,mod@x.com,Critical,2024-01-01\n",
        encoding="utf-8",
    )
    code = cli_main(["restore", str(f)])
    assert code == 0
    assert "SUMMARY mode=restore rows=1/1" in capsys.readouterr().out


def test_cli_template(temp_workdir: Path, capsys):
    assert cli_main(["template", "-o", "out/template.csv"]) == 0
    text = (temp_workdir / "out" / "template.csv").read_text(encoding="utf-8")
    assert text.startswith("id,name,email,")
    assert "Jane Doe" in text


def test_cli_backup_empty_roster_is_fatal(write_config, mock_db, capsys):
    code = cli_main(["backup"])
    assert code == 1
    assert "ERROR There is no user data to back up." in capsys.readouterr().out


def test_cli_report_lob_requires_lob(write_config, mock_db):
    with pytest.raises(SystemExit) as ei:
        cli_main(["report", "lob"])
    assert ei.value.code == 2


def test_cli_add_admins_mock(write_config, mock_db, capsys):
    code = cli_main(["add-admins", "Boss@Example.com", "boss@example.com", "x@y.com"])
    assert code == 0
    assert "admins added/ensured: 2" in capsys.readouterr().out


def test_cli_inspect(temp_workdir: Path, roster_file: Path, capsys):
    code = cli_main(["inspect", str(roster_file), "--rows", "1"])
    out = capsys.readouterr().out
    assert code == 0
    assert "FILE: roster.csv rows=3" in out
    assert "import: ok" in out
    assert "restore: missing modifierName, modifierEmail, reason, modifiedAt" in out
    assert out.count("sample_row=") == 1


def test_cli_debug_mode(write_config, roster_file: Path, mock_db, capsys):
    code = cli_main(["--debug", "import", str(roster_file)])
    out = capsys.readouterr().out
    assert code == 0
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG backend mode=mock" in out


@pytest.mark.parametrize(
    "argv",
    [
        ["import", "data/roster.csv"],
        ["restore", "data/roster.csv"],
        ["add-admins", "boss@example.com"],
    ],
)
def test_cli_db_failure_is_fatal(write_config, roster_file: Path, monkeypatch, capsys, argv):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)

    def refuse(*args, **kwargs):
        raise RuntimeError("connection refused")

    with patch("seatroster.cli.__main__.db_connection", side_effect=refuse):
        code = cli_main(argv)
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR DB connection failed: connection refused" in out
    assert "SUMMARY" not in out
    assert "mode=mock" not in out


class DummyCtx:
    def __init__(self, cursor):
        self.cursor = cursor

    def __enter__(self):
        return self.cursor

    def __exit__(self, exc_type, exc, tb):
        return False


def test_cli_live_mode_success(write_config, roster_file: Path, monkeypatch, capsys):
    import seatroster.db.batch_upsert as bu

    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    calls = []
    monkeypatch.setattr(bu, "execute_values", lambda cur, sql, rows, page_size=1000: calls.append(rows))
    cursor = MagicMock()

    with patch("seatroster.cli.__main__.db_connection", return_value=DummyCtx(cursor)):
        code = cli_main(["import", str(roster_file)])

    out = capsys.readouterr().out
    assert code == 0
    assert "mode=live" in out
    assert len(calls) == 1 and len(calls[0]) == 3
    statements = [c.args[0] for c in cursor.execute.call_args_list]
    assert any(s.startswith("CREATE TABLE IF NOT EXISTS") for s in statements)
    assert "COMMIT" in statements
    assert any("INSERT INTO \"changelog\"" in s for s in statements)
