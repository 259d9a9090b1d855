from __future__ import annotations

import re
from pathlib import Path

from seatroster.cli import main as cli_main

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+mode=(import|restore)\s+rows=([0-9]+)/([0-9]+)\s+batches=([0-9]+)\s+"
    r"failed_batches=([01])\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+throughput_rps=([0-9]+\.?[0-9]*)$"
)


def test_summary_line_contract(write_config, temp_workdir: Path, roster_csv, mock_db, capsys):
    f = temp_workdir / "data" / "roster.csv"
    f.write_text(roster_csv(120), encoding="utf-8")
    assert cli_main(["import", str(f)]) == 0
    lines = [line for line in capsys.readouterr().out.splitlines() if line.startswith("SUMMARY")]
    assert len(lines) == 1
    m = SUMMARY_PATTERN.match(lines[0])
    assert m is not None
    assert m.group(2) == "120" and m.group(3) == "120"
    assert m.group(4) == "3"
