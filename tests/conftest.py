# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from seatroster.logging.init import reset_logging

ROSTER_HEADER = "id,name,email,designation,manager,department,lineOfBusiness,location,city"


@pytest.fixture(autouse=True)
def _clean_logging():
    # capsys はテスト毎に stdout を差し替えるためハンドラを作り直す
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """batch_size: 50
logs_directory: ./logs
tables:
  users: users
  admins: admins
  changelog: changelog
  roles: roles
  locks: locks
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "seatroster.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def mock_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def make_roster_csv(count: int, *, start: int = 1, lob: str = "Engineering") -> str:
    lines = [ROSTER_HEADER]
    for i in range(start, start + count):
        lines.append(
            f"{i},User {i},user{i}@example.com,Engineer,Boss,Dept,{lob},FTC,Karachi"
        )
    return "\n".join(lines)


@pytest.fixture()
def roster_csv():
    """Factory: ``roster_csv(count, start=1, lob="Engineering")`` -> CSV text."""
    return make_roster_csv
