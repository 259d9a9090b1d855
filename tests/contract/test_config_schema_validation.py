from __future__ import annotations

from pathlib import Path

import pytest

from seatroster.config.loader import ConfigError, load_config


@pytest.mark.parametrize(
    "body",
    [
        "batch_size: 0\n",
        "batch_size: ten\n",
        "flush_delay_seconds: 3.0\n",
        "unknown_key: 1\n",
        "tables:\n  users: 'bad name; drop'\n",
        "tables:\n  extra: x\n",
        "database:\n  port: '5432'\n",
    ],
)
def test_invalid_config_rejected(temp_workdir: Path, body: str):
    path = temp_workdir / "config" / "seatroster.yml"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ConfigError) as e:
        load_config(path)
    assert "config validation failed" in str(e.value)


def test_custom_table_names_accepted(temp_workdir: Path):
    path = temp_workdir / "config" / "seatroster.yml"
    path.write_text("tables:\n  users: roster_users\n  locks: lob_locks\n", encoding="utf-8")
    cfg = load_config(path)
    assert cfg.tables.users == "roster_users"
    assert cfg.tables.locks == "lob_locks"
    assert cfg.tables.roles == "roles"
