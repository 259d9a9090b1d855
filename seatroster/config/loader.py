from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import AppConfig, DatabaseConfig, TableNames

"""Config loader.

Responsibilities:
- Load the YAML config (default ``config/seatroster.yml``)
- Validate it against the JSON schema shipped next to this module
- Apply defaults for every optional key
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/seatroster.yml")
SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or broken, or the data violates it
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path | None = None, *, required: bool = True) -> AppConfig:
    """Load and validate the config file.

    With ``required=False`` a missing file yields the defaults instead of an error.
    """
    path = path or DEFAULT_CONFIG_PATH
    if not path.exists():
        if not required:
            return AppConfig()
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config validation failed: top level must be a mapping")

    _validate_config_schema(data)

    defaults = AppConfig()
    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    tables = TableNames(**(data.get("tables") or {}))
    return AppConfig(
        batch_size=data.get("batch_size", defaults.batch_size),
        logs_directory=data.get("logs_directory", defaults.logs_directory),
        tables=tables,
        database=db,
    )
