"""
Process-level settings (``deposit_config.settings``).

Settings come from an optional YAML file, then environment variables
(``DEPOSIT_*``) override individual values::

    database:
      url: postgresql+psycopg://billing@db/deposit
      echo: false
      pool_size: 10
      max_overflow: 5
    log_level: INFO
    create_tables: true
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from deposit_config.schema import DatabaseSettings, PluginSettings
from deposit_kernel.exceptions import ConfigurationError

ENV_DATABASE_URL = "DEPOSIT_DATABASE_URL"
ENV_DB_POOL_SIZE = "DEPOSIT_DB_POOL_SIZE"
ENV_DB_ECHO = "DEPOSIT_DB_ECHO"
ENV_LOG_LEVEL = "DEPOSIT_LOG_LEVEL"
ENV_SETTINGS_FILE = "DEPOSIT_SETTINGS_FILE"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _parse_bool(value: Any, name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise ConfigurationError(f"{name}: expected a boolean, got {value!r}")


def _parse_int(value: Any, name: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name}: expected an integer, got {value!r}") from exc


def _read_file(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigurationError(f"Cannot read settings file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: expected a mapping at top level")
    return data


def load_settings(
    path: Path | str | None = None,
    env: Mapping[str, str] | None = None,
) -> PluginSettings:
    """
    Build ``PluginSettings`` from a YAML file and the environment.

    Raises:
        ConfigurationError: unreadable file or a malformed value.
    """
    env = os.environ if env is None else env
    if path is None and env.get(ENV_SETTINGS_FILE):
        path = env[ENV_SETTINGS_FILE]

    data = _read_file(Path(path)) if path is not None else {}
    db_data = data.get("database") or {}
    if not isinstance(db_data, dict):
        raise ConfigurationError("database: expected a mapping")

    defaults = DatabaseSettings()
    url = env.get(ENV_DATABASE_URL) or db_data.get("url", defaults.url)
    echo = _parse_bool(env.get(ENV_DB_ECHO, db_data.get("echo", defaults.echo)), "echo")
    pool_size = _parse_int(
        env.get(ENV_DB_POOL_SIZE, db_data.get("pool_size", defaults.pool_size)),
        "pool_size",
    )
    max_overflow = _parse_int(
        db_data.get("max_overflow", defaults.max_overflow), "max_overflow",
    )

    log_level = str(env.get(ENV_LOG_LEVEL, data.get("log_level", "INFO"))).upper()
    create_tables = _parse_bool(data.get("create_tables", True), "create_tables")

    return PluginSettings(
        database=DatabaseSettings(
            url=url,
            echo=echo,
            pool_size=pool_size,
            max_overflow=max_overflow,
        ),
        log_level=log_level,
        create_tables=create_tables,
    )
