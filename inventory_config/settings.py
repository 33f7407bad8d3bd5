"""
Runtime settings schema and YAML loader (``inventory_config.settings``).

Responsibility
--------------
Parses a settings YAML file into the frozen ``InventorySettings`` dataclass
and applies environment overrides.  Callers obtain settings through
``inventory_config.get_active_settings()``; this module is its machinery.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown section or key, or an out-of-range value  -> ``ValueError``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Self

import yaml

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"

ENV_CONFIG_PATH = "INVENTORY_CONFIG"
ENV_DATABASE_URL = "INVENTORY_DATABASE_URL"
ENV_DATABASE_URL_FALLBACK = "DATABASE_URL"
ENV_LOG_LEVEL = "INVENTORY_LOG_LEVEL"

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}

# YAML section -> {yaml key: field name}
_SECTIONS: dict[str, dict[str, str]] = {
    "database": {
        "url": "database_url",
        "echo": "echo",
        "pool_size": "pool_size",
        "max_overflow": "max_overflow",
        "pool_timeout": "pool_timeout",
        "pool_recycle": "pool_recycle",
        "pool_pre_ping": "pool_pre_ping",
    },
    "logging": {
        "level": "log_level",
    },
    "transfers": {
        "number_prefix": "transfer_number_prefix",
        "sequence_width": "transfer_sequence_width",
        "unknown_product_name": "unknown_product_name",
    },
}


@dataclass(frozen=True)
class InventorySettings:
    """
    Settings for the inventory kernel and transfer service.

    Field defaults match ``default.yaml``.
    """

    database_url: str = "sqlite+pysqlite:///inventory.db"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800
    pool_pre_ping: bool = True

    log_level: str = "INFO"

    transfer_number_prefix: str = "TF"
    transfer_sequence_width: int = 4
    unknown_product_name: str = "Unknown Product"

    def __post_init__(self):
        if not self.database_url:
            raise ValueError("database_url is required")
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be >= 1, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(f"max_overflow cannot be negative, got {self.max_overflow}")
        if self.log_level not in VALID_LOG_LEVELS:
            raise ValueError(f"log_level must be one of {sorted(VALID_LOG_LEVELS)}, got '{self.log_level}'")
        if not self.transfer_number_prefix or not self.transfer_number_prefix.isalnum():
            raise ValueError(
                f"transfer_number_prefix must be non-empty alphanumeric, got '{self.transfer_number_prefix}'"
            )
        if not 1 <= self.transfer_sequence_width <= 9:
            raise ValueError(
                f"transfer_sequence_width must be between 1 and 9, got {self.transfer_sequence_width}"
            )

    @property
    def log_level_value(self) -> int:
        return logging.getLevelName(self.log_level)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build settings from the sectioned YAML structure."""
        values: dict[str, Any] = {}
        for section, entries in (data or {}).items():
            if section not in _SECTIONS:
                raise ValueError(f"Unknown settings section '{section}'")
            mapping = _SECTIONS[section]
            for key, value in (entries or {}).items():
                if key not in mapping:
                    raise ValueError(f"Unknown setting '{section}.{key}'")
                values[mapping[key]] = value
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}


def load_settings_file(path: Path) -> InventorySettings:
    with open(path) as f:
        data = yaml.safe_load(f)
    return InventorySettings.from_dict(data or {})


def apply_env_overrides(
    settings: InventorySettings,
    environ: Mapping[str, str],
) -> InventorySettings:
    """Environment values win over the file."""
    overrides: dict[str, Any] = {}
    url = environ.get(ENV_DATABASE_URL) or environ.get(ENV_DATABASE_URL_FALLBACK)
    if url:
        overrides["database_url"] = url
    level = environ.get(ENV_LOG_LEVEL)
    if level:
        overrides["log_level"] = level.upper()
    return replace(settings, **overrides) if overrides else settings


def resolve_config_path(
    config_path: Path | None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    environ = os.environ if environ is None else environ
    if config_path is not None:
        return Path(config_path)
    if environ.get(ENV_CONFIG_PATH):
        return Path(environ[ENV_CONFIG_PATH])
    return DEFAULT_CONFIG_PATH
