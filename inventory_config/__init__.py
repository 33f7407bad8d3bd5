"""
inventory_config -- single public entrypoint for runtime settings.

Responsibility:
    ``get_active_settings()`` is the only way runtime code obtains settings.
    No other component reads settings files or environment variables.

Architecture position:
    Configuration -- sits beside ``inventory_services``.  The kernel MUST
    NEVER import from ``inventory_config``; services pass the relevant
    values down as constructor arguments.

Audit relevance:
    Every call emits an ``INVENTORY_CONFIG_TRACE`` log entry naming the
    source file and the effective values (database password masked).
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from sqlalchemy.engine import make_url

from inventory_config.settings import (
    DEFAULT_CONFIG_PATH,
    InventorySettings,
    apply_env_overrides,
    load_settings_file,
    resolve_config_path,
)

_logger = logging.getLogger("inventory_kernel.config")


def get_active_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> InventorySettings:
    """The ONLY public settings entrypoint.

    Args:
        config_path: YAML file to load.  Defaults to ``$INVENTORY_CONFIG``,
            then the packaged ``default.yaml``.
        environ: Environment mapping (defaults to ``os.environ``).

    Raises:
        FileNotFoundError: The settings file does not exist.
        ValueError: Unknown keys or invalid values.
    """
    environ = os.environ if environ is None else environ
    path = resolve_config_path(config_path, environ)
    settings = apply_env_overrides(load_settings_file(path), environ)

    _logger.info(
        "INVENTORY_CONFIG_TRACE",
        extra={
            "trace_type": "INVENTORY_CONFIG_TRACE",
            "config_path": str(path),
            "database_url": make_url(settings.database_url).render_as_string(hide_password=True),
            "log_level": settings.log_level,
            "transfer_number_prefix": settings.transfer_number_prefix,
            "transfer_sequence_width": settings.transfer_sequence_width,
        },
    )
    return settings


__all__ = [
    "DEFAULT_CONFIG_PATH",
    "InventorySettings",
    "get_active_settings",
]
