"""
ledger_config -- single public entrypoint for ledger configuration.

Responsibility:
    ``get_active_config()`` is the only way runtime code obtains
    configuration.  No other component reads configuration files or the
    ``LEDGER_CONFIG`` / ``DATABASE_URL`` environment variables.

Architecture position:
    Sits above ``ledger_kernel`` and below ``ledger_modules``.  The kernel
    never imports from ``ledger_config``; modules translate the loaded
    config into their own frozen config objects (``from_ledger_config``).

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``ConfigError`` (a ``ValueError``) -- missing required keys such as
      ``seeding.actor_id``, or invalid values.
"""

from __future__ import annotations

import os
from pathlib import Path

from ledger_config.loader import ConfigError, load_yaml_file, parse_config
from ledger_config.schema import (
    ClassificationConfig,
    DatabaseConfig,
    DealConfig,
    LedgerConfig,
    LoggingConfig,
    SeedingConfig,
    StandardAccounts,
)
from ledger_kernel.logging_config import configure_logging, get_logger

_logger = get_logger("config")

# Default configuration file
DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_ENV_VAR = "LEDGER_CONFIG"
DATABASE_URL_ENV_VAR = "DATABASE_URL"


def get_active_config(config_path: Path | str | None = None) -> LedgerConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: ``config_path`` argument, then the
    ``LEDGER_CONFIG`` environment variable, then ``sets/default.yaml``.
    ``DATABASE_URL``, when set, overrides ``database.url``.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        ConfigError: If a required key is missing or a value is invalid.
    """
    path = Path(config_path or os.environ.get(CONFIG_ENV_VAR) or DEFAULT_CONFIG_PATH)
    if not path.is_file():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    config = parse_config(
        load_yaml_file(path),
        database_url=os.environ.get(DATABASE_URL_ENV_VAR),
    )

    _logger.info(
        "ledger_config_loaded",
        extra={
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
            "chart_size": len(config.chart),
            "currency_count": len(config.currencies),
        },
    )
    return config


def apply_logging_config(config: LedgerConfig) -> None:
    """Configure the ledger_kernel loggers from the ``logging`` section."""
    configure_logging(level=config.logging.level, fmt=config.logging.format)


__all__ = [
    "ClassificationConfig",
    "ConfigError",
    "DatabaseConfig",
    "DealConfig",
    "DEFAULT_CONFIG_PATH",
    "LedgerConfig",
    "LoggingConfig",
    "SeedingConfig",
    "StandardAccounts",
    "apply_logging_config",
    "get_active_config",
]
