"""
Configuration loader (``ledger_config.loader``).

Responsibility
--------------
Reads a YAML configuration file and parses it into the frozen dataclasses
of ``ledger_config.schema``.  Runtime callers go through
``ledger_config.get_active_config()``; the parse functions are public for
tests and tooling.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys or bad values  -> ``ConfigError``.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from ledger_config.schema import (
    ClassificationConfig,
    DatabaseConfig,
    DealConfig,
    LedgerConfig,
    LoggingConfig,
    SeedingConfig,
    StandardAccounts,
)
from ledger_kernel.domain.seeding import AccountSeed, CurrencySeed
from ledger_kernel.models.account import AccountType


class ConfigError(ValueError):
    """Configuration is missing a required key or holds an invalid value."""


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _require(data: Mapping[str, Any], key: str, section: str) -> Any:
    value = data.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ConfigError(f"Missing required configuration key: {section}.{key}")
    return value


def parse_database(data: Mapping[str, Any]) -> DatabaseConfig:
    return DatabaseConfig(
        url=data.get("url", DatabaseConfig.url),
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", DatabaseConfig.pool_size)),
        max_overflow=int(data.get("max_overflow", DatabaseConfig.max_overflow)),
    )


_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
_LOG_FORMATS = ("json", "text")


def parse_logging(data: Mapping[str, Any]) -> LoggingConfig:
    level = str(data.get("level", LoggingConfig.level)).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f"logging.level must be one of {_LOG_LEVELS}, got {level!r}")
    fmt = data.get("format", LoggingConfig.format)
    if fmt not in _LOG_FORMATS:
        raise ConfigError(f"logging.format must be json or text, got {fmt!r}")
    return LoggingConfig(level=level, format=fmt)


def parse_seeding(data: Mapping[str, Any]) -> SeedingConfig:
    """The ``seeding`` section; ``actor_id`` is required."""
    return SeedingConfig(
        actor_id=str(_require(data, "actor_id", "seeding")),
        legal_entity_ids=tuple(str(e) for e in data.get("legal_entity_ids", ())),
    )


def parse_standard_accounts(data: Mapping[str, Any]) -> StandardAccounts:
    defaults = StandardAccounts()
    return StandardAccounts(
        **{
            name: str(data.get(name, getattr(defaults, name)))
            for name in (f.name for f in fields(StandardAccounts))
        }
    )


def parse_classification(data: Mapping[str, Any]) -> ClassificationConfig:
    defaults = ClassificationConfig()
    return ClassificationConfig(
        current_asset_prefixes=tuple(
            str(p) for p in data.get("current_asset_prefixes", defaults.current_asset_prefixes)
        ),
        current_liability_prefixes=tuple(
            str(p)
            for p in data.get("current_liability_prefixes", defaults.current_liability_prefixes)
        ),
    )


def parse_deals(data: Mapping[str, Any]) -> DealConfig:
    method = data.get("default_payment_method", "bank")
    if method not in ("cash", "bank"):
        raise ConfigError(f"deals.default_payment_method must be cash or bank, got {method!r}")
    return DealConfig(
        auto_post=bool(data.get("auto_post", False)),
        default_payment_method=method,
    )


def parse_currency(data: Mapping[str, Any]) -> CurrencySeed:
    return CurrencySeed(
        code=str(_require(data, "code", "currencies[]")).upper(),
        name=str(_require(data, "name", "currencies[]")),
        decimals=int(data.get("decimals", 2)),
        symbol=data.get("symbol"),
        is_base_currency=bool(data.get("is_base_currency", False)),
        is_active=bool(data.get("is_active", True)),
    )


def parse_account(data: Mapping[str, Any]) -> AccountSeed:
    raw_type = _require(data, "account_type", "chart[]")
    try:
        account_type = AccountType(raw_type)
    except ValueError:
        raise ConfigError(f"Unknown account_type {raw_type!r} in chart") from None
    parent = data.get("parent_code")
    return AccountSeed(
        code=str(_require(data, "code", "chart[]")),
        name=str(_require(data, "name", "chart[]")),
        account_type=account_type,
        parent_code=str(parent) if parent is not None else None,
        description=data.get("description"),
        is_active=bool(data.get("is_active", True)),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; deterministic."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_config(data: dict[str, Any], database_url: str | None = None) -> LedgerConfig:
    """
    Build a LedgerConfig from a parsed YAML document.

    Args:
        data: The YAML document.
        database_url: Overrides ``database.url`` when given.
    """
    if "seeding" not in data:
        raise ConfigError("Missing required configuration section: seeding")

    database = parse_database(data.get("database") or {})
    if database_url:
        database = replace(database, url=database_url)

    currencies = tuple(parse_currency(c) for c in data.get("currencies") or ())
    if sum(1 for c in currencies if c.is_base_currency) > 1:
        raise ConfigError("At most one currency may be the base currency")

    return LedgerConfig(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        seeding=parse_seeding(data["seeding"] or {}),
        database=database,
        logging=parse_logging(data.get("logging") or {}),
        standard_accounts=parse_standard_accounts(data.get("standard_accounts") or {}),
        classification=parse_classification(data.get("classification") or {}),
        deals=parse_deals(data.get("deals") or {}),
        currencies=currencies,
        chart=tuple(parse_account(a) for a in data.get("chart") or ()),
        checksum=compute_checksum(data),
    )
