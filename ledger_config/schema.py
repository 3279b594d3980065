"""
LedgerConfig schema.

Frozen dataclasses the YAML configuration is parsed into.  Chart and
currency seed rows reuse the kernel's ``AccountSeed`` / ``CurrencySeed`` so
the loaded chart can be handed to SeedService unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ledger_kernel.domain.seeding import AccountSeed, CurrencySeed


@dataclass(frozen=True)
class DatabaseConfig:
    url: str = "sqlite:///:memory:"
    echo: bool = False
    pool_size: int = 5
    max_overflow: int = 10


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"
    format: str = "json"


@dataclass(frozen=True)
class SeedingConfig:
    """The actor recorded on seeded rows.  Required; there is no default."""

    actor_id: str
    legal_entity_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class StandardAccounts:
    """Account codes the deal bridge books against."""

    receivable: str = "1210"
    revenue: str = "6010"
    cash: str = "1010"
    bank: str = "1030"
    payable: str = "3310"
    service_expense: str = "7110"
    inventory: str = "1330"


@dataclass(frozen=True)
class ClassificationConfig:
    """Code prefixes treated as current on the balance sheet."""

    current_asset_prefixes: tuple[str, ...] = ("10", "11", "12", "13")
    current_liability_prefixes: tuple[str, ...] = ("30", "31", "32", "33", "34")


@dataclass(frozen=True)
class DealConfig:
    auto_post: bool = False
    default_payment_method: str = "bank"


@dataclass(frozen=True)
class LedgerConfig:
    """The complete runtime configuration."""

    config_id: str
    version: int
    seeding: SeedingConfig
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    standard_accounts: StandardAccounts = field(default_factory=StandardAccounts)
    classification: ClassificationConfig = field(default_factory=ClassificationConfig)
    deals: DealConfig = field(default_factory=DealConfig)
    currencies: tuple[CurrencySeed, ...] = ()
    chart: tuple[AccountSeed, ...] = ()
    checksum: str = ""

    @property
    def base_currency(self) -> CurrencySeed | None:
        return next((c for c in self.currencies if c.is_base_currency), None)
