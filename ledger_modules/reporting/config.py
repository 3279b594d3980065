"""
Reporting Configuration Schema.

Balance sheet classification uses account code prefixes.  This is a
convention of the chart, not an accounting law: an asset whose code starts
with a current-asset prefix is current, every other asset is non-current,
and likewise for liabilities.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self

from ledger_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from ledger_config import LedgerConfig

logger = get_logger("modules.reporting.config")


@dataclass(frozen=True)
class AccountClassification:
    """
    Prefix rules for current vs non-current balance sheet sections.

    Prefix matching: an account matches a section if its code starts with
    any of the configured prefixes.
    """

    current_asset_prefixes: tuple[str, ...] = ("10", "11", "12", "13")
    current_liability_prefixes: tuple[str, ...] = ("30", "31", "32", "33", "34")

    def matches_prefix(self, code: str, prefixes: tuple[str, ...]) -> bool:
        """Check if an account code matches any of the given prefixes."""
        return any(code.startswith(p) for p in prefixes)


@dataclass(frozen=True)
class ReportingConfig:
    """Configuration for the reporting module."""

    classification: AccountClassification = field(
        default_factory=AccountClassification,
    )

    # Used in report metadata when no base currency is registered
    default_currency: str = "KZT"

    # Label of the synthetic equity line carrying net income
    current_earnings_label: str = "Current year earnings"

    def __post_init__(self):
        if len(self.default_currency) != 3:
            raise ValueError("default_currency must be a 3-letter ISO 4217 code")

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_ledger_config(cls, config: LedgerConfig) -> Self:
        """Derive the reporting config from the loaded ledger configuration."""
        base = config.base_currency
        logger.info(
            "reporting_config_from_ledger_config",
            extra={"config_id": config.config_id},
        )
        return cls(
            classification=AccountClassification(
                current_asset_prefixes=config.classification.current_asset_prefixes,
                current_liability_prefixes=config.classification.current_liability_prefixes,
            ),
            default_currency=base.code if base else cls.default_currency,
        )
