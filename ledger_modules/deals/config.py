"""
Deal Accounting Configuration Schema.

Which chart accounts the bridge books against, whether created entries are
posted immediately, and the payment method assumed when a caller gives none.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Self

from ledger_config.schema import StandardAccounts
from ledger_kernel.logging_config import get_logger
from ledger_modules.deals.models import DealType, PaymentMethod

if TYPE_CHECKING:
    from ledger_config import LedgerConfig

logger = get_logger("modules.deals.config")


@dataclass(frozen=True)
class DealAccountingConfig:
    standard_accounts: StandardAccounts = field(default_factory=StandardAccounts)
    auto_post: bool = False
    default_payment_method: PaymentMethod = PaymentMethod.BANK

    def __post_init__(self):
        # Accept plain strings from YAML
        object.__setattr__(
            self, "default_payment_method", PaymentMethod(self.default_payment_method)
        )

    def expense_account_code(self, deal_type: DealType | str) -> str:
        """Services are expensed; goods go to inventory."""
        if DealType(deal_type) == DealType.SERVICE:
            return self.standard_accounts.service_expense
        return self.standard_accounts.inventory

    def settlement_account_code(self, payment_method: PaymentMethod | str) -> str:
        if PaymentMethod(payment_method) == PaymentMethod.CASH:
            return self.standard_accounts.cash
        return self.standard_accounts.bank

    @classmethod
    def with_defaults(cls) -> Self:
        return cls()

    @classmethod
    def from_ledger_config(cls, config: LedgerConfig) -> Self:
        logger.info(
            "deal_config_from_ledger_config",
            extra={"config_id": config.config_id},
        )
        return cls(
            standard_accounts=config.standard_accounts,
            auto_post=config.deals.auto_post,
            default_payment_method=PaymentMethod(config.deals.default_payment_method),
        )
