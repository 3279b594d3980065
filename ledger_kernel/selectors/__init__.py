"""Selectors for the ledger kernel (read side)."""

from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.selectors.ledger_selector import (
    LedgerOrder,
    LedgerSelector,
    TrialBalanceRow,
)

__all__ = [
    "AccountSelector",
    "JournalSelector",
    "LedgerOrder",
    "LedgerSelector",
    "TrialBalanceRow",
]
