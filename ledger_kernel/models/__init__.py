"""Domain models for the ledger kernel."""

from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.currency import Currency
from ledger_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
)
from ledger_kernel.models.ledger import GeneralLedgerRow
from ledger_kernel.models.legal_entity import LegalEntity

__all__ = [
    "Account",
    "AccountType",
    "Currency",
    "GeneralLedgerRow",
    "JournalEntry",
    "JournalEntryLine",
    "JournalEntryStatus",
    "LegalEntity",
]
