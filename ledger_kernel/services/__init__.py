"""Services for the ledger kernel (write side)."""

from ledger_kernel.services.chart_service import ChartService
from ledger_kernel.services.currency_service import CurrencyService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.legal_entity_service import LegalEntityService
from ledger_kernel.services.seed_service import SeedResult, SeedService
from ledger_kernel.services.sequence_service import SequenceService

__all__ = [
    "ChartService",
    "CurrencyService",
    "JournalService",
    "LegalEntityService",
    "SeedResult",
    "SeedService",
    "SequenceService",
]
