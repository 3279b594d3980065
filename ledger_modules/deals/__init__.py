"""
Deal Accounting Module.

Bridges business deals to the journal engine: invoices and accruals on
creation, payments received and made, mirror-entry detection between
in-system counter-parties, and deal reconciliation.
"""

from ledger_modules.deals.config import DealAccountingConfig
from ledger_modules.deals.documents import (
    DocumentGenerator,
    DocumentKind,
    DocumentRequest,
    NullDocumentGenerator,
)
from ledger_modules.deals.mirror import MirrorEntryGuard, MirrorKey, MirrorMatch
from ledger_modules.deals.models import (
    Deal,
    DealBalance,
    DealEntryType,
    DealOperationResult,
    DealParams,
    DealRole,
    DealStatus,
    DealTransaction,
    DealType,
    Discrepancy,
    DiscrepancyType,
    GeneratedDocument,
    OperationStatus,
    PaymentMethod,
    ReconciliationReport,
)
from ledger_modules.deals.reconciliation import build_reconciliation_report
from ledger_modules.deals.service import DealAccountingService

__all__ = [
    "DealAccountingConfig",
    "DealAccountingService",
    "DocumentGenerator",
    "DocumentKind",
    "DocumentRequest",
    "NullDocumentGenerator",
    "MirrorEntryGuard",
    "MirrorKey",
    "MirrorMatch",
    "Deal",
    "DealBalance",
    "DealEntryType",
    "DealOperationResult",
    "DealParams",
    "DealRole",
    "DealStatus",
    "DealTransaction",
    "DealType",
    "Discrepancy",
    "DiscrepancyType",
    "GeneratedDocument",
    "OperationStatus",
    "PaymentMethod",
    "ReconciliationReport",
    "build_reconciliation_report",
]
