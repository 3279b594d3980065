"""
Deal Accounting Domain Models (``ledger_modules.deals.models``).

Responsibility
--------------
Frozen dataclass value objects for deals, their operation results, balances,
linked transactions and reconciliation reports.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by
``DealAccountingService`` and returned to callers.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* Monetary fields are ``int`` smallest units.
* ``Deal``: 0 <= paid_amount <= total_amount, and status is COMPLETED
  exactly when paid_amount == total_amount (also CHECK constraints on
  the ``deals`` table).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.dtos import JournalEntryRecord


class DealType(str, Enum):
    SERVICE = "service"
    PRODUCT = "product"


class DealRole(str, Enum):
    """Side the owning legal entity takes in the deal."""

    SELLER = "seller"
    BUYER = "buyer"


class DealStatus(str, Enum):
    """Deal lifecycle: ACTIVE -> COMPLETED, one-way."""

    ACTIVE = "active"
    COMPLETED = "completed"


class DealEntryType(str, Enum):
    """Why a journal entry is linked to a deal."""

    INVOICE = "invoice"
    PAYMENT = "payment"
    ADJUSTMENT = "adjustment"


class PaymentMethod(str, Enum):
    CASH = "cash"
    BANK = "bank"


class OperationStatus(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"
    REJECTED = "rejected"


class DiscrepancyType(str, Enum):
    OVERPAYMENT = "overpayment"
    MISSING_PAYMENT = "missing_payment"
    LEDGER_MISMATCH = "ledger_mismatch"


# =========================================================================
# Deals
# =========================================================================


@dataclass(frozen=True)
class DealParams:
    """
    Input for creating a deal.

    ``deal_reference`` is the shared deal-pair identifier both counter-parties
    use for the same economic deal.  Without it the mirror-entry guard has
    nothing to match on.  ``counterparty_name`` names a new partner whose BIN
    is not a registered tenant.
    """

    legal_entity_id: str
    receiver_bin: str
    title: str
    deal_type: DealType
    total_amount: int
    currency_code: str
    created_by: str
    deal_role: DealRole = DealRole.SELLER
    description: str | None = None
    deal_reference: str | None = None
    entry_date: date | None = None
    counterparty_name: str | None = None


@dataclass(frozen=True)
class Deal:
    id: UUID
    legal_entity_id: str
    receiver_bin: str
    title: str
    deal_type: DealType
    deal_role: DealRole
    currency_code: str
    total_amount: int
    paid_amount: int
    status: DealStatus
    created_by: str
    description: str | None = None
    deal_reference: str | None = None
    partner_id: UUID | None = None
    counterparty_name: str | None = None

    @property
    def remaining_amount(self) -> int:
        return self.total_amount - self.paid_amount

    @property
    def is_completed(self) -> bool:
        return self.status == DealStatus.COMPLETED


@dataclass(frozen=True)
class GeneratedDocument:
    """Reference to a document produced after commit."""

    document_id: str
    storage_path: str
    file_name: str
    kind: str


@dataclass(frozen=True)
class DealOperationResult:
    """
    Tagged outcome of a bridge operation.

    SUCCESS: all writes committed.  SKIPPED: a mirror entry exists; the
    operation wrote nothing beyond what ``message`` states.  REJECTED: an
    expected business condition (overpayment, not found, validation); the
    transaction was rolled back.
    """

    status: OperationStatus
    deal: Deal | None = None
    entries: tuple[JournalEntryRecord, ...] = ()
    error_code: str | None = None
    message: str | None = None
    document: GeneratedDocument | None = None
    document_error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == OperationStatus.SUCCESS

    @property
    def is_skipped(self) -> bool:
        return self.status == OperationStatus.SKIPPED

    @property
    def is_rejected(self) -> bool:
        return self.status == OperationStatus.REJECTED


@dataclass(frozen=True)
class DealBalance:
    deal_id: UUID
    total_amount: int
    paid_amount: int
    remaining_amount: int
    status: DealStatus


# =========================================================================
# Transactions and reconciliation
# =========================================================================


@dataclass(frozen=True)
class DealTransactionLine:
    account_id: UUID
    account_code: str
    account_name: str
    debit_amount: int
    credit_amount: int
    description: str | None = None


@dataclass(frozen=True)
class DealTransaction:
    """A journal entry linked to a deal, with its lines."""

    entry_id: UUID
    entry_type: DealEntryType
    entry_number: str
    entry_date: date
    status: str
    amount: int
    lines: tuple[DealTransactionLine, ...]
    reference: str | None = None
    description: str | None = None


@dataclass(frozen=True)
class Discrepancy:
    type: DiscrepancyType
    amount: int
    description: str


@dataclass(frozen=True)
class ReconciliationReport:
    """
    Deal reconciliation.

    ``is_balanced`` is ``remaining_balance == 0``.  ``ledger_paid_amount`` is
    the sum of the deal's posted payment entries, for comparison with the
    stored ``paid_amount``.
    """

    deal_id: UUID
    deal_title: str
    status: DealStatus
    total_amount: int
    paid_amount: int
    remaining_balance: int
    ledger_paid_amount: int
    discrepancies: tuple[Discrepancy, ...]
    is_balanced: bool
    transactions: tuple[DealTransaction, ...]
