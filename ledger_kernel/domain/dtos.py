"""
DTOs -- Pure domain data transfer objects.

Responsibility:
    Immutable data structures that cross the service boundary:
    JournalEntryHeader + LineSpec (input to the journal engine),
    JournalEntryRecord / JournalLineRecord / LedgerRowRecord (read side),
    AccountRecord, CurrencyRecord, LegalEntityRecord.

Architecture position:
    Kernel > Domain -- pure, zero I/O.  ``from_model()`` class methods are
    boundary converters invoked only from services and selectors.

Invariants enforced:
    None here.  Amount validation happens in JournalService so that a bad
    line is reported as a typed ValidationError before anything is written.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from ledger_kernel.models.account import AccountType
from ledger_kernel.models.journal import JournalEntryStatus

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account as AccountModel
    from ledger_kernel.models.currency import Currency as CurrencyModel
    from ledger_kernel.models.journal import JournalEntry as JournalEntryModel
    from ledger_kernel.models.ledger import GeneralLedgerRow as LedgerRowModel
    from ledger_kernel.models.legal_entity import LegalEntity as LegalEntityModel


# =============================================================================
# Journal engine input
# =============================================================================


@dataclass(frozen=True)
class JournalEntryHeader:
    """
    Header of a journal entry to be created.

    ``entry_number`` is normally left empty and allocated from the
    ``journal_entry`` sequence.  ``created_by`` is an opaque caller id.
    """

    legal_entity_id: str
    entry_date: date
    currency_code: str
    created_by: str
    description: str | None = None
    reference: str | None = None
    entry_number: str | None = None


@dataclass(frozen=True)
class LineSpec:
    """One line of a journal entry to be created, in smallest units."""

    account_id: UUID
    debit_amount: int = 0
    credit_amount: int = 0
    description: str | None = None

    @classmethod
    def debit(cls, account_id: UUID, amount: int, description: str | None = None) -> LineSpec:
        return cls(account_id=account_id, debit_amount=amount, description=description)

    @classmethod
    def credit(cls, account_id: UUID, amount: int, description: str | None = None) -> LineSpec:
        return cls(account_id=account_id, credit_amount=amount, description=description)


# =============================================================================
# Read side
# =============================================================================


@dataclass(frozen=True)
class JournalLineRecord:
    id: UUID
    line_number: int
    account_id: UUID
    account_code: str
    debit_amount: int
    credit_amount: int
    description: str | None = None

    @property
    def signed_amount(self) -> int:
        return self.debit_amount - self.credit_amount


@dataclass(frozen=True)
class JournalEntryRecord:
    """
    A stored journal entry with its lines, ordered by line number.

    Guarantees:
        - total_debit == total_credit (checked at creation, CHECK constraint).
    """

    id: UUID
    entry_number: str
    entry_date: date
    status: JournalEntryStatus
    legal_entity_id: str
    currency_code: str
    total_debit: int
    total_credit: int
    created_by: str
    lines: tuple[JournalLineRecord, ...]
    description: str | None = None
    reference: str | None = None
    posted_by: str | None = None
    posted_at: datetime | None = None

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    @classmethod
    def from_model(cls, model: JournalEntryModel) -> JournalEntryRecord:
        lines = tuple(
            JournalLineRecord(
                id=line.id,
                line_number=line.line_number,
                account_id=line.account_id,
                account_code=line.account.code if line.account else "",
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                description=line.description,
            )
            for line in sorted(model.lines, key=lambda x: x.line_number)
        )
        return cls(
            id=model.id,
            entry_number=model.entry_number,
            entry_date=model.entry_date,
            status=JournalEntryStatus(model.status),
            legal_entity_id=model.legal_entity_id,
            currency_code=model.currency.code,
            total_debit=model.total_debit,
            total_credit=model.total_credit,
            created_by=model.created_by,
            lines=lines,
            description=model.description,
            reference=model.reference,
            posted_by=model.posted_by,
            posted_at=model.posted_at,
        )


@dataclass(frozen=True)
class LedgerRowRecord:
    id: UUID
    ledger_seq: int
    account_id: UUID
    journal_entry_line_id: UUID
    legal_entity_id: str
    transaction_date: date
    debit_amount: int
    credit_amount: int
    running_balance: int
    description: str | None = None

    @property
    def signed_amount(self) -> int:
        return self.debit_amount - self.credit_amount

    @classmethod
    def from_model(cls, model: LedgerRowModel) -> LedgerRowRecord:
        return cls(
            id=model.id,
            ledger_seq=model.ledger_seq,
            account_id=model.account_id,
            journal_entry_line_id=model.journal_entry_line_id,
            legal_entity_id=model.legal_entity_id,
            transaction_date=model.transaction_date,
            debit_amount=model.debit_amount,
            credit_amount=model.credit_amount,
            running_balance=model.running_balance,
            description=model.description,
        )


@dataclass(frozen=True)
class PostingResult:
    """Outcome of posting one journal entry."""

    entry_id: UUID
    entry_number: str
    posted_at: datetime
    ledger_rows: tuple[LedgerRowRecord, ...]


@dataclass(frozen=True)
class AccountRecord:
    id: UUID
    legal_entity_id: str
    code: str
    name: str
    account_type: AccountType
    parent_id: UUID | None = None
    description: str | None = None
    is_active: bool = True

    @classmethod
    def from_model(cls, model: AccountModel) -> AccountRecord:
        return cls(
            id=model.id,
            legal_entity_id=model.legal_entity_id,
            code=model.code,
            name=model.name,
            account_type=AccountType(model.account_type),
            parent_id=model.parent_id,
            description=model.description,
            is_active=model.is_active,
        )


@dataclass(frozen=True)
class CurrencyRecord:
    id: UUID
    code: str
    name: str
    decimals: int
    is_base_currency: bool
    is_active: bool
    symbol: str | None = None

    @classmethod
    def from_model(cls, model: CurrencyModel) -> CurrencyRecord:
        return cls(
            id=model.id,
            code=model.code,
            name=model.name,
            decimals=model.decimals,
            is_base_currency=model.is_base_currency,
            is_active=model.is_active,
            symbol=model.symbol,
        )


@dataclass(frozen=True)
class LegalEntityRecord:
    id: UUID
    legal_entity_id: str
    bin: str
    name: str

    @classmethod
    def from_model(cls, model: LegalEntityModel) -> LegalEntityRecord:
        return cls(
            id=model.id,
            legal_entity_id=model.legal_entity_id,
            bin=model.bin,
            name=model.name,
        )
