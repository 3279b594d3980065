"""
JournalService -- create, post and cancel journal entries.

Responsibility:
    The journal engine.  Validates balanced multi-line entries, stores them
    as drafts, and posts them into the general ledger with running balances.

Architecture position:
    Kernel > Services.  Flushes within the caller's transaction; the caller
    (GLService, DealAccountingService, session_scope) commits or rolls back.

Invariants enforced:
    - Every check runs before the first write.  A rejected entry leaves no
      header, no lines and no consumed entry number.
    - total_debit == total_credit, and every line has exactly one strictly
      positive side (also CHECK constraints on the tables).
    - All lines reference active accounts of the entry's legal entity.
    - Posting is allowed only from DRAFT.  Posting twice raises
      AlreadyPostedError; it is never silently skipped.
    - Running balances: for each account, rows are chained in ledger_seq
      order.  The entry row and then the involved account rows (in id order)
      are locked FOR UPDATE before the prior balance is read.
    - ledger_seq comes from the single ``general_ledger`` counter row, which
      stays locked until commit.  Every posting is therefore serialized,
      including postings to disjoint accounts, and ledger_seq is one total
      posting order across all tenants with no gaps among committed rows.

Failure modes:
    - EmptyEntryError, InvalidLineAmountError, UnbalancedEntryError,
      AccountNotFoundError, CrossEntityReferenceError, AccountInactiveError,
      CurrencyNotFoundError, CurrencyInactiveError, DuplicateEntryNumberError
      on create.
    - JournalEntryNotFoundError, AlreadyPostedError, EntryNotDraftError on
      post / cancel.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import (
    JournalEntryHeader,
    JournalEntryRecord,
    LedgerRowRecord,
    LineSpec,
    PostingResult,
)
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AccountNotFoundError,
    AlreadyPostedError,
    CrossEntityReferenceError,
    CurrencyInactiveError,
    CurrencyNotFoundError,
    DuplicateEntryNumberError,
    EmptyEntryError,
    EntryNotDraftError,
    InvalidLineAmountError,
    JournalEntryNotFoundError,
    UnbalancedEntryError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.currency import Currency
from ledger_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
)
from ledger_kernel.models.ledger import GeneralLedgerRow
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.sequence_service import SequenceService

logger = get_logger("services.journal")

ENTRY_NUMBER_PREFIX = "JE-"


def _is_amount(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def validate_lines(lines: Sequence[LineSpec]) -> tuple[int, int]:
    """
    Check line amounts and balance; return (total_debit, total_credit).

    Pure function: no I/O, safe to call before any write.
    """
    if not lines:
        raise EmptyEntryError()

    total_debit = 0
    total_credit = 0
    for line_number, line in enumerate(lines, start=1):
        if not (_is_amount(line.debit_amount) and _is_amount(line.credit_amount)):
            raise InvalidLineAmountError(
                line_number, "amounts must be non-negative integers in smallest units",
            )
        if (line.debit_amount > 0) == (line.credit_amount > 0):
            raise InvalidLineAmountError(
                line_number, "exactly one of debit or credit must be positive",
            )
        total_debit += line.debit_amount
        total_credit += line.credit_amount

    if total_debit != total_credit:
        raise UnbalancedEntryError(total_debit, total_credit)
    return total_debit, total_credit


class JournalService(BaseService[JournalEntry]):
    """
    Journal engine.

    Usage:
        service = JournalService(session, clock)
        record = service.create_journal_entry(header, [
            LineSpec.debit(receivable_id, 100_000),
            LineSpec.credit(revenue_id, 100_000),
        ])
        service.post_journal_entry(record.id, posted_by="user-1")
        session.commit()
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        super().__init__(session)
        self._clock = clock or SystemClock()
        self._sequences = SequenceService(session)

    # =========================================================================
    # Create
    # =========================================================================

    def create_journal_entry(
        self,
        header: JournalEntryHeader,
        lines: Sequence[LineSpec],
    ) -> JournalEntryRecord:
        """
        Validate and store a draft entry with its lines.

        Preconditions: the caller owns an open transaction.
        Postconditions: header and all lines are flushed together as DRAFT,
            lines numbered 1..n in input order.
        """
        lines = list(lines)
        total_debit, total_credit = validate_lines(lines)

        currency = self._load_currency(header.currency_code)
        accounts = self._load_accounts(header.legal_entity_id, lines)

        if header.entry_number is not None:
            self._ensure_entry_number_free(header.entry_number)
            entry_number = header.entry_number
        else:
            seq = self._sequences.next_value(SequenceService.JOURNAL_ENTRY)
            entry_number = f"{ENTRY_NUMBER_PREFIX}{seq:08d}"

        entry = JournalEntry(
            entry_number=entry_number,
            entry_date=header.entry_date,
            status=JournalEntryStatus.DRAFT,
            currency=currency,
            legal_entity_id=header.legal_entity_id,
            total_debit=total_debit,
            total_credit=total_credit,
            description=header.description,
            reference=header.reference,
            created_by=header.created_by,
        )
        entry.lines = [
            JournalEntryLine(
                account=accounts[line.account_id],
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                line_number=line_number,
                description=line.description,
            )
            for line_number, line in enumerate(lines, start=1)
        ]
        self.session.add(entry)
        self.session.flush()

        logger.info(
            "journal_entry_created",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry_number,
                "legal_entity_id": header.legal_entity_id,
                "line_count": len(lines),
                "total_debit": total_debit,
                "reference": header.reference,
            },
        )
        return JournalEntryRecord.from_model(entry)

    def _load_currency(self, code: str) -> Currency:
        currency = self.session.execute(
            select(Currency).where(Currency.code == (code or "").strip().upper())
        ).scalar_one_or_none()
        if currency is None:
            raise CurrencyNotFoundError(code)
        if not currency.is_active:
            raise CurrencyInactiveError(currency.code)
        return currency

    def _load_accounts(
        self,
        legal_entity_id: str,
        lines: Sequence[LineSpec],
    ) -> dict[UUID, Account]:
        ids = {line.account_id for line in lines}
        found = {
            account.id: account
            for account in self.session.execute(
                select(Account).where(Account.id.in_(ids))
            ).scalars()
        }
        for line in lines:
            account = found.get(line.account_id)
            if account is None:
                raise AccountNotFoundError(str(line.account_id))
            if account.legal_entity_id != legal_entity_id:
                raise CrossEntityReferenceError(
                    str(account.id), legal_entity_id, account.legal_entity_id,
                )
            if not account.is_active:
                raise AccountInactiveError(str(account.id), account.code)
        return found

    def _ensure_entry_number_free(self, entry_number: str) -> None:
        taken = self.session.execute(
            select(JournalEntry.id).where(JournalEntry.entry_number == entry_number)
        ).scalar_one_or_none()
        if taken is not None:
            raise DuplicateEntryNumberError(entry_number)

    # =========================================================================
    # Post
    # =========================================================================

    def _lock_entry(self, entry_id: UUID, legal_entity_id: str | None) -> JournalEntry:
        entry = self.session.execute(
            select(JournalEntry)
            .where(JournalEntry.id == entry_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        # Entries of another tenant are reported as missing.
        if entry is None or (
            legal_entity_id is not None and entry.legal_entity_id != legal_entity_id
        ):
            raise JournalEntryNotFoundError(str(entry_id))
        return entry

    def _lock_accounts(self, account_ids: set[UUID]) -> None:
        self.session.execute(
            select(Account.id)
            .where(Account.id.in_(account_ids))
            .order_by(Account.id)
            .with_for_update()
        ).all()

    def _last_running_balance(self, account_id: UUID) -> int:
        balance = self.session.execute(
            select(GeneralLedgerRow.running_balance)
            .where(GeneralLedgerRow.account_id == account_id)
            .order_by(GeneralLedgerRow.ledger_seq.desc())
            .limit(1)
        ).scalar_one_or_none()
        return balance or 0

    def post_journal_entry(
        self,
        entry_id: UUID,
        posted_by: str | None = None,
        legal_entity_id: str | None = None,
    ) -> PostingResult:
        """
        Post a draft entry: mark it POSTED and append one ledger row per line.

        Args:
            entry_id: The draft entry.
            posted_by: Opaque actor id; defaults to the entry's creator.
            legal_entity_id: When given, the entry must belong to it.

        Raises:
            JournalEntryNotFoundError: Entry missing (or owned by another entity).
            AlreadyPostedError: Entry already posted.
            EntryNotDraftError: Entry cancelled.
        """
        entry = self._lock_entry(entry_id, legal_entity_id)
        if entry.status == JournalEntryStatus.POSTED:
            raise AlreadyPostedError(str(entry_id))
        if entry.status != JournalEntryStatus.DRAFT:
            raise EntryNotDraftError(str(entry_id), str(JournalEntryStatus(entry.status).value))

        lines = sorted(entry.lines, key=lambda line: line.line_number)
        self._lock_accounts({line.account_id for line in lines})

        posted_at = self._clock.now()
        entry.status = JournalEntryStatus.POSTED
        entry.posted_by = posted_by or entry.created_by
        entry.posted_at = posted_at

        balances: dict[UUID, int] = {}
        rows: list[GeneralLedgerRow] = []
        for line in lines:
            if line.account_id not in balances:
                balances[line.account_id] = self._last_running_balance(line.account_id)
            balances[line.account_id] += line.debit_amount - line.credit_amount

            row = GeneralLedgerRow(
                ledger_seq=self._sequences.next_value(SequenceService.GENERAL_LEDGER),
                account_id=line.account_id,
                journal_entry_line_id=line.id,
                legal_entity_id=entry.legal_entity_id,
                transaction_date=entry.entry_date,
                debit_amount=line.debit_amount,
                credit_amount=line.credit_amount,
                running_balance=balances[line.account_id],
                description=line.description or entry.description,
            )
            self.session.add(row)
            rows.append(row)

        self.session.flush()

        with LogContext.bind(entry_id=str(entry.id)):
            logger.info(
                "journal_entry_posted",
                extra={
                    "entry_number": entry.entry_number,
                    "legal_entity_id": entry.legal_entity_id,
                    "ledger_row_count": len(rows),
                    "posted_by": entry.posted_by,
                },
            )

        return PostingResult(
            entry_id=entry.id,
            entry_number=entry.entry_number,
            posted_at=posted_at,
            ledger_rows=tuple(LedgerRowRecord.from_model(r) for r in rows),
        )

    # =========================================================================
    # Cancel
    # =========================================================================

    def cancel_journal_entry(
        self,
        entry_id: UUID,
        legal_entity_id: str | None = None,
    ) -> JournalEntryRecord:
        """
        Cancel a draft entry.  Posted entries can never be cancelled.

        Raises:
            JournalEntryNotFoundError, EntryNotDraftError
        """
        entry = self._lock_entry(entry_id, legal_entity_id)
        if entry.status != JournalEntryStatus.DRAFT:
            raise EntryNotDraftError(str(entry_id), str(JournalEntryStatus(entry.status).value))

        entry.status = JournalEntryStatus.CANCELLED
        self.session.flush()

        logger.info(
            "journal_entry_cancelled",
            extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "legal_entity_id": entry.legal_entity_id,
            },
        )
        return JournalEntryRecord.from_model(entry)
