"""
LedgerSelector -- read-only general ledger queries.

Responsibility:
    Per-account ledger listings, running and recomputed balances, and the
    raw per-account aggregation behind the trial balance.

Invariants enforced:
    - ``ledger_for`` is a total, stable order: (transaction_date, ledger_seq)
      by default, or ledger_seq alone for posting order.
    - running_balance is chained in posting order.  Replaying
      ``ledger_for(..., LedgerOrder.POSTING)`` cumulatively reproduces each
      row's running_balance.  In the default date order a backdated row
      appears before rows posted earlier, so the same replay does not hold.
    - ``account_balance`` is recomputed from debits and credits.  For a
      consistent ledger it equals ``last_running_balance``.

Failure modes:
    - Returns empty lists or zero balances when an account has no rows.
"""

from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from sqlalchemy import func, select

from ledger_kernel.domain.dtos import LedgerRowRecord
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.models.journal import JournalEntryLine
from ledger_kernel.models.ledger import GeneralLedgerRow
from ledger_kernel.selectors.base import BaseSelector


class LedgerOrder(str, Enum):
    """Ordering of ledger rows for one account."""

    TRANSACTION_DATE = "transaction_date"
    POSTING = "posting"


@dataclass(frozen=True)
class TrialBalanceRow:
    """Per-account debit and credit totals over the ledger."""

    account_id: UUID
    account_code: str
    account_name: str
    account_type: AccountType
    debit_total: int
    credit_total: int

    @property
    def balance(self) -> int:
        """Net balance (debits - credits)."""
        return self.debit_total - self.credit_total


class LedgerSelector(BaseSelector[GeneralLedgerRow]):
    """
    General ledger reads.

    Rows exist only for posted entries, so no status filter is needed.
    """

    def ledger_for(
        self,
        account_id: UUID,
        order: LedgerOrder = LedgerOrder.TRANSACTION_DATE,
    ) -> list[LedgerRowRecord]:
        """
        Rows of one account.

        Only ``LedgerOrder.POSTING`` lists rows in the order their running
        balances were computed.  Use it to audit running_balance; the default
        date order is for statements.
        """
        query = select(GeneralLedgerRow).where(GeneralLedgerRow.account_id == account_id)
        if order == LedgerOrder.POSTING:
            query = query.order_by(GeneralLedgerRow.ledger_seq)
        else:
            query = query.order_by(
                GeneralLedgerRow.transaction_date, GeneralLedgerRow.ledger_seq,
            )
        return [LedgerRowRecord.from_model(r) for r in self.session.execute(query).scalars()]

    def last_running_balance(self, account_id: UUID) -> int:
        """Running balance of the account's latest row by ledger_seq, or 0."""
        balance = self.session.execute(
            select(GeneralLedgerRow.running_balance)
            .where(GeneralLedgerRow.account_id == account_id)
            .order_by(GeneralLedgerRow.ledger_seq.desc())
            .limit(1)
        ).scalar_one_or_none()
        return balance or 0

    def account_balance(self, account_id: UUID) -> int:
        """Sum of debits minus credits for the account."""
        debit_total, credit_total = self.session.execute(
            select(
                func.coalesce(func.sum(GeneralLedgerRow.debit_amount), 0),
                func.coalesce(func.sum(GeneralLedgerRow.credit_amount), 0),
            ).where(GeneralLedgerRow.account_id == account_id)
        ).one()
        return int(debit_total) - int(credit_total)

    def trial_balance_rows(self, legal_entity_id: str) -> list[TrialBalanceRow]:
        """
        One row per account of the entity that has ledger activity,
        ordered by account code.
        """
        debit_sum = func.sum(GeneralLedgerRow.debit_amount).label("debit_total")
        credit_sum = func.sum(GeneralLedgerRow.credit_amount).label("credit_total")

        query = (
            select(
                Account.id.label("account_id"),
                Account.code.label("account_code"),
                Account.name.label("account_name"),
                Account.account_type.label("account_type"),
                debit_sum,
                credit_sum,
            )
            .join(GeneralLedgerRow, GeneralLedgerRow.account_id == Account.id)
            .where(GeneralLedgerRow.legal_entity_id == legal_entity_id)
            .group_by(Account.id, Account.code, Account.name, Account.account_type)
            .order_by(Account.code)
        )

        return [
            TrialBalanceRow(
                account_id=row.account_id,
                account_code=row.account_code,
                account_name=row.account_name,
                account_type=AccountType(row.account_type),
                debit_total=int(row.debit_total or 0),
                credit_total=int(row.credit_total or 0),
            )
            for row in self.session.execute(query).all()
        ]

    def rows_for_entry(self, entry_id: UUID) -> list[LedgerRowRecord]:
        """Ledger rows written when the entry was posted, by ledger_seq."""
        rows = self.session.execute(
            select(GeneralLedgerRow)
            .join(
                JournalEntryLine,
                GeneralLedgerRow.journal_entry_line_id == JournalEntryLine.id,
            )
            .where(JournalEntryLine.journal_entry_id == entry_id)
            .order_by(GeneralLedgerRow.ledger_seq)
        ).scalars()
        return [LedgerRowRecord.from_model(r) for r in rows]

    def count_rows(self, legal_entity_id: str | None = None) -> int:
        query = select(func.count()).select_from(GeneralLedgerRow)
        if legal_entity_id is not None:
            query = query.where(GeneralLedgerRow.legal_entity_id == legal_entity_id)
        return self.session.execute(query).scalar_one()
