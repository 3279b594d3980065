"""
GeneralLedgerRow -- append-only record of every posted line.

One row per journal entry line, written exactly once at posting time.  Rows
are never updated or deleted (db/immutability.py).

Ordering:
    ``ledger_seq`` is a global, strictly monotonic posting sequence taken from
    the locked ``general_ledger`` counter.  It is the insertion order used to
    break ties and the order in which running balances are chained:

        running_balance(row) = running_balance(previous row of the account
                               by ledger_seq) + debit_amount - credit_amount
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import Base, UUIDString


class GeneralLedgerRow(Base):
    """A posted line's effect on one account, with the running balance."""

    __tablename__ = "general_ledger"

    __table_args__ = (
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) "
            "OR (credit_amount > 0 AND debit_amount = 0)",
            name="ck_general_ledger_one_side",
        ),
        Index("idx_gl_account_seq", "account_id", "ledger_seq"),
        Index("idx_gl_account_date", "account_id", "transaction_date", "ledger_seq"),
        Index("idx_gl_entity", "legal_entity_id"),
    )

    ledger_seq: Mapped[int] = mapped_column(
        nullable=False,
        unique=True,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    journal_entry_line_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entry_lines.id"),
        nullable=False,
        unique=True,
    )

    legal_entity_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    transaction_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    debit_amount: Mapped[int] = mapped_column(nullable=False)

    credit_amount: Mapped[int] = mapped_column(nullable=False)

    running_balance: Mapped[int] = mapped_column(nullable=False)

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return (
            f"<GeneralLedgerRow seq={self.ledger_seq} "
            f"Dr {self.debit_amount} Cr {self.credit_amount} "
            f"bal={self.running_balance}>"
        )
