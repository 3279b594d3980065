"""
JournalEntry and JournalEntryLine -- balanced double-entry records.

Both invariants are standing database constraints, not just service checks:

    journal_entries:       total_debit = total_credit
    journal_entry_lines:   exactly one of debit_amount / credit_amount > 0

Lifecycle:
    DRAFT -> POSTED      (terminal for ledger purposes)
    DRAFT -> CANCELLED   (terminal; not reachable from POSTED)

Once POSTED, the entry and its lines are immutable (db/immutability.py).
"""

from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.account import Account
    from ledger_kernel.models.currency import Currency


class JournalEntryStatus(str, Enum):
    """Journal entry lifecycle states."""

    DRAFT = "draft"
    POSTED = "posted"
    CANCELLED = "cancelled"


class JournalEntry(TrackedBase):
    """
    Journal entry header.

    Contract:
        total_debit and total_credit are the sums of the line amounts and are
        always equal.  entry_number is unique across the deployment.
    """

    __tablename__ = "journal_entries"

    __table_args__ = (
        UniqueConstraint("entry_number", name="uq_journal_entry_number"),
        CheckConstraint("total_debit = total_credit", name="ck_journal_entry_balanced"),
        CheckConstraint(
            "total_debit >= 0 AND total_credit >= 0",
            name="ck_journal_entry_totals_non_negative",
        ),
        Index("idx_journal_entity_date", "legal_entity_id", "entry_date"),
        Index("idx_journal_status", "status"),
    )

    entry_number: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    entry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )

    status: Mapped[JournalEntryStatus] = mapped_column(
        String(10),
        default=JournalEntryStatus.DRAFT,
        nullable=False,
    )

    currency_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("currencies.id"),
        nullable=False,
    )

    legal_entity_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    total_debit: Mapped[int] = mapped_column(nullable=False)

    total_credit: Mapped[int] = mapped_column(nullable=False)

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    # External reference, e.g. DEAL-<id>, PAY-<id>, ACCR-<id>
    reference: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    created_by: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    posted_by: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
    )

    posted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="entry",
        cascade="all, delete-orphan",
        order_by="JournalEntryLine.line_number",
        lazy="selectin",
    )

    currency: Mapped["Currency"] = relationship()

    def __repr__(self) -> str:
        return f"<JournalEntry {self.entry_number} status={self.status}>"

    @property
    def is_posted(self) -> bool:
        return self.status == JournalEntryStatus.POSTED

    @property
    def is_draft(self) -> bool:
        return self.status == JournalEntryStatus.DRAFT


class JournalEntryLine(TrackedBase):
    """
    One debit or credit line of a journal entry.

    Contract:
        Exactly one of debit_amount / credit_amount is strictly positive and
        the other is zero.  line_number runs 1..n in input order.
    """

    __tablename__ = "journal_entry_lines"

    __table_args__ = (
        UniqueConstraint(
            "journal_entry_id", "line_number", name="uq_journal_line_number"
        ),
        CheckConstraint(
            "(debit_amount > 0 AND credit_amount = 0) "
            "OR (credit_amount > 0 AND debit_amount = 0)",
            name="ck_journal_line_one_side",
        ),
        Index("idx_line_entry", "journal_entry_id"),
        Index("idx_line_account", "account_id"),
    )

    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("journal_entries.id"),
        nullable=False,
    )

    account_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=False,
    )

    debit_amount: Mapped[int] = mapped_column(default=0, nullable=False)

    credit_amount: Mapped[int] = mapped_column(default=0, nullable=False)

    line_number: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    entry: Mapped["JournalEntry"] = relationship(
        back_populates="lines",
    )

    account: Mapped["Account"] = relationship(
        back_populates="journal_lines",
    )

    def __repr__(self) -> str:
        return (
            f"<JournalEntryLine #{self.line_number} "
            f"Dr {self.debit_amount} Cr {self.credit_amount}>"
        )

    @property
    def signed_amount(self) -> int:
        """Debit minus credit."""
        return self.debit_amount - self.credit_amount
