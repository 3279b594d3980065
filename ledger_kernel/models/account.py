"""
Account -- chart of accounts, one tree per legal entity.

Every account belongs to exactly one legal entity and may point at a parent
account of the same entity.  The tree is acyclic by construction: a parent
must already exist when its child is created, and ``parent_id`` is never
changed afterwards.
"""

from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString

if TYPE_CHECKING:
    from ledger_kernel.models.journal import JournalEntryLine


class AccountType(str, Enum):
    """Types of accounts in the chart of accounts."""

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    @property
    def is_debit_normal(self) -> bool:
        """Assets and expenses grow on the debit side."""
        return self in (AccountType.ASSET, AccountType.EXPENSE)


class Account(TrackedBase):
    """
    Chart of accounts entry.

    Contract:
        ``(legal_entity_id, code)`` is unique.  ``parent_id``, when set,
        references an account of the same legal entity (checked by
        ChartService; the column itself is a plain self-referential FK).
    """

    __tablename__ = "accounts"

    __table_args__ = (
        UniqueConstraint("legal_entity_id", "code", name="uq_account_entity_code"),
        Index("idx_account_entity", "legal_entity_id"),
        Index("idx_account_parent", "parent_id"),
    )

    legal_entity_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    account_type: Mapped[AccountType] = mapped_column(
        String(20),
        nullable=False,
    )

    parent_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("accounts.id"),
        nullable=True,
    )

    description: Mapped[str | None] = mapped_column(
        String(1000),
        nullable=True,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    parent: Mapped["Account | None"] = relationship(
        remote_side="Account.id",
        foreign_keys=[parent_id],
    )

    journal_lines: Mapped[list["JournalEntryLine"]] = relationship(
        back_populates="account",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<Account {self.code}: {self.name} ({self.account_type})>"
