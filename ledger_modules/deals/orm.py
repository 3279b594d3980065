"""
Deal ORM Models (``ledger_modules.deals.orm``).

Responsibility
--------------
SQLAlchemy persistence for deals and their journal entry links.  Each deal
references the partner record its tenant keeps for ``receiver_bin``.  Maps
to the frozen ``Deal`` dataclass in ``models.py``.

Architecture position
---------------------
**Modules layer** -- persistence.  Imports from ``ledger_kernel.db.base``
and kernel models (FKs to currencies and journal_entries), and from the
partners module.  MUST NOT be imported by ``ledger_kernel``.
"""

from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_kernel.db.base import TrackedBase, UUIDString
from ledger_kernel.models.currency import Currency
from ledger_kernel.models.journal import JournalEntry
from ledger_modules.partners.orm import PartnerModel


class DealModel(TrackedBase):
    """
    ORM model for deals.

    Guarantees:
        - total_amount > 0 and 0 <= paid_amount <= total_amount.
        - status = 'completed' exactly when paid_amount = total_amount.
        - receiver_bin is the counter-party's 12-digit BIN.
    """

    __tablename__ = "deals"

    __table_args__ = (
        CheckConstraint("total_amount > 0", name="ck_deal_total_positive"),
        CheckConstraint(
            "paid_amount >= 0 AND paid_amount <= total_amount",
            name="ck_deal_paid_within_total",
        ),
        CheckConstraint(
            "(status = 'completed' AND paid_amount = total_amount) "
            "OR (status = 'active' AND paid_amount < total_amount)",
            name="ck_deal_status_matches_paid",
        ),
        Index("idx_deals_legal_entity", "legal_entity_id"),
        Index("idx_deals_receiver_reference", "receiver_bin", "deal_reference"),
    )

    legal_entity_id: Mapped[str] = mapped_column(String(100), nullable=False)
    receiver_bin: Mapped[str] = mapped_column(String(12), nullable=False)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    deal_type: Mapped[str] = mapped_column(String(10), nullable=False)
    deal_role: Mapped[str] = mapped_column(String(10), nullable=False)
    deal_reference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    currency_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("currencies.id"), nullable=False
    )
    partner_id: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("partners.id"), nullable=True
    )
    total_amount: Mapped[int] = mapped_column(nullable=False)
    paid_amount: Mapped[int] = mapped_column(default=0, nullable=False)
    status: Mapped[str] = mapped_column(String(10), default="active", nullable=False)
    created_by: Mapped[str] = mapped_column(String(100), nullable=False)

    currency: Mapped[Currency] = relationship()
    partner: Mapped[PartnerModel | None] = relationship()

    links: Mapped[list["DealJournalEntryLinkModel"]] = relationship(
        back_populates="deal",
        order_by="DealJournalEntryLinkModel.created_at",
    )

    def to_dto(self):
        """Convert ORM model to frozen dataclass."""
        from ledger_modules.deals.models import Deal, DealRole, DealStatus, DealType

        return Deal(
            id=self.id,
            legal_entity_id=self.legal_entity_id,
            receiver_bin=self.receiver_bin,
            title=self.title,
            deal_type=DealType(self.deal_type),
            deal_role=DealRole(self.deal_role),
            currency_code=self.currency.code,
            total_amount=self.total_amount,
            paid_amount=self.paid_amount,
            status=DealStatus(self.status),
            created_by=self.created_by,
            description=self.description,
            deal_reference=self.deal_reference,
            partner_id=self.partner_id,
            counterparty_name=self.partner.name if self.partner is not None else None,
        )

    def __repr__(self) -> str:
        return (
            f"<Deal {self.title!r} {self.paid_amount}/{self.total_amount} "
            f"status={self.status}>"
        )


class DealJournalEntryLinkModel(TrackedBase):
    """
    Which journal entries belong to which deal, and why.

    Guarantees:
        - (deal_id, journal_entry_id) is unique.
        - entry_type is one of invoice, payment, adjustment.
    """

    __tablename__ = "deal_journal_entries"

    __table_args__ = (
        UniqueConstraint("deal_id", "journal_entry_id", name="uq_deal_journal_entry"),
        CheckConstraint(
            "entry_type IN ('invoice', 'payment', 'adjustment')",
            name="ck_deal_link_entry_type",
        ),
        Index("idx_deal_links_deal", "deal_id"),
        Index("idx_deal_links_entry", "journal_entry_id"),
    )

    deal_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("deals.id"), nullable=False
    )
    journal_entry_id: Mapped[UUID] = mapped_column(
        UUIDString(), ForeignKey("journal_entries.id"), nullable=False
    )
    entry_type: Mapped[str] = mapped_column(String(20), nullable=False)

    deal: Mapped[DealModel] = relationship(back_populates="links")
    journal_entry: Mapped[JournalEntry] = relationship()
