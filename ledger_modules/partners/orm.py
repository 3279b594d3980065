"""
Partner ORM Model (``ledger_modules.partners.orm``).

Counter-parties a tenant deals with, one row per (legal entity, BIN).
MUST NOT be imported by ``ledger_kernel``.
"""

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class PartnerModel(TrackedBase):
    """
    ORM model for partners.

    Guarantees:
        - (legal_entity_id, bin) is unique: each tenant has one partner per BIN.
    """

    __tablename__ = "partners"

    __table_args__ = (
        UniqueConstraint("legal_entity_id", "bin", name="uq_partner_entity_bin"),
    )

    legal_entity_id: Mapped[str] = mapped_column(String(100), nullable=False)
    bin: Mapped[str] = mapped_column(String(12), nullable=False)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    address: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    def to_dto(self):
        from ledger_modules.partners.models import Partner

        return Partner(
            id=self.id,
            legal_entity_id=self.legal_entity_id,
            bin=self.bin,
            name=self.name,
            address=self.address,
        )

    def __repr__(self) -> str:
        return f"<Partner {self.bin} {self.name!r} of {self.legal_entity_id}>"
