"""
LegalEntity -- registry of tenants present in this deployment.

Each tenant is identified by the caller's opaque ``legal_entity_id`` and by
its 12-digit business identification number (BIN).  The deal bridge uses the
BIN to recognise that a deal's counter-party is another tenant of the same
system.
"""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class LegalEntity(TrackedBase):
    """A tenant of the ledger, keyed by opaque id and by BIN."""

    __tablename__ = "legal_entities"

    __table_args__ = (
        Index("idx_legal_entity_bin", "bin", unique=True),
    )

    legal_entity_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        unique=True,
    )

    bin: Mapped[str] = mapped_column(
        String(12),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<LegalEntity {self.legal_entity_id} bin={self.bin}>"
