"""
Currency -- registry of currencies with their decimal precision.

At most one currency per deployment is the base currency.  The partial
unique index keeps that true even if two writers race past the service
check.
"""

from sqlalchemy import Boolean, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase


class Currency(TrackedBase):
    """A currency and the number of decimals in its smallest unit."""

    __tablename__ = "currencies"

    __table_args__ = (
        Index(
            "uq_currency_single_base",
            "is_base_currency",
            unique=True,
            postgresql_where=text("is_base_currency"),
            sqlite_where=text("is_base_currency = 1"),
        ),
    )

    code: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        unique=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    symbol: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
    )

    decimals: Mapped[int] = mapped_column(
        Integer,
        default=2,
        nullable=False,
    )

    is_base_currency: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<Currency {self.code} decimals={self.decimals}>"
