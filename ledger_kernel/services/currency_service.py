"""
CurrencyService -- the deployment-wide currency registry.

Invariants enforced:
    - Currency codes are ISO 4217, stored uppercase, unique.
    - At most one base currency.  Checked here and backed by a partial
      unique index on currencies.is_base_currency.
    - decimals is between 0 and 6; amounts in this currency are integers
      scaled by 10**decimals.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.db.types import MAX_DECIMALS, validate_currency_code
from ledger_kernel.domain.dtos import CurrencyRecord
from ledger_kernel.exceptions import (
    BaseCurrencyConflictError,
    CurrencyNotFoundError,
    DuplicateCurrencyError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.currency import Currency
from ledger_kernel.services.base import BaseService

logger = get_logger("services.currency")


class CurrencyService(BaseService[Currency]):
    """Register and look up currencies."""

    def create_currency(
        self,
        code: str,
        name: str,
        decimals: int = 2,
        symbol: str | None = None,
        is_base_currency: bool = False,
        is_active: bool = True,
    ) -> CurrencyRecord:
        code = validate_currency_code(code)
        if isinstance(decimals, bool) or not isinstance(decimals, int) or not 0 <= decimals <= MAX_DECIMALS:
            raise ValidationError(
                f"Currency decimals must be an integer between 0 and {MAX_DECIMALS}"
            )

        if self._find(code) is not None:
            raise DuplicateCurrencyError(code)

        if is_base_currency:
            base = self._find_base()
            if base is not None:
                raise BaseCurrencyConflictError(base.code, code)

        currency = Currency(
            code=code,
            name=name,
            decimals=decimals,
            symbol=symbol,
            is_base_currency=is_base_currency,
            is_active=is_active,
        )
        self.session.add(currency)
        self.session.flush()

        logger.info(
            "currency_created",
            extra={
                "currency": code,
                "decimals": decimals,
                "is_base_currency": is_base_currency,
            },
        )
        return CurrencyRecord.from_model(currency)

    def _find(self, code: str) -> Currency | None:
        return self.session.execute(
            select(Currency).where(Currency.code == code.strip().upper())
        ).scalar_one_or_none()

    def _find_base(self) -> Currency | None:
        return self.session.execute(
            select(Currency).where(Currency.is_base_currency.is_(True))
        ).scalar_one_or_none()

    def get(self, currency_id: UUID) -> CurrencyRecord:
        currency = self.session.get(Currency, currency_id)
        if currency is None:
            raise CurrencyNotFoundError(str(currency_id))
        return CurrencyRecord.from_model(currency)

    def get_by_code(self, code: str) -> CurrencyRecord:
        currency = self._find(code)
        if currency is None:
            raise CurrencyNotFoundError(code)
        return CurrencyRecord.from_model(currency)

    def get_base_currency(self) -> CurrencyRecord:
        base = self._find_base()
        if base is None:
            raise CurrencyNotFoundError("<base currency>")
        return CurrencyRecord.from_model(base)

    def list_active(self) -> list[CurrencyRecord]:
        rows = self.session.execute(
            select(Currency)
            .where(Currency.is_active.is_(True))
            .order_by(Currency.code)
        ).scalars()
        return [CurrencyRecord.from_model(c) for c in rows]
