"""
SeedService -- idempotent seeding of currencies and a legal entity's chart.

Currencies are inserted first (the base currency before the others), then
the chart in the order produced by ``resolve_seed_order`` so that every
parent exists before its children.  Rows that already exist are left
untouched, so running the seed twice is a no-op.

The acting user must be supplied explicitly (configuration
``seeding.actor_id``).  There is no placeholder actor.
"""

from dataclasses import dataclass
from typing import Sequence

from sqlalchemy import select

from ledger_kernel.domain.seeding import AccountSeed, CurrencySeed, resolve_seed_order
from ledger_kernel.exceptions import ValidationError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.account import Account
from ledger_kernel.models.currency import Currency
from ledger_kernel.services.base import BaseService
from ledger_kernel.services.chart_service import ChartService
from ledger_kernel.services.currency_service import CurrencyService

logger = get_logger("services.seed")


@dataclass(frozen=True)
class SeedResult:
    legal_entity_id: str
    currencies_created: tuple[str, ...]
    accounts_created: tuple[str, ...]
    accounts_skipped: int
    passes: int


class SeedService(BaseService[Account]):
    """Insert missing currencies and accounts.  Flushes only."""

    def seed_currencies(self, currencies: Sequence[CurrencySeed]) -> tuple[str, ...]:
        existing = set(self.session.execute(select(Currency.code)).scalars())
        currency_service = CurrencyService(self.session)
        created = []
        for seed in sorted(currencies, key=lambda c: not c.is_base_currency):
            if seed.code.upper() in existing:
                continue
            currency_service.create_currency(
                code=seed.code,
                name=seed.name,
                decimals=seed.decimals,
                symbol=seed.symbol,
                is_base_currency=seed.is_base_currency,
                is_active=seed.is_active,
            )
            existing.add(seed.code.upper())
            created.append(seed.code.upper())
        return tuple(created)

    def seed_legal_entity(
        self,
        legal_entity_id: str,
        chart: Sequence[AccountSeed],
        currencies: Sequence[CurrencySeed],
        actor_id: str,
    ) -> SeedResult:
        """
        Seed currencies and the chart of accounts for one legal entity.

        Raises:
            ValidationError: actor_id or legal_entity_id is empty.
            UnresolvedAccountParentError: a seed's parent never appears.
        """
        if not (actor_id or "").strip():
            raise ValidationError("Seeding requires an explicit actor_id")
        if not (legal_entity_id or "").strip():
            raise ValidationError("Seeding requires a legal_entity_id")

        with LogContext.bind(actor_id=actor_id, legal_entity_id=legal_entity_id):
            currencies_created = self.seed_currencies(currencies)

            ids_by_code = dict(
                self.session.execute(
                    select(Account.code, Account.id).where(
                        Account.legal_entity_id == legal_entity_id
                    )
                ).all()
            )
            missing = [seed for seed in chart if seed.code not in ids_by_code]
            passes = resolve_seed_order(missing, existing_codes=ids_by_code)

            chart_service = ChartService(self.session)
            created = []
            for batch in passes:
                for seed in batch:
                    record = chart_service.create_account(
                        legal_entity_id=legal_entity_id,
                        code=seed.code,
                        name=seed.name,
                        account_type=seed.account_type,
                        parent_id=ids_by_code[seed.parent_code] if seed.parent_code else None,
                        description=seed.description,
                        is_active=seed.is_active,
                    )
                    ids_by_code[seed.code] = record.id
                    created.append(seed.code)

            result = SeedResult(
                legal_entity_id=legal_entity_id,
                currencies_created=currencies_created,
                accounts_created=tuple(created),
                accounts_skipped=len(chart) - len(missing),
                passes=len(passes),
            )
            logger.info(
                "legal_entity_seeded",
                extra={
                    "currencies_created": len(currencies_created),
                    "accounts_created": len(created),
                    "accounts_skipped": result.accounts_skipped,
                    "passes": result.passes,
                },
            )
        return result
