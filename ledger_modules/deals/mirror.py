"""
Mirror-entry guard (``ledger_modules.deals.mirror``).

When both counter-parties of a deal are tenants of this deployment, each
side would book the same economic event.  Before the bridge creates an
entry it looks for the counter-party's booking of that event.

Matching key: ``(counterparty_bin, deal_reference, entry_type, amount)``.
A mirror exists when the counter-party (the in-system legal entity owning
``counterparty_bin``) has a deal naming our BIN as its receiver, carrying
the same ``deal_reference``, with a linked non-cancelled entry of the same
entry type.  For invoices ``amount`` is the deal total and is compared with
the counter-party deal's total, so an accrual booked for a partial payment
still mirrors the full invoice.  For payments it is compared with the
entry total.

The guard is advisory.  Without a deal reference, or when either side is
not registered as a legal entity, it reports no mirror rather than
blocking.  It is not a uniqueness constraint: two concurrent first
bookings can both pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import MirrorEntryExistsError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.journal import JournalEntry, JournalEntryStatus
from ledger_kernel.services.legal_entity_service import LegalEntityService
from ledger_modules.deals.models import DealEntryType
from ledger_modules.deals.orm import DealJournalEntryLinkModel, DealModel

logger = get_logger("modules.deals.mirror")


@dataclass(frozen=True)
class MirrorKey:
    counterparty_bin: str
    deal_reference: str
    entry_type: DealEntryType
    amount: int


@dataclass(frozen=True)
class MirrorMatch:
    key: MirrorKey
    counterparty_legal_entity_id: str
    counterparty_deal_id: UUID
    mirror_entry_id: UUID


class MirrorEntryGuard:
    """Looks up the counter-party's booking of the same event."""

    def __init__(self, session: Session):
        self._session = session
        self._legal_entities = LegalEntityService(session)

    def find_mirror(
        self,
        legal_entity_id: str,
        counterparty_bin: str,
        deal_reference: str | None,
        entry_type: DealEntryType,
        amount: int,
    ) -> MirrorMatch | None:
        if not deal_reference:
            return None

        counterparty = self._legal_entities.find_by_bin(counterparty_bin)
        if counterparty is None or counterparty.legal_entity_id == legal_entity_id:
            return None
        own = self._legal_entities.find(legal_entity_id)
        if own is None:
            return None

        entry_type = DealEntryType(entry_type)
        if entry_type == DealEntryType.INVOICE:
            amount_matches = DealModel.total_amount == amount
        else:
            amount_matches = JournalEntry.total_debit == amount

        row = self._session.execute(
            select(DealModel.id, JournalEntry.id)
            .join(DealJournalEntryLinkModel, DealJournalEntryLinkModel.deal_id == DealModel.id)
            .join(JournalEntry, JournalEntry.id == DealJournalEntryLinkModel.journal_entry_id)
            .where(
                DealModel.legal_entity_id == counterparty.legal_entity_id,
                DealModel.receiver_bin == own.bin,
                DealModel.deal_reference == deal_reference,
                DealJournalEntryLinkModel.entry_type == entry_type.value,
                JournalEntry.status != JournalEntryStatus.CANCELLED.value,
                amount_matches,
            )
            .order_by(JournalEntry.entry_number)
            .limit(1)
        ).first()
        if row is None:
            return None

        counterparty_deal_id, mirror_entry_id = row
        match = MirrorMatch(
            key=MirrorKey(
                counterparty_bin=counterparty_bin,
                deal_reference=deal_reference,
                entry_type=entry_type,
                amount=amount,
            ),
            counterparty_legal_entity_id=counterparty.legal_entity_id,
            counterparty_deal_id=counterparty_deal_id,
            mirror_entry_id=mirror_entry_id,
        )
        logger.info(
            "mirror_entry_detected",
            extra={
                "legal_entity_id": legal_entity_id,
                "counterparty_legal_entity_id": counterparty.legal_entity_id,
                "deal_reference": deal_reference,
                "entry_type": match.key.entry_type.value,
                "amount": amount,
                "mirror_entry_id": str(mirror_entry_id),
            },
        )
        return match

    def ensure_no_mirror(
        self,
        legal_entity_id: str,
        counterparty_bin: str,
        deal_reference: str | None,
        entry_type: DealEntryType,
        amount: int,
    ) -> None:
        """
        Raises:
            MirrorEntryExistsError: the counter-party already booked it.
        """
        match = self.find_mirror(
            legal_entity_id, counterparty_bin, deal_reference, entry_type, amount,
        )
        if match is not None:
            raise MirrorEntryExistsError(
                counterparty_bin,
                match.key.deal_reference,
                match.key.entry_type.value,
                amount,
                str(match.mirror_entry_id),
            )
