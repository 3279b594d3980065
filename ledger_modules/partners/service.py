"""
Partner Service (``ledger_modules.partners.service``).

Responsibility
--------------
Find or create the partner record a tenant keeps for a counter-party BIN,
and maintain its display details.

Architecture position
---------------------
**Modules layer** -- a collaborator of ``DealAccountingService``.  Like the
kernel services it only flushes; the deal bridge (or the caller) owns the
transaction.

Name resolution for a new partner
---------------------------------
1. The name of the in-system legal entity registered under the BIN.
2. The name the caller supplied.
3. ``"BIN <bin>"``.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_kernel.exceptions import ValidationError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.services.legal_entity_service import LegalEntityService, validate_bin
from ledger_modules.partners.models import Partner, fallback_partner_name
from ledger_modules.partners.orm import PartnerModel

logger = get_logger("modules.partners.service")


class PartnerService:
    """
    Per-tenant counter-party registry.

    Usage:
        partner = PartnerService(session).find_or_create_by_bin("le-a", "123456789012")
        print(partner.name)
    """

    def __init__(self, session: Session):
        self._session = session
        self._legal_entities = LegalEntityService(session)

    def find_or_create_by_bin(
        self,
        legal_entity_id: str,
        bin: str,
        name: str | None = None,
    ) -> Partner:
        """
        Return the tenant's partner for ``bin``, creating it on first use.

        An existing partner still carrying the fallback name is renamed when
        ``name`` is given.

        Raises:
            InvalidBinError: BIN is not 12 digits.
        """
        bin = validate_bin(bin)
        name = (name or "").strip() or None

        partner = self._find(legal_entity_id, bin)
        if partner is not None:
            if name and partner.name == fallback_partner_name(bin):
                partner.name = name
                self._session.flush()
                logger.info("partner_renamed", extra={
                    "legal_entity_id": legal_entity_id,
                    "partner_id": str(partner.id),
                    "bin": bin,
                })
            return partner.to_dto()

        savepoint = self._session.begin_nested()
        try:
            partner = PartnerModel(
                legal_entity_id=legal_entity_id,
                bin=bin,
                name=self._resolve_name(bin, name),
            )
            self._session.add(partner)
            self._session.flush()
            savepoint.commit()
        except IntegrityError:
            logger.debug("partner_create_race_retry", extra={
                "legal_entity_id": legal_entity_id,
                "bin": bin,
            })
            savepoint.rollback()
            partner = self._find(legal_entity_id, bin)
            if partner is None:
                raise
            return partner.to_dto()

        logger.info("partner_created", extra={
            "legal_entity_id": legal_entity_id,
            "partner_id": str(partner.id),
            "bin": bin,
        })
        return partner.to_dto()

    def get_partner(self, partner_id: UUID, legal_entity_id: str) -> Partner | None:
        partner = self._session.get(PartnerModel, partner_id)
        if partner is None or partner.legal_entity_id != legal_entity_id:
            return None
        return partner.to_dto()

    def list_partners(self, legal_entity_id: str) -> list[Partner]:
        """The tenant's partners by name."""
        partners = self._session.execute(
            select(PartnerModel)
            .where(PartnerModel.legal_entity_id == legal_entity_id)
            .order_by(PartnerModel.name, PartnerModel.bin)
        ).scalars()
        return [p.to_dto() for p in partners]

    def update_partner(
        self,
        partner_id: UUID,
        legal_entity_id: str,
        name: str | None = None,
        address: str | None = None,
    ) -> Partner | None:
        """
        Change a partner's name or address; None when the partner is unknown.

        Raises:
            ValidationError: name given but blank.
        """
        partner = self._session.get(PartnerModel, partner_id)
        if partner is None or partner.legal_entity_id != legal_entity_id:
            return None
        if name is not None:
            if not name.strip():
                raise ValidationError("Partner name must not be blank")
            partner.name = name.strip()
        if address is not None:
            partner.address = address
        self._session.flush()
        logger.info("partner_updated", extra={
            "legal_entity_id": legal_entity_id,
            "partner_id": str(partner.id),
        })
        return partner.to_dto()

    def _find(self, legal_entity_id: str, bin: str) -> PartnerModel | None:
        return self._session.execute(
            select(PartnerModel).where(
                PartnerModel.legal_entity_id == legal_entity_id,
                PartnerModel.bin == bin,
            )
        ).scalar_one_or_none()

    def _resolve_name(self, bin: str, name: str | None) -> str:
        registered = self._legal_entities.find_by_bin(bin)
        if registered is not None:
            return registered.name
        return name or fallback_partner_name(bin)
