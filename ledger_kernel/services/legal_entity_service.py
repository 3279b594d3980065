"""
LegalEntityService -- registry of tenants and their BINs.

The kernel treats ``legal_entity_id`` as an opaque string supplied by the
caller.  Registering the entity with its BIN is only needed when deals
between two tenants of the same deployment must be recognised as mirrors of
each other.
"""

import re

from sqlalchemy import or_, select

from ledger_kernel.domain.dtos import LegalEntityRecord
from ledger_kernel.exceptions import (
    DuplicateLegalEntityError,
    InvalidBinError,
    LegalEntityNotFoundError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.legal_entity import LegalEntity
from ledger_kernel.services.base import BaseService

logger = get_logger("services.legal_entity")

_BIN_PATTERN = re.compile(r"^\d{12}$")


def validate_bin(bin: str) -> str:
    """Return the BIN stripped of surrounding whitespace, or raise InvalidBinError."""
    normalized = (bin or "").strip()
    if not _BIN_PATTERN.match(normalized):
        raise InvalidBinError(bin)
    return normalized


class LegalEntityService(BaseService[LegalEntity]):
    """Register and look up legal entities."""

    def register(self, legal_entity_id: str, bin: str, name: str) -> LegalEntityRecord:
        """
        Register a legal entity.

        Raises:
            InvalidBinError: BIN is not 12 digits.
            DuplicateLegalEntityError: id or BIN already registered.
        """
        bin = validate_bin(bin)
        existing = self.session.execute(
            select(LegalEntity).where(
                or_(
                    LegalEntity.legal_entity_id == legal_entity_id,
                    LegalEntity.bin == bin,
                )
            )
        ).scalars().first()
        if existing is not None:
            raise DuplicateLegalEntityError(legal_entity_id, bin)

        entity = LegalEntity(legal_entity_id=legal_entity_id, bin=bin, name=name)
        self.session.add(entity)
        self.session.flush()

        logger.info(
            "legal_entity_registered",
            extra={"legal_entity_id": legal_entity_id, "bin": bin},
        )
        return LegalEntityRecord.from_model(entity)

    def get(self, legal_entity_id: str) -> LegalEntityRecord:
        entity = self.find(legal_entity_id)
        if entity is None:
            raise LegalEntityNotFoundError(legal_entity_id)
        return entity

    def find(self, legal_entity_id: str) -> LegalEntityRecord | None:
        entity = self.session.execute(
            select(LegalEntity).where(LegalEntity.legal_entity_id == legal_entity_id)
        ).scalar_one_or_none()
        return LegalEntityRecord.from_model(entity) if entity else None

    def find_by_bin(self, bin: str) -> LegalEntityRecord | None:
        """The in-system tenant owning this BIN, if any."""
        entity = self.session.execute(
            select(LegalEntity).where(LegalEntity.bin == bin.strip())
        ).scalar_one_or_none()
        return LegalEntityRecord.from_model(entity) if entity else None

    def get_by_bin(self, bin: str) -> LegalEntityRecord:
        entity = self.find_by_bin(bin)
        if entity is None:
            raise LegalEntityNotFoundError(bin)
        return entity

