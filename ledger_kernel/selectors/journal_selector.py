"""
JournalSelector -- read-only access to journal entries and their lines.

Returns JournalEntryRecord DTOs with lines ordered by line number.  Absence
of data is reported as None or an empty list, never as an exception.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from ledger_kernel.domain.dtos import JournalEntryRecord
from ledger_kernel.models.journal import (
    JournalEntry,
    JournalEntryLine,
    JournalEntryStatus,
)
from ledger_kernel.selectors.base import BaseSelector


class JournalSelector(BaseSelector[JournalEntry]):
    """Journal entry queries."""

    def _query(self):
        return select(JournalEntry).options(
            selectinload(JournalEntry.lines).selectinload(JournalEntryLine.account),
            selectinload(JournalEntry.currency),
        )

    def get_entry(self, entry_id: UUID) -> JournalEntryRecord | None:
        entry = self.session.execute(
            self._query().where(JournalEntry.id == entry_id)
        ).scalar_one_or_none()
        return JournalEntryRecord.from_model(entry) if entry else None

    def get_entries(self, entry_ids: list[UUID]) -> list[JournalEntryRecord]:
        """Entries by id, ordered by (entry_date, entry_number)."""
        if not entry_ids:
            return []
        rows = self.session.execute(
            self._query()
            .where(JournalEntry.id.in_(entry_ids))
            .order_by(JournalEntry.entry_date, JournalEntry.entry_number)
        ).scalars()
        return [JournalEntryRecord.from_model(e) for e in rows]

    def entries_for_legal_entity(
        self,
        legal_entity_id: str,
        status: JournalEntryStatus | None = None,
    ) -> list[JournalEntryRecord]:
        query = self._query().where(JournalEntry.legal_entity_id == legal_entity_id)
        if status is not None:
            query = query.where(JournalEntry.status == JournalEntryStatus(status).value)
        rows = self.session.execute(
            query.order_by(JournalEntry.entry_date, JournalEntry.entry_number)
        ).scalars()
        return [JournalEntryRecord.from_model(e) for e in rows]

    def count_entries(
        self,
        legal_entity_id: str,
        status: JournalEntryStatus | None = None,
    ) -> int:
        query = (
            select(func.count())
            .select_from(JournalEntry)
            .where(JournalEntry.legal_entity_id == legal_entity_id)
        )
        if status is not None:
            query = query.where(JournalEntry.status == JournalEntryStatus(status).value)
        return self.session.execute(query).scalar_one()
