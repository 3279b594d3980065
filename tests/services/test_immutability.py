"""Tests for ORM-level immutability of posted entries and ledger rows."""

import pytest
from sqlalchemy import select

from ledger_kernel.domain.dtos import LineSpec
from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
from ledger_kernel.models.ledger import GeneralLedgerRow


@pytest.fixture
def posted_entry_id(post_entry):
    return post_entry("1210", "6010", 100_000).entry_id


class TestPostedEntryImmutability:

    def test_posted_entry_description_cannot_change(self, session, posted_entry_id):
        entry = session.get(JournalEntry, posted_entry_id)
        entry.description = "rewritten"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_posted_entry_cannot_be_deleted(self, session, posted_entry_id):
        session.delete(session.get(JournalEntry, posted_entry_id))
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_posted_line_cannot_change(self, session, posted_entry_id):
        line = session.execute(
            select(JournalEntryLine).where(JournalEntryLine.journal_entry_id == posted_entry_id)
        ).scalars().first()
        line.description = "edited"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_draft_entry_is_editable(self, session, journal_service, make_header, accounts):
        draft = journal_service.create_journal_entry(
            make_header(),
            [LineSpec.debit(accounts["1210"].id, 10), LineSpec.credit(accounts["6010"].id, 10)],
        )
        entry = session.get(JournalEntry, draft.id)
        entry.description = "still a draft"
        session.flush()
        assert session.get(JournalEntry, draft.id).description == "still a draft"


class TestLedgerRowsAppendOnly:

    def test_update_blocked(self, session, posted_entry_id):
        row = session.execute(select(GeneralLedgerRow)).scalars().first()
        row.running_balance = 0
        with pytest.raises(ImmutabilityViolationError):
            session.flush()

    def test_delete_blocked(self, session, posted_entry_id, captured_logs):
        row = session.execute(select(GeneralLedgerRow)).scalars().first()
        session.delete(row)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        assert any(r["message"] == "immutability_violation_blocked" for r in captured_logs())
