"""Tests for the journal engine: draft creation, posting, cancellation."""

import pytest

from ledger_kernel.domain.dtos import LineSpec
from ledger_kernel.exceptions import (
    AccountInactiveError,
    AlreadyPostedError,
    CrossEntityReferenceError,
    CurrencyNotFoundError,
    DuplicateEntryNumberError,
    EmptyEntryError,
    EntryNotDraftError,
    JournalEntryNotFoundError,
    UnbalancedEntryError,
)
from ledger_kernel.models.journal import JournalEntryStatus
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.services.chart_service import ChartService
from tests.conftest import ENTITY_A, ENTITY_B, TEST_ACTOR_ID


@pytest.fixture
def invoice_lines(accounts):
    return [
        LineSpec.debit(accounts["1210"].id, 100_000, "Receivable"),
        LineSpec.credit(accounts["6010"].id, 100_000, "Revenue"),
    ]


class TestCreateJournalEntry:

    def test_creates_draft_without_ledger_rows(
        self, journal_service, make_header, invoice_lines, ledger_selector,
    ):
        record = journal_service.create_journal_entry(
            make_header(description="Invoice", reference="INV-1"), invoice_lines,
        )

        assert record.status == JournalEntryStatus.DRAFT
        assert record.entry_number == "JE-00000001"
        assert record.total_debit == record.total_credit == 100_000
        assert record.reference == "INV-1"
        assert record.currency_code == "KZT"
        assert [line.line_number for line in record.lines] == [1, 2]
        assert [line.account_code for line in record.lines] == ["1210", "6010"]
        assert ledger_selector.count_rows(ENTITY_A) == 0

    def test_entry_numbers_increase(self, journal_service, make_header, invoice_lines):
        first = journal_service.create_journal_entry(make_header(), invoice_lines)
        second = journal_service.create_journal_entry(make_header(), invoice_lines)
        assert (first.entry_number, second.entry_number) == ("JE-00000001", "JE-00000002")

    def test_explicit_entry_number_must_be_free(self, journal_service, make_header, invoice_lines):
        journal_service.create_journal_entry(make_header(entry_number="MAN-1"), invoice_lines)
        with pytest.raises(DuplicateEntryNumberError):
            journal_service.create_journal_entry(make_header(entry_number="MAN-1"), invoice_lines)

    def test_unbalanced_entry_writes_nothing(
        self, journal_service, make_header, accounts, journal_selector,
    ):
        with pytest.raises(UnbalancedEntryError):
            journal_service.create_journal_entry(
                make_header(),
                [
                    LineSpec.debit(accounts["1210"].id, 100_000),
                    LineSpec.credit(accounts["6010"].id, 90_000),
                ],
            )
        assert journal_selector.count_entries(ENTITY_A) == 0

    def test_empty_entry_rejected(self, journal_service, make_header, entity_a):
        with pytest.raises(EmptyEntryError):
            journal_service.create_journal_entry(make_header(), [])

    def test_unknown_currency(self, journal_service, make_header, invoice_lines):
        with pytest.raises(CurrencyNotFoundError):
            journal_service.create_journal_entry(make_header(currency_code="JPY"), invoice_lines)

    def test_account_of_other_entity_rejected(
        self, session, journal_service, make_header, accounts, entity_b,
    ):
        foreign_revenue = AccountSelector(session).get_by_code(ENTITY_B, "6010")
        with pytest.raises(CrossEntityReferenceError):
            journal_service.create_journal_entry(
                make_header(),
                [
                    LineSpec.debit(accounts["1210"].id, 100),
                    LineSpec.credit(foreign_revenue.id, 100),
                ],
            )

    def test_inactive_account_rejected(
        self, session, journal_service, make_header, accounts, invoice_lines,
    ):
        ChartService(session).deactivate_account(accounts["6010"].id)
        with pytest.raises(AccountInactiveError):
            journal_service.create_journal_entry(make_header(), invoice_lines)


class TestPostJournalEntry:

    def test_posting_appends_one_row_per_line(
        self, journal_service, make_header, invoice_lines, ledger_selector, accounts,
    ):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)

        result = journal_service.post_journal_entry(draft.id, posted_by="approver")

        assert result.entry_id == draft.id
        assert len(result.ledger_rows) == 2
        receivable_row, revenue_row = result.ledger_rows
        assert receivable_row.account_id == accounts["1210"].id
        assert receivable_row.running_balance == 100_000
        assert revenue_row.running_balance == -100_000
        assert receivable_row.ledger_seq < revenue_row.ledger_seq
        assert ledger_selector.rows_for_entry(draft.id) == list(result.ledger_rows)

    def test_posted_entry_records_actor_and_time(
        self, journal_service, journal_selector, make_header, invoice_lines, deterministic_clock,
    ):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)
        journal_service.post_journal_entry(draft.id)

        posted = journal_selector.get_entry(draft.id)
        assert posted.is_posted
        assert posted.posted_by == TEST_ACTOR_ID
        assert posted.posted_at == deterministic_clock.now()

    def test_running_balance_accumulates(self, post_entry, accounts, ledger_selector):
        post_entry("1210", "6010", 100_000)
        post_entry("1030", "1210", 40_000)
        post_entry("1210", "6010", 5_000)

        rows = ledger_selector.ledger_for(accounts["1210"].id)
        assert [r.running_balance for r in rows] == [100_000, 60_000, 65_000]
        assert ledger_selector.last_running_balance(accounts["1210"].id) == 65_000
        assert ledger_selector.account_balance(accounts["1210"].id) == 65_000

    def test_ledger_seq_is_one_order_across_accounts(self, post_entry):
        results = [
            post_entry("1210", "6010", 100_000),
            post_entry("1010", "5010", 7_000),
            post_entry("1030", "3310", 2_500),
            post_entry("1210", "6010", 1_000),
        ]

        seqs = [row.ledger_seq for result in results for row in result.ledger_rows]
        assert seqs == list(range(seqs[0], seqs[0] + len(seqs)))

    def test_post_twice_rejected(self, journal_service, make_header, invoice_lines, ledger_selector):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)
        journal_service.post_journal_entry(draft.id)
        with pytest.raises(AlreadyPostedError):
            journal_service.post_journal_entry(draft.id)
        assert ledger_selector.count_rows(ENTITY_A) == 2

    def test_tenant_mismatch_reported_as_missing(self, journal_service, make_header, invoice_lines):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)
        with pytest.raises(JournalEntryNotFoundError):
            journal_service.post_journal_entry(draft.id, legal_entity_id=ENTITY_B)

    def test_posting_logged(self, journal_service, make_header, invoice_lines, captured_logs):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)
        journal_service.post_journal_entry(draft.id)

        posted = [r for r in captured_logs() if r["message"] == "journal_entry_posted"]
        assert len(posted) == 1
        assert posted[0]["entry_id"] == str(draft.id)
        assert posted[0]["ledger_row_count"] == 2


class TestCancelJournalEntry:

    def test_cancel_draft(self, journal_service, make_header, invoice_lines):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)
        cancelled = journal_service.cancel_journal_entry(draft.id)
        assert cancelled.status == JournalEntryStatus.CANCELLED

    def test_cancelled_entry_cannot_be_posted(
        self, journal_service, make_header, invoice_lines, ledger_selector,
    ):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)
        journal_service.cancel_journal_entry(draft.id)
        with pytest.raises(EntryNotDraftError):
            journal_service.post_journal_entry(draft.id)
        assert ledger_selector.count_rows(ENTITY_A) == 0

    def test_posted_entry_cannot_be_cancelled(self, journal_service, make_header, invoice_lines):
        draft = journal_service.create_journal_entry(make_header(), invoice_lines)
        journal_service.post_journal_entry(draft.id)
        with pytest.raises(EntryNotDraftError):
            journal_service.cancel_journal_entry(draft.id)

    def test_unknown_entry(self, journal_service, entity_a):
        from uuid import uuid4

        with pytest.raises(JournalEntryNotFoundError):
            journal_service.cancel_journal_entry(uuid4())
