"""Tests for the deal-accounting bridge (DealAccountingService)."""

from uuid import uuid4

import pytest

from ledger_kernel.models.journal import JournalEntryStatus
from ledger_modules.deals import (
    DealAccountingService,
    DealEntryType,
    DealRole,
    DealStatus,
    DealType,
    OperationStatus,
)
from ledger_modules.deals.documents import GENERATION_FAILED, NOT_IMPLEMENTED
from ledger_modules.reporting import ReportingService
from tests.conftest import ENTITY_A, ENTITY_B, OUTSIDE_BIN, TEST_ACTOR_ID


def _trial_balance(session, legal_entity_id):
    report = ReportingService(session).trial_balance(legal_entity_id)
    return {line.account_code: line for line in report.lines}


# =============================================================================
# Sales deals: invoice then payments
# =============================================================================


class TestSellerDealLifecycle:

    def test_invoice_then_full_payment(self, session, deal_service, make_deal_params, post_entries, entity_a):
        created = deal_service.create_deal_with_accounting(make_deal_params())

        assert created.is_success
        assert created.deal.status == DealStatus.ACTIVE
        (invoice,) = created.entries
        assert invoice.status == JournalEntryStatus.DRAFT
        assert invoice.reference == f"DEAL-{created.deal.id}"
        assert _trial_balance(session, ENTITY_A) == {}

        post_entries(created)
        tb = _trial_balance(session, ENTITY_A)
        assert tb["1210"].debit_balance == 1_000_00
        assert tb["6010"].credit_balance == 1_000_00

        paid = deal_service.record_payment(created.deal.id, 1_000_00, created_by=TEST_ACTOR_ID)

        assert paid.is_success
        assert paid.deal.status == DealStatus.COMPLETED
        assert paid.deal.paid_amount == 1_000_00
        (payment,) = paid.entries
        assert [line.account_code for line in payment.lines] == ["1030", "1210"]

        post_entries(paid)
        tb = _trial_balance(session, ENTITY_A)
        assert tb["1210"].net_balance == 0
        assert tb["1030"].debit_balance == 1_000_00

        report = deal_service.generate_reconciliation_report(created.deal.id)
        assert report.is_balanced
        assert report.remaining_balance == 0
        assert report.ledger_paid_amount == 1_000_00
        assert report.discrepancies == ()

    def test_overpayment_rejected(self, deal_service, make_deal_params, journal_selector, entity_a):
        deal = deal_service.create_deal_with_accounting(make_deal_params()).deal

        first = deal_service.record_payment(deal.id, 600_00, created_by=TEST_ACTOR_ID)
        second = deal_service.record_payment(deal.id, 500_00, created_by=TEST_ACTOR_ID)

        assert first.is_success
        assert second.is_rejected
        assert second.error_code == "OVERPAYMENT"
        balance = deal_service.get_deal_balance(deal.id)
        assert balance.paid_amount == 600_00
        assert balance.remaining_amount == 400_00
        assert balance.status == DealStatus.ACTIVE
        assert journal_selector.count_entries(ENTITY_A) == 2

    def test_payment_on_completed_deal_rejected(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal_with_accounting(make_deal_params(total_amount=100)).deal
        deal_service.record_payment(deal.id, 100, created_by=TEST_ACTOR_ID)

        result = deal_service.record_payment(deal.id, 1, created_by=TEST_ACTOR_ID)
        assert result.error_code == "OVERPAYMENT"

    def test_partial_payments_keep_deal_active(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal_with_accounting(make_deal_params()).deal
        result = deal_service.record_payment(deal.id, 300_00, created_by=TEST_ACTOR_ID)
        assert result.deal.status == DealStatus.ACTIVE
        assert result.deal.remaining_amount == 700_00

    def test_cash_payment_uses_cash_account(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal_with_accounting(make_deal_params()).deal
        result = deal_service.record_payment(
            deal.id, 100_00, created_by=TEST_ACTOR_ID, payment_method="cash", reference="PO-7",
        )
        (entry,) = result.entries
        assert entry.lines[0].account_code == "1010"
        assert entry.reference == "PO-7"

    @pytest.mark.parametrize("amount,code", [(0, "INVALID_AMOUNT"), (-5, "INVALID_AMOUNT"), (1.5, "INVALID_AMOUNT")])
    def test_bad_payment_amount(self, deal_service, make_deal_params, entity_a, amount, code):
        deal = deal_service.create_deal_with_accounting(make_deal_params()).deal
        assert deal_service.record_payment(deal.id, amount, created_by=TEST_ACTOR_ID).error_code == code

    def test_unknown_payment_method(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal_with_accounting(make_deal_params()).deal
        result = deal_service.record_payment(deal.id, 1, created_by=TEST_ACTOR_ID, payment_method="card")
        assert result.error_code == "VALIDATION_ERROR"

    def test_unknown_deal(self, deal_service, entity_a):
        result = deal_service.record_payment(uuid4(), 100, created_by=TEST_ACTOR_ID)
        assert result.is_rejected
        assert result.error_code == "DEAL_NOT_FOUND"

    def test_other_tenant_cannot_pay(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal_with_accounting(make_deal_params()).deal
        result = deal_service.record_payment(
            deal.id, 100, created_by=TEST_ACTOR_ID, legal_entity_id=ENTITY_B,
        )
        assert result.error_code == "DEAL_NOT_FOUND"
        assert deal_service.get_deal(deal.id).paid_amount == 0

    def test_rejection_logged(self, deal_service, make_deal_params, entity_a, captured_logs):
        deal = deal_service.create_deal_with_accounting(make_deal_params(total_amount=100)).deal
        deal_service.record_payment(deal.id, 200, created_by=TEST_ACTOR_ID)

        rejected = [r for r in captured_logs() if r["message"] == "deal_operation_rejected"]
        assert rejected[0]["error_code"] == "OVERPAYMENT"
        assert rejected[0]["operation"] == "record_payment"


class TestCreateDeal:

    def test_create_without_accounting(self, deal_service, make_deal_params, journal_selector, entity_a):
        result = deal_service.create_deal(make_deal_params(description="No invoice yet"))
        assert result.is_success
        assert result.entries == ()
        assert result.deal.description == "No invoice yet"
        assert journal_selector.count_entries(ENTITY_A) == 0

    @pytest.mark.parametrize(
        "overrides,code",
        [
            ({"receiver_bin": "123"}, "INVALID_BIN"),
            ({"total_amount": 0}, "INVALID_AMOUNT"),
            ({"title": " "}, "VALIDATION_ERROR"),
            ({"currency_code": "GBP"}, "CURRENCY_NOT_FOUND"),
            ({"deal_type": "barter"}, "VALIDATION_ERROR"),
        ],
    )
    def test_invalid_params(self, deal_service, make_deal_params, entity_a, overrides, code):
        result = deal_service.create_deal_with_accounting(make_deal_params(**overrides))
        assert result.is_rejected
        assert result.error_code == code

    def test_missing_standard_account_rolls_back(
        self, session, deterministic_clock, make_deal_params, journal_selector, entity_a, deal_config,
    ):
        from dataclasses import replace

        broken = replace(
            deal_config,
            standard_accounts=replace(deal_config.standard_accounts, revenue="9999"),
        )
        service = DealAccountingService(session, clock=deterministic_clock, config=broken)

        result = service.create_deal_with_accounting(make_deal_params())

        assert result.error_code == "ACCOUNT_NOT_FOUND"
        assert journal_selector.count_entries(ENTITY_A) == 0

    def test_entries_stay_draft_by_default(self, deal_service, make_deal_params, ledger_selector, entity_a):
        deal = deal_service.create_deal_with_accounting(make_deal_params()).deal
        result = deal_service.record_payment(deal.id, 1_000_00, created_by=TEST_ACTOR_ID)

        assert all(e.status == JournalEntryStatus.DRAFT for e in result.entries)
        assert ledger_selector.count_rows(ENTITY_A) == 0

        report = deal_service.generate_reconciliation_report(deal.id)
        assert report.ledger_paid_amount == 0
        assert report.discrepancies == ()

    def test_auto_post_opt_in(
        self, session, deterministic_clock, make_deal_params, ledger_selector, entity_a, deal_config,
    ):
        from dataclasses import replace

        service = DealAccountingService(
            session, clock=deterministic_clock, config=replace(deal_config, auto_post=True),
        )
        created = service.create_deal_with_accounting(make_deal_params())
        paid = service.record_payment(created.deal.id, 400_00, created_by=TEST_ACTOR_ID)

        (invoice,) = created.entries
        (payment,) = paid.entries
        assert invoice.status == JournalEntryStatus.POSTED
        assert payment.posted_by == TEST_ACTOR_ID
        assert ledger_selector.count_rows(ENTITY_A) == 4
        assert service.generate_reconciliation_report(created.deal.id).ledger_paid_amount == 400_00


# =============================================================================
# Purchase deals: accruals and expense payments
# =============================================================================


class TestBuyerDeals:

    def test_buyer_deal_books_accrual(self, deal_service, make_deal_params, entity_a):
        result = deal_service.create_deal_with_accounting(
            make_deal_params(deal_role=DealRole.BUYER, receiver_bin=OUTSIDE_BIN),
        )
        (accrual,) = result.entries
        assert accrual.reference == f"ACCR-{result.deal.id}"
        assert [(l.account_code, l.debit_amount, l.credit_amount) for l in accrual.lines] == [
            ("7110", 1_000_00, 0),
            ("3310", 0, 1_000_00),
        ]

    def test_product_accrual_goes_to_inventory(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal(
            make_deal_params(deal_role=DealRole.BUYER, deal_type=DealType.PRODUCT, receiver_bin=OUTSIDE_BIN),
        ).deal
        result = deal_service.record_expense_accrual(deal.id, created_by=TEST_ACTOR_ID)
        (accrual,) = result.entries
        assert accrual.lines[0].account_code == "1330"
        assert accrual.total_debit == 1_000_00

    def test_expense_payment_books_missing_accrual_first(
        self, session, deal_service, make_deal_params, post_entries, entity_a,
    ):
        deal = deal_service.create_deal(
            make_deal_params(deal_role=DealRole.BUYER, receiver_bin=OUTSIDE_BIN),
        ).deal

        result = deal_service.record_expense_payment(deal.id, 400_00, created_by=TEST_ACTOR_ID)

        accrual, payment = result.entries
        assert accrual.total_debit == 400_00
        assert [l.account_code for l in accrual.lines] == ["7110", "3310"]
        assert [l.account_code for l in payment.lines] == ["3310", "1030"]
        assert result.deal.paid_amount == 400_00

        post_entries(result)
        tb = _trial_balance(session, ENTITY_A)
        assert tb["3310"].net_balance == 0
        assert tb["7110"].debit_balance == 400_00

    def test_expense_payment_after_accrual(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal_with_accounting(
            make_deal_params(deal_role=DealRole.BUYER, receiver_bin=OUTSIDE_BIN),
        ).deal
        result = deal_service.record_expense_payment(
            deal.id, 1_000_00, created_by=TEST_ACTOR_ID, payment_method="cash",
        )
        (payment,) = result.entries
        assert payment.lines[1].account_code == "1010"
        assert result.deal.status == DealStatus.COMPLETED

        transactions = deal_service.get_deal_transactions(deal.id)
        assert [t.entry_type for t in transactions] == [DealEntryType.INVOICE, DealEntryType.PAYMENT]

    def test_expense_overpayment(self, deal_service, make_deal_params, journal_selector, entity_a):
        deal = deal_service.create_deal(
            make_deal_params(deal_role=DealRole.BUYER, receiver_bin=OUTSIDE_BIN),
        ).deal
        result = deal_service.record_expense_payment(deal.id, 1_000_01, created_by=TEST_ACTOR_ID)
        assert result.error_code == "OVERPAYMENT"
        assert journal_selector.count_entries(ENTITY_A) == 0


# =============================================================================
# Mirror entries between two tenants
# =============================================================================


class TestMirrorEntries:

    def test_buyer_payment_skipped_when_seller_invoiced(
        self, deal_service, make_deal_params, journal_selector, entity_a, entity_b,
    ):
        seller = deal_service.create_deal_with_accounting(
            make_deal_params(receiver_bin=entity_b.bin, deal_reference="CONTRACT-42"),
        )
        assert seller.is_success

        buyer_deal = deal_service.create_deal(
            make_deal_params(
                legal_entity_id=ENTITY_B,
                receiver_bin=entity_a.bin,
                deal_role=DealRole.BUYER,
                deal_reference="CONTRACT-42",
            ),
        ).deal

        result = deal_service.record_expense_payment(buyer_deal.id, 1_000_00, created_by=TEST_ACTOR_ID)

        assert result.status == OperationStatus.SKIPPED
        assert result.error_code == "MIRROR_ENTRY_EXISTS"
        assert result.deal.paid_amount == 0
        assert deal_service.get_deal_transactions(buyer_deal.id) == []
        assert journal_selector.count_entries(ENTITY_B) == 0

    def test_seller_invoice_and_payment_skipped_after_buyer_booked(
        self, deal_service, make_deal_params, journal_selector, entity_a, entity_b,
    ):
        buyer = deal_service.create_deal_with_accounting(
            make_deal_params(
                legal_entity_id=ENTITY_B,
                receiver_bin=entity_a.bin,
                deal_role=DealRole.BUYER,
                deal_reference="CONTRACT-7",
            ),
        )
        deal_service.record_expense_payment(buyer.deal.id, 500_00, created_by=TEST_ACTOR_ID)

        seller = deal_service.create_deal_with_accounting(
            make_deal_params(receiver_bin=entity_b.bin, deal_reference="CONTRACT-7"),
        )
        assert seller.is_skipped
        assert seller.deal is not None
        assert seller.entries == ()

        payment = deal_service.record_payment(seller.deal.id, 500_00, created_by=TEST_ACTOR_ID)
        assert payment.is_skipped
        assert deal_service.get_deal(seller.deal.id).paid_amount == 0
        assert journal_selector.count_entries(ENTITY_A) == 0

    def test_partial_buyer_payments_skipped_when_seller_invoiced(
        self, deal_service, make_deal_params, journal_selector, entity_a, entity_b,
    ):
        deal_service.create_deal_with_accounting(
            make_deal_params(receiver_bin=entity_b.bin, deal_reference="CONTRACT-1"),
        )
        buyer_deal = deal_service.create_deal(
            make_deal_params(
                legal_entity_id=ENTITY_B,
                receiver_bin=entity_a.bin,
                deal_role=DealRole.BUYER,
                deal_reference="CONTRACT-1",
            ),
        ).deal

        first = deal_service.record_expense_payment(buyer_deal.id, 600_00, created_by=TEST_ACTOR_ID)
        second = deal_service.record_expense_payment(buyer_deal.id, 400_00, created_by=TEST_ACTOR_ID)

        for result in (first, second):
            assert result.is_skipped
            assert result.entries == ()
        assert journal_selector.count_entries(ENTITY_B) == 0
        assert deal_service.get_deal(buyer_deal.id).paid_amount == 0

    def test_buyer_accrual_skipped_when_seller_invoiced(
        self, deal_service, make_deal_params, journal_selector, entity_a, entity_b,
    ):
        deal_service.create_deal_with_accounting(
            make_deal_params(receiver_bin=entity_b.bin, deal_reference="CONTRACT-3"),
        )
        buyer_deal = deal_service.create_deal(
            make_deal_params(
                legal_entity_id=ENTITY_B,
                receiver_bin=entity_a.bin,
                deal_role=DealRole.BUYER,
                deal_reference="CONTRACT-3",
            ),
        ).deal

        result = deal_service.record_expense_accrual(buyer_deal.id, created_by=TEST_ACTOR_ID, amount=250_00)

        assert result.is_skipped
        assert journal_selector.count_entries(ENTITY_B) == 0

    def test_different_deal_total_is_not_a_mirror(self, deal_service, make_deal_params, entity_a, entity_b):
        deal_service.create_deal_with_accounting(
            make_deal_params(receiver_bin=entity_b.bin, deal_reference="CONTRACT-1"),
        )
        buyer_deal = deal_service.create_deal(
            make_deal_params(
                legal_entity_id=ENTITY_B,
                receiver_bin=entity_a.bin,
                deal_role=DealRole.BUYER,
                deal_reference="CONTRACT-1",
                total_amount=1_200_00,
            ),
        ).deal

        result = deal_service.record_expense_payment(buyer_deal.id, 250_00, created_by=TEST_ACTOR_ID)
        assert result.is_success
        assert len(result.entries) == 2

    def test_without_reference_nothing_is_skipped(self, deal_service, make_deal_params, entity_a, entity_b):
        deal_service.create_deal_with_accounting(make_deal_params(receiver_bin=entity_b.bin))
        buyer = deal_service.create_deal_with_accounting(
            make_deal_params(legal_entity_id=ENTITY_B, receiver_bin=entity_a.bin, deal_role=DealRole.BUYER),
        )
        assert buyer.is_success

    def test_skip_logged(self, deal_service, make_deal_params, entity_a, entity_b, captured_logs):
        deal_service.create_deal_with_accounting(
            make_deal_params(receiver_bin=entity_b.bin, deal_reference="CONTRACT-9"),
        )
        deal_service.create_deal_with_accounting(
            make_deal_params(
                legal_entity_id=ENTITY_B, receiver_bin=entity_a.bin,
                deal_role=DealRole.BUYER, deal_reference="CONTRACT-9",
            ),
        )
        messages = [r["message"] for r in captured_logs()]
        assert "mirror_entry_detected" in messages
        assert "deal_operation_skipped" in messages


# =============================================================================
# Reconciliation and reads
# =============================================================================


class TestDealReads:

    def test_transactions_in_order_with_lines(self, deal_service, make_deal_params, post_entries, entity_a):
        created = deal_service.create_deal_with_accounting(make_deal_params())
        deal = created.deal
        post_entries(created)
        post_entries(deal_service.record_payment(deal.id, 200_00, created_by=TEST_ACTOR_ID))
        post_entries(deal_service.record_payment(deal.id, 300_00, created_by=TEST_ACTOR_ID))

        transactions = deal_service.get_deal_transactions(deal.id)

        assert [t.entry_type for t in transactions] == [
            DealEntryType.INVOICE, DealEntryType.PAYMENT, DealEntryType.PAYMENT,
        ]
        assert [t.amount for t in transactions] == [1_000_00, 200_00, 300_00]
        assert all(t.status == "posted" for t in transactions)
        assert transactions[0].lines[0].account_name

        report = deal_service.generate_reconciliation_report(deal.id)
        assert not report.is_balanced
        assert report.remaining_balance == 500_00
        assert report.ledger_paid_amount == 500_00
        assert report.discrepancies == ()

    def test_reads_enforce_tenant(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal(make_deal_params()).deal
        assert deal_service.get_deal(deal.id, legal_entity_id=ENTITY_A).id == deal.id
        assert deal_service.get_deal(deal.id, legal_entity_id=ENTITY_B) is None
        assert deal_service.get_deal_balance(deal.id, legal_entity_id=ENTITY_B) is None
        assert deal_service.get_deal_transactions(deal.id, legal_entity_id=ENTITY_B) is None
        assert deal_service.generate_reconciliation_report(deal.id, legal_entity_id=ENTITY_B) is None

    def test_unknown_deal_reads_as_missing(self, deal_service, entity_a, captured_logs):
        missing = uuid4()
        assert deal_service.get_deal(missing) is None
        assert deal_service.get_deal_balance(missing) is None
        assert deal_service.get_deal_transactions(missing) is None
        assert deal_service.generate_reconciliation_report(missing) is None
        assert "deal_reconciliation_generated" not in [r["message"] for r in captured_logs()]

    def test_deal_without_entries_has_empty_transactions(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal(make_deal_params()).deal
        assert deal_service.get_deal_transactions(deal.id) == []


# =============================================================================
# Document generation after commit
# =============================================================================


class TestDocuments:

    def test_null_generator_reports_not_implemented(self, deal_service, make_deal_params, entity_a):
        result = deal_service.create_deal_with_accounting(make_deal_params())
        assert result.is_success
        assert result.document is None
        assert result.document_error == NOT_IMPLEMENTED

    def test_custom_generator(self, session, deterministic_clock, deal_config, make_deal_params, entity_a):
        from ledger_modules.deals import DocumentGenerator, GeneratedDocument

        class FakeGenerator(DocumentGenerator):
            def __init__(self):
                self.requests = []

            def generate(self, request):
                self.requests.append(request)
                return GeneratedDocument(
                    document_id="doc-1",
                    storage_path="/documents/doc-1.pdf",
                    file_name="act.pdf",
                    kind=request.kind.value,
                )

        generator = FakeGenerator()
        service = DealAccountingService(
            session, clock=deterministic_clock, config=deal_config, document_generator=generator,
        )

        result = service.create_deal_with_accounting(make_deal_params(deal_type=DealType.PRODUCT))

        assert result.document.document_id == "doc-1"
        assert result.document.kind == "waybill"
        assert result.document_error is None
        assert generator.requests[0].counterparty_bin == result.deal.receiver_bin

    def test_generator_crash_keeps_accounting(
        self, session, deterministic_clock, deal_config, make_deal_params, journal_selector, entity_a,
    ):
        from ledger_modules.deals import DocumentGenerator

        class BrokenGenerator(DocumentGenerator):
            def generate(self, request):
                raise RuntimeError("renderer offline")

        service = DealAccountingService(
            session, clock=deterministic_clock, config=deal_config, document_generator=BrokenGenerator(),
        )
        result = service.create_deal_with_accounting(make_deal_params())

        assert result.is_success
        assert result.document_error == GENERATION_FAILED
        assert journal_selector.count_entries(ENTITY_A) == 1

    def test_no_document_on_rejection(self, deal_service, make_deal_params, entity_a):
        result = deal_service.create_deal_with_accounting(make_deal_params(total_amount=-1))
        assert result.document_error is None
