"""Tests for the per-tenant partner registry."""

from uuid import uuid4

import pytest

from ledger_kernel.exceptions import InvalidBinError, ValidationError
from ledger_modules.deals import DealRole
from ledger_modules.partners import PartnerService
from tests.conftest import ENTITY_A, ENTITY_B, ENTITY_B_BIN, OUTSIDE_BIN, TEST_ACTOR_ID


@pytest.fixture
def partners(session):
    return PartnerService(session)


class TestFindOrCreate:

    def test_registered_tenant_name_wins(self, partners, entity_a, entity_b):
        partner = partners.find_or_create_by_bin(ENTITY_A, ENTITY_B_BIN, name="Someone else")
        assert partner.name == "Beta LLP"
        assert partner.legal_entity_id == ENTITY_A

    def test_supplied_name_for_outside_bin(self, partners, entity_a):
        partner = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN, name="  Gamma Supply  ")
        assert partner.name == "Gamma Supply"

    def test_fallback_name(self, partners, entity_a):
        assert partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN).name == f"BIN {OUTSIDE_BIN}"

    def test_second_lookup_returns_same_partner(self, partners, entity_a, captured_logs):
        first = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN, name="Gamma")
        second = partners.find_or_create_by_bin(ENTITY_A, f" {OUTSIDE_BIN} ", name="Other")

        assert second == first
        created = [r for r in captured_logs() if r["message"] == "partner_created"]
        assert len(created) == 1

    def test_fallback_name_replaced_once_known(self, partners, entity_a):
        first = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN)
        named = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN, name="Gamma")
        assert named.id == first.id
        assert named.name == "Gamma"

    def test_partners_are_per_tenant(self, partners, entity_a, entity_b):
        mine = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN, name="Gamma")
        theirs = partners.find_or_create_by_bin(ENTITY_B, OUTSIDE_BIN, name="Gamma Ltd")
        assert mine.id != theirs.id
        assert [p.name for p in partners.list_partners(ENTITY_B)] == ["Gamma Ltd"]

    def test_invalid_bin(self, partners, entity_a):
        with pytest.raises(InvalidBinError):
            partners.find_or_create_by_bin(ENTITY_A, "12-34")


class TestReadsAndUpdates:

    def test_list_by_name(self, partners, entity_a):
        partners.find_or_create_by_bin(ENTITY_A, "300000000003", name="Zeta")
        partners.find_or_create_by_bin(ENTITY_A, "400000000004", name="Delta")
        assert [p.name for p in partners.list_partners(ENTITY_A)] == ["Delta", "Zeta"]

    def test_get_enforces_tenant(self, partners, entity_a):
        partner = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN)
        assert partners.get_partner(partner.id, ENTITY_A) == partner
        assert partners.get_partner(partner.id, ENTITY_B) is None
        assert partners.get_partner(uuid4(), ENTITY_A) is None

    def test_update(self, partners, entity_a):
        partner = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN)
        updated = partners.update_partner(partner.id, ENTITY_A, name="Gamma", address="Almaty")
        assert (updated.name, updated.address) == ("Gamma", "Almaty")
        assert partners.update_partner(partner.id, ENTITY_B, name="Hijack") is None

    def test_blank_name_rejected(self, partners, entity_a):
        partner = partners.find_or_create_by_bin(ENTITY_A, OUTSIDE_BIN)
        with pytest.raises(ValidationError):
            partners.update_partner(partner.id, ENTITY_A, name="  ")


class TestDealsUsePartners:

    def test_deal_linked_to_partner(self, partners, deal_service, make_deal_params, entity_a):
        result = deal_service.create_deal(
            make_deal_params(receiver_bin=OUTSIDE_BIN, counterparty_name="Gamma Supply"),
        )
        (partner,) = partners.list_partners(ENTITY_A)
        assert result.deal.partner_id == partner.id
        assert result.deal.counterparty_name == "Gamma Supply"

    def test_rejected_deal_creates_no_partner(self, partners, deal_service, make_deal_params, entity_a):
        result = deal_service.create_deal(make_deal_params(receiver_bin=OUTSIDE_BIN, currency_code="GBP"))
        assert result.is_rejected
        assert partners.list_partners(ENTITY_A) == []

    def test_invoice_descriptions_name_partner(self, deal_service, make_deal_params, entity_a, entity_b):
        result = deal_service.create_deal_with_accounting(make_deal_params(receiver_bin=entity_b.bin))

        (invoice,) = result.entries
        assert invoice.description == "Deal: Consulting services (Beta LLP)"
        assert [line.description for line in invoice.lines] == ["Receivable: Beta LLP", "Revenue: Beta LLP"]

    def test_payment_descriptions_name_partner(self, deal_service, make_deal_params, entity_a):
        deal = deal_service.create_deal(
            make_deal_params(
                receiver_bin=OUTSIDE_BIN, deal_role=DealRole.BUYER, counterparty_name="Gamma Supply",
            ),
        ).deal

        accrual, payment = deal_service.record_expense_payment(
            deal.id, 100_00, created_by=TEST_ACTOR_ID,
        ).entries

        assert accrual.description == "Accrual: Consulting services (Gamma Supply)"
        assert accrual.lines[0].description == "Services from Gamma Supply"
        assert payment.description == "Payment: Consulting services (Gamma Supply)"
        assert [line.description for line in payment.lines] == [
            "Payable settled: Gamma Supply", "Paid to Gamma Supply",
        ]

    def test_one_partner_for_repeat_deals(self, partners, deal_service, make_deal_params, entity_a):
        deal_service.create_deal(make_deal_params(receiver_bin=OUTSIDE_BIN))
        deal_service.create_deal(make_deal_params(receiver_bin=OUTSIDE_BIN, title="Follow-up"))
        assert len(partners.list_partners(ENTITY_A)) == 1
