"""Fixtures for the deal accounting and GL modules."""

import pytest

from ledger_modules.deals import DealAccountingConfig, DealAccountingService, DealParams, DealRole, DealType
from ledger_modules.gl import GLService
from tests.conftest import ENTITY_A, ENTITY_B_BIN, TEST_ACTOR_ID


@pytest.fixture
def deal_config(ledger_config):
    return DealAccountingConfig.from_ledger_config(ledger_config)


@pytest.fixture
def deal_service(session, deterministic_clock, deal_config):
    return DealAccountingService(session, clock=deterministic_clock, config=deal_config)


@pytest.fixture
def post_entries(session, deterministic_clock):
    """Post (and commit) every draft entry a deal operation returned."""
    gl = GLService(session, clock=deterministic_clock)

    def _post(result):
        posted = []
        for entry in result.entries:
            outcome = gl.post_entry(entry.id, posted_by=TEST_ACTOR_ID)
            assert outcome.is_success, outcome.error_code
            posted.append(outcome.entry)
        return posted

    return _post


@pytest.fixture
def make_deal_params():
    def _make(
        legal_entity_id: str = ENTITY_A,
        receiver_bin: str = ENTITY_B_BIN,
        total_amount: int = 1_000_00,
        **overrides,
    ) -> DealParams:
        values = {
            "legal_entity_id": legal_entity_id,
            "receiver_bin": receiver_bin,
            "title": "Consulting services",
            "deal_type": DealType.SERVICE,
            "total_amount": total_amount,
            "currency_code": "KZT",
            "created_by": TEST_ACTOR_ID,
            "deal_role": DealRole.SELLER,
        }
        values.update(overrides)
        return DealParams(**values)

    return _make
