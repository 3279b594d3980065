"""Tests for chart of accounts reads."""

from uuid import uuid4

import pytest

from ledger_kernel.domain.account_tree import walk_tree
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.models.account import AccountType
from ledger_kernel.selectors.account_selector import AccountSelector
from tests.conftest import ENTITY_A


@pytest.fixture
def selector(session, entity_a):
    return AccountSelector(session)


class TestAccountSelector:

    def test_lookup_by_code(self, selector):
        cash = selector.get_by_code(ENTITY_A, "1010")
        assert cash.account_type == AccountType.ASSET
        assert selector.get(cash.id) == cash
        assert selector.find_by_code(ENTITY_A, "0000") is None

    def test_missing(self, selector):
        with pytest.raises(AccountNotFoundError):
            selector.get_by_code(ENTITY_A, "0000")
        with pytest.raises(AccountNotFoundError):
            selector.get(uuid4())

    def test_filter_by_type(self, selector):
        equity = selector.list_accounts(ENTITY_A, account_type="equity")
        assert equity
        assert all(a.account_type == AccountType.EQUITY for a in equity)
        assert [a.code for a in equity] == sorted(a.code for a in equity)

    def test_hierarchy_under_section_headers(self, selector):
        tree = selector.hierarchy(ENTITY_A)
        roots = {node.code: node for node in tree}

        assert "1000" in roots
        assert "1010" in [child.code for child in roots["1000"].children]

        depths = {node.code: depth for depth, node in walk_tree(tree)}
        assert depths["2420"] == depths["2410"] + 1

    def test_other_entity_sees_nothing(self, selector):
        assert selector.list_accounts("le-unknown") == []
