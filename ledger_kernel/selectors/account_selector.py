"""
AccountSelector -- read side of the chart of accounts.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.account_tree import AccountNode, build_account_tree
from ledger_kernel.domain.dtos import AccountRecord
from ledger_kernel.exceptions import AccountNotFoundError
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.selectors.base import BaseSelector


class AccountSelector(BaseSelector[Account]):
    """Account lookups and the per-entity account hierarchy."""

    def get(self, account_id: UUID) -> AccountRecord:
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return AccountRecord.from_model(account)

    def find_by_code(self, legal_entity_id: str, code: str) -> AccountRecord | None:
        account = self.session.execute(
            select(Account).where(
                Account.legal_entity_id == legal_entity_id,
                Account.code == code,
            )
        ).scalar_one_or_none()
        return AccountRecord.from_model(account) if account else None

    def get_by_code(self, legal_entity_id: str, code: str) -> AccountRecord:
        """
        Raises:
            AccountNotFoundError: No account with this code in the entity.
        """
        record = self.find_by_code(legal_entity_id, code)
        if record is None:
            raise AccountNotFoundError(code, legal_entity_id)
        return record

    def list_accounts(
        self,
        legal_entity_id: str,
        account_type: AccountType | str | None = None,
        active_only: bool = False,
    ) -> list[AccountRecord]:
        """Accounts of one legal entity ordered by code."""
        query = select(Account).where(Account.legal_entity_id == legal_entity_id)
        if account_type is not None:
            query = query.where(Account.account_type == AccountType(account_type).value)
        if active_only:
            query = query.where(Account.is_active.is_(True))
        rows = self.session.execute(query.order_by(Account.code)).scalars()
        return [AccountRecord.from_model(a) for a in rows]

    def hierarchy(self, legal_entity_id: str) -> list[AccountNode]:
        return list(build_account_tree(self.list_accounts(legal_entity_id)))
