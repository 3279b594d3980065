"""
ChartService -- write side of the chart of accounts.

Responsibility:
    Create and deactivate accounts for a legal entity.

Invariants enforced:
    - (legal_entity_id, code) is unique.
    - A parent account exists before its child and belongs to the same legal
      entity.  parent_id is never changed afterwards, so the tree stays
      acyclic.

Failure modes:
    - DuplicateAccountCodeError, AccountNotFoundError (parent),
      CrossEntityReferenceError, InvalidAccountTypeError, ValidationError
      for an empty code or name.

Reads (get, by code, hierarchy) live in selectors/account_selector.py.
"""

from uuid import UUID

from sqlalchemy import select

from ledger_kernel.domain.dtos import AccountRecord
from ledger_kernel.exceptions import (
    AccountNotFoundError,
    CrossEntityReferenceError,
    DuplicateAccountCodeError,
    InvalidAccountTypeError,
    ValidationError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.models.account import Account, AccountType
from ledger_kernel.services.base import BaseService

logger = get_logger("services.chart")


def parse_account_type(value: AccountType | str) -> AccountType:
    try:
        return AccountType(value)
    except ValueError:
        raise InvalidAccountTypeError(str(value)) from None


class ChartService(BaseService[Account]):
    """Create and deactivate accounts."""

    def _get_by_id(self, account_id: UUID) -> Account:
        account = self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFoundError(str(account_id))
        return account

    def create_account(
        self,
        legal_entity_id: str,
        code: str,
        name: str,
        account_type: AccountType | str,
        parent_id: UUID | None = None,
        description: str | None = None,
        is_active: bool = True,
    ) -> AccountRecord:
        """
        Create an account in a legal entity's chart.

        Postconditions: the account is flushed (not committed) and returned
            as an AccountRecord.
        """
        code = (code or "").strip()
        if not code:
            raise ValidationError("Account code must not be empty")
        if not (name or "").strip():
            raise ValidationError("Account name must not be empty")
        account_type = parse_account_type(account_type)

        existing = self.session.execute(
            select(Account.id).where(
                Account.legal_entity_id == legal_entity_id,
                Account.code == code,
            )
        ).scalar_one_or_none()
        if existing is not None:
            raise DuplicateAccountCodeError(legal_entity_id, code)

        if parent_id is not None:
            parent = self._get_by_id(parent_id)
            if parent.legal_entity_id != legal_entity_id:
                raise CrossEntityReferenceError(
                    str(parent_id), legal_entity_id, parent.legal_entity_id,
                )

        account = Account(
            legal_entity_id=legal_entity_id,
            code=code,
            name=name.strip(),
            account_type=account_type,
            parent_id=parent_id,
            description=description,
            is_active=is_active,
        )
        self.session.add(account)
        self.session.flush()

        logger.info(
            "account_created",
            extra={
                "legal_entity_id": legal_entity_id,
                "account_code": code,
                "account_type": account_type.value,
                "parent_id": str(parent_id) if parent_id else None,
            },
        )
        return AccountRecord.from_model(account)

    def deactivate_account(self, account_id: UUID) -> AccountRecord:
        """Stop an account from receiving new journal lines.

        Existing ledger rows are untouched.
        """
        account = self._get_by_id(account_id)
        if account.is_active:
            account.is_active = False
            self.session.flush()
            logger.info(
                "account_deactivated",
                extra={
                    "legal_entity_id": account.legal_entity_id,
                    "account_code": account.code,
                },
            )
        return AccountRecord.from_model(account)
