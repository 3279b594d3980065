"""
Financial Reporting Domain Models (``ledger_modules.reporting.models``).

Responsibility
--------------
Frozen dataclass value objects for the trial balance, balance sheet and
income statement.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Built by the
functions in ``statements.py`` and returned by ``ReportingService``.

Invariants enforced
-------------------
* All models are ``frozen=True``.
* All monetary fields are ``int`` amounts in smallest currency units.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from uuid import UUID


class ReportType(str, Enum):
    """Types of financial reports."""

    TRIAL_BALANCE = "trial_balance"
    BALANCE_SHEET = "balance_sheet"
    INCOME_STATEMENT = "income_statement"


class Liquidity(str, Enum):
    """Balance sheet bucket of an asset or liability account."""

    CURRENT = "current"
    NON_CURRENT = "non_current"


@dataclass(frozen=True)
class ReportMetadata:
    """Metadata attached to every financial report."""

    report_type: ReportType
    legal_entity_id: str
    currency: str
    generated_at: str  # ISO format timestamp from injected clock


# =========================================================================
# Trial Balance
# =========================================================================


@dataclass(frozen=True)
class TrialBalanceLineItem:
    """
    A single account in the trial balance.

    ``net_balance`` is debits minus credits.  Exactly one of the balance
    columns is non-zero unless the account nets to zero.
    """

    account_id: UUID
    account_code: str
    account_name: str
    account_type: str  # "asset", "liability", "equity", "revenue", "expense"
    debit_balance: int
    credit_balance: int
    net_balance: int
    # Balance sits on the side opposite to the account type's normal side
    is_contra_balance: bool = False


@dataclass(frozen=True)
class TrialBalanceReport:
    metadata: ReportMetadata
    lines: tuple[TrialBalanceLineItem, ...]
    total_debits: int
    total_credits: int
    is_balanced: bool  # total_debits == total_credits


# =========================================================================
# Statements
# =========================================================================


@dataclass(frozen=True)
class StatementLine:
    """One account on a statement, balance signed for its section.

    ``account_id`` is None for synthetic lines such as current earnings.
    """

    account_code: str
    account_name: str
    balance: int
    account_id: UUID | None = None


@dataclass(frozen=True)
class StatementSection:
    label: str
    lines: tuple[StatementLine, ...]
    total: int


@dataclass(frozen=True)
class BalanceSheetGroup:
    """Assets or liabilities, split into current and non-current."""

    label: str
    current: StatementSection
    non_current: StatementSection

    @property
    def total(self) -> int:
        return self.current.total + self.non_current.total


@dataclass(frozen=True)
class BalanceSheetReport:
    """
    Balance sheet.

    Equity includes current-period net income as a synthetic line, so for
    fully posted books assets.total == liabilities.total + equity.total.
    """

    metadata: ReportMetadata
    assets: BalanceSheetGroup
    liabilities: BalanceSheetGroup
    equity: StatementSection
    net_income: int
    total_liabilities_and_equity: int
    is_balanced: bool


@dataclass(frozen=True)
class IncomeStatementReport:
    """Revenue (credit - debit) minus expenses (debit - credit)."""

    metadata: ReportMetadata
    revenue: StatementSection
    expenses: StatementSection
    net_income: int
