"""
Pure financial statement transformation functions.

These functions turn per-account ledger totals into the trial balance, and
the trial balance into the balance sheet and income statement.  ZERO I/O.
ZERO side effects.  No clock access: the caller passes ReportMetadata.

All monetary values are ``int`` amounts in smallest currency units.
"""

from __future__ import annotations

import dataclasses
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Sequence
from uuid import UUID

from ledger_kernel.models.account import AccountType
from ledger_kernel.selectors.ledger_selector import TrialBalanceRow
from ledger_modules.reporting.config import AccountClassification, ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetGroup,
    BalanceSheetReport,
    IncomeStatementReport,
    Liquidity,
    ReportMetadata,
    StatementLine,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)

# =========================================================================
# Trial balance
# =========================================================================


def split_net_balance(account_type: AccountType, net: int) -> tuple[int, int]:
    """
    Place a net balance (debits - credits) in the debit or credit column.

    Asset/expense: net >= 0 is a debit balance, a negative net is shown as a
    credit.  Liability/equity/revenue: net <= 0 is a credit balance, a
    positive net is shown as a debit.  Anomalies land on the opposite
    column instead of being hidden.
    """
    if AccountType(account_type).is_debit_normal:
        return (net, 0) if net >= 0 else (0, -net)
    return (0, -net) if net <= 0 else (net, 0)


def build_trial_balance(
    rows: Iterable[TrialBalanceRow],
    metadata: ReportMetadata,
) -> TrialBalanceReport:
    """Trial balance sorted by account code, with column totals."""
    lines: list[TrialBalanceLineItem] = []
    for row in rows:
        account_type = AccountType(row.account_type)
        net = row.debit_total - row.credit_total
        debit_balance, credit_balance = split_net_balance(account_type, net)
        contra = credit_balance > 0 if account_type.is_debit_normal else debit_balance > 0
        lines.append(
            TrialBalanceLineItem(
                account_id=row.account_id,
                account_code=row.account_code,
                account_name=row.account_name,
                account_type=account_type.value,
                debit_balance=debit_balance,
                credit_balance=credit_balance,
                net_balance=net,
                is_contra_balance=contra,
            )
        )

    lines.sort(key=lambda line: line.account_code)
    total_debits = sum(line.debit_balance for line in lines)
    total_credits = sum(line.credit_balance for line in lines)
    return TrialBalanceReport(
        metadata=metadata,
        lines=tuple(lines),
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=total_debits == total_credits,
    )


# =========================================================================
# Classification
# =========================================================================


def classify_account(
    code: str,
    account_type: AccountType | str,
    classification: AccountClassification,
) -> Liquidity | None:
    """
    Current or non-current bucket for an asset or liability account.

    Returns None for equity, revenue and expense accounts.
    """
    account_type = AccountType(account_type)
    if account_type == AccountType.ASSET:
        prefixes = classification.current_asset_prefixes
    elif account_type == AccountType.LIABILITY:
        prefixes = classification.current_liability_prefixes
    else:
        return None
    if classification.matches_prefix(code, prefixes):
        return Liquidity.CURRENT
    return Liquidity.NON_CURRENT


def _statement_line(item: TrialBalanceLineItem, balance: int) -> StatementLine:
    return StatementLine(
        account_code=item.account_code,
        account_name=item.account_name,
        balance=balance,
        account_id=item.account_id,
    )


def _section(label: str, lines: Sequence[StatementLine]) -> StatementSection:
    return StatementSection(
        label=label,
        lines=tuple(lines),
        total=sum(line.balance for line in lines),
    )


def _lines_of_type(
    trial_balance: TrialBalanceReport,
    account_type: AccountType,
) -> list[TrialBalanceLineItem]:
    return [line for line in trial_balance.lines if line.account_type == account_type.value]


# =========================================================================
# Income statement
# =========================================================================


def compute_net_income(trial_balance: TrialBalanceReport) -> int:
    """Revenue (credit - debit) minus expenses (debit - credit)."""
    revenue = sum(-line.net_balance for line in _lines_of_type(trial_balance, AccountType.REVENUE))
    expenses = sum(line.net_balance for line in _lines_of_type(trial_balance, AccountType.EXPENSE))
    return revenue - expenses


def build_income_statement(
    trial_balance: TrialBalanceReport,
    metadata: ReportMetadata,
) -> IncomeStatementReport:
    revenue = _section(
        "Revenue",
        [_statement_line(item, -item.net_balance)
         for item in _lines_of_type(trial_balance, AccountType.REVENUE)],
    )
    expenses = _section(
        "Expenses",
        [_statement_line(item, item.net_balance)
         for item in _lines_of_type(trial_balance, AccountType.EXPENSE)],
    )
    return IncomeStatementReport(
        metadata=metadata,
        revenue=revenue,
        expenses=expenses,
        net_income=revenue.total - expenses.total,
    )


# =========================================================================
# Balance sheet
# =========================================================================


def _group(
    label: str,
    items: Sequence[TrialBalanceLineItem],
    account_type: AccountType,
    classification: AccountClassification,
    sign: int,
) -> BalanceSheetGroup:
    current: list[StatementLine] = []
    non_current: list[StatementLine] = []
    for item in items:
        bucket = classify_account(item.account_code, account_type, classification)
        target = current if bucket == Liquidity.CURRENT else non_current
        target.append(_statement_line(item, sign * item.net_balance))
    return BalanceSheetGroup(
        label=label,
        current=_section(f"Current {label.lower()}", current),
        non_current=_section(f"Non-current {label.lower()}", non_current),
    )


def build_balance_sheet(
    trial_balance: TrialBalanceReport,
    config: ReportingConfig,
    metadata: ReportMetadata,
) -> BalanceSheetReport:
    """
    Assets at net balance, liabilities and equity at negated net balance.

    Net income is appended to equity as a synthetic line so that the
    accounting identity holds before any closing entries.
    """
    classification = config.classification
    assets = _group(
        "Assets",
        _lines_of_type(trial_balance, AccountType.ASSET),
        AccountType.ASSET,
        classification,
        sign=1,
    )
    liabilities = _group(
        "Liabilities",
        _lines_of_type(trial_balance, AccountType.LIABILITY),
        AccountType.LIABILITY,
        classification,
        sign=-1,
    )

    net_income = compute_net_income(trial_balance)
    equity_lines = [
        _statement_line(item, -item.net_balance)
        for item in _lines_of_type(trial_balance, AccountType.EQUITY)
    ]
    equity_lines.append(
        StatementLine(
            account_code="",
            account_name=config.current_earnings_label,
            balance=net_income,
        )
    )
    equity = _section("Equity", equity_lines)

    total_liabilities_and_equity = liabilities.total + equity.total
    return BalanceSheetReport(
        metadata=metadata,
        assets=assets,
        liabilities=liabilities,
        equity=equity,
        net_income=net_income,
        total_liabilities_and_equity=total_liabilities_and_equity,
        is_balanced=assets.total == total_liabilities_and_equity,
    )


# =========================================================================
# Rendering
# =========================================================================


def render_to_dict(obj: object) -> dict | list | str | int | float | bool | None:
    """
    Convert any report dataclass to a plain dict for JSON serialization.

    Handles:
    - UUID -> str
    - date -> ISO format string
    - Enum -> .value
    - Nested frozen dataclasses -> nested dicts; the computed
      BalanceSheetGroup.total is added explicitly
    - Tuples -> lists
    - None preserved
    """
    if obj is None:
        return None
    if isinstance(obj, Decimal):
        return str(obj)
    if isinstance(obj, UUID):
        return str(obj)
    if isinstance(obj, date):
        return obj.isoformat()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [render_to_dict(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): render_to_dict(v) for k, v in obj.items()}
    if dataclasses.is_dataclass(obj) and not isinstance(obj, type):
        data = {
            f.name: render_to_dict(getattr(obj, f.name))
            for f in dataclasses.fields(obj)
        }
        if isinstance(obj, BalanceSheetGroup):
            data["total"] = obj.total
        return data
    if isinstance(obj, (str, int, float, bool)):
        return obj
    return str(obj)
