"""
Financial Reporting Module (``ledger_modules.reporting``).

Read-only module generating the trial balance, balance sheet and income
statement of one legal entity from its general ledger rows.  Statement
logic lives in pure functions (``statements.py``); ``ReportingService``
only loads data and attaches metadata.
"""

from ledger_modules.reporting.config import AccountClassification, ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetGroup,
    BalanceSheetReport,
    IncomeStatementReport,
    Liquidity,
    ReportMetadata,
    ReportType,
    StatementLine,
    StatementSection,
    TrialBalanceLineItem,
    TrialBalanceReport,
)
from ledger_modules.reporting.service import ReportingService
from ledger_modules.reporting.statements import classify_account, render_to_dict

__all__ = [
    "AccountClassification",
    "BalanceSheetGroup",
    "BalanceSheetReport",
    "IncomeStatementReport",
    "Liquidity",
    "ReportMetadata",
    "ReportType",
    "ReportingConfig",
    "ReportingService",
    "StatementLine",
    "StatementSection",
    "TrialBalanceLineItem",
    "TrialBalanceReport",
    "classify_account",
    "render_to_dict",
]
