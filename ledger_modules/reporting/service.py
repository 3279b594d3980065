"""
Reporting Module Service (``ledger_modules.reporting.service``).

Responsibility
--------------
Generates the trial balance, balance sheet and income statement for one
legal entity by bridging ``LedgerSelector`` to the pure functions in
``statements.py``.  Read-only: nothing is flushed or committed, so the
service can run inside ``read_only_scope()``.

Invariants enforced
-------------------
* Every report is recomputed from ledger rows on each call.  Nothing is
  cached between calls.
* Report metadata carries the generation timestamp from the injected
  clock.

Failure modes
-------------
* Selector query failure  -> exception propagates (no rollback needed --
  read-only).
* An entity without ledger activity  -> empty sections, zero totals.
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.exceptions import CurrencyNotFoundError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.selectors.ledger_selector import LedgerSelector
from ledger_kernel.services.currency_service import CurrencyService
from ledger_modules.reporting.config import ReportingConfig
from ledger_modules.reporting.models import (
    BalanceSheetReport,
    IncomeStatementReport,
    ReportMetadata,
    ReportType,
    TrialBalanceReport,
)
from ledger_modules.reporting.statements import (
    build_balance_sheet,
    build_income_statement,
    build_trial_balance,
    render_to_dict,
)

logger = get_logger("modules.reporting.service")


class ReportingService:
    """
    Financial statement generation service.

    Contract
    --------
    * Every public method returns a typed, frozen report DTO.
    * All methods are read-only.

    Non-goals
    ---------
    * Does NOT convert between currencies; amounts are summed as stored.
    * Does NOT filter by period (period close is out of scope).
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: ReportingConfig | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or ReportingConfig.with_defaults()
        self._ledger = LedgerSelector(session)

    def _report_currency(self) -> str:
        try:
            return CurrencyService(self._session).get_base_currency().code
        except CurrencyNotFoundError:
            return self._config.default_currency

    def _metadata(self, report_type: ReportType, legal_entity_id: str) -> ReportMetadata:
        return ReportMetadata(
            report_type=report_type,
            legal_entity_id=legal_entity_id,
            currency=self._report_currency(),
            generated_at=self._clock.now().isoformat(),
        )

    def _trial_balance(self, legal_entity_id: str) -> TrialBalanceReport:
        return build_trial_balance(
            self._ledger.trial_balance_rows(legal_entity_id),
            self._metadata(ReportType.TRIAL_BALANCE, legal_entity_id),
        )

    # =========================================================================
    # Public API
    # =========================================================================

    def trial_balance(self, legal_entity_id: str) -> TrialBalanceReport:
        report = self._trial_balance(legal_entity_id)
        with LogContext.bind(legal_entity_id=legal_entity_id):
            logger.info(
                "trial_balance_generated",
                extra={
                    "line_count": len(report.lines),
                    "total_debits": report.total_debits,
                    "total_credits": report.total_credits,
                    "is_balanced": report.is_balanced,
                },
            )
        return report

    def balance_sheet(self, legal_entity_id: str) -> BalanceSheetReport:
        report = build_balance_sheet(
            self._trial_balance(legal_entity_id),
            self._config,
            self._metadata(ReportType.BALANCE_SHEET, legal_entity_id),
        )
        with LogContext.bind(legal_entity_id=legal_entity_id):
            logger.info(
                "balance_sheet_generated",
                extra={
                    "total_assets": report.assets.total,
                    "total_liabilities": report.liabilities.total,
                    "total_equity": report.equity.total,
                    "is_balanced": report.is_balanced,
                },
            )
            if not report.is_balanced:
                logger.warning(
                    "balance_sheet_out_of_balance",
                    extra={
                        "difference": report.assets.total - report.total_liabilities_and_equity,
                    },
                )
        return report

    def income_statement(self, legal_entity_id: str) -> IncomeStatementReport:
        report = build_income_statement(
            self._trial_balance(legal_entity_id),
            self._metadata(ReportType.INCOME_STATEMENT, legal_entity_id),
        )
        with LogContext.bind(legal_entity_id=legal_entity_id):
            logger.info(
                "income_statement_generated",
                extra={
                    "total_revenue": report.revenue.total,
                    "total_expenses": report.expenses.total,
                    "net_income": report.net_income,
                },
            )
        return report

    @staticmethod
    def to_dict(report: object) -> dict:
        """JSON-friendly rendering of any report."""
        return render_to_dict(report)
