"""
Pure deal reconciliation.

No I/O: the service loads the deal and its transactions, this module
computes the report.
"""

from __future__ import annotations

from typing import Sequence

from ledger_kernel.models.journal import JournalEntryStatus
from ledger_modules.deals.models import (
    Deal,
    DealEntryType,
    DealStatus,
    DealTransaction,
    Discrepancy,
    DiscrepancyType,
    ReconciliationReport,
)


def posted_payment_total(transactions: Sequence[DealTransaction]) -> int:
    return sum(
        t.amount
        for t in transactions
        if t.entry_type == DealEntryType.PAYMENT
        and t.status == JournalEntryStatus.POSTED.value
    )


def find_discrepancies(
    deal: Deal,
    transactions: Sequence[DealTransaction],
) -> list[Discrepancy]:
    """
    Overpayment: paid beyond the total.  Missing payment: completed with a
    positive remaining balance.  Ledger mismatch: posted payment entries do
    not add up to the stored paid amount (only checked once every payment
    entry is posted, since drafts have not reached the ledger).
    """
    remaining = deal.total_amount - deal.paid_amount
    discrepancies: list[Discrepancy] = []

    if deal.paid_amount > deal.total_amount:
        discrepancies.append(
            Discrepancy(
                type=DiscrepancyType.OVERPAYMENT,
                amount=deal.paid_amount - deal.total_amount,
                description="Paid amount exceeds the deal total",
            )
        )

    if remaining > 0 and deal.status == DealStatus.COMPLETED:
        discrepancies.append(
            Discrepancy(
                type=DiscrepancyType.MISSING_PAYMENT,
                amount=remaining,
                description="Deal is completed but a balance remains",
            )
        )

    payments = [t for t in transactions if t.entry_type == DealEntryType.PAYMENT]
    if all(t.status == JournalEntryStatus.POSTED.value for t in payments):
        ledger_paid = posted_payment_total(transactions)
        if ledger_paid != deal.paid_amount:
            discrepancies.append(
                Discrepancy(
                    type=DiscrepancyType.LEDGER_MISMATCH,
                    amount=abs(deal.paid_amount - ledger_paid),
                    description="Posted payment entries differ from the paid amount",
                )
            )

    return discrepancies


def build_reconciliation_report(
    deal: Deal,
    transactions: Sequence[DealTransaction],
) -> ReconciliationReport:
    remaining = deal.total_amount - deal.paid_amount
    return ReconciliationReport(
        deal_id=deal.id,
        deal_title=deal.title,
        status=deal.status,
        total_amount=deal.total_amount,
        paid_amount=deal.paid_amount,
        remaining_balance=remaining,
        ledger_paid_amount=posted_payment_total(transactions),
        discrepancies=tuple(find_discrepancies(deal, transactions)),
        is_balanced=remaining == 0,
        transactions=tuple(transactions),
    )
