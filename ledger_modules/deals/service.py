"""
Deal Accounting Service - books deals, payments and expense payments.

Thin glue layer that:
1. Finds or creates the tenant's partner for the counter-party BIN
2. Locks and updates the deal row (paid amount, derived status)
3. Asks MirrorEntryGuard whether the counter-party already booked the event
4. Calls JournalService to create (and optionally post) the entries
5. Links every entry to the deal with its entry type

This service owns the transaction boundary: it commits on success, rolls
back on any failure.  Expected business conditions (overpayment, missing
accounts, validation, mirror entries) come back as a tagged
``DealOperationResult``; anything else is re-raised after rollback.

Document generation runs after commit.  Its failure is logged and reported
on the result but never undoes the accounting.

Usage:
    service = DealAccountingService(session, clock=clock)
    result = service.create_deal_with_accounting(DealParams(
        legal_entity_id="le-a", receiver_bin="123456789012",
        title="Consulting", deal_type=DealType.SERVICE,
        total_amount=1_000_00, currency_code="KZT", created_by="user-1",
    ))
    service.record_payment(result.deal.id, 1_000_00, created_by="user-1")
"""

from __future__ import annotations

from datetime import date
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import JournalEntryHeader, JournalEntryRecord, LineSpec
from ledger_kernel.exceptions import (
    DealNotFoundError,
    DocumentGenerationError,
    InvalidAmountError,
    LedgerKernelError,
    MirrorEntryExistsError,
    OverpaymentError,
    ValidationError,
)
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.models.journal import JournalEntry, JournalEntryLine, JournalEntryStatus
from ledger_kernel.selectors.account_selector import AccountSelector
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.currency_service import CurrencyService
from ledger_kernel.services.journal_service import JournalService
from ledger_kernel.services.legal_entity_service import validate_bin
from ledger_modules.deals.config import DealAccountingConfig
from ledger_modules.deals.documents import (
    GENERATION_FAILED,
    DocumentGenerator,
    DocumentRequest,
    NullDocumentGenerator,
)
from ledger_modules.deals.mirror import MirrorEntryGuard, MirrorMatch
from ledger_modules.deals.models import (
    Deal,
    DealBalance,
    DealEntryType,
    DealOperationResult,
    DealParams,
    DealRole,
    DealStatus,
    DealTransaction,
    DealTransactionLine,
    DealType,
    GeneratedDocument,
    OperationStatus,
    PaymentMethod,
    ReconciliationReport,
)
from ledger_modules.deals.orm import DealJournalEntryLinkModel, DealModel
from ledger_modules.deals.reconciliation import build_reconciliation_report
from ledger_modules.partners import PartnerService, fallback_partner_name

logger = get_logger("modules.deals.service")


def _validate_amount(amount: object) -> int:
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmountError(amount)
    return amount


class _MirrorSkip(Exception):
    """Internal signal: a mirror entry was found, abandon the operation."""

    def __init__(self, match: MirrorMatch):
        self.match = match
        super().__init__(str(match.mirror_entry_id))


class DealAccountingService:
    """
    Bridges business deals to the journal engine.

    Transaction boundary: every public mutating method commits on success
    and rolls back on failure.  JournalService only flushes, so the deal
    row, the entries, their ledger rows and the links share one
    transaction.
    """

    def __init__(
        self,
        session: Session,
        clock: Clock | None = None,
        config: DealAccountingConfig | None = None,
        document_generator: DocumentGenerator | None = None,
    ):
        self._session = session
        self._clock = clock or SystemClock()
        self._config = config or DealAccountingConfig.with_defaults()
        self._documents = document_generator or NullDocumentGenerator()

        self._journal = JournalService(session, self._clock)
        self._journal_reads = JournalSelector(session)
        self._accounts = AccountSelector(session)
        self._currencies = CurrencyService(session)
        self._mirror = MirrorEntryGuard(session)
        self._partners = PartnerService(session)

    # =========================================================================
    # Deals
    # =========================================================================

    def create_deal(self, params: DealParams) -> DealOperationResult:
        """Create a deal without any accounting entries."""
        try:
            deal = self._insert_deal(params)
            self._session.commit()
            logger.info("deal_created", extra={
                "deal_id": str(deal.id),
                "legal_entity_id": deal.legal_entity_id,
                "total_amount": deal.total_amount,
            })
            return DealOperationResult(status=OperationStatus.SUCCESS, deal=deal.to_dto())

        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("create_deal", exc)
        except Exception:
            self._session.rollback()
            raise

    def create_deal_with_accounting(self, params: DealParams) -> DealOperationResult:
        """
        Create a deal and book its invoice (seller) or accrual (buyer).

        Seller: Dr receivable / Cr revenue.  Buyer: Dr expense or inventory /
        Cr payable.  The entry is linked as ``invoice`` and posted when
        ``auto_post`` is on.  When the counter-party already booked the same
        invoice, the deal is still created but no entry is, and the result
        is SKIPPED.
        """
        try:
            deal = self._insert_deal(params)
            with LogContext.bind(deal_id=str(deal.id), legal_entity_id=deal.legal_entity_id):
                match = self._mirror.find_mirror(
                    deal.legal_entity_id,
                    deal.receiver_bin,
                    deal.deal_reference,
                    DealEntryType.INVOICE,
                    deal.total_amount,
                )
                if match is not None:
                    self._session.commit()
                    logger.info("deal_created_mirror_skipped", extra={
                        "mirror_entry_id": str(match.mirror_entry_id),
                    })
                    return self._skipped(deal.id, match)

                entry = self._book_opening_entry(deal, params.entry_date, params.created_by)
                self._session.commit()
                logger.info("deal_with_accounting_committed", extra={
                    "entry_id": str(entry.id),
                    "entry_number": entry.entry_number,
                    "total_amount": deal.total_amount,
                })

        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("create_deal_with_accounting", exc)
        except Exception:
            self._session.rollback()
            raise

        dto = deal.to_dto()
        document, document_error = self._generate_document(dto)
        return DealOperationResult(
            status=OperationStatus.SUCCESS,
            deal=dto,
            entries=(entry,),
            document=document,
            document_error=document_error,
        )

    def _insert_deal(self, params: DealParams) -> DealModel:
        receiver_bin = validate_bin(params.receiver_bin)
        total_amount = _validate_amount(params.total_amount)
        if not (params.title or "").strip():
            raise ValidationError("Deal title is required")
        try:
            deal_type = DealType(params.deal_type)
            deal_role = DealRole(params.deal_role)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
        currency = self._currencies.get_by_code(params.currency_code)
        partner = self._partners.find_or_create_by_bin(
            params.legal_entity_id, receiver_bin, params.counterparty_name,
        )

        deal = DealModel(
            legal_entity_id=params.legal_entity_id,
            receiver_bin=receiver_bin,
            title=params.title.strip(),
            description=params.description,
            deal_type=deal_type.value,
            deal_role=deal_role.value,
            deal_reference=params.deal_reference,
            currency_id=currency.id,
            partner_id=partner.id,
            total_amount=total_amount,
            paid_amount=0,
            status=DealStatus.ACTIVE.value,
            created_by=params.created_by,
        )
        self._session.add(deal)
        self._session.flush()
        return deal

    def _book_opening_entry(
        self,
        deal: DealModel,
        entry_date: date | None,
        created_by: str,
    ) -> JournalEntryRecord:
        accounts = self._config.standard_accounts
        if deal.deal_role == DealRole.SELLER.value:
            partner = self._partner_name(deal)
            return self._book(
                deal,
                DealEntryType.INVOICE,
                debit_code=accounts.receivable,
                credit_code=accounts.revenue,
                amount=deal.total_amount,
                reference=f"DEAL-{deal.id}",
                description=f"Deal: {deal.title} ({partner})",
                line_descriptions=(f"Receivable: {partner}", f"Revenue: {partner}"),
                entry_date=entry_date,
                created_by=created_by,
            )
        return self._book_accrual(deal, deal.total_amount, entry_date, created_by)

    def _book_accrual(
        self,
        deal: DealModel,
        amount: int,
        entry_date: date | None,
        created_by: str,
    ) -> JournalEntryRecord:
        partner = self._partner_name(deal)
        acquired = "Services" if deal.deal_type == DealType.SERVICE.value else "Goods"
        return self._book(
            deal,
            DealEntryType.INVOICE,
            debit_code=self._config.expense_account_code(deal.deal_type),
            credit_code=self._config.standard_accounts.payable,
            amount=amount,
            reference=f"ACCR-{deal.id}",
            description=f"Accrual: {deal.title} ({partner})",
            line_descriptions=(f"{acquired} from {partner}", f"Payable: {partner}"),
            entry_date=entry_date,
            created_by=created_by,
        )

    # =========================================================================
    # Payments
    # =========================================================================

    def record_payment(
        self,
        deal_id: UUID,
        amount: int,
        created_by: str,
        payment_method: PaymentMethod | str | None = None,
        description: str | None = None,
        reference: str | None = None,
        entry_date: date | None = None,
        legal_entity_id: str | None = None,
    ) -> DealOperationResult:
        """
        Record a payment received on a deal: Dr cash or bank / Cr receivable.

        Rejected with OVERPAYMENT when paid + amount would exceed the total;
        the paid amount is then unchanged.
        """
        try:
            amount = _validate_amount(amount)
            method = self._payment_method(payment_method)
            deal = self._lock_deal(deal_id, legal_entity_id)
            self._guard_overpayment(deal, amount)

            with LogContext.bind(deal_id=str(deal.id), legal_entity_id=deal.legal_entity_id):
                self._check_mirror(deal, DealEntryType.PAYMENT, amount)
                partner = self._partner_name(deal)
                entry = self._book(
                    deal,
                    DealEntryType.PAYMENT,
                    debit_code=self._config.settlement_account_code(method),
                    credit_code=self._config.standard_accounts.receivable,
                    amount=amount,
                    reference=reference or f"PAY-{deal.id}",
                    description=description or f"Payment: {deal.title} ({partner})",
                    line_descriptions=(f"Received from {partner}", f"Receivable settled: {partner}"),
                    entry_date=entry_date,
                    created_by=created_by,
                )
                self._apply_payment(deal, amount)
                self._session.commit()
                logger.info("deal_payment_committed", extra={
                    "entry_id": str(entry.id),
                    "amount": amount,
                    "payment_method": method.value,
                    "paid_amount": deal.paid_amount,
                    "status": deal.status,
                })
            return DealOperationResult(
                status=OperationStatus.SUCCESS,
                deal=deal.to_dto(),
                entries=(entry,),
            )

        except _MirrorSkip as skip:
            self._session.rollback()
            return self._skipped(deal_id, skip.match)
        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("record_payment", exc, deal_id)
        except Exception:
            self._session.rollback()
            raise

    def record_expense_payment(
        self,
        deal_id: UUID,
        amount: int,
        created_by: str,
        payment_method: PaymentMethod | str | None = None,
        description: str | None = None,
        reference: str | None = None,
        entry_date: date | None = None,
        legal_entity_id: str | None = None,
    ) -> DealOperationResult:
        """
        Record a payment made on a purchase deal.

        When the deal has no ``invoice`` link yet, the accrual (Dr expense or
        inventory / Cr payable) is booked first for the paid amount.  Then
        Dr payable / Cr cash or bank.  The accrual is mirror-checked against
        the deal total, the payment against the paid amount; a match on
        either skips the whole operation and nothing is written.
        """
        try:
            amount = _validate_amount(amount)
            method = self._payment_method(payment_method)
            deal = self._lock_deal(deal_id, legal_entity_id)
            self._guard_overpayment(deal, amount)

            with LogContext.bind(deal_id=str(deal.id), legal_entity_id=deal.legal_entity_id):
                entries: list[JournalEntryRecord] = []
                needs_accrual = not self._has_link(deal, DealEntryType.INVOICE)
                if needs_accrual:
                    self._check_mirror(deal, DealEntryType.INVOICE, deal.total_amount)
                self._check_mirror(deal, DealEntryType.PAYMENT, amount)

                if needs_accrual:
                    entries.append(self._book_accrual(deal, amount, entry_date, created_by))
                partner = self._partner_name(deal)
                entries.append(self._book(
                    deal,
                    DealEntryType.PAYMENT,
                    debit_code=self._config.standard_accounts.payable,
                    credit_code=self._config.settlement_account_code(method),
                    amount=amount,
                    reference=reference or f"PAY-{deal.id}",
                    description=description or f"Payment: {deal.title} ({partner})",
                    line_descriptions=(f"Payable settled: {partner}", f"Paid to {partner}"),
                    entry_date=entry_date,
                    created_by=created_by,
                ))
                self._apply_payment(deal, amount)
                self._session.commit()
                logger.info("deal_expense_payment_committed", extra={
                    "entry_ids": [str(e.id) for e in entries],
                    "accrual_created": needs_accrual,
                    "amount": amount,
                    "payment_method": method.value,
                    "paid_amount": deal.paid_amount,
                    "status": deal.status,
                })
            return DealOperationResult(
                status=OperationStatus.SUCCESS,
                deal=deal.to_dto(),
                entries=tuple(entries),
            )

        except _MirrorSkip as skip:
            self._session.rollback()
            return self._skipped(deal_id, skip.match)
        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("record_expense_payment", exc, deal_id)
        except Exception:
            self._session.rollback()
            raise

    def record_expense_accrual(
        self,
        deal_id: UUID,
        created_by: str,
        amount: int | None = None,
        entry_date: date | None = None,
        legal_entity_id: str | None = None,
    ) -> DealOperationResult:
        """Book a standalone accrual, by default for the deal total."""
        try:
            deal = self._lock_deal(deal_id, legal_entity_id)
            amount = _validate_amount(deal.total_amount if amount is None else amount)

            with LogContext.bind(deal_id=str(deal.id), legal_entity_id=deal.legal_entity_id):
                self._check_mirror(deal, DealEntryType.INVOICE, deal.total_amount)
                entry = self._book_accrual(deal, amount, entry_date, created_by)
                self._session.commit()
                logger.info("deal_accrual_committed", extra={
                    "entry_id": str(entry.id),
                    "amount": amount,
                })
            return DealOperationResult(
                status=OperationStatus.SUCCESS,
                deal=deal.to_dto(),
                entries=(entry,),
            )

        except _MirrorSkip as skip:
            self._session.rollback()
            return self._skipped(deal_id, skip.match)
        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("record_expense_accrual", exc, deal_id)
        except Exception:
            self._session.rollback()
            raise

    # =========================================================================
    # Reads
    # =========================================================================

    def get_deal(self, deal_id: UUID, legal_entity_id: str | None = None) -> Deal | None:
        """The deal, or None when it is missing or owned by another entity."""
        deal = self._find_deal(deal_id, legal_entity_id)
        return deal.to_dto() if deal is not None else None

    def get_deal_balance(
        self,
        deal_id: UUID,
        legal_entity_id: str | None = None,
    ) -> DealBalance | None:
        deal = self._find_deal(deal_id, legal_entity_id)
        if deal is None:
            return None
        return DealBalance(
            deal_id=deal.id,
            total_amount=deal.total_amount,
            paid_amount=deal.paid_amount,
            remaining_amount=deal.total_amount - deal.paid_amount,
            status=DealStatus(deal.status),
        )

    def get_deal_transactions(
        self,
        deal_id: UUID,
        legal_entity_id: str | None = None,
    ) -> list[DealTransaction] | None:
        """Linked entries with their lines, by entry date then number."""
        deal = self._find_deal(deal_id, legal_entity_id)
        if deal is None:
            return None
        return self._transactions(deal)

    def generate_reconciliation_report(
        self,
        deal_id: UUID,
        legal_entity_id: str | None = None,
    ) -> ReconciliationReport | None:
        deal = self._find_deal(deal_id, legal_entity_id)
        if deal is None:
            return None
        report = build_reconciliation_report(deal.to_dto(), self._transactions(deal))
        logger.info("deal_reconciliation_generated", extra={
            "deal_id": str(deal.id),
            "is_balanced": report.is_balanced,
            "discrepancy_count": len(report.discrepancies),
        })
        return report

    def _transactions(self, deal: DealModel) -> list[DealTransaction]:
        links = self._session.execute(
            select(DealJournalEntryLinkModel)
            .where(DealJournalEntryLinkModel.deal_id == deal.id)
            .options(
                selectinload(DealJournalEntryLinkModel.journal_entry)
                .selectinload(JournalEntry.lines)
                .selectinload(JournalEntryLine.account)
            )
        ).scalars().all()

        transactions = [self._to_transaction(link) for link in links]
        transactions.sort(key=lambda t: (t.entry_date, t.entry_number))
        return transactions

    @staticmethod
    def _to_transaction(link: DealJournalEntryLinkModel) -> DealTransaction:
        entry = link.journal_entry
        return DealTransaction(
            entry_id=entry.id,
            entry_type=DealEntryType(link.entry_type),
            entry_number=entry.entry_number,
            entry_date=entry.entry_date,
            status=JournalEntryStatus(entry.status).value,
            amount=entry.total_debit,
            lines=tuple(
                DealTransactionLine(
                    account_id=line.account_id,
                    account_code=line.account.code,
                    account_name=line.account.name,
                    debit_amount=line.debit_amount,
                    credit_amount=line.credit_amount,
                    description=line.description,
                )
                for line in sorted(entry.lines, key=lambda x: x.line_number)
            ),
            reference=entry.reference,
            description=entry.description,
        )

    # =========================================================================
    # Internals
    # =========================================================================

    def _find_deal(self, deal_id: UUID, legal_entity_id: str | None) -> DealModel | None:
        # Deals of another tenant read as missing.
        deal = self._session.get(DealModel, deal_id)
        if deal is None or (
            legal_entity_id is not None and deal.legal_entity_id != legal_entity_id
        ):
            return None
        return deal

    def _lock_deal(self, deal_id: UUID, legal_entity_id: str | None) -> DealModel:
        deal = self._session.execute(
            select(DealModel)
            .where(DealModel.id == deal_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if deal is None or (
            legal_entity_id is not None and deal.legal_entity_id != legal_entity_id
        ):
            raise DealNotFoundError(str(deal_id))
        return deal

    def _payment_method(self, value: PaymentMethod | str | None) -> PaymentMethod:
        if value is None:
            return self._config.default_payment_method
        try:
            return PaymentMethod(value)
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method: {value!r}") from exc

    @staticmethod
    def _guard_overpayment(deal: DealModel, amount: int) -> None:
        if deal.paid_amount + amount > deal.total_amount:
            raise OverpaymentError(
                str(deal.id), amount, deal.paid_amount, deal.total_amount,
            )

    @staticmethod
    def _apply_payment(deal: DealModel, amount: int) -> None:
        deal.paid_amount = deal.paid_amount + amount
        deal.status = (
            DealStatus.COMPLETED.value
            if deal.paid_amount == deal.total_amount
            else DealStatus.ACTIVE.value
        )

    def _has_link(self, deal: DealModel, entry_type: DealEntryType) -> bool:
        found = self._session.execute(
            select(DealJournalEntryLinkModel.id)
            .where(
                DealJournalEntryLinkModel.deal_id == deal.id,
                DealJournalEntryLinkModel.entry_type == entry_type.value,
            )
            .limit(1)
        ).scalar_one_or_none()
        return found is not None

    @staticmethod
    def _partner_name(deal: DealModel) -> str:
        if deal.partner is not None:
            return deal.partner.name
        return fallback_partner_name(deal.receiver_bin)

    def _check_mirror(self, deal: DealModel, entry_type: DealEntryType, amount: int) -> None:
        match = self._mirror.find_mirror(
            deal.legal_entity_id,
            deal.receiver_bin,
            deal.deal_reference,
            entry_type,
            amount,
        )
        if match is not None:
            raise _MirrorSkip(match)

    def _book(
        self,
        deal: DealModel,
        entry_type: DealEntryType,
        debit_code: str,
        credit_code: str,
        amount: int,
        reference: str,
        description: str,
        line_descriptions: tuple[str, str],
        entry_date: date | None,
        created_by: str,
    ) -> JournalEntryRecord:
        """Create the two-line entry, link it, and post it when configured."""
        debit = self._accounts.get_by_code(deal.legal_entity_id, debit_code)
        credit = self._accounts.get_by_code(deal.legal_entity_id, credit_code)

        header = JournalEntryHeader(
            legal_entity_id=deal.legal_entity_id,
            entry_date=entry_date or self._clock.today(),
            currency_code=deal.currency.code,
            created_by=created_by,
            description=description,
            reference=reference,
        )
        record = self._journal.create_journal_entry(header, [
            LineSpec.debit(debit.id, amount, line_descriptions[0]),
            LineSpec.credit(credit.id, amount, line_descriptions[1]),
        ])
        self._session.add(DealJournalEntryLinkModel(
            deal_id=deal.id,
            journal_entry_id=record.id,
            entry_type=entry_type.value,
        ))
        self._session.flush()

        if self._config.auto_post:
            self._journal.post_journal_entry(
                record.id, posted_by=created_by, legal_entity_id=deal.legal_entity_id,
            )
            record = self._journal_reads.get_entry(record.id)
        return record

    def _generate_document(
        self, deal: Deal,
    ) -> tuple[GeneratedDocument | None, str | None]:
        try:
            document = self._documents.generate(
                DocumentRequest.for_deal(deal, counterparty_name=deal.counterparty_name),
            )
        except DocumentGenerationError as exc:
            logger.warning("deal_document_generation_failed", extra={
                "deal_id": str(deal.id),
                "error_code": exc.code,
                "reason": exc.reason,
            })
            return None, exc.code
        except Exception:
            logger.error(
                "deal_document_generation_failed",
                extra={"deal_id": str(deal.id), "error_code": GENERATION_FAILED},
                exc_info=True,
            )
            return None, GENERATION_FAILED

        logger.info("deal_document_generated", extra={
            "deal_id": str(deal.id),
            "document_id": document.document_id,
            "kind": document.kind,
        })
        return document, None

    def _skipped(self, deal_id: UUID, match: MirrorMatch) -> DealOperationResult:
        key = match.key
        logger.info("deal_operation_skipped", extra={
            "deal_id": str(deal_id),
            "reason": MirrorEntryExistsError.code,
            "entry_type": key.entry_type.value,
            "amount": key.amount,
            "mirror_entry_id": str(match.mirror_entry_id),
        })
        deal = self._session.get(DealModel, deal_id)
        return DealOperationResult(
            status=OperationStatus.SKIPPED,
            deal=deal.to_dto() if deal is not None else None,
            error_code=MirrorEntryExistsError.code,
            message=(
                f"Counter-party {key.counterparty_bin} already recorded "
                f"{key.entry_type.value} of {key.amount} for deal reference "
                f"{key.deal_reference}"
            ),
        )

    @staticmethod
    def _rejected(
        operation: str,
        exc: LedgerKernelError,
        deal_id: UUID | None = None,
    ) -> DealOperationResult:
        logger.warning("deal_operation_rejected", extra={
            "operation": operation,
            "deal_id": str(deal_id) if deal_id else None,
            "error_code": exc.code,
            "error": str(exc),
        })
        return DealOperationResult(
            status=OperationStatus.REJECTED,
            error_code=exc.code,
            message=str(exc),
        )
