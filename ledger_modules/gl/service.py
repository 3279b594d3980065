"""
General Ledger Module Service (``ledger_modules.gl.service``).

Responsibility
--------------
Direct journal work that is not tied to a deal: record a balanced entry
(optionally posting it at once), post a draft, cancel a draft.

Architecture position
---------------------
**Modules layer** -- thin glue over ``JournalService``.  Each public
method owns the transaction boundary.

Failure modes
-------------
* Kernel validation or state error -> ``GLResult`` with status REJECTED;
  session rolled back.
* Unexpected exception -> session rolled back, exception re-raised.
"""

from __future__ import annotations

from typing import Sequence
from uuid import UUID

from sqlalchemy.orm import Session

from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.dtos import JournalEntryHeader, LineSpec
from ledger_kernel.exceptions import LedgerKernelError
from ledger_kernel.logging_config import get_logger
from ledger_kernel.selectors.journal_selector import JournalSelector
from ledger_kernel.services.journal_service import JournalService
from ledger_modules.gl.models import GLResult, GLStatus

logger = get_logger("modules.gl.service")


class GLService:
    """
    Record, post and cancel journal entries in their own transactions.

    Usage:
        service = GLService(session, clock=clock)
        result = service.record_entry(header, lines, post=True)
        if not result.is_success:
            print(result.error_code)
    """

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._journal = JournalService(session, self._clock)
        self._reads = JournalSelector(session)

    def record_entry(
        self,
        header: JournalEntryHeader,
        lines: Sequence[LineSpec],
        post: bool = False,
    ) -> GLResult:
        try:
            logger.info("gl_record_entry_started", extra={
                "legal_entity_id": header.legal_entity_id,
                "line_count": len(lines),
                "post": post,
            })
            entry = self._journal.create_journal_entry(header, lines)
            posting = None
            if post:
                posting = self._journal.post_journal_entry(
                    entry.id,
                    posted_by=header.created_by,
                    legal_entity_id=header.legal_entity_id,
                )
                entry = self._reads.get_entry(entry.id)
            self._session.commit()
            logger.info("gl_record_entry_committed", extra={
                "entry_id": str(entry.id),
                "entry_number": entry.entry_number,
                "status": entry.status.value,
            })
            return GLResult(status=GLStatus.SUCCESS, entry=entry, posting=posting)

        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("record_entry", exc)
        except Exception:
            self._session.rollback()
            raise

    def post_entry(
        self,
        entry_id: UUID,
        posted_by: str | None = None,
        legal_entity_id: str | None = None,
    ) -> GLResult:
        try:
            posting = self._journal.post_journal_entry(
                entry_id, posted_by=posted_by, legal_entity_id=legal_entity_id,
            )
            entry = self._reads.get_entry(entry_id)
            self._session.commit()
            logger.info("gl_post_entry_committed", extra={
                "entry_id": str(entry_id),
                "ledger_row_count": len(posting.ledger_rows),
            })
            return GLResult(status=GLStatus.SUCCESS, entry=entry, posting=posting)

        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("post_entry", exc)
        except Exception:
            self._session.rollback()
            raise

    def cancel_entry(
        self,
        entry_id: UUID,
        legal_entity_id: str | None = None,
    ) -> GLResult:
        try:
            entry = self._journal.cancel_journal_entry(entry_id, legal_entity_id)
            self._session.commit()
            logger.info("gl_cancel_entry_committed", extra={"entry_id": str(entry_id)})
            return GLResult(status=GLStatus.SUCCESS, entry=entry)

        except LedgerKernelError as exc:
            self._session.rollback()
            return self._rejected("cancel_entry", exc)
        except Exception:
            self._session.rollback()
            raise

    @staticmethod
    def _rejected(operation: str, exc: LedgerKernelError) -> GLResult:
        logger.warning("gl_operation_rejected", extra={
            "operation": operation,
            "error_code": exc.code,
            "error": str(exc),
        })
        return GLResult(
            status=GLStatus.REJECTED,
            error_code=exc.code,
            message=str(exc),
        )
