"""
ORM-Level Immutability Enforcement.

===============================================================================
WHAT IS PROTECTED
===============================================================================

Entity              | When Immutable                  | Rule
--------------------|---------------------------------|------------------------------
GeneralLedgerRow    | ALWAYS (from creation)          | Append-only ledger
JournalEntry        | After status = POSTED           | Posted = final
JournalEntryLine    | When parent entry is POSTED     | Lines are part of the entry

SQLAlchemy fires ``before_update`` / ``before_delete`` mapper events before
the SQL reaches the database.  The listeners below raise
ImmutabilityViolationError, which aborts the flush; the caller's transaction
is then rolled back.

The posting workflow itself sets status DRAFT -> POSTED, so the journal entry
check inspects attribute history: the transition INTO posted is allowed,
any change AFTER it is not.  ``updated_at`` is audit metadata and may change.

===============================================================================
USAGE
===============================================================================

    from ledger_kernel.db.immutability import register_immutability_listeners
    register_immutability_listeners()   # idempotent; init_engine_from_url calls it

Tests that need to violate the rules on purpose:

    unregister_immutability_listeners()
"""

from sqlalchemy import event, inspect
from sqlalchemy.orm.attributes import get_history

from ledger_kernel.exceptions import ImmutabilityViolationError
from ledger_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

_AUDIT_FIELDS = frozenset({"updated_at"})


def _blocked(entity_type: str, entity_id, operation: str, reason: str, field: str | None = None):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
            "field": field,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _check_ledger_row_update(mapper, connection, target):
    """General ledger rows are append-only."""
    raise _blocked(
        "GeneralLedgerRow", target.id, "UPDATE",
        "General ledger rows cannot be modified",
    )


def _check_ledger_row_delete(mapper, connection, target):
    raise _blocked(
        "GeneralLedgerRow", target.id, "DELETE",
        "General ledger rows cannot be deleted",
    )


def _was_posted_before(target) -> bool:
    """
    True iff the entry was already POSTED before the pending change.

        status changing FROM posted          -> True
        status unchanged and currently posted -> True
        status changing TO posted            -> False (this is the posting)
    """
    status_history = get_history(target, "status")
    if status_history.deleted:
        return status_history.deleted[0] == "posted"
    if not status_history.added:
        return target.status == "posted"
    return False


def _check_journal_entry_update(mapper, connection, target):
    if not _was_posted_before(target):
        return
    for attr in inspect(target).attrs:
        if attr.key in _AUDIT_FIELDS:
            continue
        if attr.history.has_changes():
            raise _blocked(
                "JournalEntry", target.id, "UPDATE",
                f"Cannot modify field '{attr.key}' on posted journal entry",
                field=attr.key,
            )


def _check_journal_entry_delete(mapper, connection, target):
    if target.status == "posted":
        raise _blocked(
            "JournalEntry", target.id, "DELETE",
            "Posted journal entries cannot be deleted",
        )


def _check_journal_line_update(mapper, connection, target):
    if target.entry is not None and target.entry.status == "posted":
        raise _blocked(
            "JournalEntryLine", target.id, "UPDATE",
            "Journal lines cannot be modified after parent entry is posted",
        )


def _check_journal_line_delete(mapper, connection, target):
    if target.entry is not None and target.entry.status == "posted":
        raise _blocked(
            "JournalEntryLine", target.id, "DELETE",
            "Journal lines cannot be deleted after parent entry is posted",
        )


def _listeners():
    from ledger_kernel.models.journal import JournalEntry, JournalEntryLine
    from ledger_kernel.models.ledger import GeneralLedgerRow

    return (
        (GeneralLedgerRow, "before_update", _check_ledger_row_update),
        (GeneralLedgerRow, "before_delete", _check_ledger_row_delete),
        (JournalEntry, "before_update", _check_journal_entry_update),
        (JournalEntry, "before_delete", _check_journal_entry_delete),
        (JournalEntryLine, "before_update", _check_journal_line_update),
        (JournalEntryLine, "before_delete", _check_journal_line_delete),
    )


def register_immutability_listeners() -> None:
    """Register all immutability listeners (idempotent)."""
    for target, event_name, fn in _listeners():
        if not event.contains(target, event_name, fn):
            event.listen(target, event_name, fn)


def immutability_listeners_registered() -> bool:
    return all(event.contains(target, name, fn) for target, name, fn in _listeners())


def unregister_immutability_listeners() -> None:
    """
    Remove immutability listeners.

    WARNING: only for tests that deliberately break the rules.
    """
    for target, event_name, fn in _listeners():
        if event.contains(target, event_name, fn):
            event.remove(target, event_name, fn)
