"""
Typed Exception Hierarchy for the Ledger Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers must never parse message strings to decide what went wrong.
Every error in the kernel:
  1. Has its own exception class (catch by type, not message)
  2. Carries a CODE class attribute (machine-readable, API-safe)
  3. Stores its context as attributes (not just a message string)

    try:
        journal.post_journal_entry(entry_id)
    except AlreadyPostedError as e:
        api_response(code=e.code, entry=e.entry_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerKernelError (base)
    |
    +-- ValidationError            rejected before any write
    |   +-- UnbalancedEntryError
    |   +-- InvalidLineAmountError
    |   +-- EmptyEntryError
    |   +-- CrossEntityReferenceError
    |   +-- InvalidAccountTypeError
    |   +-- InvalidAmountError
    |   +-- InvalidBinError
    |   +-- InvalidCurrencyError
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- CurrencyNotFoundError
    |   +-- JournalEntryNotFoundError
    |   +-- DealNotFoundError
    |   +-- LegalEntityNotFoundError
    |
    +-- StateError
    |   +-- AlreadyPostedError
    |   +-- EntryNotDraftError
    |   +-- OverpaymentError
    |   +-- BaseCurrencyConflictError
    |   +-- AccountInactiveError
    |   +-- CurrencyInactiveError
    |
    +-- DuplicateError
    |   +-- DuplicateAccountCodeError
    |   +-- DuplicateCurrencyError
    |   +-- DuplicateEntryNumberError
    |   +-- DuplicateLegalEntityError
    |   +-- MirrorEntryExistsError
    |
    +-- ExternalFailure
    |   +-- DocumentGenerationError
    |
    +-- SeedingError
    |   +-- UnresolvedAccountParentError
    |
    +-- ImmutabilityViolationError

===============================================================================
HANDLING PATTERNS
===============================================================================

Module services (GLService, DealAccountingService) own the transaction.
They catch LedgerKernelError, roll back, and return a tagged result carrying
``error.code``.  Anything else (connection loss, programming errors) is
re-raised after rollback.

MirrorEntryExistsError is an expected outcome: the deal bridge reports it as
a "skipped" result, never as a failure.

DocumentGenerationError never reaches a caller as an exception: document
generation runs after commit and its failure is logged.
"""


class LedgerKernelError(Exception):
    """
    Base exception for all ledger kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "LEDGER_KERNEL_ERROR"


# =============================================================================
# Validation
# =============================================================================


class ValidationError(LedgerKernelError):
    """Input rejected before anything was written."""

    code: str = "VALIDATION_ERROR"


class UnbalancedEntryError(ValidationError):
    """Journal entry debits do not equal credits."""

    code: str = "UNBALANCED_ENTRY"

    def __init__(self, total_debit: int, total_credit: int):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Unbalanced entry: debits={total_debit}, credits={total_credit}"
        )


class InvalidLineAmountError(ValidationError):
    """A line must carry exactly one strictly positive side."""

    code: str = "INVALID_LINE_AMOUNT"

    def __init__(self, line_number: int, reason: str):
        self.line_number = line_number
        self.reason = reason
        super().__init__(f"Invalid amounts on line {line_number}: {reason}")


class EmptyEntryError(ValidationError):
    """Journal entry has no lines."""

    code: str = "EMPTY_ENTRY"

    def __init__(self):
        super().__init__("Journal entry must have at least one line")


class CrossEntityReferenceError(ValidationError):
    """A record references an account owned by another legal entity."""

    code: str = "CROSS_ENTITY_REFERENCE"

    def __init__(self, account_id: str, expected_entity: str, actual_entity: str):
        self.account_id = account_id
        self.expected_entity = expected_entity
        self.actual_entity = actual_entity
        super().__init__(
            f"Account {account_id} belongs to legal entity {actual_entity}, "
            f"not {expected_entity}"
        )


class InvalidAccountTypeError(ValidationError):
    """Account type is not one of the five accounting classes."""

    code: str = "INVALID_ACCOUNT_TYPE"

    def __init__(self, account_type: str):
        self.account_type = account_type
        super().__init__(f"Invalid account type: {account_type!r}")


class InvalidAmountError(ValidationError):
    """Amount is not a strictly positive integer of smallest units."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object, reason: str = "must be a positive integer"):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class InvalidBinError(ValidationError):
    """Business identification number is not 12 digits."""

    code: str = "INVALID_BIN"

    def __init__(self, bin: str):
        self.bin = bin
        super().__init__(f"Invalid BIN {bin!r}: expected 12 digits")


class InvalidCurrencyError(ValidationError):
    """Currency code is not a recognised ISO 4217 code."""

    code: str = "INVALID_CURRENCY"

    def __init__(self, currency: str, reason: str = "not a valid ISO 4217 code"):
        self.currency = currency
        self.reason = reason
        super().__init__(f"Invalid currency {currency!r}: {reason}")


# =============================================================================
# Not found
# =============================================================================


class NotFoundError(LedgerKernelError):
    """Referenced record does not exist."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with given ID or code was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_ref: str, legal_entity_id: str | None = None):
        self.account_ref = account_ref
        self.legal_entity_id = legal_entity_id
        scope = f" in legal entity {legal_entity_id}" if legal_entity_id else ""
        super().__init__(f"Account not found: {account_ref}{scope}")


class CurrencyNotFoundError(NotFoundError):
    """Currency with given ID or code was not found."""

    code: str = "CURRENCY_NOT_FOUND"

    def __init__(self, currency_ref: str):
        self.currency_ref = currency_ref
        super().__init__(f"Currency not found: {currency_ref}")


class JournalEntryNotFoundError(NotFoundError):
    """Journal entry with given ID was not found."""

    code: str = "JOURNAL_ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry not found: {entry_id}")


class DealNotFoundError(NotFoundError):
    """Deal with given ID was not found."""

    code: str = "DEAL_NOT_FOUND"

    def __init__(self, deal_id: str):
        self.deal_id = deal_id
        super().__init__(f"Deal not found: {deal_id}")


class LegalEntityNotFoundError(NotFoundError):
    """Legal entity is not registered in this deployment."""

    code: str = "LEGAL_ENTITY_NOT_FOUND"

    def __init__(self, legal_entity_ref: str):
        self.legal_entity_ref = legal_entity_ref
        super().__init__(f"Legal entity not found: {legal_entity_ref}")


# =============================================================================
# State
# =============================================================================


class StateError(LedgerKernelError):
    """Operation not allowed in the record's current state."""

    code: str = "STATE_ERROR"


class AlreadyPostedError(StateError):
    """Journal entry has already been posted."""

    code: str = "ALREADY_POSTED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Journal entry {entry_id} is already posted")


class EntryNotDraftError(StateError):
    """Only draft journal entries may be posted or cancelled."""

    code: str = "ENTRY_NOT_DRAFT"

    def __init__(self, entry_id: str, status: str):
        self.entry_id = entry_id
        self.status = status
        super().__init__(f"Journal entry {entry_id} is {status}, expected draft")


class OverpaymentError(StateError):
    """Payment would push the paid amount beyond the deal total."""

    code: str = "OVERPAYMENT"

    def __init__(self, deal_id: str, amount: int, paid_amount: int, total_amount: int):
        self.deal_id = deal_id
        self.amount = amount
        self.paid_amount = paid_amount
        self.total_amount = total_amount
        self.remaining = total_amount - paid_amount
        super().__init__(
            f"Payment amount {amount} exceeds remaining balance "
            f"{self.remaining} on deal {deal_id}"
        )


class BaseCurrencyConflictError(StateError):
    """A base currency is already designated for this deployment."""

    code: str = "BASE_CURRENCY_CONFLICT"

    def __init__(self, existing_code: str, requested_code: str):
        self.existing_code = existing_code
        self.requested_code = requested_code
        super().__init__(
            f"Cannot make {requested_code} the base currency: "
            f"{existing_code} already is"
        )


class AccountInactiveError(StateError):
    """Account is deactivated and cannot receive new lines."""

    code: str = "ACCOUNT_INACTIVE"

    def __init__(self, account_id: str, account_code: str | None = None):
        self.account_id = account_id
        self.account_code = account_code
        super().__init__(f"Account {account_code or account_id} is inactive")


class CurrencyInactiveError(StateError):
    """Currency is deactivated."""

    code: str = "CURRENCY_INACTIVE"

    def __init__(self, currency_code: str):
        self.currency_code = currency_code
        super().__init__(f"Currency {currency_code} is inactive")


# =============================================================================
# Duplicates
# =============================================================================


class DuplicateError(LedgerKernelError):
    """A record with the same identity already exists."""

    code: str = "DUPLICATE"


class DuplicateAccountCodeError(DuplicateError):
    """Account code already used in this legal entity."""

    code: str = "DUPLICATE_ACCOUNT_CODE"

    def __init__(self, legal_entity_id: str, account_code: str):
        self.legal_entity_id = legal_entity_id
        self.account_code = account_code
        super().__init__(
            f"Account code {account_code} already exists in legal entity {legal_entity_id}"
        )


class DuplicateCurrencyError(DuplicateError):
    """Currency code already registered."""

    code: str = "DUPLICATE_CURRENCY"

    def __init__(self, currency_code: str):
        self.currency_code = currency_code
        super().__init__(f"Currency {currency_code} already exists")


class DuplicateEntryNumberError(DuplicateError):
    """Journal entry number already used."""

    code: str = "DUPLICATE_ENTRY_NUMBER"

    def __init__(self, entry_number: str):
        self.entry_number = entry_number
        super().__init__(f"Journal entry number {entry_number} already exists")


class DuplicateLegalEntityError(DuplicateError):
    """Legal entity id or BIN already registered."""

    code: str = "DUPLICATE_LEGAL_ENTITY"

    def __init__(self, legal_entity_id: str, bin: str):
        self.legal_entity_id = legal_entity_id
        self.bin = bin
        super().__init__(
            f"Legal entity {legal_entity_id} or BIN {bin} is already registered"
        )


class MirrorEntryExistsError(DuplicateError):
    """The counter-party already booked the same economic event."""

    code: str = "MIRROR_ENTRY_EXISTS"

    def __init__(
        self,
        counterparty_bin: str,
        deal_reference: str,
        entry_type: str,
        amount: int,
        mirror_entry_id: str,
    ):
        self.counterparty_bin = counterparty_bin
        self.deal_reference = deal_reference
        self.entry_type = entry_type
        self.amount = amount
        self.mirror_entry_id = mirror_entry_id
        super().__init__(
            f"Counter-party {counterparty_bin} already recorded {entry_type} "
            f"of {amount} for deal reference {deal_reference} "
            f"(entry {mirror_entry_id})"
        )


# =============================================================================
# External collaborators
# =============================================================================


class ExternalFailure(LedgerKernelError):
    """An external collaborator failed."""

    code: str = "EXTERNAL_FAILURE"


class DocumentGenerationError(ExternalFailure):
    """Document generation failed or is not available.

    ``code`` is set per instance: NOT_IMPLEMENTED or GENERATION_FAILED.
    """

    code: str = "GENERATION_FAILED"

    def __init__(self, deal_id: str, reason: str, code: str | None = None):
        self.deal_id = deal_id
        self.reason = reason
        if code is not None:
            self.code = code
        super().__init__(f"Document generation failed for deal {deal_id}: {reason}")


# =============================================================================
# Seeding
# =============================================================================


class SeedingError(LedgerKernelError):
    """Chart-of-accounts seeding could not complete."""

    code: str = "SEEDING_ERROR"


class UnresolvedAccountParentError(SeedingError):
    """Some seed rows reference parents that never appear."""

    code: str = "UNRESOLVED_ACCOUNT_PARENT"

    def __init__(self, unresolved: list[tuple[str, str]]):
        # (code, parent_code) pairs
        self.unresolved = unresolved
        listing = ", ".join(f"{code} (parent: {parent})" for code, parent in unresolved)
        super().__init__(f"Could not resolve parent accounts for: {listing}")


# =============================================================================
# Immutability
# =============================================================================


class ImmutabilityViolationError(LedgerKernelError):
    """
    Attempted to modify or delete an immutable record.

    General ledger rows are append-only; posted journal entries and their
    lines never change.
    """

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: str, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(
            f"Immutability violation on {entity_type} {entity_id}: {reason}"
        )
