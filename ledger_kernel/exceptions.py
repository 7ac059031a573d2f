"""
Typed Exception Hierarchy for the Ledger Engine.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Settlement errors are surfaced to a UI that must show the user *why* a
payment, discount, write-off or allocation was refused.  Matching on message
text is fragile, so every error has:

  1. Its own exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured attributes carrying the offending values

Example:
    try:
        outcome = apply_payment(entry, amount, ...)
    except AmountExceedsBalanceError as e:
        show_error(code=e.code, remaining=e.remaining_balance)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    LedgerEngineError (base)
    |
    +-- ValidationError            rejected before any mutation
    |   +-- InvalidAmountError
    |   +-- AmountExceedsBalanceError
    |   +-- MissingReasonError
    |   +-- MissingCounterpartyNameError
    |   +-- AllocationExceedsInvoiceError
    |   +-- NotARAPEntryError
    |   +-- WriteOffNotConfirmedError
    |   +-- ChequeTotalExceedsEntryError
    |   +-- InvalidEntryError
    |
    +-- ClassificationError
    |   +-- UnknownLoanCategoryError   (fatal, never defaulted)
    |
    +-- ChequeError
    |   +-- InvalidChequeTransitionError
    |
    +-- StoreError
    |   +-- AtomicWriteError
    |   |   +-- OptimisticLockError
    |   +-- EntryNotFoundError
    |
    +-- TaxonomyConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                          | When Raised
----------------|-------------------------------|-------------------------------------
Validation      | INVALID_AMOUNT                | amount <= 0 or not numeric
                | AMOUNT_EXCEEDS_BALANCE        | amount > remaining balance
                | MISSING_REASON                | write-off without a reason
                | MISSING_COUNTERPARTY_NAME     | endorsed cheque without target
                | ALLOCATION_EXCEEDS_INVOICE    | advance selections > invoice
                | ARAP_NOT_ENABLED              | settling a non AR/AP entry
                | WRITE_OFF_NOT_CONFIRMED       | write-off without confirmation
                | CHEQUE_TOTAL_EXCEEDS_ENTRY    | cheques sum > entry amount
                | INVALID_ENTRY                 | entry fails construction rules
----------------|-------------------------------|-------------------------------------
Classification  | UNKNOWN_LOAN_CATEGORY         | loan outside the two loan categories
----------------|-------------------------------|-------------------------------------
Cheque          | INVALID_CHEQUE_TRANSITION     | e.g. endorsed -> cashed
----------------|-------------------------------|-------------------------------------
Store           | ATOMIC_WRITE_FAILED           | any sub-write failed; none applied
                | OPTIMISTIC_LOCK_CONFLICT      | entry changed since it was read
                | ENTRY_NOT_FOUND               | entry id unknown to the store
----------------|-------------------------------|-------------------------------------
Config          | TAXONOMY_CONFIG_ERROR         | malformed category registry file

No error in this hierarchy is retried automatically.  Retry policy, if any,
belongs to the caller or to the external transactional store.
"""

from decimal import Decimal


class LedgerEngineError(Exception):
    """
    Base exception for all ledger engine errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification.
    """

    code: str = "LEDGER_ENGINE_ERROR"


# Validation exceptions


class ValidationError(LedgerEngineError):
    """Base exception for input rejected before any state change."""

    code: str = "VALIDATION_ERROR"


class InvalidAmountError(ValidationError):
    """Amount is zero, negative, or not a number."""

    code: str = "INVALID_AMOUNT"

    def __init__(self, amount: object, reason: str = "amount must be greater than zero"):
        self.amount = amount
        self.reason = reason
        super().__init__(f"Invalid amount {amount!r}: {reason}")


class AmountExceedsBalanceError(ValidationError):
    """Settlement amount is larger than what remains on the entry."""

    code: str = "AMOUNT_EXCEEDS_BALANCE"

    def __init__(self, entry_id: str, amount: Decimal, remaining_balance: Decimal):
        self.entry_id = entry_id
        self.amount = amount
        self.remaining_balance = remaining_balance
        super().__init__(
            f"Amount {amount} exceeds remaining balance {remaining_balance} "
            f"on entry {entry_id}"
        )


class MissingReasonError(ValidationError):
    """A write-off was requested without a reason."""

    code: str = "MISSING_REASON"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Write-off reason is required for entry {entry_id}")


class MissingCounterpartyNameError(ValidationError):
    """Endorsed cheque has no endorsee (incoming) or endorser (outgoing)."""

    code: str = "MISSING_COUNTERPARTY_NAME"

    def __init__(self, cheque_number: str, field_name: str):
        self.cheque_number = cheque_number
        self.field_name = field_name
        super().__init__(
            f"Endorsed cheque {cheque_number} requires {field_name}"
        )


class AllocationExceedsInvoiceError(ValidationError):
    """Advance selections would allocate more than the invoice total."""

    code: str = "ALLOCATION_EXCEEDS_INVOICE"

    def __init__(
        self,
        advance_id: str,
        requested: Decimal,
        already_allocated: Decimal,
        invoice_amount: Decimal,
    ):
        self.advance_id = advance_id
        self.requested = requested
        self.already_allocated = already_allocated
        self.invoice_amount = invoice_amount
        super().__init__(
            f"Allocating {requested} from advance {advance_id} would exceed "
            f"invoice amount {invoice_amount} (already allocated {already_allocated})"
        )


class NotARAPEntryError(ValidationError):
    """Settlement requested on an entry that does not track AR/AP."""

    code: str = "ARAP_NOT_ENABLED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Entry {entry_id} does not track receivables/payables")


class WriteOffNotConfirmedError(ValidationError):
    """Write-off submitted without the explicit user confirmation flag."""

    code: str = "WRITE_OFF_NOT_CONFIRMED"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Write-off on entry {entry_id} was not confirmed")


class ChequeTotalExceedsEntryError(ValidationError):
    """Cheques attached to an entry would sum to more than its amount."""

    code: str = "CHEQUE_TOTAL_EXCEEDS_ENTRY"

    def __init__(self, entry_id: str, cheque_total: Decimal, entry_amount: Decimal):
        self.entry_id = entry_id
        self.cheque_total = cheque_total
        self.entry_amount = entry_amount
        super().__init__(
            f"Cheque total {cheque_total} exceeds amount {entry_amount} "
            f"of entry {entry_id}"
        )


class InvalidEntryError(ValidationError):
    """A ledger record violates its construction rules."""

    code: str = "INVALID_ENTRY"

    def __init__(self, field_name: str, reason: str):
        self.field_name = field_name
        self.reason = reason
        super().__init__(f"Invalid {field_name}: {reason}")


# Classification exceptions


class ClassificationError(LedgerEngineError):
    """Base exception for classification failures."""

    code: str = "CLASSIFICATION_ERROR"


class UnknownLoanCategoryError(ClassificationError):
    """
    A loan transaction names a category that is neither loan category.

    Never defaulted: mis-tagging a loan corrupts the balance sheet.
    """

    code: str = "UNKNOWN_LOAN_CATEGORY"

    def __init__(self, category: str, sub_category: str | None = None):
        self.category = category
        self.sub_category = sub_category
        super().__init__(f"Unknown loan category: {category!r}")


# Cheque exceptions


class ChequeError(LedgerEngineError):
    """Base exception for cheque lifecycle errors."""

    code: str = "CHEQUE_ERROR"


class InvalidChequeTransitionError(ChequeError):
    """Cheque status change not allowed by the cheque state machine."""

    code: str = "INVALID_CHEQUE_TRANSITION"

    def __init__(self, cheque_id: str, from_status: str, to_status: str):
        self.cheque_id = cheque_id
        self.from_status = from_status
        self.to_status = to_status
        super().__init__(
            f"Cheque {cheque_id} cannot move from {from_status} to {to_status}"
        )


# Store exceptions


class StoreError(LedgerEngineError):
    """Base exception for transactional store failures."""

    code: str = "STORE_ERROR"


class AtomicWriteError(StoreError):
    """An atomic multi-write failed; none of its writes were applied."""

    code: str = "ATOMIC_WRITE_FAILED"

    def __init__(self, operation_count: int, reason: str):
        self.operation_count = operation_count
        self.reason = reason
        super().__init__(
            f"Atomic write of {operation_count} operation(s) failed: {reason}"
        )


class OptimisticLockError(AtomicWriteError):
    """Entry was modified by someone else since it was read."""

    code: str = "OPTIMISTIC_LOCK_CONFLICT"

    def __init__(self, entry_id: str, expected_version: int, actual_version: int):
        self.entry_id = entry_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            1,
            f"entry {entry_id} is at version {actual_version}, "
            f"expected {expected_version}",
        )


class EntryNotFoundError(StoreError):
    """Ledger entry id is unknown to the store."""

    code: str = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: str):
        self.entry_id = entry_id
        super().__init__(f"Ledger entry not found: {entry_id}")


# Configuration exceptions


class TaxonomyConfigError(LedgerEngineError):
    """Category registry file is structurally invalid."""

    code: str = "TAXONOMY_CONFIG_ERROR"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid category taxonomy in {path}: {reason}")
