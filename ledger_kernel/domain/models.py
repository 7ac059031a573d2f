"""
Ledger Domain Models (``ledger_kernel.domain.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of the settlement engine:
ledger entries, cheques, payments, endorsement transfers, write-off audit
records and advance allocation lines.

Architecture position
---------------------
**Kernel > Domain** -- pure data definitions with ZERO I/O.  Engines take
these in and hand new instances back (``dataclasses.replace``); the store
persists them.  Nothing here knows about the taxonomy or the database.

Invariants enforced
-------------------
* All models are ``frozen=True`` and validated in ``__post_init__``.
* All monetary fields are ``Decimal`` and non-negative; amounts that
  represent an event (entry, cheque, payment) are strictly positive.
* ``LedgerEntry``: settled sum never exceeds ``amount`` by more than
  ``EPSILON``; ``writeoff_reason`` present iff ``writeoff_amount > 0``;
  ``associated_party`` and ``owner_name`` are mutually exclusive by
  ``entry_type``.
* ``Cheque``: an endorsed cheque names its counterpart on the side that
  matches its direction.

Failure modes
-------------
* Non-positive amounts raise ``InvalidAmountError``.
* Other construction violations raise ``InvalidEntryError`` or
  ``MissingCounterpartyNameError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID, uuid4

from ledger_kernel.domain.values import (
    EPSILON,
    ZERO,
    CashDirection,
    ChequeAccountingType,
    ChequeDirection,
    ChequeStatus,
    EntryType,
    PaymentMethod,
    PaymentStatus,
)
from ledger_kernel.exceptions import (
    InvalidAmountError,
    InvalidEntryError,
    MissingCounterpartyNameError,
)
from ledger_kernel.logging_config import get_logger

logger = get_logger("domain.models")


def _require_positive(value: Decimal, name: str) -> None:
    if not isinstance(value, Decimal):
        raise InvalidEntryError(name, f"must be Decimal, got {type(value).__name__}")
    if value <= ZERO:
        raise InvalidAmountError(value)


def _require_non_negative(value: Decimal, name: str) -> None:
    if not isinstance(value, Decimal):
        raise InvalidEntryError(name, f"must be Decimal, got {type(value).__name__}")
    if value < ZERO:
        raise InvalidEntryError(name, f"cannot be negative ({value})")


@dataclass(frozen=True)
class LedgerEntry:
    """
    A financial transaction and its settlement state.

    ``remaining_balance`` and ``payment_status`` are ``None`` only for
    legacy documents that never tracked them; every entry produced by the
    settlement engine carries both explicitly.
    """

    id: UUID
    transaction_id: str
    category: str
    sub_category: str
    entry_type: EntryType
    amount: Decimal
    date: date
    description: str = ""
    associated_party: str | None = None
    owner_name: str | None = None
    is_arap_entry: bool = False
    total_paid: Decimal = ZERO
    total_discount: Decimal = ZERO
    writeoff_amount: Decimal = ZERO
    remaining_balance: Decimal | None = None
    payment_status: PaymentStatus | None = None
    writeoff_reason: str | None = None
    writeoff_by: str | None = None
    writeoff_date: datetime | None = None
    total_used_from_advance: Decimal | None = None
    version: int = 0

    def __post_init__(self) -> None:
        if not self.transaction_id or not self.transaction_id.strip():
            raise InvalidEntryError("transaction_id", "must not be empty")

        if not isinstance(self.amount, Decimal) or self.amount <= ZERO:
            logger.warning(
                "ledger_entry_invalid_amount",
                extra={"transaction_id": self.transaction_id, "amount": str(self.amount)},
            )
        _require_positive(self.amount, "amount")

        for name in ("total_paid", "total_discount", "writeoff_amount"):
            _require_non_negative(getattr(self, name), name)
        if self.remaining_balance is not None:
            _require_non_negative(self.remaining_balance, "remaining_balance")
        if self.total_used_from_advance is not None:
            _require_non_negative(self.total_used_from_advance, "total_used_from_advance")

        settled = self.total_paid + self.total_discount + self.writeoff_amount
        if settled > self.amount + EPSILON:
            raise InvalidEntryError(
                "settled_total",
                f"{settled} exceeds entry amount {self.amount}",
            )

        has_reason = bool(self.writeoff_reason and self.writeoff_reason.strip())
        if self.writeoff_amount > ZERO and not has_reason:
            raise InvalidEntryError("writeoff_reason", "required when writeoff_amount > 0")
        if self.writeoff_amount == ZERO and has_reason:
            raise InvalidEntryError("writeoff_reason", "set without a write-off amount")

        if self.entry_type is EntryType.EQUITY:
            if self.associated_party:
                raise InvalidEntryError(
                    "associated_party", "equity entries name the owner, not a party"
                )
        elif self.owner_name:
            raise InvalidEntryError(
                "owner_name", f"only equity entries carry an owner ({self.entry_type.value})"
            )

        if self.version < 0:
            raise InvalidEntryError("version", "cannot be negative")

    @property
    def settled_total(self) -> Decimal:
        """Everything that has reduced the balance: paid + discount + write-off."""
        return self.total_paid + self.total_discount + self.writeoff_amount

    @property
    def party_name(self) -> str | None:
        return self.owner_name if self.entry_type is EntryType.EQUITY else self.associated_party


@dataclass(frozen=True)
class Payment:
    """An immutable record of one settlement event against one entry."""

    amount: Decimal
    direction: CashDirection
    linked_transaction_id: str
    entry_id: UUID
    timestamp: datetime
    method: PaymentMethod = PaymentMethod.CASH
    notes: str | None = None
    party: str | None = None
    no_cash_movement: bool = False
    cheque_id: UUID | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        _require_positive(self.amount, "amount")


@dataclass(frozen=True)
class Cheque:
    """A negotiable instrument tied to exactly one ledger entry."""

    cheque_number: str
    amount: Decimal
    bank_name: str
    due_date: date
    direction: ChequeDirection
    accounting_type: ChequeAccountingType
    status: ChequeStatus
    entry_id: UUID
    linked_transaction_id: str
    endorsed_to_name: str | None = None
    endorsed_from_name: str | None = None
    created_at: datetime | None = None
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        if not self.cheque_number or not self.cheque_number.strip():
            raise InvalidEntryError("cheque_number", "must not be empty")
        _require_positive(self.amount, "amount")

        if self.accounting_type is ChequeAccountingType.ENDORSED:
            if self.direction is ChequeDirection.INCOMING and not _has_text(self.endorsed_to_name):
                raise MissingCounterpartyNameError(self.cheque_number, "endorsed_to_name")
            if self.direction is ChequeDirection.OUTGOING and not _has_text(self.endorsed_from_name):
                raise MissingCounterpartyNameError(self.cheque_number, "endorsed_from_name")

        if (self.status is ChequeStatus.ENDORSED) != (
            self.accounting_type is ChequeAccountingType.ENDORSED
        ):
            raise InvalidEntryError(
                "status",
                f"{self.status.value} is inconsistent with accounting type "
                f"{self.accounting_type.value}",
            )

    @property
    def counterpart_name(self) -> str | None:
        if self.direction is ChequeDirection.INCOMING:
            return self.endorsed_to_name
        return self.endorsed_from_name


@dataclass(frozen=True)
class EndorsementTransfer:
    """
    Pass-through record for an endorsed cheque.

    Both legs are ``no_cash_movement`` payments; the original party's
    balance is not settled by an endorsement.
    """

    cheque_id: UUID
    from_party: str
    to_party: str
    amount: Decimal
    linked_transaction_id: str
    legs: tuple[Payment, Payment]
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        _require_positive(self.amount, "amount")
        if any(not leg.no_cash_movement for leg in self.legs):
            raise InvalidEntryError("legs", "endorsement legs must not move cash")


@dataclass(frozen=True)
class WriteOffRecord:
    """Audit record of one bad-debt write-off event. Never reversed."""

    entry_id: UUID
    transaction_id: str
    amount: Decimal
    reason: str
    actor: str
    timestamp: datetime
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        _require_positive(self.amount, "amount")
        if not _has_text(self.reason):
            raise InvalidEntryError("reason", "must not be empty")


@dataclass(frozen=True)
class AllocationLine:
    """Amount taken from one advance towards one invoice."""

    advance_id: UUID
    amount_allocated: Decimal
    remaining_after_allocation: Decimal

    def __post_init__(self) -> None:
        _require_non_negative(self.amount_allocated, "amount_allocated")
        _require_non_negative(self.remaining_after_allocation, "remaining_after_allocation")


def _has_text(value: str | None) -> bool:
    return bool(value and value.strip())
