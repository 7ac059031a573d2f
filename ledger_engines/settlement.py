"""
ledger_engines.settlement -- Settlement arithmetic for one ledger entry.

Responsibility:
    Apply payments, discounts and write-offs to a ``LedgerEntry`` and
    derive its remaining balance and payment status.  Every operation
    returns a NEW frozen entry (``dataclasses.replace``) with ``version``
    incremented; the caller persists it through the transactional store.

Architecture position:
    Engines -- pure calculation layer.  No I/O, no clock: timestamps are
    passed in by the calling service.

Invariants enforced:
    - remaining = amount - paid - discount - writeoff, clamped at zero.
    - status is paid iff remaining <= EPSILON; partial iff something has
      been settled and remaining > EPSILON; otherwise unpaid.  Never
      "overpaid": an amount above the remaining balance is rejected, not
      stored.
    - Validation happens before any new value is computed; a rejected
      call leaves nothing behind.

Failure modes:
    - ``InvalidAmountError``: amount <= 0 or not numeric.
    - ``NotARAPEntryError``: entry does not track receivables/payables.
    - ``AmountExceedsBalanceError``: amount > remaining balance.
    - ``MissingReasonError``: write-off without a reason.

Audit relevance:
    Write-offs record reason, actor and date on the entry.  There is no
    compensating operation for a write-off.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal

from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.models import LedgerEntry, Payment
from ledger_kernel.domain.values import (
    EPSILON,
    ZERO,
    CashDirection,
    PaymentMethod,
    PaymentStatus,
    to_positive_amount,
)
from ledger_kernel.exceptions import (
    AmountExceedsBalanceError,
    MissingReasonError,
    NotARAPEntryError,
)


@dataclass(frozen=True)
class SettlementOutcome:
    """Updated entry plus the payment record that produced it."""

    entry: LedgerEntry
    payment: Payment


def compute_remaining(
    amount: Decimal,
    total_paid: Decimal = ZERO,
    total_discount: Decimal = ZERO,
    writeoff_amount: Decimal = ZERO,
) -> Decimal:
    """Outstanding balance, never below zero."""
    remaining = amount - total_paid - total_discount - writeoff_amount
    return max(remaining, ZERO)


def compute_status(
    amount: Decimal,
    total_paid: Decimal = ZERO,
    total_discount: Decimal = ZERO,
    writeoff_amount: Decimal = ZERO,
    epsilon: Decimal = EPSILON,
) -> PaymentStatus:
    remaining = compute_remaining(amount, total_paid, total_discount, writeoff_amount)
    if remaining <= epsilon:
        return PaymentStatus.PAID
    if total_paid + total_discount + writeoff_amount > ZERO:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def current_remaining(entry: LedgerEntry) -> Decimal:
    """Remaining balance recomputed from the entry's settlement fields."""
    return compute_remaining(
        entry.amount, entry.total_paid, entry.total_discount, entry.writeoff_amount
    )


def refresh_settlement(entry: LedgerEntry, *, bump_version: bool = False) -> LedgerEntry:
    """Return ``entry`` with remaining balance and status made explicit."""
    return replace(
        entry,
        remaining_balance=current_remaining(entry),
        payment_status=compute_status(
            entry.amount, entry.total_paid, entry.total_discount, entry.writeoff_amount
        ),
        version=entry.version + 1 if bump_version else entry.version,
    )


def _validate(entry: LedgerEntry, value: object) -> Decimal:
    amount = to_positive_amount(value)
    if not entry.is_arap_entry:
        raise NotARAPEntryError(entry.transaction_id)
    remaining = current_remaining(entry)
    if amount > remaining:
        raise AmountExceedsBalanceError(entry.transaction_id, amount, remaining)
    return amount


@traced_engine("settlement", "1.0", fingerprint_fields=("entry", "amount", "method"))
def apply_payment(
    entry: LedgerEntry,
    amount: object,
    *,
    direction: CashDirection,
    timestamp: datetime,
    method: PaymentMethod = PaymentMethod.CASH,
    notes: str | None = None,
    no_cash_movement: bool = False,
    cheque_id=None,
) -> SettlementOutcome:
    """``total_paid += amount`` and the Payment record for it."""
    value = _validate(entry, amount)
    updated = refresh_settlement(
        replace(entry, total_paid=entry.total_paid + value), bump_version=True
    )
    payment = Payment(
        amount=value,
        direction=direction,
        linked_transaction_id=entry.transaction_id,
        entry_id=entry.id,
        timestamp=timestamp,
        method=method,
        notes=notes,
        party=entry.party_name,
        no_cash_movement=no_cash_movement,
        cheque_id=cheque_id,
    )
    return SettlementOutcome(entry=updated, payment=payment)


@traced_engine("settlement", "1.0", fingerprint_fields=("entry", "amount"))
def apply_discount(entry: LedgerEntry, amount: object) -> LedgerEntry:
    """``total_discount += amount``. No cash moves, so no Payment."""
    value = _validate(entry, amount)
    return refresh_settlement(
        replace(entry, total_discount=entry.total_discount + value), bump_version=True
    )


@traced_engine("settlement", "1.0", fingerprint_fields=("entry", "amount", "reason", "actor"))
def apply_write_off(
    entry: LedgerEntry,
    amount: object,
    reason: str,
    actor: str,
    timestamp: datetime,
) -> LedgerEntry:
    """
    Cumulative write-off: ``writeoff_amount += amount``.

    The entry keeps the latest reason, actor and date.  A fully written-off
    entry is ``paid`` in the sense of closed, not collected.
    """
    if not reason or not reason.strip():
        raise MissingReasonError(entry.transaction_id)
    value = _validate(entry, amount)
    return refresh_settlement(
        replace(
            entry,
            writeoff_amount=entry.writeoff_amount + value,
            writeoff_reason=reason.strip(),
            writeoff_by=actor,
            writeoff_date=timestamp,
        ),
        bump_version=True,
    )
