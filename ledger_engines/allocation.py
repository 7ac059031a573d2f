"""
Module: ledger_engines.allocation
Responsibility:
    Decide how much of each customer/supplier advance goes towards an
    invoice: greedy FIFO for automatic allocation, clamped user selections
    for manual allocation.  Also resolves the remaining balance of advances
    persisted before advances were tracked like ordinary AR/AP entries.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Applying an allocation
    (two settlement writes per line, one atomic batch) is the job of
    ``ledger_modules.advances``.

Invariants enforced:
    - total allocated <= invoice amount, and per advance <= its remaining.
    - Oldest advances are consumed first (business date, then transaction
      id as tie-breaker).
    - Manual selections that would push the running total past the invoice
      are rejected as a whole increment, never redistributed.

Failure modes:
    - InvalidAmountError for a non-positive or non-numeric invoice amount.
    - AllocationExceedsInvoiceError for an over-allocating manual selection.
    - InvalidEntryError when the same advance is selected twice.

Usage:
    from ledger_engines.allocation import auto_allocate

    result = auto_allocate(Decimal("350"), advances)
    for line in result.lines:
        ...
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, replace
from decimal import Decimal

from ledger_config.taxonomy import CategoryRoles
from ledger_engines.settlement import compute_status
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.models import AllocationLine, LedgerEntry
from ledger_kernel.domain.values import (
    ZERO,
    CashDirection,
    EntryType,
    to_amount,
    to_positive_amount,
)
from ledger_kernel.exceptions import AllocationExceedsInvoiceError, InvalidEntryError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")


@dataclass(frozen=True)
class AllocationResult:
    """
    Outcome of one allocation run.

    Guarantees:
        - ``total_allocated + unallocated == invoice_amount``.
        - ``lines`` holds only advances that actually gave something.
    """

    invoice_amount: Decimal
    lines: tuple[AllocationLine, ...]
    total_allocated: Decimal
    unallocated: Decimal

    @property
    def is_fully_allocated(self) -> bool:
        return self.unallocated == ZERO

    @property
    def allocation_count(self) -> int:
        return len(self.lines)


def remaining(advance: LedgerEntry) -> Decimal:
    """
    Remaining credit on an advance.

    An explicitly tracked ``remaining_balance`` wins.  Legacy advances fall
    back to ``amount - max(total_paid, total_used_from_advance, 0)``.
    """
    if advance.remaining_balance is not None:
        return advance.remaining_balance
    used = max(advance.total_paid, advance.total_used_from_advance or ZERO, ZERO)
    return max(advance.amount - used, ZERO)


def resolve_legacy_advance(advance: LedgerEntry) -> LedgerEntry:
    """
    Bring an advance's settlement fields in line with ``remaining()``.

    After this, ordinary settlement arithmetic on the advance agrees with
    the legacy-aware remaining balance.  Advances written before they were
    tracked as AR/AP entries also get ``is_arap_entry`` set.  Entries that
    already agree are returned unchanged.
    """
    balance = remaining(advance)
    consumed = advance.amount - balance - advance.total_discount - advance.writeoff_amount
    consumed = max(consumed, ZERO)
    if (
        consumed == advance.total_paid
        and advance.remaining_balance == balance
        and advance.is_arap_entry
    ):
        return advance
    logger.info(
        "legacy_advance_resolved",
        extra={
            "advance_transaction_id": advance.transaction_id,
            "total_paid": str(advance.total_paid),
            "resolved_total_paid": str(consumed),
        },
    )
    return replace(
        advance,
        is_arap_entry=True,
        total_paid=consumed,
        remaining_balance=balance,
        payment_status=compute_status(
            advance.amount, consumed, advance.total_discount, advance.writeoff_amount
        ),
    )


def fifo_order(advances: Sequence[LedgerEntry]) -> list[LedgerEntry]:
    return sorted(advances, key=lambda a: (a.date, a.transaction_id))


def advance_category_for(entry_type: EntryType, roles: CategoryRoles) -> str | None:
    """Income invoices draw on customer advances, Expense invoices on supplier ones."""
    if entry_type is EntryType.INCOME:
        return roles.customer_advance
    if entry_type is EntryType.EXPENSE:
        return roles.supplier_advance
    return None


def advance_category_for_direction(direction: CashDirection, roles: CategoryRoles) -> str:
    if direction is CashDirection.RECEIPT:
        return roles.customer_advance
    return roles.supplier_advance


def _result(invoice_amount: Decimal, lines: list[AllocationLine]) -> AllocationResult:
    total = sum((line.amount_allocated for line in lines), ZERO)
    return AllocationResult(
        invoice_amount=invoice_amount,
        lines=tuple(lines),
        total_allocated=total,
        unallocated=invoice_amount - total,
    )


@traced_engine("allocation", "1.0", fingerprint_fields=("invoice_amount", "advances"))
def auto_allocate(invoice_amount: object, advances: Sequence[LedgerEntry]) -> AllocationResult:
    """Greedy FIFO: oldest advance first until the invoice is covered."""
    target = to_positive_amount(invoice_amount)
    outstanding = target
    lines: list[AllocationLine] = []

    for advance in fifo_order(advances):
        if outstanding <= ZERO:
            break
        available = remaining(advance)
        if available <= ZERO:
            continue
        take = min(available, outstanding)
        lines.append(
            AllocationLine(
                advance_id=advance.id,
                amount_allocated=take,
                remaining_after_allocation=available - take,
            )
        )
        outstanding -= take

    result = _result(target, lines)
    logger.info(
        "auto_allocation_computed",
        extra={
            "invoice_amount": str(target),
            "advance_count": len(advances),
            "total_allocated": str(result.total_allocated),
        },
    )
    return result


@traced_engine("allocation", "1.0", fingerprint_fields=("invoice_amount", "selections"))
def manual_allocate(
    invoice_amount: object,
    selections: Sequence[tuple[LedgerEntry, object]],
) -> AllocationResult:
    """
    Allocate user-chosen amounts, in selection order.

    Each amount is clamped to ``[0, remaining(advance)]``.  A selection
    that would take the running total past the invoice amount raises
    ``AllocationExceedsInvoiceError``.
    """
    target = to_positive_amount(invoice_amount)
    running = ZERO
    seen: set = set()
    lines: list[AllocationLine] = []

    for advance, requested in selections:
        if advance.id in seen:
            raise InvalidEntryError("selections", f"advance {advance.transaction_id} selected twice")
        seen.add(advance.id)

        available = remaining(advance)
        amount = max(ZERO, min(to_amount(requested), available))
        if amount == ZERO:
            continue
        if running + amount > target:
            logger.warning(
                "manual_allocation_rejected",
                extra={
                    "advance_transaction_id": advance.transaction_id,
                    "requested": str(amount),
                    "already_allocated": str(running),
                    "invoice_amount": str(target),
                },
            )
            raise AllocationExceedsInvoiceError(
                advance.transaction_id, amount, running, target
            )
        running += amount
        lines.append(
            AllocationLine(
                advance_id=advance.id,
                amount_allocated=amount,
                remaining_after_allocation=available - amount,
            )
        )

    return _result(target, lines)
