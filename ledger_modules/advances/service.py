"""
Advance Service - applies customer/supplier advances against invoices.

Thin glue layer that:
1. Queries the store for a party's open advances (oldest first)
2. Calls the allocation engine for FIFO or manual allocation plans
3. Settles each plan line against the advance AND the invoice and writes
   every entry and payment through ONE apply_atomic call

Allocation planning (``auto_allocate`` / ``manual_allocate``) is pure
computation and raises typed errors like the engines do.  Applying a plan
returns a ``SettlementResult``.

Usage:
    service = AdvanceService(store, classifier, clock)
    plan = service.auto_allocate(invoice)
    result = service.apply_allocation(invoice, plan.lines)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import replace
from uuid import UUID

from ledger_engines import allocation, settlement
from ledger_engines.allocation import AllocationResult
from ledger_engines.classifier import TransactionClassifier
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.models import AllocationLine, LedgerEntry, Payment
from ledger_kernel.domain.values import ZERO, CashDirection, PaymentMethod
from ledger_kernel.exceptions import AtomicWriteError, InvalidEntryError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.store.base import StoreOp, TransactionalStore
from ledger_modules.results import REJECTABLE_ERRORS, SettlementResult

logger = get_logger("modules.advances.service")


def _opposite(direction: CashDirection) -> CashDirection:
    if direction is CashDirection.RECEIPT:
        return CashDirection.DISBURSEMENT
    return CashDirection.RECEIPT


class AdvanceService:
    """Finds, plans and applies advance allocations for one store."""

    def __init__(
        self,
        store: TransactionalStore,
        classifier: TransactionClassifier,
        clock: Clock | None = None,
    ):
        self._store = store
        self._classifier = classifier
        self._roles = classifier.taxonomy.roles
        self._clock = clock or SystemClock()

    # =========================================================================
    # Queries
    # =========================================================================

    def list_available(self, party_name: str, direction: CashDirection) -> list[LedgerEntry]:
        """
        Open advances of ``party_name``, oldest first.

        Receipts draw on customer advances, disbursements on supplier ones.
        """
        category = allocation.advance_category_for_direction(direction, self._roles)
        candidates = self._store.find_entries(category=category, party=party_name)
        available = [a for a in candidates if allocation.remaining(a) > ZERO]
        logger.debug(
            "advances_listed",
            extra={
                "party": party_name,
                "category": category,
                "candidate_count": len(candidates),
                "available_count": len(available),
            },
        )
        return allocation.fifo_order(available)

    def advances_for_invoice(self, invoice: LedgerEntry) -> list[LedgerEntry]:
        entry_type = self._classifier.classify_entry(invoice).entry_type
        category = allocation.advance_category_for(entry_type, self._roles)
        if category is None or not invoice.associated_party:
            return []
        direction = self._classifier.cash_direction(invoice.category, invoice.sub_category)
        return self.list_available(invoice.associated_party, direction)

    # =========================================================================
    # Planning
    # =========================================================================

    def auto_allocate(
        self,
        invoice: LedgerEntry,
        advances: Sequence[LedgerEntry] | None = None,
    ) -> AllocationResult:
        """FIFO plan covering the invoice's current remaining balance."""
        if advances is None:
            advances = self.advances_for_invoice(invoice)
        return allocation.auto_allocate(settlement.current_remaining(invoice), advances)

    def manual_allocate(
        self,
        invoice: LedgerEntry,
        selections: Sequence[tuple[LedgerEntry, object]],
    ) -> AllocationResult:
        """User-chosen amounts, checked against the invoice's remaining balance."""
        return allocation.manual_allocate(settlement.current_remaining(invoice), selections)

    # =========================================================================
    # Application
    # =========================================================================

    def apply_allocation(
        self,
        invoice: LedgerEntry,
        lines: Sequence[AllocationLine],
    ) -> SettlementResult:
        """
        Settle the invoice from advances, one line at a time, in one write.

        Every line produces two zero-cash ``advance`` payments: one that
        consumes the advance and one that pays the invoice.  If any line is
        invalid nothing is written.
        """
        with LogContext.bind(
            entry_id=str(invoice.id),
            transaction_id=invoice.transaction_id,
            operation="apply_allocation",
        ):
            try:
                active = [line for line in lines if line.amount_allocated > ZERO]
                if not active:
                    raise InvalidEntryError("lines", "allocation has nothing to apply")

                invoice_direction = self._classifier.cash_direction(
                    invoice.category, invoice.sub_category
                )
                now = self._clock.now()
                current_invoice = invoice
                # advance id -> (version read from the store, latest computed state)
                advances: dict[UUID, tuple[int, LedgerEntry]] = {}
                payments: list[Payment] = []

                for line in active:
                    if line.advance_id in advances:
                        read_version, advance = advances[line.advance_id]
                    else:
                        stored = self._store.get_entry(line.advance_id)
                        read_version = stored.version
                        advance = allocation.resolve_legacy_advance(stored)

                    used = settlement.apply_payment(
                        advance,
                        line.amount_allocated,
                        direction=_opposite(invoice_direction),
                        timestamp=now,
                        method=PaymentMethod.ADVANCE,
                        notes=f"applied to {invoice.transaction_id}",
                        no_cash_movement=True,
                    )
                    advance = used.entry
                    if advance.total_used_from_advance is not None:
                        advance = replace(
                            advance,
                            total_used_from_advance=(
                                advance.total_used_from_advance + line.amount_allocated
                            ),
                        )
                    advances[line.advance_id] = (read_version, advance)

                    paid = settlement.apply_payment(
                        current_invoice,
                        line.amount_allocated,
                        direction=invoice_direction,
                        timestamp=now,
                        method=PaymentMethod.ADVANCE,
                        notes=f"paid from advance {advance.transaction_id}",
                        no_cash_movement=True,
                    )
                    current_invoice = paid.entry
                    payments.extend((used.payment, paid.payment))
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "advance_allocation_rejected",
                    extra={"error_code": exc.code, "line_count": len(lines)},
                )
                return SettlementResult.rejected(exc, invoice)

            ops = [StoreOp.update_entry(current_invoice, expected_version=invoice.version)]
            ops.extend(
                StoreOp.update_entry(advance, expected_version=read_version)
                for read_version, advance in advances.values()
            )
            ops.extend(StoreOp.add_payment(p) for p in payments)

            try:
                self._store.apply_atomic(ops)
            except AtomicWriteError as exc:
                logger.error(
                    "advance_allocation_write_failed",
                    extra={"error_code": exc.code, "operation_count": len(ops)},
                )
                return SettlementResult.write_failed(exc, invoice)

            logger.info(
                "advance_allocation_applied",
                extra={
                    "advance_count": len(advances),
                    "total_allocated": str(current_invoice.total_paid - invoice.total_paid),
                    "remaining_balance": str(current_invoice.remaining_balance),
                    "payment_status": current_invoice.payment_status.value,
                },
            )
            return SettlementResult.applied(current_invoice, tuple(payments))
