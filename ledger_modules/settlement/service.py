"""
Settlement Service - payments, discounts and write-offs against one entry.

Thin glue layer that:
1. Calls the settlement engine for validation and arithmetic
2. Calls the classifier for the entry's cash direction
3. Persists the updated entry and its Payment through ONE apply_atomic call

All computation lives in engines.  This service owns the write boundary
and turns validation failures into typed results.

Usage:
    service = SettlementService(store, classifier, clock)
    result = service.apply_payment(entry, Decimal("500"))
    if result.is_success:
        entry = result.entry
"""

from __future__ import annotations

from ledger_engines import settlement
from ledger_engines.classifier import TransactionClassifier
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.models import LedgerEntry, Payment
from ledger_kernel.domain.values import PaymentMethod
from ledger_kernel.exceptions import AtomicWriteError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.store.base import StoreOp, TransactionalStore
from ledger_modules.results import REJECTABLE_ERRORS, SettlementResult

logger = get_logger("modules.settlement.service")


class SettlementService:
    """
    Applies settlement events to AR/AP entries and persists them.

    Transaction boundary: each public method performs at most one
    ``apply_atomic`` call; a rejected call writes nothing.
    """

    def __init__(
        self,
        store: TransactionalStore,
        classifier: TransactionClassifier,
        clock: Clock | None = None,
    ):
        self._store = store
        self._classifier = classifier
        self._clock = clock or SystemClock()

    # =========================================================================
    # Payments
    # =========================================================================

    def apply_payment(
        self,
        entry: LedgerEntry,
        amount: object,
        *,
        method: PaymentMethod = PaymentMethod.CASH,
        notes: str | None = None,
    ) -> SettlementResult:
        """Record a cash (or other method) payment against ``entry``."""
        with LogContext.bind(
            entry_id=str(entry.id),
            transaction_id=entry.transaction_id,
            operation="apply_payment",
        ):
            try:
                direction = self._classifier.cash_direction(entry.category, entry.sub_category)
                outcome = settlement.apply_payment(
                    entry,
                    amount,
                    direction=direction,
                    timestamp=self._clock.now(),
                    method=method,
                    notes=notes,
                )
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "payment_rejected",
                    extra={"error_code": exc.code, "amount": str(amount)},
                )
                return SettlementResult.rejected(exc, entry)

            return self._persist(
                entry,
                outcome.entry,
                (outcome.payment,),
                event="payment_applied",
            )

    # =========================================================================
    # Discounts
    # =========================================================================

    def apply_discount(self, entry: LedgerEntry, amount: object) -> SettlementResult:
        """Reduce the balance without moving cash. No Payment is written."""
        with LogContext.bind(
            entry_id=str(entry.id),
            transaction_id=entry.transaction_id,
            operation="apply_discount",
        ):
            try:
                updated = settlement.apply_discount(entry, amount)
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "discount_rejected",
                    extra={"error_code": exc.code, "amount": str(amount)},
                )
                return SettlementResult.rejected(exc, entry)

            return self._persist(entry, updated, (), event="discount_applied")

    # =========================================================================
    # Write-offs
    # =========================================================================

    def apply_write_off(
        self,
        entry: LedgerEntry,
        amount: object,
        reason: str,
        actor: str,
    ) -> SettlementResult:
        """
        Write off part or all of the balance as bad debt.

        Only the entry is updated here.  ``WriteOffProcessor`` is the
        audited path that also writes the WriteOffRecord and marker Payment.
        """
        with LogContext.bind(
            entry_id=str(entry.id),
            transaction_id=entry.transaction_id,
            actor_id=actor,
            operation="apply_write_off",
        ):
            try:
                updated = settlement.apply_write_off(
                    entry, amount, reason, actor, self._clock.now()
                )
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "write_off_rejected",
                    extra={"error_code": exc.code, "amount": str(amount)},
                )
                return SettlementResult.rejected(exc, entry)

            return self._persist(entry, updated, (), event="write_off_applied")

    # =========================================================================
    # Internals
    # =========================================================================

    def _persist(
        self,
        original: LedgerEntry,
        updated: LedgerEntry,
        payments: tuple[Payment, ...],
        *,
        event: str,
    ) -> SettlementResult:
        ops = [StoreOp.update_entry(updated, expected_version=original.version)]
        ops.extend(StoreOp.add_payment(p) for p in payments)
        try:
            self._store.apply_atomic(ops)
        except AtomicWriteError as exc:
            logger.error(
                "settlement_write_failed",
                extra={"error_code": exc.code, "event": event},
            )
            return SettlementResult.write_failed(exc, original)

        logger.info(
            event,
            extra={
                "remaining_balance": str(updated.remaining_balance),
                "payment_status": updated.payment_status.value,
                "version": updated.version,
            },
        )
        return SettlementResult.applied(updated, payments)
