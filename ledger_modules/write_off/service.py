"""
Write-Off Processor - audited bad-debt write-offs.

Thin glue layer that:
1. Requires an explicit confirmation from the user
2. Calls the settlement engine (reason, amount bounds, cumulative total)
3. Writes the updated entry, a WriteOffRecord and a zero-cash write-off
   Payment marker through ONE apply_atomic call

A write-off is final.  There is no operation that undoes one.

Usage:
    processor = WriteOffProcessor(store, classifier, clock)
    result = processor.write_off(entry, Decimal("250"), "customer bankrupt",
                                 actor="u-17", confirmed=True)
"""

from __future__ import annotations

from ledger_engines import settlement
from ledger_engines.classifier import TransactionClassifier
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.models import LedgerEntry, Payment, WriteOffRecord
from ledger_kernel.domain.values import PaymentMethod
from ledger_kernel.exceptions import AtomicWriteError, WriteOffNotConfirmedError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.store.base import StoreOp, TransactionalStore
from ledger_modules.results import REJECTABLE_ERRORS, SettlementResult

logger = get_logger("modules.write_off.service")


class WriteOffProcessor:
    """Confirmed, audited write-offs against AR/AP entries."""

    def __init__(
        self,
        store: TransactionalStore,
        classifier: TransactionClassifier,
        clock: Clock | None = None,
    ):
        self._store = store
        self._classifier = classifier
        self._clock = clock or SystemClock()

    def write_off(
        self,
        entry: LedgerEntry,
        amount: object,
        reason: str,
        actor: str,
        confirmed: bool = False,
    ) -> SettlementResult:
        with LogContext.bind(
            entry_id=str(entry.id),
            transaction_id=entry.transaction_id,
            actor_id=actor,
            operation="write_off",
        ):
            try:
                if not confirmed:
                    raise WriteOffNotConfirmedError(entry.transaction_id)
                now = self._clock.now()
                updated = settlement.apply_write_off(entry, amount, reason, actor, now)
                written = updated.writeoff_amount - entry.writeoff_amount
                record = WriteOffRecord(
                    entry_id=entry.id,
                    transaction_id=entry.transaction_id,
                    amount=written,
                    reason=updated.writeoff_reason,
                    actor=actor,
                    timestamp=now,
                )
                marker = Payment(
                    amount=written,
                    direction=self._classifier.cash_direction(
                        entry.category, entry.sub_category
                    ),
                    linked_transaction_id=entry.transaction_id,
                    entry_id=entry.id,
                    timestamp=now,
                    method=PaymentMethod.WRITE_OFF,
                    notes=updated.writeoff_reason,
                    party=entry.party_name,
                    no_cash_movement=True,
                )
            except REJECTABLE_ERRORS as exc:
                logger.warning(
                    "write_off_rejected",
                    extra={"error_code": exc.code, "amount": str(amount)},
                )
                return SettlementResult.rejected(exc, entry)

            ops = [
                StoreOp.update_entry(updated, expected_version=entry.version),
                StoreOp.add_write_off(record),
                StoreOp.add_payment(marker),
            ]
            try:
                self._store.apply_atomic(ops)
            except AtomicWriteError as exc:
                logger.error(
                    "write_off_write_failed",
                    extra={"error_code": exc.code},
                )
                return SettlementResult.write_failed(exc, entry)

            logger.info(
                "write_off_recorded",
                extra={
                    "write_off_id": str(record.id),
                    "amount": str(written),
                    "writeoff_total": str(updated.writeoff_amount),
                    "remaining_balance": str(updated.remaining_balance),
                    "payment_status": updated.payment_status.value,
                },
            )
            return SettlementResult.applied(updated, (marker,))
