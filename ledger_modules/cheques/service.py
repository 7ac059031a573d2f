"""
Cheque Ledger - records cheques against entries and moves them through
their lifecycle.

Thin glue layer that:
1. Validates the request (amount, counterparty, cheque total, transition)
2. Calls the settlement engine when a cheque actually settles the entry
3. Writes cheque, payment(s) and entry update through ONE apply_atomic call

Accounting types at creation:
    cashed     -> status cashed, settles the entry like a payment
    postponed  -> status pending, no settlement until confirm_collection
    endorsed   -> status endorsed, pass-through EndorsementTransfer with two
                  zero-cash legs; the entry balance does not move

A non-AR/AP entry still gets the cheque Payment record when the cheque is
cashed, but its settlement fields stay as they are (it was settled when
it was created).

Usage:
    ledger = ChequeLedger(store, classifier, clock)
    result = ledger.create_cheque(entry, ChequeRequest(...))
    later = ledger.confirm_collection(result.cheque)
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from decimal import Decimal

from ledger_engines import settlement
from ledger_engines.classifier import TransactionClassifier
from ledger_kernel.domain.clock import Clock, SystemClock
from ledger_kernel.domain.models import Cheque, EndorsementTransfer, LedgerEntry, Payment
from ledger_kernel.domain.values import (
    ZERO,
    CashDirection,
    ChequeAccountingType,
    ChequeDirection,
    ChequeStatus,
    PaymentMethod,
    direction_for_cheque,
    to_positive_amount,
)
from ledger_kernel.exceptions import AtomicWriteError, ChequeTotalExceedsEntryError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.store.base import StoreOp, TransactionalStore
from ledger_modules.cheques.models import ChequeRequest
from ledger_modules.cheques.workflows import validate_transition
from ledger_modules.results import REJECTABLE_ERRORS, ChequeResult, SettlementStatus

logger = get_logger("modules.cheques.service")

_INITIAL_STATUS = {
    ChequeAccountingType.CASHED: ChequeStatus.CASHED,
    ChequeAccountingType.POSTPONED: ChequeStatus.PENDING,
    ChequeAccountingType.ENDORSED: ChequeStatus.ENDORSED,
}


class ChequeLedger:
    """
    Cheque operations for one store.

    Transaction boundary: every public method performs at most one
    ``apply_atomic`` call.  Validation failures come back as REJECTED
    results and leave the store untouched.
    """

    def __init__(
        self,
        store: TransactionalStore,
        classifier: TransactionClassifier,
        clock: Clock | None = None,
    ):
        self._store = store
        self._classifier = classifier
        self._settings = classifier.taxonomy.settings
        self._clock = clock or SystemClock()

    # =========================================================================
    # Creation
    # =========================================================================

    def create_cheque(self, entry: LedgerEntry, request: ChequeRequest) -> ChequeResult:
        """Attach a new cheque to ``entry`` according to its accounting type."""
        with LogContext.bind(
            entry_id=str(entry.id),
            transaction_id=entry.transaction_id,
            operation="create_cheque",
        ):
            try:
                amount = to_positive_amount(request.amount)
                cash_direction = self._classifier.cash_direction(
                    entry.category, entry.sub_category
                )
                self._check_cheque_total(entry, amount)
                cheque = Cheque(
                    cheque_number=request.cheque_number.strip(),
                    amount=amount,
                    bank_name=request.bank_name,
                    due_date=request.due_date,
                    direction=direction_for_cheque(cash_direction),
                    accounting_type=request.accounting_type,
                    status=_INITIAL_STATUS[request.accounting_type],
                    entry_id=entry.id,
                    linked_transaction_id=entry.transaction_id,
                    endorsed_to_name=request.endorsed_to_name,
                    endorsed_from_name=request.endorsed_from_name,
                    created_at=self._clock.now(),
                )

                ops = [StoreOp.save_cheque(cheque)]
                updated = entry
                payments: tuple[Payment, ...] = ()
                transfer = None

                if request.accounting_type is ChequeAccountingType.CASHED:
                    updated, payment = self._settle(
                        entry, cheque, cash_direction, request.notes
                    )
                    payments = (payment,)
                elif request.accounting_type is ChequeAccountingType.ENDORSED:
                    transfer = self._endorsement(entry, cheque, self._clock.now())
                    payments = transfer.legs
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "cheque_rejected",
                    extra={
                        "error_code": exc.code,
                        "cheque_number": request.cheque_number,
                        "accounting_type": request.accounting_type.value,
                    },
                )
                return ChequeResult.rejected(exc, entry=entry)

            if updated is not entry:
                ops.append(StoreOp.update_entry(updated, expected_version=entry.version))
            if transfer is not None:
                ops.append(StoreOp.add_endorsement(transfer))
            else:
                ops.extend(StoreOp.add_payment(p) for p in payments)

            return self._persist(
                ops,
                ChequeResult(
                    status=SettlementStatus.APPLIED,
                    cheque=cheque,
                    entry=updated,
                    payments=payments,
                    transfer=transfer,
                ),
                event="cheque_recorded",
                original=entry,
            )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def confirm_collection(
        self, cheque: Cheque, entry: LedgerEntry | None = None
    ) -> ChequeResult:
        """pending -> cashed; applies the cheque amount as a payment."""
        with LogContext.bind(
            entry_id=str(cheque.entry_id),
            transaction_id=cheque.linked_transaction_id,
            operation="confirm_collection",
        ):
            try:
                validate_transition(cheque.status, ChequeStatus.CASHED, cheque.id)
                if entry is None:
                    entry = self._store.get_entry(cheque.entry_id)
                cash_direction = (
                    CashDirection.RECEIPT
                    if cheque.direction is ChequeDirection.INCOMING
                    else CashDirection.DISBURSEMENT
                )
                cashed = replace(cheque, status=ChequeStatus.CASHED)
                updated, payment = self._settle(entry, cashed, cash_direction, None)
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "cheque_collection_rejected",
                    extra={"error_code": exc.code, "cheque_id": str(cheque.id)},
                )
                return ChequeResult.rejected(exc, cheque=cheque, entry=entry)

            ops = [StoreOp.save_cheque(cashed)]
            if updated is not entry:
                ops.append(StoreOp.update_entry(updated, expected_version=entry.version))
            ops.append(StoreOp.add_payment(payment))
            return self._persist(
                ops,
                ChequeResult(
                    status=SettlementStatus.APPLIED,
                    cheque=cashed,
                    entry=updated,
                    payments=(payment,),
                ),
                event="cheque_collected",
                original=entry,
            )

    def reject_cheque(self, cheque: Cheque) -> ChequeResult:
        """pending -> rejected (bounced). No settlement effect."""
        with LogContext.bind(
            entry_id=str(cheque.entry_id),
            transaction_id=cheque.linked_transaction_id,
            operation="reject_cheque",
        ):
            try:
                validate_transition(cheque.status, ChequeStatus.REJECTED, cheque.id)
            except REJECTABLE_ERRORS as exc:
                return ChequeResult.rejected(exc, cheque=cheque)

            bounced = replace(cheque, status=ChequeStatus.REJECTED)
            return self._persist(
                [StoreOp.save_cheque(bounced)],
                ChequeResult(status=SettlementStatus.APPLIED, cheque=bounced),
                event="cheque_bounced",
            )

    def endorse_cheque(self, cheque: Cheque, counterparty_name: str) -> ChequeResult:
        """
        pending -> endorsed.

        ``counterparty_name`` is who an incoming cheque is passed on to, or
        who an outgoing cheque originally came from.
        """
        with LogContext.bind(
            entry_id=str(cheque.entry_id),
            transaction_id=cheque.linked_transaction_id,
            operation="endorse_cheque",
        ):
            try:
                validate_transition(cheque.status, ChequeStatus.ENDORSED, cheque.id)
                name_field = (
                    "endorsed_to_name"
                    if cheque.direction is ChequeDirection.INCOMING
                    else "endorsed_from_name"
                )
                endorsed = replace(
                    cheque,
                    status=ChequeStatus.ENDORSED,
                    accounting_type=ChequeAccountingType.ENDORSED,
                    **{name_field: counterparty_name},
                )
                entry = self._store.get_entry(cheque.entry_id)
                transfer = self._endorsement(entry, endorsed, self._clock.now())
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "cheque_endorsement_rejected",
                    extra={"error_code": exc.code, "cheque_id": str(cheque.id)},
                )
                return ChequeResult.rejected(exc, cheque=cheque)

            return self._persist(
                [StoreOp.save_cheque(endorsed), StoreOp.add_endorsement(transfer)],
                ChequeResult(
                    status=SettlementStatus.APPLIED,
                    cheque=endorsed,
                    entry=entry,
                    payments=transfer.legs,
                    transfer=transfer,
                ),
                event="cheque_endorsed",
            )

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_cheque_total(self, entry: LedgerEntry, amount: Decimal) -> None:
        """Live cheques on an entry may not add up to more than the entry."""
        if not self._settings.enforce_cheque_total:
            return
        existing = sum(
            (
                c.amount
                for c in self._store.cheques_for_entry(entry.id)
                if c.status is not ChequeStatus.REJECTED
            ),
            ZERO,
        )
        total = existing + amount
        if total > entry.amount:
            raise ChequeTotalExceedsEntryError(entry.transaction_id, total, entry.amount)

    def _settle(
        self,
        entry: LedgerEntry,
        cheque: Cheque,
        direction: CashDirection,
        notes: str | None,
    ) -> tuple[LedgerEntry, Payment]:
        notes = notes or f"cheque {cheque.cheque_number}"
        if entry.is_arap_entry:
            outcome = settlement.apply_payment(
                entry,
                cheque.amount,
                direction=direction,
                timestamp=self._clock.now(),
                method=PaymentMethod.CHEQUE,
                notes=notes,
                cheque_id=cheque.id,
            )
            return outcome.entry, outcome.payment

        payment = Payment(
            amount=cheque.amount,
            direction=direction,
            linked_transaction_id=entry.transaction_id,
            entry_id=entry.id,
            timestamp=self._clock.now(),
            method=PaymentMethod.CHEQUE,
            notes=notes,
            party=entry.party_name,
            cheque_id=cheque.id,
        )
        return entry, payment

    @staticmethod
    def _endorsement(
        entry: LedgerEntry, cheque: Cheque, timestamp: datetime
    ) -> EndorsementTransfer:
        party = entry.party_name or ""
        if cheque.direction is ChequeDirection.INCOMING:
            from_party, to_party = party, cheque.endorsed_to_name
        else:
            from_party, to_party = cheque.endorsed_from_name, party

        def leg(direction: CashDirection, leg_party: str, notes: str) -> Payment:
            return Payment(
                amount=cheque.amount,
                direction=direction,
                linked_transaction_id=entry.transaction_id,
                entry_id=entry.id,
                timestamp=timestamp,
                method=PaymentMethod.ENDORSEMENT,
                notes=notes,
                party=leg_party,
                no_cash_movement=True,
                cheque_id=cheque.id,
            )

        return EndorsementTransfer(
            cheque_id=cheque.id,
            from_party=from_party,
            to_party=to_party,
            amount=cheque.amount,
            linked_transaction_id=entry.transaction_id,
            legs=(
                leg(CashDirection.RECEIPT, from_party,
                    f"endorsement of cheque {cheque.cheque_number} to {to_party}"),
                leg(CashDirection.DISBURSEMENT, to_party,
                    f"endorsed cheque {cheque.cheque_number} from {from_party}"),
            ),
        )

    def _persist(
        self,
        ops: list[StoreOp],
        result: ChequeResult,
        *,
        event: str,
        original: LedgerEntry | None = None,
    ) -> ChequeResult:
        try:
            self._store.apply_atomic(ops)
        except AtomicWriteError as exc:
            logger.error(
                "cheque_write_failed",
                extra={"error_code": exc.code, "event": event},
            )
            return ChequeResult.write_failed(exc, cheque=result.cheque, entry=original)

        cheque = result.cheque
        logger.info(
            event,
            extra={
                "cheque_id": str(cheque.id),
                "cheque_number": cheque.cheque_number,
                "status": cheque.status.value,
                "amount": str(cheque.amount),
            },
        )
        return result
