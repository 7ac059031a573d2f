"""
Entry Service - records new ledger entries.

Thin glue layer that:
1. Classifies the (category, subcategory) pair to derive the entry type
2. Draws a ``TXN-...`` transaction id that is not yet taken in the store
3. Inserts the entry through ``apply_atomic``

Entries that track receivables/payables start ``unpaid`` with the whole
amount remaining.  Other entries are settled when they are recorded and
carry no settlement state.
"""

from __future__ import annotations

from datetime import date
from uuid import uuid4

from ledger_engines.classifier import TransactionClassifier
from ledger_kernel.domain.clock import Clock, SystemClock, TransactionIdGenerator
from ledger_kernel.domain.models import LedgerEntry
from ledger_kernel.domain.values import EntryType, PaymentStatus, to_positive_amount
from ledger_kernel.exceptions import AtomicWriteError
from ledger_kernel.logging_config import LogContext, get_logger
from ledger_kernel.store.base import StoreOp, TransactionalStore
from ledger_modules.results import REJECTABLE_ERRORS, SettlementResult

logger = get_logger("modules.entries.service")


class EntryService:
    def __init__(
        self,
        store: TransactionalStore,
        classifier: TransactionClassifier,
        clock: Clock | None = None,
        id_generator: TransactionIdGenerator | None = None,
    ):
        self._store = store
        self._classifier = classifier
        self._clock = clock or SystemClock()
        self._ids = id_generator or TransactionIdGenerator(self._clock)

    def record_entry(
        self,
        category: str,
        sub_category: str,
        amount: object,
        business_date: date,
        *,
        party: str | None = None,
        description: str = "",
        is_arap_entry: bool = False,
    ) -> SettlementResult:
        """
        Classify and insert a new entry.

        ``party`` is the owner for equity entries and the customer or
        supplier for everything else.
        """
        with LogContext.bind(operation="record_entry"):
            try:
                value = to_positive_amount(amount)
                classification = self._classifier.classify(category, sub_category)
                is_equity = classification.entry_type is EntryType.EQUITY
                entry = LedgerEntry(
                    id=uuid4(),
                    transaction_id=self._ids.next_id(self._store.transaction_id_exists),
                    category=category,
                    sub_category=sub_category,
                    entry_type=classification.entry_type,
                    amount=value,
                    date=business_date,
                    description=description,
                    associated_party=None if is_equity else party,
                    owner_name=party if is_equity else None,
                    is_arap_entry=is_arap_entry,
                    remaining_balance=value if is_arap_entry else None,
                    payment_status=PaymentStatus.UNPAID if is_arap_entry else None,
                )
            except REJECTABLE_ERRORS as exc:
                logger.info(
                    "entry_rejected",
                    extra={"error_code": exc.code, "category": category},
                )
                return SettlementResult.rejected(exc)

            with LogContext.bind(entry_id=str(entry.id), transaction_id=entry.transaction_id):
                try:
                    self._store.apply_atomic([StoreOp.insert_entry(entry)])
                except AtomicWriteError as exc:
                    logger.error("entry_write_failed", extra={"error_code": exc.code})
                    return SettlementResult.write_failed(exc)

                logger.info(
                    "entry_recorded",
                    extra={
                        "entry_type": entry.entry_type.value,
                        "amount": str(entry.amount),
                        "is_arap_entry": entry.is_arap_entry,
                        "excluded_from_pl": classification.excluded_from_pl,
                    },
                )
                return SettlementResult.applied(entry)
