"""
Tests for the TransactionalStore adapters.

Every test runs against both the in-memory store and the SQLite-backed
SQLAlchemy store through the parametrized ``store`` fixture.
"""

from dataclasses import replace
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from conftest import CUSTOMER_ADVANCE, make_advance, make_entry
from ledger_engines.settlement import apply_payment
from ledger_kernel.domain.models import Cheque, WriteOffRecord
from ledger_kernel.domain.values import (
    CashDirection,
    ChequeAccountingType,
    ChequeDirection,
    ChequeStatus,
    EntryType,
    PaymentStatus,
)
from ledger_kernel.exceptions import (
    AtomicWriteError,
    EntryNotFoundError,
    OptimisticLockError,
)
from ledger_kernel.store import StoreOp

NOW = datetime(2024, 2, 1, 10, 0, tzinfo=timezone.utc)


def _pay(entry, amount="100"):
    return apply_payment(entry, amount, direction=CashDirection.RECEIPT, timestamp=NOW)


class TestRoundTrip:
    def test_entry_round_trip(self, store):
        entry = make_entry("1234.56", description="اختبار")
        store.apply_atomic([StoreOp.insert_entry(entry)])

        loaded = store.get_entry(entry.id)
        assert loaded == entry
        assert isinstance(loaded.amount, Decimal)
        assert loaded.payment_status is PaymentStatus.UNPAID

    def test_missing_entry(self, store):
        with pytest.raises(EntryNotFoundError):
            store.get_entry(uuid4())

    def test_transaction_id_exists(self, store):
        entry = make_entry("10")
        store.apply_atomic([StoreOp.insert_entry(entry)])
        assert store.transaction_id_exists(entry.transaction_id)
        assert not store.transaction_id_exists("TXN-19990101-000000-000")

    def test_cheque_saved_and_updated(self, store):
        entry = make_entry("500")
        cheque = Cheque(
            cheque_number="77",
            amount=Decimal("200"),
            bank_name="Housing Bank",
            due_date=date(2024, 4, 1),
            direction=ChequeDirection.INCOMING,
            accounting_type=ChequeAccountingType.POSTPONED,
            status=ChequeStatus.PENDING,
            entry_id=entry.id,
            linked_transaction_id=entry.transaction_id,
            created_at=NOW,
        )
        store.apply_atomic([StoreOp.insert_entry(entry), StoreOp.save_cheque(cheque)])
        store.apply_atomic([StoreOp.save_cheque(replace(cheque, status=ChequeStatus.REJECTED))])

        [loaded] = store.cheques_for_entry(entry.id)
        assert loaded.id == cheque.id
        assert loaded.status is ChequeStatus.REJECTED

    def test_write_off_records(self, store):
        entry = make_entry("100")
        record = WriteOffRecord(
            entry_id=entry.id,
            transaction_id=entry.transaction_id,
            amount=Decimal("40"),
            reason="bad debt",
            actor="u-1",
            timestamp=NOW,
        )
        store.apply_atomic([StoreOp.insert_entry(entry), StoreOp.add_write_off(record)])
        assert store.write_offs_for_entry(entry.id) == [record]


class TestQueries:
    def test_find_entries_filters_and_orders(self, store):
        later = make_advance("100", date(2024, 1, 5))
        earlier = make_advance("100", date(2024, 1, 1))
        other_party = make_advance("100", date(2024, 1, 2), party="Customer Z")
        sale = make_entry("100")
        store.apply_atomic([StoreOp.insert_entry(e) for e in (later, earlier, other_party, sale)])

        found = store.find_entries(category=CUSTOMER_ADVANCE, party="Customer A")
        assert [e.id for e in found] == [earlier.id, later.id]
        assert [e.id for e in store.find_entries(entry_type=EntryType.INCOME)] == [sale.id]


class TestAtomicity:
    """All-or-nothing batches and optimistic version checks."""

    def test_entry_update_and_payment_together(self, store):
        entry = make_entry("300")
        store.apply_atomic([StoreOp.insert_entry(entry)])

        outcome = _pay(entry)
        store.apply_atomic([StoreOp.update_entry(outcome.entry), StoreOp.add_payment(outcome.payment)])

        assert store.get_entry(entry.id).total_paid == Decimal("100")
        assert store.get_entry(entry.id).version == 1
        assert store.payments_for_entry(entry.id) == [outcome.payment]

    def test_failed_batch_leaves_nothing(self, store):
        entry = make_entry("300")
        store.apply_atomic([StoreOp.insert_entry(entry)])

        outcome = _pay(entry)
        orphan = _pay(make_entry("50"), "10").payment  # its entry was never stored
        with pytest.raises(AtomicWriteError):
            store.apply_atomic([
                StoreOp.update_entry(outcome.entry),
                StoreOp.add_payment(outcome.payment),
                StoreOp.add_payment(orphan),
            ])

        assert store.get_entry(entry.id) == entry
        assert store.payments_for_entry(entry.id) == []

    def test_stale_version_rejected(self, store):
        entry = make_entry("300")
        store.apply_atomic([StoreOp.insert_entry(entry)])

        first = _pay(entry)
        store.apply_atomic([StoreOp.update_entry(first.entry)])

        stale = _pay(entry, "50")  # computed from version 0 again
        with pytest.raises(OptimisticLockError) as exc_info:
            store.apply_atomic([StoreOp.update_entry(stale.entry)])
        assert exc_info.value.code == "OPTIMISTIC_LOCK_CONFLICT"
        assert isinstance(exc_info.value, AtomicWriteError)
        assert store.get_entry(entry.id).total_paid == Decimal("100")

    def test_duplicate_transaction_id_rejected(self, store):
        entry = make_entry("10")
        twin = make_entry("20", transaction_id=entry.transaction_id)
        store.apply_atomic([StoreOp.insert_entry(entry)])
        with pytest.raises(AtomicWriteError):
            store.apply_atomic([StoreOp.insert_entry(twin)])

    def test_update_missing_entry(self, store):
        entry = make_entry("10")
        with pytest.raises(AtomicWriteError):
            store.apply_atomic([StoreOp.update_entry(_pay(entry, "1").entry)])


class TestMemoryStoreCommits:
    def test_commit_count(self, memory_store):
        memory_store.apply_atomic([StoreOp.insert_entry(make_entry("10"))])
        with pytest.raises(AtomicWriteError):
            memory_store.apply_atomic([StoreOp.update_entry(_pay(make_entry("10"), "1").entry)])
        assert memory_store.commit_count == 1
