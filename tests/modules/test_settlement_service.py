"""
Tests for SettlementService.

Covers:
- Payment/discount/write-off persisted with one atomic write
- Validation failures returned as REJECTED results, nothing written
- Store failures returned as WRITE_FAILED results
"""

from decimal import Decimal

from conftest import OPERATING, RENT, make_entry
from ledger_kernel.domain.values import CashDirection, EntryType, PaymentMethod, PaymentStatus
from ledger_kernel.exceptions import AtomicWriteError
from ledger_kernel.store import InMemoryStore, StoreOp
from ledger_modules import SettlementService, SettlementStatus


class _FailingStore(InMemoryStore):
    def apply_atomic(self, ops):
        raise AtomicWriteError(len(ops), "disk full")


class TestApplyPayment:
    def test_partial_then_full(self, store, stored_entry, settlement_service):
        entry = stored_entry(store, "1000")

        first = settlement_service.apply_payment(entry, "500")
        assert first.is_success
        assert first.entry.remaining_balance == Decimal("500")
        assert first.entry.payment_status is PaymentStatus.PARTIAL

        second = settlement_service.apply_payment(first.entry, Decimal("500"))
        assert second.entry.payment_status is PaymentStatus.PAID

        stored = store.get_entry(entry.id)
        assert stored.total_paid == Decimal("1000")
        assert stored.version == 2
        assert len(store.payments_for_entry(entry.id)) == 2

    def test_direction_follows_classification(self, store, stored_entry, settlement_service):
        expense = stored_entry(store, "300", category=OPERATING, sub_category=RENT,
                               entry_type=EntryType.EXPENSE, party="Landlord")
        result = settlement_service.apply_payment(expense, "100", notes="March rent")
        [payment] = result.payments
        assert payment.direction is CashDirection.DISBURSEMENT
        assert payment.method is PaymentMethod.CASH
        assert payment.notes == "March rent"

    def test_timestamp_from_clock(self, store, stored_entry, settlement_service,
                                  deterministic_clock):
        entry = stored_entry(store, "100")
        result = settlement_service.apply_payment(entry, "10")
        assert result.payments[0].timestamp == deterministic_clock.now()

    def test_over_payment_rejected(self, store, stored_entry, settlement_service):
        entry = stored_entry(store, "100")
        result = settlement_service.apply_payment(entry, "150")

        assert result.status is SettlementStatus.REJECTED
        assert result.error_code == "AMOUNT_EXCEEDS_BALANCE"
        assert result.entry == entry
        assert store.get_entry(entry.id) == entry
        assert store.payments_for_entry(entry.id) == []

    def test_invalid_amount_rejected(self, store, stored_entry, settlement_service):
        entry = stored_entry(store, "100")
        result = settlement_service.apply_payment(entry, "-1")
        assert result.error_code == "INVALID_AMOUNT"
        assert not result.is_success

    def test_non_arap_rejected(self, store, stored_entry, settlement_service):
        entry = stored_entry(store, "100", is_arap_entry=False)
        result = settlement_service.apply_payment(entry, "10")
        assert result.error_code == "ARAP_NOT_ENABLED"

    def test_stale_entry_is_write_failure(self, store, stored_entry, settlement_service):
        entry = stored_entry(store, "100")
        settlement_service.apply_payment(entry, "10")

        result = settlement_service.apply_payment(entry, "10")  # stale copy
        assert result.status is SettlementStatus.WRITE_FAILED
        assert result.error_code == "OPTIMISTIC_LOCK_CONFLICT"
        assert store.get_entry(entry.id).total_paid == Decimal("10")

    def test_events_logged_with_context(self, store, stored_entry, settlement_service,
                                        captured_logs):
        entry = stored_entry(store, "100")
        settlement_service.apply_payment(entry, "10")
        [applied] = [r for r in captured_logs() if r["message"] == "payment_applied"]
        assert applied["transaction_id"] == entry.transaction_id
        assert applied["operation"] == "apply_payment"
        assert applied["payment_status"] == "partial"


class TestDiscountAndWriteOff:
    def test_discount_writes_no_payment(self, store, stored_entry, settlement_service):
        entry = stored_entry(store, "200")
        result = settlement_service.apply_discount(entry, "20")
        assert result.is_success
        assert result.payments == ()
        assert store.get_entry(entry.id).total_discount == Decimal("20")
        assert store.payments_for_entry(entry.id) == []

    def test_write_off_records_actor(self, store, stored_entry, settlement_service,
                                     deterministic_clock):
        entry = stored_entry(store, "200")
        result = settlement_service.apply_write_off(entry, "200", "closed business", "u-9")
        stored = store.get_entry(entry.id)
        assert result.entry.payment_status is PaymentStatus.PAID
        assert stored.writeoff_by == "u-9"
        assert stored.writeoff_date == deterministic_clock.now()

    def test_write_off_without_reason(self, store, stored_entry, settlement_service):
        entry = stored_entry(store, "200")
        result = settlement_service.apply_write_off(entry, "50", "", "u-9")
        assert result.error_code == "MISSING_REASON"


class TestWriteFailures:
    def test_store_failure_becomes_result(self, classifier, deterministic_clock):
        store = _FailingStore()
        entry = make_entry("100")
        service = SettlementService(store, classifier, deterministic_clock)

        result = service.apply_payment(entry, "10")

        assert result.status is SettlementStatus.WRITE_FAILED
        assert result.error_code == "ATOMIC_WRITE_FAILED"
        assert result.entry == entry

    def test_single_atomic_call_per_operation(self, classifier, deterministic_clock):
        store = InMemoryStore()
        entry = make_entry("100")
        store.apply_atomic([StoreOp.insert_entry(entry)])
        service = SettlementService(store, classifier, deterministic_clock)

        service.apply_payment(entry, "10")
        assert store.commit_count == 2
