"""
Tests for EntryService.record_entry.
"""

import re
from datetime import date
from decimal import Decimal

from conftest import CAPITAL, FIXED_ASSETS, LOANS_GIVEN, OWNER_DRAWINGS, SALES, SALES_PRODUCTS
from ledger_kernel.domain.values import EntryType, PaymentStatus
from ledger_modules import SettlementStatus

TXN_PATTERN = re.compile(r"^TXN-\d{8}-\d{6}-\d{3}$")


class TestRecordEntry:
    def test_arap_entry_starts_unpaid(self, store, entry_service):
        result = entry_service.record_entry(
            SALES, SALES_PRODUCTS, "1500", date(2024, 2, 1),
            party="Customer A", description="invoice 17", is_arap_entry=True,
        )

        assert result.is_success
        entry = result.entry
        assert TXN_PATTERN.match(entry.transaction_id)
        assert entry.entry_type is EntryType.INCOME
        assert entry.remaining_balance == Decimal("1500")
        assert entry.payment_status is PaymentStatus.UNPAID
        assert store.get_entry(entry.id) == entry

    def test_settled_entry_has_no_balance(self, store, entry_service):
        result = entry_service.record_entry(SALES, SALES_PRODUCTS, "20", date(2024, 2, 1))
        assert result.entry.remaining_balance is None
        assert result.entry.payment_status is None

    def test_equity_party_is_owner(self, store, entry_service):
        result = entry_service.record_entry(
            CAPITAL, OWNER_DRAWINGS, "300", date(2024, 2, 1), party="Owner"
        )
        assert result.entry.entry_type is EntryType.EQUITY
        assert result.entry.owner_name == "Owner"
        assert result.entry.associated_party is None

    def test_type_derived_from_category(self, store, entry_service):
        asset = entry_service.record_entry(FIXED_ASSETS, "", "9000", date(2024, 2, 1))
        assert asset.entry.entry_type is EntryType.FIXED_ASSET_PURCHASE
        loan = entry_service.record_entry(LOANS_GIVEN, "منح قرض", "500", date(2024, 2, 1))
        assert loan.entry.entry_type is EntryType.LOAN_GIVEN

    def test_transaction_ids_unique(self, store, entry_service):
        ids = {
            entry_service.record_entry(SALES, SALES_PRODUCTS, "10", date(2024, 2, 1))
            .entry.transaction_id
            for _ in range(20)
        }
        assert len(ids) == 20

    def test_unknown_loan_category_rejected(self, store, entry_service):
        result = entry_service.record_entry("قرض شخصي", "", "100", date(2024, 2, 1))
        assert result.status is SettlementStatus.REJECTED
        assert result.error_code == "UNKNOWN_LOAN_CATEGORY"
        assert result.entry is None

    def test_invalid_amount_rejected(self, store, entry_service):
        result = entry_service.record_entry(SALES, SALES_PRODUCTS, "0", date(2024, 2, 1))
        assert result.error_code == "INVALID_AMOUNT"

    def test_recorded_event(self, store, entry_service, captured_logs):
        result = entry_service.record_entry(CAPITAL, OWNER_DRAWINGS, "300", date(2024, 2, 1),
                                            party="Owner")
        [recorded] = [r for r in captured_logs() if r["message"] == "entry_recorded"]
        assert recorded["transaction_id"] == result.entry.transaction_id
        assert recorded["excluded_from_pl"] is True
