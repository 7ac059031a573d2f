"""
Tests for the transaction classifier.

Covers:
- Every taxonomy pair classifies to exactly one entry type
- P&L exclusion for equity, advances, loans and fixed-asset purchases
- Owner drawings stay Equity
- Loan direction by subcategory
- Unknown loan categories are fatal; other unknown categories default
"""

import pytest

from conftest import (
    CAPITAL,
    CUSTOMER_ADVANCE,
    DEPRECIATION,
    FIXED_ASSETS,
    LOANS_GIVEN,
    LOANS_RECEIVED,
    OPERATING,
    OWNER_CONTRIBUTION,
    OWNER_DRAWINGS,
    RENT,
    SALES,
    SALES_PRODUCTS,
    SUPPLIER_ADVANCE,
)
from ledger_engines.classifier import classify
from ledger_kernel.domain.values import EXCLUDED_FROM_PL_TYPES, CashDirection, EntryType
from ledger_kernel.exceptions import UnknownLoanCategoryError


class TestTaxonomyCoverage:
    """Property: the whole taxonomy classifies cleanly."""

    def test_every_pair_classifies(self, classifier, taxonomy):
        for category, sub_category in taxonomy.pairs():
            result = classifier.classify(category, sub_category)
            assert isinstance(result.entry_type, EntryType)
            assert result.excluded_from_pl == (result.entry_type in EXCLUDED_FROM_PL_TYPES)

    def test_depreciation_stays_in_pl(self, classifier):
        result = classifier.classify(FIXED_ASSETS, DEPRECIATION)
        assert result.entry_type is EntryType.EXPENSE
        assert result.excluded_from_pl is False

    def test_fixed_asset_purchase_excluded(self, classifier):
        result = classifier.classify(FIXED_ASSETS, "معدات وآلات")
        assert result.entry_type is EntryType.FIXED_ASSET_PURCHASE
        assert result.excluded_from_pl is True
        assert result.cash_direction is CashDirection.DISBURSEMENT


class TestBasicTypes:
    def test_income(self, classifier):
        result = classifier.classify(SALES, SALES_PRODUCTS)
        assert result.entry_type is EntryType.INCOME
        assert result.is_receipt
        assert not result.excluded_from_pl

    def test_expense(self, classifier):
        result = classifier.classify(OPERATING, RENT)
        assert result.entry_type is EntryType.EXPENSE
        assert result.cash_direction is CashDirection.DISBURSEMENT


class TestEquity:
    """Owner transactions never reach P&L."""

    def test_owner_drawings(self, taxonomy):
        result = classify(taxonomy, CAPITAL, OWNER_DRAWINGS)
        assert result.entry_type is EntryType.EQUITY
        assert result.cash_direction is CashDirection.DISBURSEMENT
        assert result.excluded_from_pl is True

    def test_owner_contribution(self, classifier):
        result = classifier.classify(CAPITAL, OWNER_CONTRIBUTION)
        assert result.entry_type is EntryType.EQUITY
        assert result.cash_direction is CashDirection.RECEIPT
        assert result.excluded_from_pl is True

    def test_contribution_not_flagged(self, classifier, captured_logs):
        classifier.classify(CAPITAL, OWNER_CONTRIBUTION)
        assert not [r for r in captured_logs() if r["message"] == "equity_subcategory_defaulted"]

    @pytest.mark.parametrize("sub_category", ["", "تسوية رأس المال"])
    def test_unrecognized_subcategory_warns(self, classifier, captured_logs, sub_category):
        result = classifier.classify(CAPITAL, sub_category)

        assert result.entry_type is EntryType.EQUITY
        assert result.cash_direction is CashDirection.RECEIPT
        [warning] = [
            r for r in captured_logs() if r["message"] == "equity_subcategory_defaulted"
        ]
        assert warning["level"] == "WARNING"
        assert warning["sub_category"] == sub_category


class TestLoans:
    @pytest.mark.parametrize(
        "category, sub_category, entry_type, direction",
        [
            (LOANS_GIVEN, "منح قرض", EntryType.LOAN_GIVEN, CashDirection.DISBURSEMENT),
            (LOANS_GIVEN, "تحصيل قرض", EntryType.LOAN_GIVEN, CashDirection.RECEIPT),
            (LOANS_RECEIVED, "استلام قرض", EntryType.LOAN_RECEIVED, CashDirection.RECEIPT),
            (LOANS_RECEIVED, "سداد قرض", EntryType.LOAN_RECEIVED, CashDirection.DISBURSEMENT),
        ],
    )
    def test_loan_direction(self, classifier, category, sub_category, entry_type, direction):
        result = classifier.classify(category, sub_category)
        assert result.entry_type is entry_type
        assert result.cash_direction is direction
        assert result.excluded_from_pl is True

    def test_unknown_loan_category_is_fatal(self, classifier, captured_logs):
        with pytest.raises(UnknownLoanCategoryError) as exc_info:
            classifier.classify("قروض الموظفين", "منح قرض")
        assert exc_info.value.code == "UNKNOWN_LOAN_CATEGORY"
        assert any(r["message"] == "loan_category_unknown" for r in captured_logs())

    def test_is_loan_initial_requires_loan_category(self, classifier):
        with pytest.raises(UnknownLoanCategoryError):
            classifier.is_loan_initial(SALES, SALES_PRODUCTS)


class TestAdvances:
    def test_customer_advance_is_receipt(self, classifier):
        result = classifier.classify(CUSTOMER_ADVANCE)
        assert result.entry_type is EntryType.ADVANCE
        assert result.cash_direction is CashDirection.RECEIPT
        assert result.excluded_from_pl

    def test_supplier_advance_is_disbursement(self, classifier):
        result = classifier.classify(SUPPLIER_ADVANCE, "")
        assert result.entry_type is EntryType.ADVANCE
        assert result.cash_direction is CashDirection.DISBURSEMENT


class TestUnknownCategory:
    def test_defaults_to_income_with_warning(self, classifier, captured_logs):
        result = classifier.classify("فئة جديدة", "")
        assert result.entry_type is EntryType.INCOME
        assert result.cash_direction is CashDirection.RECEIPT
        warnings = [r for r in captured_logs() if r["message"] == "category_unknown_defaulted"]
        assert warnings and warnings[0]["level"] == "WARNING"

    def test_classification_is_traced(self, classifier, captured_logs):
        classifier.classify(SALES, SALES_PRODUCTS)
        traces = [r for r in captured_logs() if r["message"] == "LEDGER_ENGINE_TRACE"]
        assert traces[-1]["engine_name"] == "classifier"
        assert traces[-1]["error_code"] is None
