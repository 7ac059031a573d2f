"""
ledger_engines.classifier -- Transaction classification.

Responsibility:
    Derive, from a (category, subcategory) pair, the kind of financial
    event an entry represents, whether it participates in profit and loss,
    and which way cash moves.

Architecture position:
    Engines -- pure calculation layer.  Reads an injected
    ``CategoryTaxonomy``; never touches storage or the clock.

Invariants enforced:
    - Every input classifies to exactly one ``EntryType``.
    - ``excluded_from_pl`` is true iff the entry type is Equity, Advance,
      LoanGiven, LoanReceived or FixedAssetPurchase.  Depreciation under
      the fixed-asset category stays an Expense and so stays in P&L.
    - Equity is never reclassified as Income or Expense, whichever way
      the cash moves.

Failure modes:
    - ``UnknownLoanCategoryError`` for a loan-like category that is neither
      of the two configured loan categories.  Never defaulted.
    - Any other unknown category degrades to Income / receipt with a
      ``category_unknown_defaulted`` warning.
"""

from __future__ import annotations

from dataclasses import dataclass

from ledger_config.taxonomy import CategoryTaxonomy, LoanRole
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.models import LedgerEntry
from ledger_kernel.domain.values import (
    EXCLUDED_FROM_PL_TYPES,
    CashDirection,
    CategoryType,
    EntryType,
)
from ledger_kernel.exceptions import UnknownLoanCategoryError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.classifier")


@dataclass(frozen=True)
class Classification:
    """Result of classifying one (category, subcategory) pair."""

    entry_type: EntryType
    excluded_from_pl: bool
    cash_direction: CashDirection

    @property
    def is_receipt(self) -> bool:
        return self.cash_direction is CashDirection.RECEIPT


def _classification(entry_type: EntryType, direction: CashDirection) -> Classification:
    return Classification(
        entry_type=entry_type,
        excluded_from_pl=entry_type in EXCLUDED_FROM_PL_TYPES,
        cash_direction=direction,
    )


class TransactionClassifier:
    """Classifies ledger transactions against an injected taxonomy."""

    def __init__(self, taxonomy: CategoryTaxonomy):
        self._taxonomy = taxonomy
        self._roles = taxonomy.roles

    @property
    def taxonomy(self) -> CategoryTaxonomy:
        return self._taxonomy

    def loan_role_for(self, category: str) -> LoanRole | None:
        if category == self._roles.loan_given.category:
            return self._roles.loan_given
        if category == self._roles.loan_received.category:
            return self._roles.loan_received
        return None

    def is_loan_like(self, category: str) -> bool:
        """Known loan category, or a name carrying one of the loan markers."""
        if self._taxonomy.is_loan_category(category):
            return True
        return any(marker in category for marker in self._taxonomy.settings.loan_markers)

    def is_loan_initial(self, category: str, sub_category: str) -> bool:
        """True for giving/receiving a loan, False for collecting/repaying it."""
        role = self.loan_role_for(category)
        if role is None:
            raise UnknownLoanCategoryError(category, sub_category)
        return sub_category == role.initial_subcategory

    @traced_engine("classifier", "1.0", fingerprint_fields=("category", "sub_category"))
    def classify(self, category: str, sub_category: str = "") -> Classification:
        roles = self._roles
        sub_category = sub_category or ""

        if self.loan_role_for(category) is not None:
            initial = self.is_loan_initial(category, sub_category)
            if category == roles.loan_given.category:
                # Giving a loan pays out; collecting it brings cash back.
                direction = CashDirection.DISBURSEMENT if initial else CashDirection.RECEIPT
                return _classification(EntryType.LOAN_GIVEN, direction)
            direction = CashDirection.RECEIPT if initial else CashDirection.DISBURSEMENT
            return _classification(EntryType.LOAN_RECEIVED, direction)

        if self.is_loan_like(category):
            logger.error(
                "loan_category_unknown",
                extra={"category": category, "sub_category": sub_category},
            )
            raise UnknownLoanCategoryError(category, sub_category)

        if category == roles.customer_advance:
            return _classification(EntryType.ADVANCE, CashDirection.RECEIPT)
        if category == roles.supplier_advance:
            return _classification(EntryType.ADVANCE, CashDirection.DISBURSEMENT)

        if category == roles.fixed_assets.category:
            if sub_category == roles.fixed_assets.depreciation_subcategory:
                return _classification(EntryType.EXPENSE, CashDirection.DISBURSEMENT)
            return _classification(EntryType.FIXED_ASSET_PURCHASE, CashDirection.DISBURSEMENT)

        category_type = self._taxonomy.category_type(category)
        if category_type is CategoryType.EQUITY:
            if sub_category == roles.capital.drawing_subcategory:
                return _classification(EntryType.EQUITY, CashDirection.DISBURSEMENT)
            if sub_category != roles.capital.contribution_subcategory:
                logger.warning(
                    "equity_subcategory_defaulted",
                    extra={"category": category, "sub_category": sub_category},
                )
            return _classification(EntryType.EQUITY, CashDirection.RECEIPT)
        if category_type is CategoryType.EXPENSE:
            return _classification(EntryType.EXPENSE, CashDirection.DISBURSEMENT)
        if category_type is CategoryType.INCOME:
            return _classification(EntryType.INCOME, CashDirection.RECEIPT)

        logger.warning(
            "category_unknown_defaulted",
            extra={"category": category, "sub_category": sub_category},
        )
        return _classification(EntryType.INCOME, CashDirection.RECEIPT)

    def classify_entry(self, entry: LedgerEntry) -> Classification:
        return self.classify(entry.category, entry.sub_category)

    def cash_direction(self, category: str, sub_category: str = "") -> CashDirection:
        return self.classify(category, sub_category).cash_direction


def classify(
    taxonomy: CategoryTaxonomy, category: str, sub_category: str = ""
) -> Classification:
    """Functional form of ``TransactionClassifier.classify``."""
    return TransactionClassifier(taxonomy).classify(category, sub_category)
