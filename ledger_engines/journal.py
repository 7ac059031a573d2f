"""
ledger_engines.journal -- Journal template selection.

Maps a classified transaction to the id of the journal template a
downstream poster records.  This engine never posts anything itself.

A loan entry whose category is neither configured loan category is a
fatal ``UnknownLoanCategoryError``: mis-tagging a loan corrupts the
balance sheet, so there is no default template for it.
"""

from __future__ import annotations

from ledger_config import get_active_taxonomy
from ledger_config.taxonomy import CategoryTaxonomy
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.values import EntryType, TemplateId, to_enum
from ledger_kernel.exceptions import InvalidEntryError, UnknownLoanCategoryError
from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.journal")


class JournalTemplateSelector:
    """Selects a ``TemplateId`` using the role bindings of an injected taxonomy."""

    def __init__(self, taxonomy: CategoryTaxonomy):
        self._roles = taxonomy.roles

    @traced_engine(
        "journal_selector", "1.0", fingerprint_fields=("entry_type", "category", "sub_category")
    )
    def select(
        self, entry_type: EntryType | str, category: str, sub_category: str = ""
    ) -> TemplateId:
        """
        Template for one classified transaction.

        ``entry_type`` may be a member or its string value ("Income");
        anything else raises ``InvalidEntryError``.
        """
        entry_type = to_enum(EntryType, entry_type, "entry_type")
        roles = self._roles

        if entry_type is EntryType.INCOME:
            return TemplateId.INCOME_JOURNAL
        if entry_type is EntryType.EXPENSE:
            return TemplateId.EXPENSE_JOURNAL
        if entry_type is EntryType.FIXED_ASSET_PURCHASE:
            return TemplateId.FIXED_ASSET_PURCHASE
        if entry_type is EntryType.EQUITY:
            if sub_category == roles.capital.drawing_subcategory:
                return TemplateId.OWNER_DRAWINGS
            return TemplateId.OWNER_CAPITAL
        if entry_type is EntryType.ADVANCE:
            if category == roles.supplier_advance:
                return TemplateId.EXPENSE_JOURNAL
            return TemplateId.INCOME_JOURNAL
        if entry_type.is_loan:
            return self._loan_template(entry_type, category, sub_category)
        raise InvalidEntryError("entry_type", f"no journal template for {entry_type.value}")

    def _loan_template(
        self, entry_type: EntryType, category: str, sub_category: str
    ) -> TemplateId:
        # The category must be the loan category of the same kind.
        roles = self._roles
        expected = roles.loan_given if entry_type is EntryType.LOAN_GIVEN else roles.loan_received
        if category != expected.category:
            logger.error(
                "journal_loan_category_unknown",
                extra={
                    "entry_type": entry_type.value,
                    "category": category,
                    "sub_category": sub_category,
                },
            )
            raise UnknownLoanCategoryError(category, sub_category)

        initial = sub_category == expected.initial_subcategory
        if entry_type is EntryType.LOAN_GIVEN:
            return TemplateId.LOAN_GIVEN if initial else TemplateId.LOAN_COLLECTION
        return TemplateId.LOAN_RECEIVED if initial else TemplateId.LOAN_REPAYMENT


def select_journal_template(
    entry_type: EntryType | str,
    category: str,
    sub_category: str = "",
    taxonomy: CategoryTaxonomy | None = None,
) -> TemplateId:
    """Functional entry point; uses the active taxonomy unless one is given."""
    if taxonomy is None:
        taxonomy = get_active_taxonomy()
    return JournalTemplateSelector(taxonomy).select(entry_type, category, sub_category)
