"""
ledger_engines.profit -- Profit and loss summary over ledger entries.

net_income = (income - discounts) - expenses - bad debt.  Discounts and
write-offs are recorded against receivable entries, so they are counted
on P&L income entries only.  Entries excluded from P&L (equity, advances,
loans, fixed-asset purchases) never contribute to the totals.  Unpaid
counters cover every non-equity AR/AP entry that is not yet paid,
advances included.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from ledger_engines.classifier import TransactionClassifier
from ledger_engines.settlement import compute_status, current_remaining
from ledger_engines.tracer import traced_engine
from ledger_kernel.domain.models import LedgerEntry
from ledger_kernel.domain.values import (
    EXCLUDED_FROM_PL_TYPES,
    ZERO,
    EntryType,
    PaymentStatus,
)


@dataclass(frozen=True)
class PLSummary:
    total_income: Decimal
    total_expenses: Decimal
    total_discounts: Decimal
    total_bad_debt: Decimal
    net_income: Decimal
    unpaid_count: int
    unpaid_amount: Decimal

    @property
    def is_profit(self) -> bool:
        return self.net_income >= ZERO


@traced_engine("profit", "1.0")
def summarize(
    entries: Iterable[LedgerEntry],
    classifier: TransactionClassifier | None = None,
) -> PLSummary:
    """
    Totals for a set of entries.

    With a classifier, entry types are re-derived from category and
    subcategory; otherwise the stored ``entry_type`` is trusted.
    """
    income = expenses = discounts = bad_debt = unpaid_amount = ZERO
    unpaid_count = 0

    for entry in entries:
        entry_type = (
            classifier.classify_entry(entry).entry_type if classifier else entry.entry_type
        )

        status = entry.payment_status or compute_status(
            entry.amount, entry.total_paid, entry.total_discount, entry.writeoff_amount
        )
        if entry.is_arap_entry and entry_type is not EntryType.EQUITY and status is not PaymentStatus.PAID:
            unpaid_count += 1
            unpaid_amount += (
                entry.remaining_balance
                if entry.remaining_balance is not None
                else current_remaining(entry)
            )

        if entry_type in EXCLUDED_FROM_PL_TYPES:
            continue
        if entry_type is EntryType.INCOME:
            income += entry.amount
            discounts += entry.total_discount
            bad_debt += entry.writeoff_amount
        elif entry_type is EntryType.EXPENSE:
            expenses += entry.amount

    return PLSummary(
        total_income=income,
        total_expenses=expenses,
        total_discounts=discounts,
        total_bad_debt=bad_debt,
        net_income=(income - discounts) - expenses - bad_debt,
        unpaid_count=unpaid_count,
        unpaid_amount=unpaid_amount,
    )
