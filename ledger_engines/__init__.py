"""
Pure calculation engines for the ledger.

No I/O and no clock access: engines take frozen records in and return new
frozen records or raise typed errors from ``ledger_kernel.exceptions``.
Every public engine call emits a ``LEDGER_ENGINE_TRACE`` log record.
"""

from ledger_engines.allocation import (
    AllocationResult,
    advance_category_for,
    auto_allocate,
    manual_allocate,
    remaining,
    resolve_legacy_advance,
)
from ledger_engines.classifier import Classification, TransactionClassifier, classify
from ledger_engines.journal import JournalTemplateSelector, select_journal_template
from ledger_engines.profit import PLSummary, summarize
from ledger_engines.settlement import (
    SettlementOutcome,
    apply_discount,
    apply_payment,
    apply_write_off,
    compute_remaining,
    compute_status,
)
from ledger_engines.tracer import traced_engine

__all__ = [
    "AllocationResult",
    "advance_category_for",
    "auto_allocate",
    "manual_allocate",
    "remaining",
    "resolve_legacy_advance",
    "Classification",
    "TransactionClassifier",
    "classify",
    "JournalTemplateSelector",
    "select_journal_template",
    "PLSummary",
    "summarize",
    "SettlementOutcome",
    "apply_discount",
    "apply_payment",
    "apply_write_off",
    "compute_remaining",
    "compute_status",
    "traced_engine",
]
