"""
Pure domain layer.

Value types and frozen records with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Configuration files

All domain objects are immutable.
"""

from ledger_kernel.domain.clock import (
    Clock,
    DeterministicClock,
    SystemClock,
    TransactionIdGenerator,
)
from ledger_kernel.domain.models import (
    AllocationLine,
    Cheque,
    EndorsementTransfer,
    LedgerEntry,
    Payment,
    WriteOffRecord,
)
from ledger_kernel.domain.values import (
    CENT,
    EPSILON,
    EXCLUDED_FROM_PL_TYPES,
    ZERO,
    CashDirection,
    CategoryType,
    ChequeAccountingType,
    ChequeDirection,
    ChequeStatus,
    EntryType,
    PaymentMethod,
    PaymentStatus,
    TemplateId,
    direction_for_cheque,
    round_currency,
    to_amount,
    to_positive_amount,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "TransactionIdGenerator",
    "AllocationLine",
    "Cheque",
    "EndorsementTransfer",
    "LedgerEntry",
    "Payment",
    "WriteOffRecord",
    "CENT",
    "EPSILON",
    "EXCLUDED_FROM_PL_TYPES",
    "ZERO",
    "CashDirection",
    "CategoryType",
    "ChequeAccountingType",
    "ChequeDirection",
    "ChequeStatus",
    "EntryType",
    "PaymentMethod",
    "PaymentStatus",
    "TemplateId",
    "direction_for_cheque",
    "round_currency",
    "to_amount",
    "to_positive_amount",
]
