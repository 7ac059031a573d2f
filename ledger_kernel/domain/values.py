"""
Value types for the ledger domain.

Closed enumerations for every discriminator the engine branches on, plus
the ``Decimal`` amount helpers shared by all settlement arithmetic.

Invariants enforced:
    - Monetary values are ``Decimal``; ``float`` is only accepted at the
      boundary by ``to_amount`` and converted through ``str`` so binary
      floating point artefacts never reach the ledger.
    - ``EPSILON`` is the single tolerance used for "fully settled" checks.
"""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum
from typing import TypeVar

from ledger_kernel.exceptions import InvalidAmountError, InvalidEntryError

ZERO = Decimal("0")
EPSILON = Decimal("0.01")
CENT = Decimal("0.01")

E = TypeVar("E", bound=Enum)


class CategoryType(str, Enum):
    """Base type of a taxonomy category."""

    INCOME = "Income"
    EXPENSE = "Expense"
    EQUITY = "Equity"
    UNKNOWN = "Unknown"


class EntryType(str, Enum):
    """Derived kind of financial event a ledger entry represents."""

    INCOME = "Income"
    EXPENSE = "Expense"
    EQUITY = "Equity"
    LOAN_GIVEN = "LoanGiven"
    LOAN_RECEIVED = "LoanReceived"
    ADVANCE = "Advance"
    FIXED_ASSET_PURCHASE = "FixedAssetPurchase"

    @property
    def is_loan(self) -> bool:
        return self in (EntryType.LOAN_GIVEN, EntryType.LOAN_RECEIVED)


# Entry types that move cash or book value without touching profit/loss.
EXCLUDED_FROM_PL_TYPES: frozenset[EntryType] = frozenset({
    EntryType.EQUITY,
    EntryType.ADVANCE,
    EntryType.LOAN_GIVEN,
    EntryType.LOAN_RECEIVED,
    EntryType.FIXED_ASSET_PURCHASE,
})


class CashDirection(str, Enum):
    """Whether money comes in or goes out."""

    RECEIPT = "receipt"
    DISBURSEMENT = "disbursement"


class PaymentStatus(str, Enum):
    """Settlement state of an entry. Never "overpaid"."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """How a settlement event was made."""

    CASH = "cash"
    CHEQUE = "cheque"
    ADVANCE = "advance"
    ENDORSEMENT = "endorsement"
    WRITE_OFF = "write_off"


class ChequeDirection(str, Enum):
    INCOMING = "incoming"
    OUTGOING = "outgoing"


class ChequeAccountingType(str, Enum):
    """How a cheque is accounted for at the moment it is recorded."""

    CASHED = "cashed"
    POSTPONED = "postponed"
    ENDORSED = "endorsed"


class ChequeStatus(str, Enum):
    PENDING = "pending"
    CASHED = "cashed"
    REJECTED = "rejected"
    ENDORSED = "endorsed"


class TemplateId(str, Enum):
    """Journal templates a downstream poster knows how to record."""

    INCOME_JOURNAL = "IncomeJournal"
    EXPENSE_JOURNAL = "ExpenseJournal"
    OWNER_CAPITAL = "OwnerCapital"
    OWNER_DRAWINGS = "OwnerDrawings"
    LOAN_GIVEN = "LoanGiven"
    LOAN_COLLECTION = "LoanCollection"
    LOAN_RECEIVED = "LoanReceived"
    LOAN_REPAYMENT = "LoanRepayment"
    FIXED_ASSET_PURCHASE = "FixedAssetPurchase"


def to_enum(enum_type: type[E], value: object, field_name: str) -> E:
    """
    Coerce a member or its string value to ``enum_type``.

    Callers above the engine pass plain strings; identity checks against
    members only hold after this conversion.
    """
    if isinstance(value, enum_type):
        return value
    try:
        return enum_type(value)
    except (ValueError, TypeError):
        allowed = ", ".join(member.value for member in enum_type)
        raise InvalidEntryError(
            field_name, f"{value!r} is not one of {allowed}"
        ) from None


def direction_for_cheque(direction: CashDirection) -> ChequeDirection:
    """Cheques received settle receipts; cheques issued settle disbursements."""
    if direction is CashDirection.RECEIPT:
        return ChequeDirection.INCOMING
    return ChequeDirection.OUTGOING


def to_amount(value: object) -> Decimal:
    """
    Coerce a user-supplied amount to ``Decimal``.

    Accepts ``Decimal``, ``int``, finite ``float`` and numeric strings.
    Rejects booleans, ``None``, NaN/infinity and non-numeric text with
    ``InvalidAmountError``.  Sign is NOT checked here.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmountError(value, "amount must be numeric")
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if not math.isfinite(value):
            raise InvalidAmountError(value, "amount must be finite")
        result = Decimal(str(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise InvalidAmountError(value, "amount must be numeric") from None
    else:
        raise InvalidAmountError(value, "amount must be numeric")

    if not result.is_finite():
        raise InvalidAmountError(value, "amount must be finite")
    return result


def to_positive_amount(value: object) -> Decimal:
    """``to_amount`` plus the strictly-positive check."""
    amount = to_amount(value)
    if amount <= ZERO:
        raise InvalidAmountError(value)
    return amount


def round_currency(amount: Decimal, places: Decimal = CENT) -> Decimal:
    """Round to currency precision (ROUND_HALF_UP)."""
    return amount.quantize(places, rounding=ROUND_HALF_UP)
