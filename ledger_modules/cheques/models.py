"""
Cheque request model (``ledger_modules.cheques.models``).

What the user fills in when attaching a cheque to an entry.  The ledger
derives direction, status and identity; the request only carries what a
person types or picks.
"""

from dataclasses import dataclass
from datetime import date

from ledger_kernel.domain.values import ChequeAccountingType, to_enum


@dataclass(frozen=True)
class ChequeRequest:
    """
    Input for ``ChequeLedger.create_cheque``. ``amount`` is coerced by the ledger.

    ``accounting_type`` may be given as its string value ("cashed") and is
    stored as the enum member; an unknown value raises ``InvalidEntryError``.
    """
    cheque_number: str
    amount: object
    bank_name: str
    due_date: date
    accounting_type: ChequeAccountingType
    endorsed_to_name: str | None = None
    endorsed_from_name: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "accounting_type",
            to_enum(ChequeAccountingType, self.accounting_type, "accounting_type"),
        )
