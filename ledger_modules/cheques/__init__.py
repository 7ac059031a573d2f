"""
Cheques Module.

Cheques attached to ledger entries: cashed, postponed and endorsed
cheques, and the pending -> cashed / rejected / endorsed lifecycle.
"""

from ledger_modules.cheques.models import ChequeRequest
from ledger_modules.cheques.service import ChequeLedger
from ledger_modules.cheques.workflows import (
    CHEQUE_WORKFLOW,
    can_transition,
    validate_transition,
)

__all__ = [
    "ChequeRequest",
    "ChequeLedger",
    "CHEQUE_WORKFLOW",
    "can_transition",
    "validate_transition",
]
