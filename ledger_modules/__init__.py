"""
Ledger Modules.

Thin orchestration layers over the ledger kernel and engines.  Each
service validates, computes through the engines, persists through the
``TransactionalStore`` in a single atomic call and returns a typed result.

Modules:
- Entries: recording classified entries
- Settlement: payments, discounts, write-offs
- Cheques: cashed, postponed and endorsed cheques and their lifecycle
- Advances: FIFO/manual allocation of advances against invoices
- Write-off: confirmed, audited bad-debt write-offs
"""

from ledger_modules.advances import AdvanceService
from ledger_modules.cheques import ChequeLedger, ChequeRequest
from ledger_modules.entries import EntryService
from ledger_modules.results import ChequeResult, SettlementResult, SettlementStatus
from ledger_modules.settlement import SettlementService
from ledger_modules.write_off import WriteOffProcessor

__all__ = [
    "AdvanceService",
    "ChequeLedger",
    "ChequeRequest",
    "EntryService",
    "ChequeResult",
    "SettlementResult",
    "SettlementStatus",
    "SettlementService",
    "WriteOffProcessor",
]
