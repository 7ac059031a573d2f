"""ORM models for the ledger kernel."""

from ledger_kernel.models.cheque import ChequeModel, EndorsementTransferModel
from ledger_kernel.models.ledger_entry import LedgerEntryModel
from ledger_kernel.models.payment import PaymentModel
from ledger_kernel.models.write_off import WriteOffRecordModel

__all__ = [
    "LedgerEntryModel",
    "PaymentModel",
    "ChequeModel",
    "EndorsementTransferModel",
    "WriteOffRecordModel",
]
