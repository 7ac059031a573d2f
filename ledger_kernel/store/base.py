"""
TransactionalStore port (``ledger_kernel.store.base``).

Responsibility
--------------
The storage-agnostic interface the settlement services depend on.  Every
multi-record change (entry update + payment, cheque + payment + entry,
two entries + two payments for an allocation) is expressed as a list of
``StoreOp`` and handed to ``apply_atomic`` in a single call.

Invariants enforced
-------------------
* All-or-nothing: if any op in an ``apply_atomic`` batch fails, none of
  the batch is observable afterwards.
* Entry updates carry the version they were computed from; a mismatch
  raises ``OptimisticLockError`` and aborts the batch.
* No retry.  Failures surface to the caller as ``AtomicWriteError``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from uuid import UUID

from ledger_kernel.domain.models import (
    Cheque,
    EndorsementTransfer,
    LedgerEntry,
    Payment,
    WriteOffRecord,
)
from ledger_kernel.domain.values import EntryType


class OpKind(str, Enum):
    INSERT_ENTRY = "insert_entry"
    UPDATE_ENTRY = "update_entry"
    ADD_PAYMENT = "add_payment"
    SAVE_CHEQUE = "save_cheque"
    ADD_ENDORSEMENT = "add_endorsement"
    ADD_WRITE_OFF = "add_write_off"


@dataclass(frozen=True)
class StoreOp:
    """One write inside an atomic batch."""

    kind: OpKind
    record: LedgerEntry | Payment | Cheque | EndorsementTransfer | WriteOffRecord
    expected_version: int | None = None

    @classmethod
    def insert_entry(cls, entry: LedgerEntry) -> StoreOp:
        return cls(OpKind.INSERT_ENTRY, entry)

    @classmethod
    def update_entry(cls, entry: LedgerEntry, expected_version: int | None = None) -> StoreOp:
        """Update an entry; by default it must be one version ahead of the stored row."""
        if expected_version is None:
            expected_version = entry.version - 1
        return cls(OpKind.UPDATE_ENTRY, entry, expected_version)

    @classmethod
    def add_payment(cls, payment: Payment) -> StoreOp:
        return cls(OpKind.ADD_PAYMENT, payment)

    @classmethod
    def save_cheque(cls, cheque: Cheque) -> StoreOp:
        return cls(OpKind.SAVE_CHEQUE, cheque)

    @classmethod
    def add_endorsement(cls, transfer: EndorsementTransfer) -> StoreOp:
        return cls(OpKind.ADD_ENDORSEMENT, transfer)

    @classmethod
    def add_write_off(cls, record: WriteOffRecord) -> StoreOp:
        return cls(OpKind.ADD_WRITE_OFF, record)


class TransactionalStore(ABC):
    """Port for the external transactional persistence layer."""

    @abstractmethod
    def apply_atomic(self, ops: Sequence[StoreOp]) -> None:
        """Apply every op or none of them. Raises AtomicWriteError."""

    @abstractmethod
    def get_entry(self, entry_id: UUID) -> LedgerEntry:
        """Return the stored entry. Raises EntryNotFoundError."""

    @abstractmethod
    def find_entries(
        self,
        *,
        category: str | None = None,
        party: str | None = None,
        entry_type: EntryType | None = None,
    ) -> list[LedgerEntry]:
        """Entries matching every given filter, oldest first."""

    @abstractmethod
    def transaction_id_exists(self, transaction_id: str) -> bool: ...

    @abstractmethod
    def cheques_for_entry(self, entry_id: UUID) -> list[Cheque]: ...

    @abstractmethod
    def payments_for_entry(self, entry_id: UUID) -> list[Payment]: ...

    @abstractmethod
    def write_offs_for_entry(self, entry_id: UUID) -> list[WriteOffRecord]: ...

    @abstractmethod
    def endorsement_for_cheque(self, cheque_id: UUID) -> EndorsementTransfer | None: ...


def entry_sort_key(entry: LedgerEntry) -> tuple:
    """FIFO order: business date, then transaction id."""
    return (entry.date, entry.transaction_id)
