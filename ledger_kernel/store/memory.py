"""
In-memory TransactionalStore (``ledger_kernel.store.memory``).

Reference semantics for ``apply_atomic``: ops are staged against copies
of the tables and the copies replace the live tables only when every op
succeeded.  Used by tests and by callers that do not need durability.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from ledger_kernel.domain.models import (
    Cheque,
    EndorsementTransfer,
    LedgerEntry,
    Payment,
    WriteOffRecord,
)
from ledger_kernel.domain.values import EntryType
from ledger_kernel.exceptions import (
    AtomicWriteError,
    EntryNotFoundError,
    OptimisticLockError,
)
from ledger_kernel.logging_config import get_logger
from ledger_kernel.store.base import OpKind, StoreOp, TransactionalStore, entry_sort_key

logger = get_logger("store.memory")


class _Tables:
    def __init__(self) -> None:
        self.entries: dict[UUID, LedgerEntry] = {}
        self.payments: dict[UUID, Payment] = {}
        self.cheques: dict[UUID, Cheque] = {}
        self.endorsements: dict[UUID, EndorsementTransfer] = {}
        self.write_offs: dict[UUID, WriteOffRecord] = {}

    def copy(self) -> _Tables:
        staged = _Tables()
        staged.entries = dict(self.entries)
        staged.payments = dict(self.payments)
        staged.cheques = dict(self.cheques)
        staged.endorsements = dict(self.endorsements)
        staged.write_offs = dict(self.write_offs)
        return staged


class InMemoryStore(TransactionalStore):
    """Dictionary-backed store. Records are frozen, so shallow copies suffice."""

    def __init__(self) -> None:
        self._tables = _Tables()
        self.commit_count = 0

    def apply_atomic(self, ops: Sequence[StoreOp]) -> None:
        staged = self._tables.copy()
        try:
            for op in ops:
                self._apply(staged, op)
        except AtomicWriteError:
            logger.warning("atomic_write_failed", extra={"operation_count": len(ops)})
            raise

        self._tables = staged
        self.commit_count += 1
        logger.debug("atomic_write_committed", extra={"operation_count": len(ops)})

    def _apply(self, tables: _Tables, op: StoreOp) -> None:
        record = op.record
        if op.kind is OpKind.INSERT_ENTRY:
            if record.id in tables.entries:
                raise AtomicWriteError(1, f"entry {record.id} already exists")
            if any(e.transaction_id == record.transaction_id for e in tables.entries.values()):
                raise AtomicWriteError(1, f"transaction id {record.transaction_id} is taken")
            tables.entries[record.id] = record
        elif op.kind is OpKind.UPDATE_ENTRY:
            current = tables.entries.get(record.id)
            if current is None:
                raise AtomicWriteError(1, f"entry {record.id} does not exist")
            if current.version != op.expected_version:
                raise OptimisticLockError(str(record.id), op.expected_version, current.version)
            tables.entries[record.id] = record
        elif op.kind is OpKind.ADD_PAYMENT:
            self._require_entry(tables, record.entry_id)
            tables.payments[record.id] = record
        elif op.kind is OpKind.SAVE_CHEQUE:
            self._require_entry(tables, record.entry_id)
            tables.cheques[record.id] = record
        elif op.kind is OpKind.ADD_ENDORSEMENT:
            if record.cheque_id not in tables.cheques:
                raise AtomicWriteError(1, f"cheque {record.cheque_id} does not exist")
            for leg in record.legs:
                self._require_entry(tables, leg.entry_id)
                tables.payments[leg.id] = leg
            tables.endorsements[record.id] = record
        elif op.kind is OpKind.ADD_WRITE_OFF:
            self._require_entry(tables, record.entry_id)
            tables.write_offs[record.id] = record
        else:
            raise AtomicWriteError(1, f"unsupported operation {op.kind}")

    @staticmethod
    def _require_entry(tables: _Tables, entry_id: UUID) -> None:
        if entry_id not in tables.entries:
            raise AtomicWriteError(1, f"entry {entry_id} does not exist")

    # Queries

    def get_entry(self, entry_id: UUID) -> LedgerEntry:
        try:
            return self._tables.entries[entry_id]
        except KeyError:
            raise EntryNotFoundError(str(entry_id)) from None

    def find_entries(
        self,
        *,
        category: str | None = None,
        party: str | None = None,
        entry_type: EntryType | None = None,
    ) -> list[LedgerEntry]:
        found = [
            e
            for e in self._tables.entries.values()
            if (category is None or e.category == category)
            and (party is None or e.associated_party == party)
            and (entry_type is None or e.entry_type is entry_type)
        ]
        return sorted(found, key=entry_sort_key)

    def transaction_id_exists(self, transaction_id: str) -> bool:
        return any(e.transaction_id == transaction_id for e in self._tables.entries.values())

    def cheques_for_entry(self, entry_id: UUID) -> list[Cheque]:
        return [c for c in self._tables.cheques.values() if c.entry_id == entry_id]

    def payments_for_entry(self, entry_id: UUID) -> list[Payment]:
        found = [p for p in self._tables.payments.values() if p.entry_id == entry_id]
        return sorted(found, key=lambda p: p.timestamp)

    def write_offs_for_entry(self, entry_id: UUID) -> list[WriteOffRecord]:
        found = [w for w in self._tables.write_offs.values() if w.entry_id == entry_id]
        return sorted(found, key=lambda w: w.timestamp)

    def endorsement_for_cheque(self, cheque_id: UUID) -> EndorsementTransfer | None:
        for transfer in self._tables.endorsements.values():
            if transfer.cheque_id == cheque_id:
                return transfer
        return None
