"""
SQLAlchemy TransactionalStore (``ledger_kernel.store.sql``).

Responsibility
--------------
Durable ``TransactionalStore`` over any SQLAlchemy 2.0 engine.  Each
``apply_atomic`` call is exactly one session transaction opened through
``session_scope``: commit when every op succeeded, rollback otherwise.

Failure modes
-------------
* Version mismatch on an entry update -> ``OptimisticLockError``.  A lost
  race between read and UPDATE surfaces from SQLAlchemy as
  ``StaleDataError`` and is reported the same way.
* Any other ``SQLAlchemyError`` (unique constraint, connection loss) ->
  ``AtomicWriteError``.  In every case the transaction is rolled back.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from ledger_kernel.db.engine import session_scope
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
from ledger_kernel.models import (
    ChequeModel,
    EndorsementTransferModel,
    LedgerEntryModel,
    PaymentModel,
    WriteOffRecordModel,
)
from ledger_kernel.store.base import OpKind, StoreOp, TransactionalStore

logger = get_logger("store.sql")


class SqlAlchemyStore(TransactionalStore):
    """TransactionalStore backed by a SQLAlchemy session factory."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def apply_atomic(self, ops: Sequence[StoreOp]) -> None:
        try:
            with session_scope(self._session_factory) as session:
                for op in ops:
                    self._apply(session, op)
                    session.flush()
        except AtomicWriteError:
            logger.warning("atomic_write_failed", extra={"operation_count": len(ops)})
            raise
        except StaleDataError as exc:
            entry_ids = [str(op.record.id) for op in ops if op.kind is OpKind.UPDATE_ENTRY]
            logger.warning(
                "atomic_write_failed",
                extra={"operation_count": len(ops), "reason": "stale_version"},
            )
            raise OptimisticLockError(
                ",".join(entry_ids), _first_expected(ops), -1
            ) from exc
        except SQLAlchemyError as exc:
            logger.warning(
                "atomic_write_failed",
                extra={"operation_count": len(ops), "reason": type(exc).__name__},
            )
            raise AtomicWriteError(len(ops), str(exc)) from exc

        logger.debug("atomic_write_committed", extra={"operation_count": len(ops)})

    def _apply(self, session: Session, op: StoreOp) -> None:
        record = op.record
        if op.kind is OpKind.INSERT_ENTRY:
            session.add(LedgerEntryModel.from_dto(record))
        elif op.kind is OpKind.UPDATE_ENTRY:
            model = session.get(LedgerEntryModel, record.id)
            if model is None:
                raise AtomicWriteError(1, f"entry {record.id} does not exist")
            if model.version != op.expected_version:
                raise OptimisticLockError(str(record.id), op.expected_version, model.version)
            model.update_from_dto(record)
        elif op.kind is OpKind.ADD_PAYMENT:
            session.add(PaymentModel.from_dto(record))
        elif op.kind is OpKind.SAVE_CHEQUE:
            model = session.get(ChequeModel, record.id)
            if model is None:
                session.add(ChequeModel.from_dto(record))
            else:
                model.update_from_dto(record)
        elif op.kind is OpKind.ADD_ENDORSEMENT:
            for leg in record.legs:
                session.add(PaymentModel.from_dto(leg))
            session.flush()
            session.add(EndorsementTransferModel.from_dto(record))
        elif op.kind is OpKind.ADD_WRITE_OFF:
            session.add(WriteOffRecordModel.from_dto(record))
        else:
            raise AtomicWriteError(1, f"unsupported operation {op.kind}")

    # Queries

    def get_entry(self, entry_id: UUID) -> LedgerEntry:
        with self._session_factory() as session:
            model = session.get(LedgerEntryModel, entry_id)
            if model is None:
                raise EntryNotFoundError(str(entry_id))
            return model.to_dto()

    def find_entries(
        self,
        *,
        category: str | None = None,
        party: str | None = None,
        entry_type: EntryType | None = None,
    ) -> list[LedgerEntry]:
        stmt = select(LedgerEntryModel)
        if category is not None:
            stmt = stmt.where(LedgerEntryModel.category == category)
        if party is not None:
            stmt = stmt.where(LedgerEntryModel.associated_party == party)
        if entry_type is not None:
            stmt = stmt.where(LedgerEntryModel.entry_type == entry_type.value)
        stmt = stmt.order_by(LedgerEntryModel.entry_date, LedgerEntryModel.transaction_id)
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]

    def transaction_id_exists(self, transaction_id: str) -> bool:
        stmt = select(LedgerEntryModel.id).where(
            LedgerEntryModel.transaction_id == transaction_id
        )
        with self._session_factory() as session:
            return session.scalars(stmt).first() is not None

    def cheques_for_entry(self, entry_id: UUID) -> list[Cheque]:
        stmt = (
            select(ChequeModel)
            .where(ChequeModel.entry_id == entry_id)
            .order_by(ChequeModel.created_at, ChequeModel.cheque_number)
        )
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]

    def payments_for_entry(self, entry_id: UUID) -> list[Payment]:
        stmt = (
            select(PaymentModel)
            .where(PaymentModel.entry_id == entry_id)
            .order_by(PaymentModel.timestamp)
        )
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]

    def write_offs_for_entry(self, entry_id: UUID) -> list[WriteOffRecord]:
        stmt = (
            select(WriteOffRecordModel)
            .where(WriteOffRecordModel.entry_id == entry_id)
            .order_by(WriteOffRecordModel.timestamp)
        )
        with self._session_factory() as session:
            return [m.to_dto() for m in session.scalars(stmt)]

    def endorsement_for_cheque(self, cheque_id: UUID) -> EndorsementTransfer | None:
        with self._session_factory() as session:
            model = session.scalars(
                select(EndorsementTransferModel).where(
                    EndorsementTransferModel.cheque_id == cheque_id
                )
            ).first()
            if model is None:
                return None
            receipt = session.get(PaymentModel, model.receipt_payment_id)
            disbursement = session.get(PaymentModel, model.disbursement_payment_id)
            return model.to_dto((receipt.to_dto(), disbursement.to_dto()))


def _first_expected(ops: Sequence[StoreOp]) -> int:
    for op in ops:
        if op.kind is OpKind.UPDATE_ENTRY and op.expected_version is not None:
            return op.expected_version
    return -1
