"""
Write-off audit ORM Model (``ledger_kernel.models.write_off``).

Append-only audit trail of bad-debt write-offs.  There is no reversal
record type: a write-off, once stored, stands.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.models import WriteOffRecord


class WriteOffRecordModel(TrackedBase):
    """ORM model for write-off audit records."""

    __tablename__ = "write_off_records"

    __table_args__ = (Index("idx_write_off_records_entry_id", "entry_id"),)

    entry_id: Mapped[UUID] = mapped_column(ForeignKey("ledger_entries.id"), nullable=False)
    transaction_id: Mapped[str] = mapped_column(String(40), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)
    actor: Mapped[str] = mapped_column(String(255), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)

    def to_dto(self) -> WriteOffRecord:
        return WriteOffRecord(
            id=self.id,
            entry_id=self.entry_id,
            transaction_id=self.transaction_id,
            amount=self.amount,
            reason=self.reason,
            actor=self.actor,
            timestamp=self.timestamp,
        )

    @classmethod
    def from_dto(cls, dto: WriteOffRecord) -> "WriteOffRecordModel":
        return cls(
            id=dto.id,
            entry_id=dto.entry_id,
            transaction_id=dto.transaction_id,
            amount=dto.amount,
            reason=dto.reason,
            actor=dto.actor,
            timestamp=dto.timestamp,
        )

    def __repr__(self) -> str:
        return f"<WriteOffRecordModel {self.transaction_id}: {self.amount}>"
