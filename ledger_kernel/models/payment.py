"""
Payment ORM Model (``ledger_kernel.models.payment``).

Persistence for immutable settlement events.  Rows are only ever
inserted; nothing in the engine updates or deletes a payment.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.models import Payment
from ledger_kernel.domain.values import CashDirection, PaymentMethod


class PaymentModel(TrackedBase):
    """ORM model for payments. Maps to the ``Payment`` frozen dataclass."""

    __tablename__ = "payments"

    __table_args__ = (
        Index("idx_payments_entry_id", "entry_id"),
        Index("idx_payments_linked_transaction_id", "linked_transaction_id"),
    )

    entry_id: Mapped[UUID] = mapped_column(ForeignKey("ledger_entries.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    direction: Mapped[str] = mapped_column(String(20), nullable=False)
    linked_transaction_id: Mapped[str] = mapped_column(String(40), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(nullable=False)
    method: Mapped[str] = mapped_column(String(20), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    party: Mapped[str | None] = mapped_column(String(255), nullable=True)
    no_cash_movement: Mapped[bool] = mapped_column(Boolean, default=False)
    cheque_id: Mapped[UUID | None] = mapped_column(nullable=True)

    def to_dto(self) -> Payment:
        return Payment(
            id=self.id,
            amount=self.amount,
            direction=CashDirection(self.direction),
            linked_transaction_id=self.linked_transaction_id,
            entry_id=self.entry_id,
            timestamp=self.timestamp,
            method=PaymentMethod(self.method),
            notes=self.notes,
            party=self.party,
            no_cash_movement=self.no_cash_movement,
            cheque_id=self.cheque_id,
        )

    @classmethod
    def from_dto(cls, dto: Payment) -> "PaymentModel":
        return cls(
            id=dto.id,
            entry_id=dto.entry_id,
            amount=dto.amount,
            direction=dto.direction.value,
            linked_transaction_id=dto.linked_transaction_id,
            timestamp=dto.timestamp,
            method=dto.method.value,
            notes=dto.notes,
            party=dto.party,
            no_cash_movement=dto.no_cash_movement,
            cheque_id=dto.cheque_id,
        )

    def __repr__(self) -> str:
        return f"<PaymentModel {self.linked_transaction_id}: {self.amount} {self.method}>"
