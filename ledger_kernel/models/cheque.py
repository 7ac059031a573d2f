"""
Cheque ORM Models (``ledger_kernel.models.cheque``).

Responsibility
--------------
Persistence for cheques and for the pass-through record written when a
cheque is endorsed to a third party.

Architecture position
---------------------
**Kernel > Models** -- persistence only.  Status changes are decided by
``ledger_modules.cheques``; this module never validates transitions.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.models import Cheque, EndorsementTransfer, Payment
from ledger_kernel.domain.values import (
    ChequeAccountingType,
    ChequeDirection,
    ChequeStatus,
)


class ChequeModel(TrackedBase):
    """
    ORM model for cheques.

    Guarantees:
        - entry_id FK to ledger_entries.id (one entry, many cheques).
        - status and accounting_type stored as enum values.
    """

    __tablename__ = "cheques"

    __table_args__ = (
        Index("idx_cheques_entry_id", "entry_id"),
        Index("idx_cheques_status", "status"),
    )

    entry_id: Mapped[UUID] = mapped_column(ForeignKey("ledger_entries.id"), nullable=False)
    cheque_number: Mapped[str] = mapped_column(String(100), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    bank_name: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    direction: Mapped[str] = mapped_column(String(20), nullable=False)
    accounting_type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    linked_transaction_id: Mapped[str] = mapped_column(String(40), nullable=False)
    endorsed_to_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    endorsed_from_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    issued_at: Mapped[datetime | None] = mapped_column(nullable=True)

    def to_dto(self) -> Cheque:
        return Cheque(
            id=self.id,
            cheque_number=self.cheque_number,
            amount=self.amount,
            bank_name=self.bank_name,
            due_date=self.due_date,
            direction=ChequeDirection(self.direction),
            accounting_type=ChequeAccountingType(self.accounting_type),
            status=ChequeStatus(self.status),
            entry_id=self.entry_id,
            linked_transaction_id=self.linked_transaction_id,
            endorsed_to_name=self.endorsed_to_name,
            endorsed_from_name=self.endorsed_from_name,
            created_at=self.issued_at,
        )

    @classmethod
    def from_dto(cls, dto: Cheque) -> "ChequeModel":
        model = cls(id=dto.id)
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto: Cheque) -> None:
        self.entry_id = dto.entry_id
        self.cheque_number = dto.cheque_number
        self.amount = dto.amount
        self.bank_name = dto.bank_name
        self.due_date = dto.due_date
        self.direction = dto.direction.value
        self.accounting_type = dto.accounting_type.value
        self.status = dto.status.value
        self.linked_transaction_id = dto.linked_transaction_id
        self.endorsed_to_name = dto.endorsed_to_name
        self.endorsed_from_name = dto.endorsed_from_name
        self.issued_at = dto.created_at

    def __repr__(self) -> str:
        return f"<ChequeModel {self.cheque_number}: {self.amount} {self.status}>"


class EndorsementTransferModel(TrackedBase):
    """
    ORM model for endorsement pass-through records.

    The two legs live in ``payments``; this row points at both.
    """

    __tablename__ = "endorsement_transfers"

    __table_args__ = (Index("idx_endorsement_transfers_cheque_id", "cheque_id"),)

    cheque_id: Mapped[UUID] = mapped_column(ForeignKey("cheques.id"), nullable=False)
    from_party: Mapped[str] = mapped_column(String(255), nullable=False)
    to_party: Mapped[str] = mapped_column(String(255), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    linked_transaction_id: Mapped[str] = mapped_column(String(40), nullable=False)
    receipt_payment_id: Mapped[UUID] = mapped_column(ForeignKey("payments.id"), nullable=False)
    disbursement_payment_id: Mapped[UUID] = mapped_column(
        ForeignKey("payments.id"), nullable=False
    )

    def to_dto(self, legs: tuple[Payment, Payment]) -> EndorsementTransfer:
        return EndorsementTransfer(
            id=self.id,
            cheque_id=self.cheque_id,
            from_party=self.from_party,
            to_party=self.to_party,
            amount=self.amount,
            linked_transaction_id=self.linked_transaction_id,
            legs=legs,
        )

    @classmethod
    def from_dto(cls, dto: EndorsementTransfer) -> "EndorsementTransferModel":
        receipt, disbursement = dto.legs
        return cls(
            id=dto.id,
            cheque_id=dto.cheque_id,
            from_party=dto.from_party,
            to_party=dto.to_party,
            amount=dto.amount,
            linked_transaction_id=dto.linked_transaction_id,
            receipt_payment_id=receipt.id,
            disbursement_payment_id=disbursement.id,
        )
