"""
Ledger Entry ORM Model (``ledger_kernel.models.ledger_entry``).

Responsibility
--------------
SQLAlchemy persistence for the ``LedgerEntry`` aggregate root.  Maps the
frozen dataclass to the ``ledger_entries`` table and back.

Architecture position
---------------------
**Kernel > Models** -- persistence only.  Used by ``SqlAlchemyStore``.
"""

from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Boolean, Date, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from ledger_kernel.db.base import TrackedBase
from ledger_kernel.domain.models import LedgerEntry
from ledger_kernel.domain.values import EntryType, PaymentStatus


class LedgerEntryModel(TrackedBase):
    """
    ORM model for ledger entries.

    Guarantees:
        - transaction_id is unique (uq_ledger_entries_transaction_id).
        - Monetary fields are exact Decimal (DecimalString).
        - version is the optimistic concurrency counter.  The application
          sets it (version_id_generator=False); SQLAlchemy adds it to the
          UPDATE criteria and raises StaleDataError on a lost race.
    """

    __tablename__ = "ledger_entries"

    __table_args__ = (
        UniqueConstraint("transaction_id", name="uq_ledger_entries_transaction_id"),
        Index("idx_ledger_entries_category_party", "category", "associated_party"),
        Index("idx_ledger_entries_date", "entry_date"),
    )

    transaction_id: Mapped[str] = mapped_column(String(40), nullable=False)
    category: Mapped[str] = mapped_column(String(200), nullable=False)
    sub_category: Mapped[str] = mapped_column(String(200), nullable=False, default="")
    entry_type: Mapped[str] = mapped_column(String(30), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    entry_date: Mapped[date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
    associated_party: Mapped[str | None] = mapped_column(String(255), nullable=True)
    owner_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_arap_entry: Mapped[bool] = mapped_column(Boolean, default=False)
    total_paid: Mapped[Decimal] = mapped_column(nullable=False)
    total_discount: Mapped[Decimal] = mapped_column(nullable=False)
    writeoff_amount: Mapped[Decimal] = mapped_column(nullable=False)
    remaining_balance: Mapped[Decimal | None] = mapped_column(nullable=True)
    payment_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    writeoff_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    writeoff_by: Mapped[str | None] = mapped_column(String(255), nullable=True)
    writeoff_date: Mapped[datetime | None] = mapped_column(nullable=True)
    total_used_from_advance: Mapped[Decimal | None] = mapped_column(nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    __mapper_args__ = {"version_id_col": version, "version_id_generator": False}

    def to_dto(self) -> LedgerEntry:
        """Convert ORM model to frozen dataclass."""
        return LedgerEntry(
            id=self.id,
            transaction_id=self.transaction_id,
            category=self.category,
            sub_category=self.sub_category,
            entry_type=EntryType(self.entry_type),
            amount=self.amount,
            date=self.entry_date,
            description=self.description,
            associated_party=self.associated_party,
            owner_name=self.owner_name,
            is_arap_entry=self.is_arap_entry,
            total_paid=self.total_paid,
            total_discount=self.total_discount,
            writeoff_amount=self.writeoff_amount,
            remaining_balance=self.remaining_balance,
            payment_status=(
                PaymentStatus(self.payment_status) if self.payment_status else None
            ),
            writeoff_reason=self.writeoff_reason,
            writeoff_by=self.writeoff_by,
            writeoff_date=self.writeoff_date,
            total_used_from_advance=self.total_used_from_advance,
            version=self.version,
        )

    @classmethod
    def from_dto(cls, dto: LedgerEntry) -> "LedgerEntryModel":
        """Create ORM model from frozen dataclass."""
        model = cls(id=dto.id)
        model.update_from_dto(dto)
        return model

    def update_from_dto(self, dto: LedgerEntry) -> None:
        self.transaction_id = dto.transaction_id
        self.category = dto.category
        self.sub_category = dto.sub_category
        self.entry_type = dto.entry_type.value
        self.amount = dto.amount
        self.entry_date = dto.date
        self.description = dto.description
        self.associated_party = dto.associated_party
        self.owner_name = dto.owner_name
        self.is_arap_entry = dto.is_arap_entry
        self.total_paid = dto.total_paid
        self.total_discount = dto.total_discount
        self.writeoff_amount = dto.writeoff_amount
        self.remaining_balance = dto.remaining_balance
        self.payment_status = dto.payment_status.value if dto.payment_status else None
        self.writeoff_reason = dto.writeoff_reason
        self.writeoff_by = dto.writeoff_by
        self.writeoff_date = dto.writeoff_date
        self.total_used_from_advance = dto.total_used_from_advance
        self.version = dto.version

    def __repr__(self) -> str:
        return f"<LedgerEntryModel {self.transaction_id}: {self.amount}>"
