"""
Module: ledger_kernel.db.base
Responsibility: Declarative base classes for the ledger's SQLAlchemy ORM
    models.  Provides the UUID primary key convention, the exact-decimal
    column type and the TrackedBase mixin for audit timestamps.
Architecture position: Kernel > DB.  Lowest-level import target for
    persistence.  MUST NOT import from models/, store/, domain/ or outer
    layers.

Invariants enforced:
    - UUID primary keys stored as String(36) for cross-database portability.
    - Decimal columns round-trip exactly.  SQLite has no native decimal
      type, so amounts are stored as their canonical string form rather
      than as a binary float.
    - Audit timestamps: TrackedBase provides created_at and updated_at.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID as PyUUID, uuid4

from sqlalchemy import DateTime, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUID stored as its 36-character string form."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return None

    def process_result_value(self, value, dialect):
        if value is not None:
            return PyUUID(value)
        return None


class DecimalString(TypeDecorator):
    """
    Decimal stored as text.

    Guarantees:
        - process_bind_param: Decimal -> str, rejecting float input.
        - process_result_value: str -> Decimal with no precision loss.
    """

    impl = String(64)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, float):
            raise TypeError("Monetary columns accept Decimal, not float")
        return str(Decimal(value))

    def process_result_value(self, value, dialect):
        if value is not None:
            return Decimal(value)
        return None


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware datetime that comes back aware on every backend.

    SQLite drops tzinfo on storage; values are normalized to UTC on the way
    in and tagged as UTC on the way out.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            raise ValueError("Naive datetime cannot be stored; attach a timezone")
        return value.astimezone(timezone.utc)

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class Base(DeclarativeBase):
    """
    Declarative base for all ledger ORM models.

    Guarantees:
        - id is a uuid4-generated UUID stored as String(36).
        - Decimal maps to DecimalString (exact).
        - datetime maps to UTCDateTime (always timezone-aware).
    """

    type_annotation_map: ClassVar[dict] = {
        Decimal: DecimalString(),
        datetime: UTCDateTime(),
        PyUUID: UUIDString(),
    }

    id: Mapped[PyUUID] = mapped_column(
        UUIDString(),
        primary_key=True,
        default=uuid4,
    )


class TrackedBase(Base):
    """
    Abstract base with audit timestamps.

    created_at is set by the database on INSERT; updated_at also refreshes
    on every UPDATE.  These are audit metadata, not financial data.
    """

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
