"""
Typed results returned by the ledger services.

Services never leak validation failures as exceptions: a rejected
operation comes back as a result with ``status=REJECTED`` and the error's
``code``; a failed store write comes back as ``WRITE_FAILED``.  Nothing is
retried.  Engine errors that are not validation problems (and programming
errors) still propagate.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ledger_kernel.domain.models import Cheque, EndorsementTransfer, LedgerEntry, Payment
from ledger_kernel.exceptions import (
    ChequeError,
    ClassificationError,
    EntryNotFoundError,
    LedgerEngineError,
    ValidationError,
)

# Errors a service turns into a REJECTED result.
REJECTABLE_ERRORS: tuple[type[LedgerEngineError], ...] = (
    ValidationError,
    ClassificationError,
    ChequeError,
    EntryNotFoundError,
)


class SettlementStatus(str, Enum):
    """Outcome of a settlement-affecting service call."""

    APPLIED = "applied"
    REJECTED = "rejected"
    WRITE_FAILED = "write_failed"


@dataclass(frozen=True)
class SettlementResult:
    """
    Result of a payment, discount, write-off or allocation.

    On success ``entry`` is the persisted entry and ``payments`` the
    settlement events written with it.  Otherwise ``entry`` is the
    unchanged input (when there was one) and ``error_code`` says why.
    """

    status: SettlementStatus
    entry: LedgerEntry | None = None
    payments: tuple[Payment, ...] = ()
    error_code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == SettlementStatus.APPLIED

    @classmethod
    def applied(cls, entry: LedgerEntry, payments: tuple[Payment, ...] = ()) -> SettlementResult:
        return cls(status=SettlementStatus.APPLIED, entry=entry, payments=payments)

    @classmethod
    def rejected(cls, error: LedgerEngineError, entry: LedgerEntry | None = None) -> SettlementResult:
        return cls(
            status=SettlementStatus.REJECTED,
            entry=entry,
            error_code=error.code,
            message=str(error),
        )

    @classmethod
    def write_failed(
        cls, error: LedgerEngineError, entry: LedgerEntry | None = None
    ) -> SettlementResult:
        return cls(
            status=SettlementStatus.WRITE_FAILED,
            entry=entry,
            error_code=error.code,
            message=str(error),
        )


@dataclass(frozen=True)
class ChequeResult:
    """Result of recording or moving a cheque."""

    status: SettlementStatus
    cheque: Cheque | None = None
    entry: LedgerEntry | None = None
    payments: tuple[Payment, ...] = ()
    transfer: EndorsementTransfer | None = None
    error_code: str | None = None
    message: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status == SettlementStatus.APPLIED

    @classmethod
    def rejected(
        cls,
        error: LedgerEngineError,
        cheque: Cheque | None = None,
        entry: LedgerEntry | None = None,
    ) -> ChequeResult:
        return cls(
            status=SettlementStatus.REJECTED,
            cheque=cheque,
            entry=entry,
            error_code=error.code,
            message=str(error),
        )

    @classmethod
    def write_failed(
        cls,
        error: LedgerEngineError,
        cheque: Cheque | None = None,
        entry: LedgerEntry | None = None,
    ) -> ChequeResult:
        return cls(
            status=SettlementStatus.WRITE_FAILED,
            cheque=cheque,
            entry=entry,
            error_code=error.code,
            message=str(error),
        )
