"""Transactional store port and its adapters."""

from ledger_kernel.store.base import OpKind, StoreOp, TransactionalStore
from ledger_kernel.store.memory import InMemoryStore
from ledger_kernel.store.sql import SqlAlchemyStore

__all__ = [
    "OpKind",
    "StoreOp",
    "TransactionalStore",
    "InMemoryStore",
    "SqlAlchemyStore",
]
