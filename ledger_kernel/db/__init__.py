"""Database infrastructure for the ledger kernel."""

from ledger_kernel.db.base import Base, DecimalString, TrackedBase, UTCDateTime, UUIDString
from ledger_kernel.db.engine import (
    build_engine,
    create_tables,
    drop_tables,
    make_session_factory,
    session_scope,
)

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "DecimalString",
    "UTCDateTime",
    "build_engine",
    "make_session_factory",
    "session_scope",
    "create_tables",
    "drop_tables",
]
