"""
Structured JSON logging for the ledger engine.

Every record under the ``ledger_kernel`` logger tree is written as one
JSON object per line.  Three sources feed a record:

1. The fixed envelope: ``ts``, ``level``, ``logger``, ``message``.
2. The ledger context bound for the user action in progress
   (``LogContext``): which entry, which transaction, who, and what
   operation.
3. The event fields passed through ``extra={...}``.

Amounts are logged as strings so that ``Decimal("10.50")`` keeps its scale.

Usage:
    logger = get_logger("modules.settlement.service")
    with LogContext.bind(entry_id=str(entry.id), operation="apply_payment"):
        logger.info("payment_applied", extra={"amount": amount})
"""

__all__ = [
    "CONTEXT_FIELDS",
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

# Fields a ledger action may carry into every record it logs.
CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "actor_id",
    "entry_id",
    "transaction_id",
    "operation",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})
_ledger_context: ContextVar[Mapping[str, str]] = ContextVar(
    "ledger_log_context", default=_EMPTY
)


def _checked(fields: dict[str, object]) -> dict[str, str]:
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise TypeError(f"unknown log context field(s): {', '.join(sorted(unknown))}")
    return {name: str(value) for name, value in fields.items() if value is not None}


class LogContext:
    """
    Ledger fields for the user action being processed.

    Backed by a single ``ContextVar`` holding a read-only mapping, so a
    nested ``bind`` only layers its own fields and the outer mapping comes
    back untouched on exit.
    """

    @staticmethod
    def set(**fields: object) -> None:
        """Merge non-None fields into the current context."""
        merged = {**_ledger_context.get(), **_checked(fields)}
        _ledger_context.set(MappingProxyType(merged))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_ledger_context.get())

    @staticmethod
    def clear() -> None:
        _ledger_context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: object) -> Iterator[None]:
        """Layer ``fields`` over the current context for the ``with`` block."""
        merged = {**_ledger_context.get(), **_checked(fields)}
        token = _ledger_context.set(MappingProxyType(merged))
        try:
            yield
        finally:
            _ledger_context.reset(token)


# ---------------------------------------------------------------------------
# JSON Formatter
# ---------------------------------------------------------------------------

_STDLIB_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "taskName"}


class _LedgerJSONEncoder(json.JSONEncoder):
    """Money, ids, dates and enums as JSON scalars; anything else via str()."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return format(obj, "f")
        if isinstance(obj, UUID):
            return str(obj)
        if isinstance(obj, (datetime, date)):
            return obj.isoformat()
        if isinstance(obj, Enum):
            return obj.value
        return str(obj)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    """Type, message, machine code and structured attributes of a ledger error."""
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    for name, value in vars(exc).items():
        if not name.startswith("_"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_ledger_context.get(),
        }
        payload.update(
            (key, value)
            for key, value in vars(record).items()
            if key not in _STDLIB_KEYS and key not in payload
        )

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_LedgerJSONEncoder, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Logger tree
# ---------------------------------------------------------------------------

_ROOT = "ledger_kernel"
_configured = False
_lock = threading.Lock()


def get_logger(name: str) -> logging.Logger:
    """Logger ``ledger_kernel.<name>``."""
    return logging.getLogger(f"{_ROOT}.{name}")


def configure_logging(
    *,
    level: int = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """Attach one JSON handler to the ``ledger_kernel`` tree. Later calls are no-ops."""
    global _configured
    with _lock:
        if _configured:
            return
        _configured = True

    tree = logging.getLogger(_ROOT)
    tree.setLevel(level)
    tree.propagate = False
    target = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)
    target.setFormatter(StructuredFormatter())
    tree.addHandler(target)


def reset_logging() -> None:
    """Detach handlers and forget configuration. Used by tests."""
    global _configured
    with _lock:
        _configured = False
    tree = logging.getLogger(_ROOT)
    tree.handlers.clear()
    tree.setLevel(logging.WARNING)
    tree.propagate = True
