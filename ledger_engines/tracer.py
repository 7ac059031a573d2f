"""
Invocation tracing for the pure ledger engines.

``@traced_engine`` wraps an engine function and logs one
``LEDGER_ENGINE_TRACE`` record per call: which engine and version ran, a
short fingerprint of the inputs that matter, how long it took, and the
error code when it raised.  The wrapped function is called unchanged and
every exception propagates.

The fingerprint is built from a canonical text form of the named
arguments, so ``Decimal("10.0")`` and ``Decimal("10")`` hash the same and
positional and keyword calls are indistinguishable.

Usage:
    @traced_engine("settlement", "1.0", fingerprint_fields=("entry", "amount"))
    def apply_payment(entry, amount, ...):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import inspect
import time
from collections.abc import Callable, Mapping
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, TypeVar

from ledger_kernel.logging_config import get_logger

logger = get_logger("engines.tracer")

F = TypeVar("F", bound=Callable[..., Any])

FINGERPRINT_LENGTH = 16


def _canonical(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Enum):
        return _canonical(value.value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            return str(value)
        text = format(value.normalize(), "f")
        return "0" if text in ("-0", "0") else text
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        body = ",".join(
            f"{key}:{_canonical(value[key])}" for key in sorted(value, key=str)
        )
        return "{" + body + "}"
    if isinstance(value, (list, tuple, frozenset, set)):
        items = sorted(value, key=_canonical) if isinstance(value, (set, frozenset)) else value
        return "[" + ",".join(_canonical(item) for item in items) + "]"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        shallow = {f.name: getattr(value, f.name) for f in dataclasses.fields(value)}
        return type(value).__name__ + _canonical(shallow)
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    arguments: Mapping[str, Any],
) -> str:
    """Hex prefix of the SHA-256 of ``name=value`` pairs; absent names count as null."""
    text = "|".join(f"{name}={_canonical(arguments.get(name))}" for name in fingerprint_fields)
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def _named_arguments(
    signature: inspect.Signature, args: tuple[Any, ...], kwargs: dict[str, Any]
) -> dict[str, Any]:
    try:
        bound = signature.bind(*args, **kwargs)
    except TypeError:
        # The call itself will fail with the real error.
        return dict(kwargs)
    return dict(bound.arguments)


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[F], F]:
    """
    Decorate an engine function so every call is traced.

    ``fingerprint_fields`` names the parameters hashed into
    ``input_fingerprint``; leave it empty to skip fingerprinting.
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(
                    fingerprint_fields, _named_arguments(signature, args, kwargs)
                )
                if fingerprint_fields
                else ""
            )
            error_code: str | None = None
            started = time.perf_counter()
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                error_code = getattr(exc, "code", None) or type(exc).__name__
                raise
            finally:
                logger.info(
                    "LEDGER_ENGINE_TRACE",
                    extra={
                        "trace_type": "LEDGER_ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "function": func.__qualname__,
                        "input_fingerprint": fingerprint,
                        "duration_ms": round((time.perf_counter() - started) * 1000, 2),
                        "error_code": error_code,
                    },
                )

        return wrapper  # type: ignore[return-value]

    return decorator
