"""Tests for the structured logging system (ledger_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from ledger_kernel.domain.values import PaymentStatus
from ledger_kernel.exceptions import AmountExceedsBalanceError
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite configuration."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:
    """Tests for JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        [record] = _parse_all_logs(stream)
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "ledger_kernel.test"
        assert "ts" in record

    def test_extra_fields_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        entry_id = uuid4()
        get_logger("test").info(
            "payment_applied",
            extra={
                "amount": Decimal("10.50"),
                "entry_id": entry_id,
                "business_date": date(2024, 1, 2),
                "status": PaymentStatus.PARTIAL,
                "party": "شركة الأمل",
            },
        )

        [record] = _parse_all_logs(stream)
        assert record["amount"] == "10.50"
        assert record["entry_id"] == str(entry_id)
        assert record["business_date"] == "2024-01-02"
        assert record["status"] == "partial"
        assert record["party"] == "شركة الأمل"

    def test_exception_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise AmountExceedsBalanceError("TXN-1", Decimal("20"), Decimal("10"))
        except AmountExceedsBalanceError:
            get_logger("test").exception("failed")

        [record] = _parse_all_logs(stream)
        assert record["exc_type"] == "AmountExceedsBalanceError"
        assert record["exc_code"] == "AMOUNT_EXCEEDS_BALANCE"
        assert record["exc_amount"] == "20"
        assert record["exc_entry_id"] == "TXN-1"
        assert "traceback" in record


class TestLogContext:
    def test_bind_adds_and_restores_fields(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        logger = get_logger("test")

        with LogContext.bind(entry_id="e-1", operation="apply_payment"):
            logger.info("inside")
        logger.info("outside")

        inside, outside = _parse_all_logs(stream)
        assert inside["entry_id"] == "e-1"
        assert inside["operation"] == "apply_payment"
        assert "entry_id" not in outside

    def test_nested_bind(self):
        with LogContext.bind(actor_id="u-1"):
            with LogContext.bind(transaction_id="TXN-1"):
                assert LogContext.get_all() == {"actor_id": "u-1", "transaction_id": "TXN-1"}
            assert LogContext.get_all() == {"actor_id": "u-1"}

    def test_set_and_clear(self):
        LogContext.set(correlation_id="c-1")
        assert LogContext.get_all() == {"correlation_id": "c-1"}
        LogContext.clear()
        assert LogContext.get_all() == {}


class TestConfigureLogging:
    def test_idempotent(self):
        handler, _ = _make_handler()
        configure_logging(handler=handler)
        configure_logging(handler=handler)
        assert len(logging.getLogger("ledger_kernel").handlers) == 1

    def test_level_respected(self):
        handler, stream = _make_handler()
        configure_logging(level=logging.WARNING, handler=handler)
        logger = get_logger("test")
        logger.info("dropped")
        logger.warning("kept")
        assert [r["message"] for r in _parse_all_logs(stream)] == ["kept"]


class TestContextFields:
    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError, match="cheque_number"):
            LogContext.set(cheque_number="CH-1")

    def test_none_values_skipped(self):
        with LogContext.bind(actor_id="u-1", entry_id=None):
            assert LogContext.get_all() == {"actor_id": "u-1"}

    def test_extra_does_not_override_bound_context(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)

        with LogContext.bind(entry_id="e-1"):
            get_logger("test").info("event", extra={"entry_id": "other"})

        [record] = _parse_all_logs(stream)
        assert record["entry_id"] == "e-1"
