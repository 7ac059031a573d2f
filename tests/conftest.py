"""
Pytest fixtures for the ledger engine test suite.

Provides:
- The bundled category taxonomy and a classifier over it
- Deterministic clock and transaction id generation
- In-memory and SQLite-backed transactional stores
- Entry builders and structured log capture
"""

import itertools
import json
import logging
import random
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from ledger_config import DEFAULT_TAXONOMY_PATH, reset_active_taxonomy
from ledger_config.loader import load_taxonomy
from ledger_engines.classifier import TransactionClassifier
from ledger_kernel.db.engine import build_engine, create_tables, drop_tables, make_session_factory
from ledger_kernel.domain.clock import DeterministicClock, TransactionIdGenerator
from ledger_kernel.domain.models import LedgerEntry
from ledger_kernel.domain.values import EntryType, PaymentStatus
from ledger_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from ledger_kernel.store import InMemoryStore, SqlAlchemyStore, StoreOp
from ledger_modules import (
    AdvanceService,
    ChequeLedger,
    EntryService,
    SettlementService,
    WriteOffProcessor,
)

# Category names from the bundled taxonomy
SALES = "مبيعات"
SALES_PRODUCTS = "مبيعات منتجات"
OPERATING = "مصاريف تشغيلية"
RENT = "إيجار"
CAPITAL = "رأس المال"
OWNER_CONTRIBUTION = "رأس مال مالك"
OWNER_DRAWINGS = "سحوبات المالك"
LOANS_GIVEN = "قروض ممنوحة"
LOANS_RECEIVED = "قروض مستلمة"
CUSTOMER_ADVANCE = "سلفة عميل"
SUPPLIER_ADVANCE = "سلفة مورد"
FIXED_ASSETS = "أصول ثابتة"
DEPRECIATION = "استهلاك أصول ثابتة"

_SEQUENCE = itertools.count(1)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture(autouse=True)
def _reset_taxonomy_cache():
    reset_active_taxonomy()
    yield
    reset_active_taxonomy()


@pytest.fixture
def captured_logs():
    """
    Capture ledger_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, settlement_service):
            settlement_service.apply_payment(entry, "10")
            logs = captured_logs()
            assert any(r["message"] == "payment_applied" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("ledger_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


# =============================================================================
# Configuration fixtures
# =============================================================================


@pytest.fixture(scope="session")
def taxonomy():
    return load_taxonomy(DEFAULT_TAXONOMY_PATH)


@pytest.fixture
def classifier(taxonomy):
    return TransactionClassifier(taxonomy)


# =============================================================================
# Clock fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    """Provide a deterministic clock for testing."""
    return DeterministicClock()


@pytest.fixture
def id_generator(deterministic_clock):
    return TransactionIdGenerator(deterministic_clock, rng=random.Random(42))


# =============================================================================
# Store fixtures
# =============================================================================


@pytest.fixture
def memory_store():
    return InMemoryStore()


@pytest.fixture
def sql_engine():
    engine = build_engine("sqlite://")
    create_tables(engine)
    yield engine
    drop_tables(engine)
    engine.dispose()


@pytest.fixture
def sql_store(sql_engine):
    return SqlAlchemyStore(make_session_factory(sql_engine))


@pytest.fixture(params=["memory", "sql"])
def store(request):
    """Run the test against both store adapters."""
    if request.param == "memory":
        return InMemoryStore()
    return request.getfixturevalue("sql_store")


# =============================================================================
# Entry builders
# =============================================================================


def make_entry(
    amount="1000",
    *,
    category=SALES,
    sub_category=SALES_PRODUCTS,
    entry_type=EntryType.INCOME,
    party="Customer A",
    is_arap_entry=True,
    business_date=date(2024, 1, 10),
    transaction_id=None,
    **overrides,
) -> LedgerEntry:
    """An AR/AP entry with settlement state made explicit."""
    value = Decimal(amount)
    is_equity = entry_type is EntryType.EQUITY
    fields = dict(
        id=uuid4(),
        transaction_id=transaction_id or f"TXN-{business_date:%Y%m%d}-120000-{next(_SEQUENCE):03d}",
        category=category,
        sub_category=sub_category,
        entry_type=entry_type,
        amount=value,
        date=business_date,
        associated_party=None if is_equity else party,
        owner_name=party if is_equity else None,
        is_arap_entry=is_arap_entry,
        remaining_balance=value if is_arap_entry else None,
        payment_status=PaymentStatus.UNPAID if is_arap_entry else None,
    )
    fields.update(overrides)
    return LedgerEntry(**fields)


def make_advance(amount, business_date, *, customer=True, party="Customer A", **overrides):
    return make_entry(
        amount,
        category=CUSTOMER_ADVANCE if customer else SUPPLIER_ADVANCE,
        sub_category="",
        entry_type=EntryType.ADVANCE,
        party=party,
        business_date=business_date,
        **overrides,
    )


@pytest.fixture
def stored_entry():
    """Factory: build an entry and insert it into ``store``."""

    def _create(store, amount="1000", **kwargs) -> LedgerEntry:
        entry = make_entry(amount, **kwargs)
        store.apply_atomic([StoreOp.insert_entry(entry)])
        return entry

    return _create


# =============================================================================
# Service fixtures
# =============================================================================


@pytest.fixture
def settlement_service(store, classifier, deterministic_clock):
    return SettlementService(store, classifier, deterministic_clock)


@pytest.fixture
def cheque_ledger(store, classifier, deterministic_clock):
    return ChequeLedger(store, classifier, deterministic_clock)


@pytest.fixture
def advance_service(store, classifier, deterministic_clock):
    return AdvanceService(store, classifier, deterministic_clock)


@pytest.fixture
def write_off_processor(store, classifier, deterministic_clock):
    return WriteOffProcessor(store, classifier, deterministic_clock)


@pytest.fixture
def entry_service(store, classifier, deterministic_clock, id_generator):
    return EntryService(store, classifier, deterministic_clock, id_generator)
