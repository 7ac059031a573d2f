"""
Module: ledger_kernel.db.engine
Responsibility: Build SQLAlchemy engines and session factories for the
    ledger tables, and the transactional scope the SQL store writes in.
Architecture position: Kernel > DB.  Only the table helpers import the ORM
    models, so Base.metadata is populated before create_all/drop_all.

Invariants enforced:
    - session_scope() commits when the block finishes and rolls back when
      it raises; the exception always propagates.
    - In-memory SQLite shares one connection (StaticPool), so every session
      from the same engine sees the same database.
    - Every SQLite connection enforces foreign keys.
"""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ledger_kernel.logging_config import get_logger

logger = get_logger("db.engine")


def _sqlite_foreign_keys_on(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _is_memory_sqlite(database_url: str) -> bool:
    return ":memory:" in database_url or database_url.rstrip("/") == "sqlite:"


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Engine for ``database_url``; SQLite URLs get shared-memory and FK handling."""
    if not database_url.startswith("sqlite"):
        engine = create_engine(database_url, echo=echo, pool_pre_ping=True)
    elif _is_memory_sqlite(database_url):
        engine = create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        event.listen(engine, "connect", _sqlite_foreign_keys_on)
    else:
        engine = create_engine(database_url, echo=echo)
        event.listen(engine, "connect", _sqlite_foreign_keys_on)

    logger.info("engine_built", extra={"dialect": engine.dialect.name, "echo": echo})
    return engine


def make_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Sessions whose loaded rows stay readable after commit."""
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(factory: sessionmaker[Session]) -> Generator[Session, None, None]:
    """
    One database transaction.

    Usage:
        with session_scope(factory) as session:
            session.add(row)
            # commit on exit, rollback if the block raises
    """
    session = factory()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables(engine: Engine) -> None:
    """Create every ledger table on ``engine``."""
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  registers tables on Base.metadata

    Base.metadata.create_all(engine)


def drop_tables(engine: Engine) -> None:
    """Drop every ledger table on ``engine``. Test teardown only."""
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine)
