"""
Module: ledger_kernel.db.engine
Responsibility: SQLAlchemy engine construction, session factory creation,
    and transactional scope utilities.  There is no module-level engine: every
    caller builds its own engine and session factory and passes them down
    explicitly, so tests can run against isolated databases.
Architecture position: Kernel > DB.  May import from db/base.py.  MUST NOT
    import from services/, selectors/, domain/, or outer layers (except for
    create_tables/drop_tables which import models so metadata is complete).

Invariants enforced:
    - PostgreSQL sessions run at READ COMMITTED with explicit row locks
      (SELECT ... FOR UPDATE) taken by the account store.
    - PostgreSQL connections carry lock_timeout and statement_timeout so no
      ledger transaction can hold row locks indefinitely.
    - SQLite connections wait on a busy timeout instead of failing fast, and
      enforce foreign keys.

Failure modes:
    - OperationalError on connect if the database is unreachable.
    - Connection pool exhaustion if pool_size + max_overflow is exceeded
      (surfaces as TimeoutError after pool_timeout seconds).
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from ledger_kernel.logging_config import get_logger

if TYPE_CHECKING:
    from ledger_config.schema import LedgerSettings

logger = get_logger("db.engine")


def create_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
    lock_timeout_ms: int = 5000,
    statement_timeout_ms: int = 30000,
    sqlite_busy_timeout_s: float = 15.0,
) -> Engine:
    """
    Build a SQLAlchemy engine for the ledger.

    Args:
        database_url: PostgreSQL or SQLite connection URL.
        echo: If True, log all SQL statements.
        pool_size: Number of connections to keep in the pool.
        max_overflow: Max connections beyond pool_size.
        pool_pre_ping: If True, test connections before use.
        pool_timeout: Seconds to wait for a pooled connection.
        pool_recycle: Seconds after which a connection is recycled.
        lock_timeout_ms: PostgreSQL lock wait bound per statement.
        statement_timeout_ms: PostgreSQL statement duration bound.
        sqlite_busy_timeout_s: SQLite wait for the database write lock.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = make_url(database_url)
    backend = url.get_backend_name()

    kwargs: dict[str, Any] = {"echo": echo}
    if backend == "sqlite":
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": sqlite_busy_timeout_s,
        }
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    engine = create_engine(url, **kwargs)

    if backend == "sqlite":
        @event.listens_for(engine, "connect")
        def _sqlite_on_connect(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    elif backend == "postgresql":
        @event.listens_for(engine, "connect")
        def _postgres_on_connect(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute(f"SET lock_timeout = {int(lock_timeout_ms)}")
            cursor.execute(f"SET statement_timeout = {int(statement_timeout_ms)}")
            cursor.close()
            # psycopg2 opens a transaction for SET; settle it before pooling
            dbapi_connection.commit()

    logger.info(
        "engine_initialized",
        extra={
            "dialect": backend,
            "pool_size": pool_size if backend != "sqlite" else None,
            "echo": echo,
        },
    )
    return engine


def create_engine_from_settings(settings: LedgerSettings) -> Engine:
    """Build an engine from a ``LedgerSettings`` instance."""
    return create_engine_from_url(
        settings.database_url,
        echo=settings.echo,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        pool_timeout=settings.pool_timeout,
        pool_recycle=settings.pool_recycle,
        lock_timeout_ms=settings.lock_timeout_ms,
        statement_timeout_ms=settings.statement_timeout_ms,
        sqlite_busy_timeout_s=settings.sqlite_busy_timeout_s,
    )


def create_session_factory(engine: Engine) -> sessionmaker[Session]:
    """
    Create the session factory for an engine.

    Each ledger operation and each thread takes its own session from the
    factory.  ``expire_on_commit=False`` keeps DTO conversion after commit
    free of extra round trips.
    """
    return sessionmaker(bind=engine, expire_on_commit=False)


@contextmanager
def session_scope(
    factory: sessionmaker[Session],
) -> Generator[Session, None, None]:
    """
    Provide a transactional scope around a series of operations.

    Postconditions: On normal exit, session is committed and closed.
        On exception, session is rolled back and closed.  The exception
        is re-raised to the caller.

    Usage:
        with session_scope(factory) as session:
            session.add(entity)
            # Commits on successful exit, rolls back on exception
    """
    session = factory()
    logger.debug("transaction_started")
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except BaseException:
        session.rollback()
        logger.debug("transaction_rolled_back")
        raise
    finally:
        session.close()


def create_tables(engine: Engine) -> None:
    """
    Create all ledger tables.

    Schema migration is not part of the kernel; this exists for tests,
    demos and the CLI ``init-db`` command.
    """
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401  (register tables on metadata)

    Base.metadata.create_all(engine)
    logger.info(
        "tables_created",
        extra={"tables": sorted(Base.metadata.tables)},
    )


def drop_tables(engine: Engine) -> None:
    """
    Drop all tables. Use with caution - primarily for testing.
    """
    from ledger_kernel.db.base import Base
    import ledger_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine)
