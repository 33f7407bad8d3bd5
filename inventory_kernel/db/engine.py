"""
Module: inventory_kernel.db.engine
Responsibility: Process-wide SQLAlchemy engine and session factory for the
    stock ledger, plus a commit-or-rollback session scope.
Architecture position: Kernel > DB.  Imports models only inside
    create_tables/drop_tables so table metadata is complete.

Backends:
    - PostgreSQL (production): QueuePool, READ COMMITTED.  Purchase lots and
      sequence counters are serialised with explicit ``FOR UPDATE`` locks.
    - SQLite (local runs, test suite): SQLAlchemy issues BEGIN itself so
      nested SAVEPOINTs work; ``:memory:`` databases share one connection
      through StaticPool.  ``FOR UPDATE`` compiles to nothing.

Failure modes:
    - RuntimeError from the accessors before init_engine_from_url().
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from inventory_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None


def _use_explicit_sqlite_begin(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _disable_driver_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def _build_engine(
    database_url: str,
    echo: bool,
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_timeout: int,
    pool_recycle: int,
) -> Engine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool if url.database in (None, "", ":memory:") else None,
        )
        _use_explicit_sqlite_begin(engine)
        return engine

    return create_engine(
        url,
        echo=echo,
        poolclass=QueuePool,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=pool_pre_ping,
        pool_timeout=pool_timeout,
        pool_recycle=pool_recycle,
        isolation_level="READ COMMITTED",
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the process-wide engine and session factory.

    A second call replaces the first.  Pool arguments apply to PostgreSQL
    only.  Registers the ORM immutability listeners.
    """
    global _engine, _SessionFactory

    _engine = _build_engine(
        database_url, echo, pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle
    )
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    from inventory_kernel.db.immutability import register_immutability_listeners

    register_immutability_listeners()

    configure_logging()
    pooled = _engine.dialect.name != "sqlite"
    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "url": _engine.url.render_as_string(hide_password=True),
            "pool_size": pool_size if pooled else None,
            "max_overflow": max_overflow if pooled else None,
        },
    )
    return _engine


def _require_factory() -> sessionmaker[Session]:
    if _SessionFactory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _SessionFactory


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Factory for callers that need one session per thread."""
    return _require_factory()


def get_session() -> Session:
    return _require_factory()()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    One unit of work: commit on normal exit, roll back and re-raise on error.
    The session is always closed.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("session_scope_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401  (registers all tables)

    Base.metadata.create_all(get_engine())
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every ledger table.  Tests and ``scripts/init_db.py --drop`` only."""
    from inventory_kernel.db.base import Base
    import inventory_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())
    logger.info("tables_dropped")


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


def is_postgres() -> bool:
    return _engine is not None and _engine.dialect.name == "postgresql"


@atexit.register
def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()
