"""
stock_kernel.db.engine -- Engine and session lifecycle.

Responsibility:
    Own the process-wide SQLAlchemy engine and session factory, and the
    ``session_scope()`` unit of work that callers wrap around
    ``StockMovementService.apply``.

Architecture position:
    Kernel > DB.  ``create_tables``/``drop_tables`` import
    ``stock_kernel.models`` so every table is registered on ``Base``.

Invariants enforced:
    - session_scope() commits or rolls back as a whole, so ledger rows and
      the kardex lines of one movement land together.
    - In-memory SQLite runs on a single shared connection (StaticPool),
      so every session sees the same database.

Failure modes:
    - RuntimeError from get_engine/get_session before init_engine_from_url().
"""

import atexit
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.engine.url import make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from stock_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Database engine not initialized; call init_engine_from_url() first."


def init_engine_from_url(database_url: str, echo: bool = False, **pool_options) -> Engine:
    """
    Create the engine for ``database_url`` and bind a session factory to it.

    SQLite URLs get a StaticPool and may be shared across threads; any other
    backend uses a regular pool (``pool_options`` are passed through,
    defaulting to ``pool_pre_ping=True``) at READ COMMITTED.
    """
    global _engine, _session_factory

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        engine = create_engine(
            url,
            echo=echo,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    else:
        pool_options.setdefault("pool_pre_ping", True)
        engine = create_engine(
            url, echo=echo, isolation_level="READ COMMITTED", **pool_options
        )

    _engine = engine
    _session_factory = sessionmaker(bind=engine, expire_on_commit=False)

    configure_logging()
    logger.info("db_engine_ready", extra={"dialect": engine.dialect.name, "echo": echo})
    return engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session() -> Session:
    """Open a new session on the current engine."""
    if _session_factory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _session_factory()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """
    Unit of work: commit on success, roll back and re-raise on error.

    Usage:
        with session_scope() as session:
            StockMovementService(session).apply(movement)
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("unit_of_work_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create every table registered on Base."""
    from stock_kernel.db.base import Base
    import stock_kernel.models  # noqa: F401

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    """Drop every table registered on Base (tests and local resets)."""
    from stock_kernel.db.base import Base
    import stock_kernel.models  # noqa: F401

    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _session_factory

    engine, _engine, _session_factory = _engine, None, None
    if engine is not None:
        engine.dispose()


atexit.register(reset_engine)
