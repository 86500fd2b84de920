"""
Module: lease_registry.db.engine
Responsibility: build the engine the registry runs on, hold the process-wide
    engine used by scripts, and provide the commit-or-rollback scope every
    registry operation executes in.
Architecture position: Registry > DB.  May import from db/base.py and, inside
    create_tables only, from models/.

Invariants enforced:
    - session_scope() commits on normal exit and rolls back on any exception,
      so a rejected operation leaves no partial writes and no activity event.
    - PostgreSQL runs at READ COMMITTED with a pre-pinged QueuePool.
    - An in-memory SQLite database lives on one shared connection (StaticPool);
      otherwise each session would open its own empty database.

Failure modes:
    - RuntimeError from get_engine/get_session/get_session_factory before
      init_engine_from_url() has been called.
"""

import atexit
from contextlib import contextmanager
from typing import Any, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Engine, make_url
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from lease_registry.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_SessionFactory: sessionmaker[Session] | None = None

_NOT_INITIALIZED = "Engine not initialized. Call init_engine_from_url() first."


def _sqlite_options(url: URL) -> dict[str, Any]:
    # Registry operations are serialized by a lock, not by thread affinity
    options: dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    if url.database in (None, "", ":memory:"):
        options["poolclass"] = StaticPool
    return options


def _server_options(
    pool_size: int,
    max_overflow: int,
    pool_pre_ping: bool,
    pool_timeout: int,
    pool_recycle: int,
) -> dict[str, Any]:
    return {
        "poolclass": QueuePool,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_pre_ping": pool_pre_ping,
        "pool_timeout": pool_timeout,
        "pool_recycle": pool_recycle,
        "isolation_level": "READ COMMITTED",
    }


def build_engine(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """Create an engine for ``database_url`` without touching module state.

    Pool settings only apply to server databases; SQLite ignores them.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        options = _sqlite_options(url)
    else:
        options = _server_options(
            pool_size, max_overflow, pool_pre_ping, pool_timeout, pool_recycle
        )
    return create_engine(url, echo=echo, **options)


def init_engine_from_url(database_url: str, echo: bool = False, **pool_options) -> Engine:
    """
    Install the process-wide engine and session factory.

    Calling it again replaces both; the previous engine is not disposed.
    """
    global _engine, _SessionFactory

    _engine = build_engine(database_url, echo=echo, **pool_options)
    _SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)

    logger.info(
        "engine_initialized",
        extra={
            "dialect": _engine.dialect.name,
            "database": _engine.url.database,
        },
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    """Session factory to hand to ``LeaseRegistry``."""
    if _SessionFactory is None:
        raise RuntimeError(_NOT_INITIALIZED)
    return _SessionFactory


def get_session() -> Session:
    return get_session_factory()()


@contextmanager
def session_scope(
    session_factory: sessionmaker[Session] | None = None,
) -> Generator[Session, None, None]:
    """
    Run a block in one transaction.

    Uses ``session_factory`` when given, else the process-wide factory.
    Commits when the block exits normally; on any exception rolls back and
    re-raises.  The session is closed either way.

    Usage:
        with session_scope(factory) as session:
            PropertyRegistryService(session, gate, recorder).add_property(...)
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
        logger.debug("transaction_committed")
    except Exception:
        session.rollback()
        logger.debug("transaction_rolled_back")
        raise
    finally:
        session.close()


def create_tables(engine: Engine | None = None) -> None:
    """Create the registry tables that do not exist yet."""
    from lease_registry.db.base import Base
    from lease_registry.models import import_all_models

    import_all_models()
    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    """Drop every registry table, including the activity log."""
    from lease_registry.db.base import Base
    from lease_registry.models import import_all_models

    import_all_models()
    Base.metadata.drop_all(engine or get_engine())


def reset_engine() -> None:
    """Dispose the process-wide engine and forget the session factory."""
    global _engine, _SessionFactory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _SessionFactory = None


def _dispose_on_exit() -> None:
    if _engine is not None:
        _engine.dispose()


atexit.register(_dispose_on_exit)
