"""
Engine and session plumbing for the ledger.

``init_engine_from_url`` installs one process-wide engine plus its session
factory; ``DepositPlugin.from_settings`` calls it once at startup and
``reset_engine`` on stop.  Services never touch the globals: they are handed
a session factory and open one ``session_scope`` per ledger statement.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, sessionmaker

from deposit_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_session_factory: sessionmaker[Session] | None = None


def build_engine(
    database_url: str,
    *,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
) -> Engine:
    """Create an engine; pool sizing applies to server databases only."""
    if make_url(database_url).get_backend_name() == "sqlite":
        return create_engine(database_url, echo=echo)
    return create_engine(
        database_url,
        echo=echo,
        pool_size=pool_size,
        max_overflow=max_overflow,
        pool_pre_ping=True,
        pool_recycle=1800,
    )


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 10,
    max_overflow: int = 5,
) -> Engine:
    """Install the process-wide engine, replacing (and disposing) any previous one."""
    global _engine, _session_factory

    reset_engine()
    _engine = build_engine(
        database_url, echo=echo, pool_size=pool_size, max_overflow=max_overflow,
    )
    _session_factory = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info(
        "engine_initialized",
        extra={"dialect": _engine.dialect.name, "pool_size": pool_size},
    )
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _engine


def get_session_factory() -> sessionmaker[Session]:
    if _session_factory is None:
        raise RuntimeError("Engine not initialized. Call init_engine_from_url() first.")
    return _session_factory


def reset_engine() -> None:
    global _engine, _session_factory

    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None


@contextmanager
def session_scope(session_factory: sessionmaker[Session] | None = None) -> Iterator[Session]:
    """
    One session, one commit.

    Commits when the block exits normally; otherwise rolls back and re-raises.
    The session is closed either way.
    """
    session = (session_factory or get_session_factory())()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def ping(engine: Engine | None = None) -> bool:
    with (engine or get_engine()).connect() as conn:
        conn.execute(text("SELECT 1"))
    return True


def create_tables(engine: Engine | None = None) -> None:
    """Create both ledger tables if they do not exist."""
    from deposit_kernel.db.base import Base
    import deposit_kernel.models  # noqa: F401  (registers the tables)

    Base.metadata.create_all(engine or get_engine())


def drop_tables(engine: Engine | None = None) -> None:
    from deposit_kernel.db.base import Base
    import deposit_kernel.models  # noqa: F401

    Base.metadata.drop_all(engine or get_engine())
