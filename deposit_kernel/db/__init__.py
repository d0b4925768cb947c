"""Database layer - engine, base classes, types, and append-only listeners."""

from deposit_kernel.db.base import Base, as_utc
from deposit_kernel.db.types import to_decimal
from deposit_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    session_scope,
)

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session_factory",
    "session_scope",
    "create_tables",
    "Base",
    "as_utc",
    "to_decimal",
]
