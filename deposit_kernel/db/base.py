"""
Declarative base for the two ledger tables.

Column typing is driven by the annotation map below so that both models get
the same storage for money, timestamps and identifiers:

    Decimal  -> Numeric(38, 9)         never float
    datetime -> DateTime(timezone=True)
    UUID     -> Uuid                   native on PostgreSQL, CHAR(32) on SQLite
    int      -> BigInteger             INTEGER on SQLite so it aliases the rowid

Every row carries two keys: ``record_id``, an autoincrementing primary key
that gives true write order, and ``id``, a uuid4 exposed to the host.

Nothing under deposit_kernel.db imports models, services or selectors.
"""

from datetime import datetime, timezone
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, DateTime, Integer, Numeric, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict] = {
        Decimal: Numeric(38, 9),
        datetime: DateTime(timezone=True),
        UUID: Uuid(),
        int: BigInteger().with_variant(Integer(), "sqlite"),
    }

    record_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    id: Mapped[UUID] = mapped_column(unique=True, nullable=False, default=uuid4)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)
