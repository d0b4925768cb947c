"""
Module: deposit_kernel.selectors.base
Responsibility: Base class for read-only ledger selectors.
Architecture position: Kernel > Selectors.  May import from db/ and models/.
    MUST NOT import from services/ or outer layers.

Invariants enforced:
    - Read-only: selectors never add, delete, flush or commit.
    - Selectors return frozen dataclasses, never ORM instances.
    - The caller owns the session and its lifetime.
"""

from abc import ABC
from typing import Generic, TypeVar

from sqlalchemy.orm import Session

from deposit_kernel.db.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseSelector(ABC, Generic[ModelType]):
    """Holds the caller's session; subclasses define the queries."""

    def __init__(self, session: Session):
        self.session = session
