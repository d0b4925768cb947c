"""
Module: deposit_kernel.models.payment_method
Responsibility: ORM persistence for deposit payment-method registrations.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Append-only (db/immutability.py listeners): no update, no delete.
    - payment_method_id is UNIQUE: the host assigns one id per registration
      and re-registering the same id is an IntegrityError.
    - is_default is stored as given at registration, never recomputed.
    - No storage-level uniqueness on (account, plugin).  Two concurrent
      first deposits for one account can register two rows with different
      payment_method_ids; the race is left open here and resolved, if at
      all, by the host's payment-method store.

Failure modes:
    - IntegrityError on a duplicate payment_method_id.
    - ImmutabilityViolationError on any UPDATE/DELETE flush.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from deposit_kernel.db.base import Base


class DepositPaymentMethodModel(Base):
    """
    One deposit payment method registered for an account.

    Non-goals:
        - Does NOT decide whether an account already has a deposit payment
          method; the distributor asks the host for that.
    """

    __tablename__ = "deposit_payment_methods"

    __table_args__ = (
        Index("ix_deposit_payment_methods_account", "account_id"),
    )

    account_id: Mapped[UUID] = mapped_column(nullable=False)

    # Host-assigned identifier
    payment_method_id: Mapped[UUID] = mapped_column(nullable=False, unique=True)

    is_default: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Serialized property map, NULL when empty
    additional_data: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return f"<DepositPaymentMethod {self.payment_method_id} account={self.account_id}>"
