"""
Module: deposit_kernel.models.response
Responsibility: ORM persistence for deposit transaction responses -- one row
    per allocation the host allowed and the payment provider recorded.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - Append-only (db/immutability.py listeners): no update, no delete.
    - (payment_id, payment_transaction_id) identifies a response; uniqueness
      of those ids is the host's responsibility, so no constraint is declared.
    - deposit_type / deposit_reference_number / deposit_effective_date are
      first-class columns AND remain inside additional_data.

Audit relevance:
    Lookups by payment id (transaction history) and by deposit reference
    number (reconciliation against bank statements) are indexed.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import DateTime, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from deposit_kernel.db.base import Base


class DepositResponseModel(Base):
    """Immutable record of one applied deposit transaction."""

    __tablename__ = "deposit_responses"

    __table_args__ = (
        Index("ix_deposit_responses_payment", "payment_id"),
        Index("ix_deposit_responses_payment_transaction", "payment_transaction_id"),
        Index("ix_deposit_responses_reference_number", "deposit_reference_number"),
    )

    account_id: Mapped[UUID] = mapped_column(nullable=False)

    payment_id: Mapped[UUID] = mapped_column(nullable=False)

    payment_transaction_id: Mapped[UUID] = mapped_column(nullable=False)

    # TransactionType value (e.g. "PURCHASE")
    transaction_type: Mapped[str] = mapped_column(String(32), nullable=False)

    amount: Mapped[Decimal | None] = mapped_column(Numeric(38, 9), nullable=True)

    currency: Mapped[str | None] = mapped_column(String(3), nullable=True)

    deposit_type: Mapped[str | None] = mapped_column(String(255), nullable=True)

    deposit_reference_number: Mapped[str | None] = mapped_column(String(255), nullable=True)

    deposit_effective_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Serialized property map, NULL when empty
    additional_data: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    tenant_id: Mapped[UUID] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<DepositResponse {self.transaction_type} "
            f"{self.payment_id}/{self.payment_transaction_id}>"
        )
