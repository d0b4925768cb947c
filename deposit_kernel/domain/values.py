"""
deposit_kernel.domain.values -- Pure frozen dataclasses for the deposit plugin.

ZERO I/O.  Enum status fields and tuples for immutable collections.

Invariants enforced:
    - All DTOs are frozen dataclasses.
    - DepositRequest keeps allocations in caller order (tuple, never sorted).
    - TransactionInfo.created_date == TransactionInfo.effective_date for
      ledger reconstructions (rows are never mutated).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID


# =============================================================================
# Enums
# =============================================================================


class TransactionType(str, Enum):
    """Payment transaction kinds the host may route to a payment provider."""

    AUTHORIZE = "AUTHORIZE"
    CAPTURE = "CAPTURE"
    PURCHASE = "PURCHASE"
    VOID = "VOID"
    CREDIT = "CREDIT"
    REFUND = "REFUND"


class PaymentPluginStatus(str, Enum):
    """Outcome reported back to the host for a transaction."""

    PROCESSED = "PROCESSED"
    PENDING = "PENDING"
    ERROR = "ERROR"
    CANCELED = "CANCELED"
    UNDEFINED = "UNDEFINED"


class DepositStatus(str, Enum):
    """Overall outcome of a deposit request that did not raise."""

    CREATED = "created"


# =============================================================================
# Properties and call context
# =============================================================================


@dataclass(frozen=True)
class PluginProperty:
    """Generic key/value pair exchanged with the host."""

    key: str
    value: Any
    is_updatable: bool = False


@dataclass(frozen=True)
class CallContext:
    """Audit context carried through every host call of one request."""

    user_token: UUID
    created_by: str
    tenant_id: UUID
    created_date: datetime
    updated_date: datetime
    account_id: UUID | None = None
    reason: str | None = None
    comment: str | None = None
    call_origin: str = "EXTERNAL"
    user_type: str = "ADMIN"


# =============================================================================
# Deposit request
# =============================================================================


@dataclass(frozen=True)
class InvoiceAllocation:
    """One (invoice, amount) pair within a deposit request."""

    invoice_number: int | None
    amount: Decimal | None

    @property
    def is_zero(self) -> bool:
        """Absent or exactly-zero amounts are skipped by the distributor."""
        return self.amount is None or self.amount == 0


@dataclass(frozen=True)
class DepositRequest:
    """
    Inbound deposit to spread across invoices.

    The three deposit metadata fields are Optional here; their presence is
    checked by the distributor so a missing one becomes a typed
    ``DepositValidationError`` rather than a constructor failure.
    """

    account_id: UUID
    effective_date: datetime | None
    payment_reference_number: str | None
    deposit_type: str | None
    allocations: tuple[InvoiceAllocation, ...] = ()

    def missing_fields(self) -> tuple[str, ...]:
        missing = []
        if not self.payment_reference_number:
            missing.append("paymentReferenceNumber")
        if not self.deposit_type:
            missing.append("depositType")
        if self.effective_date is None:
            missing.append("effectiveDate")
        return tuple(missing)


@dataclass(frozen=True)
class AppliedAllocation:
    """An allocation the host accepted and the ledger recorded."""

    invoice_number: int
    invoice_id: UUID
    amount: Decimal
    currency: str
    payment_id: UUID
    transaction_id: UUID


@dataclass(frozen=True)
class DepositOutcome:
    """Result of ``DepositDistributor.record`` when every allocation applied."""

    status: DepositStatus
    account_id: UUID
    payment_method_id: UUID
    payment_method_created: bool
    applied: tuple[AppliedAllocation, ...] = ()
    skipped: tuple[int | None, ...] = ()


# =============================================================================
# Ledger read models
# =============================================================================


@dataclass(frozen=True)
class PaymentMethodRecord:
    """Snapshot of one ``deposit_payment_methods`` row."""

    record_id: UUID
    account_id: UUID
    payment_method_id: UUID
    is_default: bool
    is_deleted: bool
    properties: dict[str, Any]
    created_at: datetime
    updated_at: datetime
    tenant_id: UUID


@dataclass(frozen=True)
class PaymentMethodInfo:
    """Payment-method summary reported to the host."""

    account_id: UUID
    payment_method_id: UUID
    is_default: bool
    external_payment_method_id: str


@dataclass(frozen=True)
class PaymentMethodDetail:
    """Payment-method detail, including its stored properties."""

    payment_method_id: UUID
    external_payment_method_id: str
    is_default: bool
    properties: tuple[PluginProperty, ...] = ()


@dataclass(frozen=True)
class TransactionInfo:
    """Transaction outcome as reported to the host (ledger reconstruction)."""

    payment_id: UUID
    transaction_id: UUID
    transaction_type: TransactionType
    amount: Decimal | None
    currency: str | None
    status: PaymentPluginStatus
    created_date: datetime
    effective_date: datetime
    gateway_error: str | None = None
    gateway_error_code: str | None = None
    first_payment_reference_id: str | None = None
    second_payment_reference_id: str | None = None
    properties: tuple[PluginProperty, ...] = field(default_factory=tuple)


# =============================================================================
# Payment control
# =============================================================================


@dataclass(frozen=True)
class PaymentControlContext:
    """What the host knows about a transaction before it proceeds."""

    tenant_id: UUID
    account_id: UUID
    amount: Decimal | None
    currency: str | None
    transaction_type: TransactionType = TransactionType.PURCHASE
    payment_method_id: UUID | None = None


@dataclass(frozen=True)
class ThresholdDecision:
    """Guard output.  ``amount``/``threshold`` are populated on abort."""

    allowed: bool
    amount: Decimal | None = None
    threshold: Decimal | None = None
    currency: str | None = None

    @property
    def aborted(self) -> bool:
        return not self.allowed

    @classmethod
    def allow(cls) -> ThresholdDecision:
        return cls(allowed=True)

    @classmethod
    def abort(cls, amount: Decimal, threshold: Decimal, currency: str) -> ThresholdDecision:
        return cls(allowed=False, amount=amount, threshold=threshold, currency=currency)


@dataclass(frozen=True)
class PriorPaymentControlResult:
    """Answer of the control hook to the host's ``prior_call``."""

    is_aborted: bool
    decision: ThresholdDecision | None = None
