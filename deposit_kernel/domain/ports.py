"""
Host platform ports (``deposit_kernel.domain.ports``).

Responsibility
--------------
Pluggable interfaces for everything the deposit plugin consumes from the
billing platform that hosts it: account, invoice, payment-method and
invoice-payment APIs, tenant key/value storage, and service registration.

Architecture position
---------------------
**Kernel domain layer** -- protocols and host-side value objects only.
ZERO I/O.  Concrete adapters live with the host (or in ``tests/fakes.py``).

Error contract
--------------
* Lookups return ``None`` for unknown ids; they do not raise not-found.
* ``create_purchase_for_invoice_payment`` raises ``ControlRejectionError``
  when a payment-control hook aborted the transaction.
* Any other exception is a host failure; the distributor wraps it in
  ``HostApiError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Protocol
from uuid import UUID

from deposit_kernel.domain.values import CallContext, PluginProperty


# =========================================================================
# Host value objects
# =========================================================================


@dataclass(frozen=True)
class Account:
    account_id: UUID
    currency: str | None = None


@dataclass(frozen=True)
class Invoice:
    invoice_id: UUID
    invoice_number: int
    account_id: UUID
    currency: str


@dataclass(frozen=True)
class HostPaymentMethod:
    """A payment method as the host knows it (any plugin)."""

    payment_method_id: UUID
    account_id: UUID
    plugin_name: str
    is_active: bool = True


@dataclass(frozen=True)
class PurchaseResult:
    """Identifiers the host assigned to a completed purchase."""

    payment_id: UUID
    transaction_id: UUID


# =========================================================================
# Host APIs
# =========================================================================


class AccountApi(Protocol):
    def get_account(self, account_id: UUID, context: CallContext) -> Account | None:
        """Return the account, or None if it does not exist."""
        ...


class InvoiceApi(Protocol):
    def get_invoice_by_number(self, invoice_number: int, context: CallContext) -> Invoice | None:
        """Return the invoice with this public sequence number, or None."""
        ...


class PaymentApi(Protocol):
    def get_account_payment_methods(
        self,
        account_id: UUID,
        context: CallContext,
    ) -> Sequence[HostPaymentMethod]:
        """All active payment methods of the account, across plugins."""
        ...

    def add_payment_method(
        self,
        account: Account,
        plugin_name: str,
        set_default: bool,
        properties: Iterable[PluginProperty],
        context: CallContext,
    ) -> UUID:
        """Create a payment method backed by ``plugin_name``; returns its id."""
        ...


class InvoicePaymentApi(Protocol):
    def create_purchase_for_invoice_payment(
        self,
        account: Account,
        invoice_id: UUID,
        payment_method_id: UUID,
        amount: Decimal,
        currency: str,
        effective_date: datetime | None,
        properties: Iterable[PluginProperty],
        context: CallContext,
    ) -> PurchaseResult:
        """Run the host's purchase pipeline (control hooks, then provider)."""
        ...


class TenantConfigSource(Protocol):
    def get_tenant_values(self, key: str, tenant_id: UUID) -> list[str]:
        """Raw per-tenant values stored under ``key`` (possibly empty)."""
        ...


class MinimumAmountProvider(Protocol):
    """Per-tenant minimum deposit amounts, resolved by the config layer."""

    def min_amounts_for(self, tenant_id: UUID) -> Mapping[str, Decimal] | None:
        ...


class ServiceRegistrar(Protocol):
    def register_service(self, kind: str, service: Any, plugin_name: str) -> None:
        """Expose ``service`` to the host under ``plugin_name``."""
        ...


class HostPlatform(Protocol):
    """Aggregate of the host APIs handed to the plugin at activation."""

    account_api: AccountApi
    invoice_api: InvoiceApi
    payment_api: PaymentApi
    invoice_payment_api: InvoicePaymentApi
    tenant_config: TenantConfigSource
