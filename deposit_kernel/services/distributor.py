"""
Module: deposit_kernel.services.distributor
Responsibility: Apply one inbound deposit across an ordered list of invoice
    allocations through the host's payment pipeline.
Architecture position: Kernel > Services.  Talks to the host only through the
    ports in domain/ports.py; never writes the ledger directly (the host calls
    the payment provider, which does).

Invariants enforced:
    - The account is looked up and the deposit metadata checked before any
      side effect.  A failed check leaves nothing behind.
    - The deposit payment method is resolved (or created, at most once) per
      request, before any invoice is looked up.
    - Allocations are processed in caller order.  Absent or zero amounts are
      skipped without a lookup.
    - The first control rejection stops the batch.  Allocations applied
      before it stay applied; nothing is compensated.

Failure modes:
    - AccountNotFoundError, DepositValidationError: no side effects.
    - InvoiceNotFoundError: the payment method may already exist, earlier
      allocations stay applied.
    - ControlRejectionError, enriched with the offending invoice number.
    - HostApiError wrapping any non-kernel exception raised by a host API.
    - Kernel errors raised inside the host pipeline (PersistenceError from
      the ledger) propagate unchanged.

Concurrency:
    Two concurrent requests for the same account may both create a deposit
    payment method.  Uniqueness per (account, plugin) belongs to the host's
    payment-method store.
"""

from collections.abc import Callable
from typing import TypeVar

from deposit_kernel import PLUGIN_NAME
from deposit_kernel.domain.ports import (
    Account,
    AccountApi,
    InvoiceApi,
    InvoicePaymentApi,
    PaymentApi,
)
from deposit_kernel.domain.properties import deposit_properties
from deposit_kernel.domain.values import (
    AppliedAllocation,
    CallContext,
    DepositOutcome,
    DepositRequest,
    DepositStatus,
)
from deposit_kernel.exceptions import (
    AccountNotFoundError,
    ControlRejectionError,
    DepositKernelError,
    DepositValidationError,
    HostApiError,
    InvoiceNotFoundError,
)
from deposit_kernel.logging_config import LogContext, get_logger

logger = get_logger("services.distributor")

T = TypeVar("T")


class DepositDistributor:
    """
    Records a deposit against several invoices.

    Contract:
        ``record`` either returns a CREATED outcome listing every applied and
        skipped allocation, or raises one of the typed kernel errors.

    Non-goals:
        - No retries.  Upstream errors carry ``retryable = True`` and the
          caller decides.
        - No batch atomicity across allocations.
    """

    def __init__(
        self,
        account_api: AccountApi,
        invoice_api: InvoiceApi,
        payment_api: PaymentApi,
        invoice_payment_api: InvoicePaymentApi,
        plugin_name: str = PLUGIN_NAME,
    ):
        self._account_api = account_api
        self._invoice_api = invoice_api
        self._payment_api = payment_api
        self._invoice_payment_api = invoice_payment_api
        self._plugin_name = plugin_name

    def record(self, request: DepositRequest, context: CallContext) -> DepositOutcome:
        with LogContext.bind(
            correlation_id=context.user_token,
            tenant_id=context.tenant_id,
            account_id=request.account_id,
            actor_id=context.created_by,
        ):
            return self._record(request, context)

    def _record(self, request: DepositRequest, context: CallContext) -> DepositOutcome:
        account = _call_host(
            "get_account",
            lambda: self._account_api.get_account(request.account_id, context),
        )
        if account is None:
            logger.info("account_not_found")
            raise AccountNotFoundError(request.account_id)

        missing = request.missing_fields()
        if missing:
            logger.info("deposit_rejected_missing_fields", extra={"missing_fields": missing})
            raise DepositValidationError(missing, account_id=request.account_id)

        payment_method_id, created = self.get_or_create_payment_method(account, context)

        properties = deposit_properties(
            request.payment_reference_number,
            request.deposit_type,
            request.effective_date,
        )

        applied: list[AppliedAllocation] = []
        skipped: list[int | None] = []
        for allocation in request.allocations:
            if allocation.is_zero:
                skipped.append(allocation.invoice_number)
                continue

            invoice = _call_host(
                "get_invoice_by_number",
                lambda: self._invoice_api.get_invoice_by_number(allocation.invoice_number, context),
            )
            if invoice is None:
                logger.info(
                    "invoice_not_found",
                    extra={"invoice_number": allocation.invoice_number},
                )
                raise InvoiceNotFoundError(allocation.invoice_number, account_id=account.account_id)

            try:
                result = _call_host(
                    "create_purchase_for_invoice_payment",
                    lambda: self._invoice_payment_api.create_purchase_for_invoice_payment(
                        account,
                        invoice.invoice_id,
                        payment_method_id,
                        allocation.amount,
                        invoice.currency,
                        request.effective_date,
                        properties,
                        context,
                    ),
                )
            except ControlRejectionError as exc:
                exc.invoice_number = allocation.invoice_number
                logger.info(
                    "deposit_aborted",
                    extra={
                        "invoice_number": allocation.invoice_number,
                        "applied_count": len(applied),
                    },
                )
                raise

            applied.append(
                AppliedAllocation(
                    invoice_number=allocation.invoice_number,
                    invoice_id=invoice.invoice_id,
                    amount=allocation.amount,
                    currency=invoice.currency,
                    payment_id=result.payment_id,
                    transaction_id=result.transaction_id,
                )
            )

        logger.info(
            "deposit_recorded",
            extra={
                "payment_method_id": str(payment_method_id),
                "applied_count": len(applied),
                "skipped_count": len(skipped),
                "deposit_reference_number": request.payment_reference_number,
            },
        )
        return DepositOutcome(
            status=DepositStatus.CREATED,
            account_id=account.account_id,
            payment_method_id=payment_method_id,
            payment_method_created=created,
            applied=tuple(applied),
            skipped=tuple(skipped),
        )

    def get_or_create_payment_method(self, account: Account, context: CallContext):
        """Return ``(payment_method_id, created)`` for the account's deposit method."""
        methods = _call_host(
            "get_account_payment_methods",
            lambda: self._payment_api.get_account_payment_methods(account.account_id, context),
        )
        for method in methods:
            if method.plugin_name == self._plugin_name:
                return method.payment_method_id, False

        payment_method_id = _call_host(
            "add_payment_method",
            lambda: self._payment_api.add_payment_method(
                account, self._plugin_name, False, (), context,
            ),
        )
        logger.info(
            "deposit_payment_method_created",
            extra={"payment_method_id": str(payment_method_id)},
        )
        return payment_method_id, True


def _call_host(operation: str, call: Callable[[], T]) -> T:
    try:
        return call()
    except DepositKernelError:
        raise
    except Exception as exc:
        logger.warning(
            "host_call_failed",
            extra={"operation": operation, "error": type(exc).__name__},
            exc_info=True,
        )
        raise HostApiError(operation, str(exc)) from exc
