"""Payment-control hook enforcing the per-tenant minimum deposit amount."""

from collections.abc import Iterable

from deposit_kernel.domain.ports import MinimumAmountProvider
from deposit_kernel.domain.threshold_guard import evaluate_minimum_amount
from deposit_kernel.domain.values import (
    PaymentControlContext,
    PluginProperty,
    PriorPaymentControlResult,
)
from deposit_kernel.logging_config import get_logger

logger = get_logger("services.control")


class DepositPaymentControlPlugin:
    """
    Host-invoked hook that runs before every deposit purchase.

    ``prior_call`` aborts the transaction when the amount is strictly below
    the tenant's minimum for the currency; every other case allows.
    """

    def __init__(self, minimum_amounts: MinimumAmountProvider):
        self._minimum_amounts = minimum_amounts

    def prior_call(
        self,
        context: PaymentControlContext,
        properties: Iterable[PluginProperty] | None = None,
    ) -> PriorPaymentControlResult:
        min_amounts = self._minimum_amounts.min_amounts_for(context.tenant_id)
        decision = evaluate_minimum_amount(min_amounts, context.amount, context.currency)
        if decision.allowed:
            return PriorPaymentControlResult(is_aborted=False, decision=decision)

        logger.info(
            "payment_aborted",
            extra={
                "amount": decision.amount,
                "min_amount": decision.threshold,
                "currency": decision.currency,
                "tenant_id": str(context.tenant_id),
            },
        )
        return PriorPaymentControlResult(is_aborted=True, decision=decision)

    def on_success_call(
        self,
        context: PaymentControlContext,
        properties: Iterable[PluginProperty] | None = None,
    ) -> None:
        return None

    def on_failure_call(
        self,
        context: PaymentControlContext,
        properties: Iterable[PluginProperty] | None = None,
    ) -> None:
        return None
