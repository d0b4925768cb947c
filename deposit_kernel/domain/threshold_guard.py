"""Minimum-amount guard for deposit transactions.

Pure function of the tenant's current minimum-amount snapshot and the
proposed amount/currency.  Fail-open: any missing configuration allows.
"""

from __future__ import annotations

from collections.abc import Mapping
from decimal import Decimal

from deposit_kernel.domain.values import ThresholdDecision

# currency code -> minimum amount, for one tenant
MinimumThreshold = Mapping[str, Decimal]


def evaluate_minimum_amount(
    min_amounts: MinimumThreshold | None,
    amount: Decimal | None,
    currency: str | None,
) -> ThresholdDecision:
    """Allow unless a minimum exists for ``currency`` and ``amount`` is strictly below it.

    Allows when the amount is absent, when the tenant has no snapshot, or
    when the snapshot has no entry for the currency.  Equality allows.
    """
    if amount is None or min_amounts is None or currency is None:
        return ThresholdDecision.allow()
    threshold = min_amounts.get(currency)
    if threshold is None or threshold <= amount:
        return ThresholdDecision.allow()
    return ThresholdDecision.abort(amount=amount, threshold=threshold, currency=currency)
