"""
Tests for the minimum-amount guard (``deposit_kernel.domain.threshold_guard``).

Invariants tested:
- Fail-open: no amount, no snapshot, no currency, or no entry for the
  currency always allows, whatever the amount.
- Strict comparison: abort iff amount < threshold; equality allows.
- Abort decisions carry amount, threshold and currency.
"""

from decimal import Decimal
from types import MappingProxyType

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from deposit_kernel.domain.threshold_guard import evaluate_minimum_amount
from deposit_kernel.domain.values import ThresholdDecision

USD_MIN = MappingProxyType({"USD": Decimal("0.50")})


class TestFailOpen:
    """Missing configuration never blocks a payment."""

    @pytest.mark.parametrize(
        "amount",
        [Decimal("0"), Decimal("-5"), Decimal("0.01"), Decimal("1000000")],
    )
    def test_no_snapshot_allows_any_amount(self, amount):
        assert evaluate_minimum_amount(None, amount, "USD").allowed

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("0.01")])
    def test_currency_without_entry_allows(self, amount):
        assert evaluate_minimum_amount(USD_MIN, amount, "EUR").allowed

    def test_empty_snapshot_allows(self):
        assert evaluate_minimum_amount({}, Decimal("0.01"), "USD").allowed

    def test_absent_amount_allows(self):
        assert evaluate_minimum_amount(USD_MIN, None, "USD").allowed

    def test_absent_currency_allows(self):
        assert evaluate_minimum_amount(USD_MIN, Decimal("0.01"), None).allowed


class TestThreshold:
    """Threshold comparison when a minimum exists for the currency."""

    def test_below_minimum_aborts(self):
        decision = evaluate_minimum_amount(USD_MIN, Decimal("0.49"), "USD")

        assert decision.aborted
        assert decision.amount == Decimal("0.49")
        assert decision.threshold == Decimal("0.50")
        assert decision.currency == "USD"

    def test_equal_to_minimum_allows(self):
        assert evaluate_minimum_amount(USD_MIN, Decimal("0.50"), "USD").allowed

    def test_equal_with_different_scale_allows(self):
        assert evaluate_minimum_amount(USD_MIN, Decimal("0.5000"), "USD").allowed

    def test_above_minimum_allows(self):
        assert evaluate_minimum_amount(USD_MIN, Decimal("10.00"), "USD").allowed

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1")])
    def test_zero_and_negative_abort_when_minimum_positive(self, amount):
        assert evaluate_minimum_amount(USD_MIN, amount, "USD").aborted

    def test_allow_decision_has_no_payload(self):
        decision = evaluate_minimum_amount(USD_MIN, Decimal("1"), "USD")

        assert decision == ThresholdDecision.allow()
        assert decision.threshold is None


# =============================================================================
# Property-based: the decision is a pure comparison against the snapshot
# =============================================================================

amounts = st.decimals(
    min_value=Decimal("-1000000"),
    max_value=Decimal("1000000"),
    places=4,
    allow_nan=False,
    allow_infinity=False,
)
currencies = st.sampled_from(["USD", "EUR", "GBP", "JPY"])


class TestThresholdProperties:
    @given(
        minimums=st.dictionaries(currencies, amounts, max_size=4),
        amount=amounts,
        currency=currencies,
    )
    @settings(max_examples=200)
    def test_aborts_iff_strictly_below(self, minimums, amount, currency):
        decision = evaluate_minimum_amount(minimums, amount, currency)

        threshold = minimums.get(currency)
        assert decision.aborted == (threshold is not None and amount < threshold)

    @given(amount=amounts, currency=currencies)
    def test_unconfigured_currency_never_aborts(self, amount, currency):
        others = {c: Decimal("1000001") for c in ("USD", "EUR", "GBP", "JPY") if c != currency}

        assert evaluate_minimum_amount(others, amount, currency).allowed
