"""
Tests for the Deposit Distributor, run end to end against the in-memory host
(control hook, payment provider and SQLite ledger all wired by DepositPlugin).

Invariants tested:
- Account lookup and field validation happen before any side effect.
- The deposit payment method is resolved before any invoice lookup, and is
  created at most once per account.
- Zero or absent allocations are skipped and do not block later ones.
- The first control rejection stops the batch; earlier allocations stay
  applied (no compensation).
- Host failures are wrapped in HostApiError; kernel errors pass through.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from deposit_config import tenant_config_key
from deposit_kernel import PLUGIN_NAME
from deposit_kernel.domain.properties import (
    PROPERTY_DEPOSIT_EFFECTIVE_DATE,
    PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER,
    PROPERTY_DEPOSIT_TYPE,
)
from deposit_kernel.domain.values import DepositRequest, DepositStatus, InvoiceAllocation
from deposit_kernel.exceptions import (
    AccountNotFoundError,
    ControlRejectionError,
    DepositValidationError,
    HostApiError,
    InvoiceNotFoundError,
    PersistenceError,
)
from deposit_kernel.models import DepositPaymentMethodModel, DepositResponseModel

EFFECTIVE = datetime(2012, 2, 1, tzinfo=timezone.utc)


def _request(account_id, *allocations, reference="WIRE-12345", deposit_type="wire",
             effective_date=EFFECTIVE):
    return DepositRequest(
        account_id=account_id,
        effective_date=effective_date,
        payment_reference_number=reference,
        deposit_type=deposit_type,
        allocations=tuple(InvoiceAllocation(n, a) for n, a in allocations),
    )


def _responses(session_factory) -> list[DepositResponseModel]:
    with session_factory() as session:
        return list(session.scalars(select(DepositResponseModel)))


def _payment_method_count(session_factory) -> int:
    with session_factory() as session:
        return session.scalar(select(func.count()).select_from(DepositPaymentMethodModel))


@pytest.fixture
def distributor(plugin):
    return plugin.distributor


@pytest.fixture
def set_minimums(host, tenant_id):
    def _set(yaml_text: str) -> None:
        host.set_tenant_config(tenant_config_key(PLUGIN_NAME), tenant_id, yaml_text)

    return _set


class TestHappyPath:
    def test_scenario_b(self, distributor, host, account, make_context, session_factory):
        """One allocation on an existing USD invoice, no prior payment method."""
        invoice = host.add_invoice(100, account.account_id, "USD")

        outcome = distributor.record(
            _request(account.account_id, (100, Decimal("10.00"))),
            make_context(account.account_id),
        )

        assert outcome.status == DepositStatus.CREATED
        assert outcome.payment_method_created is True
        assert host.add_payment_method_calls == 1
        assert _payment_method_count(session_factory) == 1

        [row] = _responses(session_factory)
        assert row.amount == Decimal("10.00")
        assert row.currency == "USD"
        assert row.deposit_type == "wire"
        assert row.deposit_reference_number == "WIRE-12345"

        [applied] = outcome.applied
        assert applied.invoice_id == invoice.invoice_id
        assert applied.payment_id == row.payment_id

    def test_purchase_carries_deposit_properties(self, distributor, host, account, make_context):
        host.add_invoice(100, account.account_id, "EUR")

        distributor.record(
            _request(account.account_id, (100, Decimal("3"))),
            make_context(account.account_id),
        )

        [purchase] = host.purchases
        props = {p.key: p.value for p in purchase.properties}
        assert props[PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER] == "WIRE-12345"
        assert props[PROPERTY_DEPOSIT_TYPE] == "wire"
        assert props[PROPERTY_DEPOSIT_EFFECTIVE_DATE] == EFFECTIVE
        assert purchase.currency == "EUR"
        assert purchase.effective_date == EFFECTIVE

    def test_allocations_processed_in_order(self, distributor, host, account, make_context):
        for number in (3, 1, 2):
            host.add_invoice(number, account.account_id)

        distributor.record(
            _request(
                account.account_id,
                (3, Decimal("1")), (1, Decimal("2")), (2, Decimal("3")),
            ),
            make_context(account.account_id),
        )

        assert host.invoice_lookups == [3, 1, 2]
        assert [p.amount for p in host.purchases] == [Decimal("1"), Decimal("2"), Decimal("3")]

    def test_existing_payment_method_reused(self, distributor, host, account, make_context):
        host.add_invoice(100, account.account_id)
        context = make_context(account.account_id)

        first = distributor.record(_request(account.account_id, (100, Decimal("1"))), context)
        second = distributor.record(_request(account.account_id, (100, Decimal("1"))), context)

        assert first.payment_method_id == second.payment_method_id
        assert second.payment_method_created is False
        assert host.add_payment_method_calls == 1

    def test_get_or_create_is_idempotent(self, distributor, account, make_context):
        context = make_context(account.account_id)

        first, _ = distributor.get_or_create_payment_method(account, context)
        second, created = distributor.get_or_create_payment_method(account, context)

        assert first == second
        assert created is False

    def test_other_plugin_methods_ignored(self, distributor, host, account, make_context):
        from deposit_kernel.domain.ports import HostPaymentMethod

        host.payment_methods.append(HostPaymentMethod(uuid4(), account.account_id, "stripe"))

        _, created = distributor.get_or_create_payment_method(
            account, make_context(account.account_id),
        )

        assert created is True


class TestSkippedAllocations:
    def test_zero_and_absent_amounts_skipped(self, distributor, host, account, make_context,
                                             session_factory):
        host.add_invoice(2, account.account_id)

        outcome = distributor.record(
            _request(
                account.account_id,
                (1, Decimal("0")), (7, None), (2, Decimal("5")),
            ),
            make_context(account.account_id),
        )

        assert outcome.skipped == (1, 7)
        assert [a.invoice_number for a in outcome.applied] == [2]
        assert host.invoice_lookups == [2]
        assert len(_responses(session_factory)) == 1

    def test_all_skipped_still_creates_payment_method(self, distributor, account, make_context,
                                                      session_factory):
        outcome = distributor.record(
            _request(account.account_id, (1, Decimal("0.00"))),
            make_context(account.account_id),
        )

        assert outcome.status == DepositStatus.CREATED
        assert outcome.applied == ()
        assert _payment_method_count(session_factory) == 1


class TestValidation:
    def test_unknown_account(self, distributor, host, make_context, session_factory):
        account_id = uuid4()

        with pytest.raises(AccountNotFoundError) as exc_info:
            distributor.record(_request(account_id, (1, Decimal("1"))), make_context(account_id))

        assert exc_info.value.account_id == account_id
        assert host.add_payment_method_calls == 0

    def test_scenario_d(self, distributor, host, account, make_context, session_factory):
        """Missing reference number: no payment method, no ledger rows."""
        host.add_invoice(100, account.account_id)

        with pytest.raises(DepositValidationError) as exc_info:
            distributor.record(
                _request(account.account_id, (100, Decimal("10")), reference=None),
                make_context(account.account_id),
            )

        assert exc_info.value.missing_fields == ("paymentReferenceNumber",)
        assert host.add_payment_method_calls == 0
        assert _payment_method_count(session_factory) == 0
        assert _responses(session_factory) == []

    def test_all_missing_fields_reported(self, distributor, account, make_context):
        with pytest.raises(DepositValidationError) as exc_info:
            distributor.record(
                _request(account.account_id, reference="", deposit_type=None, effective_date=None),
                make_context(account.account_id),
            )

        assert exc_info.value.missing_fields == (
            "paymentReferenceNumber", "depositType", "effectiveDate",
        )


class TestInvoiceNotFound:
    def test_scenario_c(self, distributor, host, account, make_context, session_factory):
        """Payment-method creation precedes invoice resolution."""
        with pytest.raises(InvoiceNotFoundError) as exc_info:
            distributor.record(
                _request(account.account_id, (999, Decimal("10.00"))),
                make_context(account.account_id),
            )

        assert exc_info.value.invoice_number == 999
        assert host.add_payment_method_calls == 1
        assert _payment_method_count(session_factory) == 1
        assert _responses(session_factory) == []

    def test_earlier_allocations_remain(self, distributor, host, account, make_context,
                                        session_factory):
        host.add_invoice(1, account.account_id)

        with pytest.raises(InvoiceNotFoundError):
            distributor.record(
                _request(account.account_id, (1, Decimal("5")), (999, Decimal("5"))),
                make_context(account.account_id),
            )

        assert len(_responses(session_factory)) == 1


class TestControlRejection:
    def test_rejection_names_invoice_and_threshold(self, distributor, host, account, make_context,
                                                   set_minimums):
        set_minimums("minAmounts: {USD: 0.50}")
        host.add_invoice(100, account.account_id)

        with pytest.raises(ControlRejectionError) as exc_info:
            distributor.record(
                _request(account.account_id, (100, Decimal("0.49"))),
                make_context(account.account_id),
            )

        exc = exc_info.value
        assert exc.invoice_number == 100
        assert exc.amount == Decimal("0.49")
        assert exc.threshold == Decimal("0.50")
        assert exc.retryable is False

    def test_amount_equal_to_minimum_applied(self, distributor, host, account, make_context,
                                             set_minimums, session_factory):
        set_minimums("minAmounts: {USD: 0.50}")
        host.add_invoice(100, account.account_id)

        distributor.record(
            _request(account.account_id, (100, Decimal("0.50"))),
            make_context(account.account_id),
        )

        assert len(_responses(session_factory)) == 1

    def test_partial_application_preserved(self, distributor, host, account, make_context,
                                           set_minimums, session_factory):
        """Allocations before the rejected one stay applied; later ones never run."""
        set_minimums("minAmounts: {USD: 1.00}")
        for number in (1, 2, 3):
            host.add_invoice(number, account.account_id)

        with pytest.raises(ControlRejectionError) as exc_info:
            distributor.record(
                _request(
                    account.account_id,
                    (1, Decimal("5")), (2, Decimal("0.10")), (3, Decimal("5")),
                ),
                make_context(account.account_id),
            )

        assert exc_info.value.invoice_number == 2
        rows = _responses(session_factory)
        assert [r.amount for r in rows] == [Decimal("5")]
        assert host.invoice_lookups == [1, 2]

    def test_minimum_in_other_currency_does_not_apply(self, distributor, host, account,
                                                      make_context, set_minimums):
        set_minimums("minAmounts: {EUR: 100}")
        host.add_invoice(100, account.account_id, "USD")

        outcome = distributor.record(
            _request(account.account_id, (100, Decimal("0.01"))),
            make_context(account.account_id),
        )

        assert len(outcome.applied) == 1


class TestUpstreamFailures:
    def test_host_failure_wrapped(self, distributor, host, account, make_context):
        host.fail("get_account", ConnectionError("host unreachable"))

        with pytest.raises(HostApiError) as exc_info:
            distributor.record(
                _request(account.account_id, (1, Decimal("1"))),
                make_context(account.account_id),
            )

        assert exc_info.value.operation == "get_account"
        assert exc_info.value.retryable is True
        assert isinstance(exc_info.value.__cause__, ConnectionError)

    def test_purchase_failure_wrapped(self, distributor, host, account, make_context):
        host.add_invoice(1, account.account_id)
        host.fail("create_purchase_for_invoice_payment", RuntimeError("boom"))

        with pytest.raises(HostApiError) as exc_info:
            distributor.record(
                _request(account.account_id, (1, Decimal("1"))),
                make_context(account.account_id),
            )

        assert exc_info.value.operation == "create_purchase_for_invoice_payment"

    def test_ledger_failure_passes_through(self, distributor, host, account, make_context, engine):
        from deposit_kernel.db.engine import drop_tables

        host.add_invoice(1, account.account_id)
        drop_tables(engine)

        with pytest.raises(PersistenceError):
            distributor.record(
                _request(account.account_id, (1, Decimal("1"))),
                make_context(account.account_id),
            )


class TestLogging:
    def test_outcome_logged_with_context(self, distributor, host, account, make_context,
                                         captured_logs, tenant_id):
        host.add_invoice(100, account.account_id)

        distributor.record(
            _request(account.account_id, (100, Decimal("10"))),
            make_context(account.account_id),
        )

        [record] = [r for r in captured_logs() if r["message"] == "deposit_recorded"]
        assert record["applied_count"] == 1
        assert record["account_id"] == str(account.account_id)
        assert record["tenant_id"] == str(tenant_id)
