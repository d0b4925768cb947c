"""
Append-only enforcement on the ledger tables (``deposit_kernel.db.immutability``).

Both deposit_payment_methods and deposit_responses reject every UPDATE and
DELETE flush at the ORM level.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import select

from deposit_kernel.exceptions import ImmutabilityViolationError
from deposit_kernel.models import DepositPaymentMethodModel, DepositResponseModel


@pytest.fixture
def response_id(session_factory, tenant_id):
    row = DepositResponseModel(
        account_id=uuid4(),
        payment_id=uuid4(),
        payment_transaction_id=uuid4(),
        transaction_type="PURCHASE",
        amount=Decimal("10.00"),
        currency="USD",
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        tenant_id=tenant_id,
    )
    with session_factory.begin() as session:
        session.add(row)
    return row.record_id


@pytest.fixture
def payment_method_id(session_factory, tenant_id):
    now = datetime(2024, 1, 1, tzinfo=timezone.utc)
    row = DepositPaymentMethodModel(
        account_id=uuid4(),
        payment_method_id=uuid4(),
        created_at=now,
        updated_at=now,
        tenant_id=tenant_id,
    )
    with session_factory.begin() as session:
        session.add(row)
    return row.record_id


class TestResponsesAreAppendOnly:
    def test_update_rejected(self, session_factory, response_id):
        with session_factory() as session:
            row = session.get(DepositResponseModel, response_id)
            row.amount = Decimal("99")

            with pytest.raises(ImmutabilityViolationError) as exc_info:
                session.flush()

        assert exc_info.value.table == "deposit_responses"

    def test_delete_rejected(self, session_factory, response_id):
        with session_factory() as session:
            session.delete(session.get(DepositResponseModel, response_id))

            with pytest.raises(ImmutabilityViolationError):
                session.flush()


class TestPaymentMethodsAreAppendOnly:
    def test_soft_delete_rejected(self, session_factory, payment_method_id):
        with session_factory() as session:
            row = session.get(DepositPaymentMethodModel, payment_method_id)
            row.is_deleted = True

            with pytest.raises(ImmutabilityViolationError) as exc_info:
                session.flush()

        assert exc_info.value.table == "deposit_payment_methods"

    def test_delete_rejected(self, session_factory, payment_method_id):
        with session_factory() as session:
            session.delete(session.get(DepositPaymentMethodModel, payment_method_id))

            with pytest.raises(ImmutabilityViolationError):
                session.flush()

    def test_defaults_applied_on_insert(self, session_factory, payment_method_id):
        with session_factory() as session:
            rows = session.scalars(select(DepositPaymentMethodModel)).all()

        assert [(r.is_default, r.is_deleted) for r in rows] == [(False, False)]


class TestRecordKeys:
    def test_record_ids_follow_insert_order(self, session_factory, tenant_id):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)
        rows = [
            DepositResponseModel(
                account_id=uuid4(),
                payment_id=uuid4(),
                payment_transaction_id=uuid4(),
                transaction_type="PURCHASE",
                created_at=now,
                tenant_id=tenant_id,
            )
            for _ in range(3)
        ]
        for row in rows:
            with session_factory.begin() as session:
                session.add(row)

        record_ids = [row.record_id for row in rows]
        assert record_ids == sorted(record_ids)
        assert len({row.id for row in rows}) == 3
