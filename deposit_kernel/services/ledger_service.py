"""
Module: deposit_kernel.services.ledger_service
Responsibility: Append-only writes to the deposit ledger: payment-method
    registrations and transaction responses.
Architecture position: Kernel > Services.  May import from db/, models/ and
    domain/.  MUST NOT import from selectors/ or outer layers.

Invariants enforced:
    - One write, one session: each call runs inside its own session_scope
      and commits before returning.  Nothing spans two statements.
    - The deposit metadata (reference number, type, effective date) is copied
      into dedicated columns AND kept in additional_data.
    - An empty property map is stored as NULL.
    - Payment methods are registered with is_default False and is_deleted
      False; the caller's default flag is not persisted here.

Failure modes:
    - PersistenceError wrapping any SQLAlchemyError (after rollback).
    - ImmutabilityViolationError never arises here: the service only inserts.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from deposit_kernel.db.engine import session_scope
from deposit_kernel.domain.clock import Clock, SystemClock
from deposit_kernel.domain.properties import (
    PROPERTY_DEPOSIT_EFFECTIVE_DATE,
    PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER,
    PROPERTY_DEPOSIT_TYPE,
    parse_effective_date,
    serialize_additional_data,
    to_string_map,
)
from deposit_kernel.domain.values import PluginProperty, TransactionType
from deposit_kernel.exceptions import PersistenceError
from deposit_kernel.logging_config import get_logger
from deposit_kernel.models.payment_method import DepositPaymentMethodModel
from deposit_kernel.models.response import DepositResponseModel

logger = get_logger("services.ledger")


class DepositLedgerService:
    """
    Writes to the two ledger tables.

    Contract:
        Each method performs exactly one INSERT in its own transaction.

    Non-goals:
        - No reads; reconstruction lives in LedgerSelector.
        - No retries; PersistenceError is left to the caller.
    """

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    @property
    def session_factory(self) -> sessionmaker[Session]:
        return self._session_factory

    def register_payment_method(
        self,
        account_id: UUID,
        payment_method_id: UUID,
        properties: dict[str, Any] | None,
        timestamp: datetime | None,
        tenant_id: UUID,
    ) -> None:
        """Insert one ``deposit_payment_methods`` row."""
        written_at = timestamp or self._clock.now()
        row = DepositPaymentMethodModel(
            account_id=account_id,
            payment_method_id=payment_method_id,
            is_default=False,
            is_deleted=False,
            additional_data=serialize_additional_data(properties),
            created_at=written_at,
            updated_at=written_at,
            tenant_id=tenant_id,
        )
        self._insert(row, "register_payment_method")
        logger.info(
            "payment_method_registered",
            extra={
                "account_id": str(account_id),
                "payment_method_id": str(payment_method_id),
                "tenant_id": str(tenant_id),
            },
        )

    def record_transaction(
        self,
        account_id: UUID,
        payment_id: UUID,
        payment_transaction_id: UUID,
        transaction_type: TransactionType,
        amount: Decimal | None,
        currency: str | None,
        properties: Iterable[PluginProperty] | None,
        timestamp: datetime | None,
        tenant_id: UUID,
    ) -> None:
        """Insert one ``deposit_responses`` row."""
        data = to_string_map(properties)
        written_at = timestamp or self._clock.now()
        type_value = TransactionType(transaction_type).value
        reference = data.get(PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER)
        row = DepositResponseModel(
            account_id=account_id,
            payment_id=payment_id,
            payment_transaction_id=payment_transaction_id,
            transaction_type=type_value,
            amount=amount,
            currency=currency,
            deposit_type=data.get(PROPERTY_DEPOSIT_TYPE),
            deposit_reference_number=reference,
            deposit_effective_date=_effective_date_column(
                data.get(PROPERTY_DEPOSIT_EFFECTIVE_DATE),
            ),
            additional_data=serialize_additional_data(data),
            created_at=written_at,
            tenant_id=tenant_id,
        )
        self._insert(row, "record_transaction")
        logger.info(
            "transaction_recorded",
            extra={
                "payment_id": str(payment_id),
                "payment_transaction_id": str(payment_transaction_id),
                "transaction_type": type_value,
                "amount": amount,
                "currency": currency,
                "deposit_reference_number": reference,
            },
        )

    def _insert(self, row: Any, operation: str) -> None:
        try:
            with session_scope(self._session_factory) as session:
                session.add(row)
        except SQLAlchemyError as exc:
            logger.error(
                "ledger_write_failed",
                extra={"operation": operation, "error": type(exc).__name__},
            )
            raise PersistenceError(operation, type(exc).__name__) from exc


def _effective_date_column(value: str | None) -> datetime | None:
    # The blob keeps the raw text; only a parseable value reaches the column.
    try:
        return parse_effective_date(value)
    except ValueError:
        logger.warning("effective_date_unparseable", extra={"value": value})
        return None
