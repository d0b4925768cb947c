"""
Module: deposit_kernel.services.payment_plugin
Responsibility: The payment-provider surface the host calls for the deposit
    plugin.  Purchases are recorded as already settled; every other money
    movement is a fixed, unsupported stub.
Architecture position: Kernel > Services.  Writes through
    DepositLedgerService, reads through LedgerSelector.

Invariants enforced:
    - purchase_payment writes exactly one response row and returns the
      reconstruction of that row, matched on its transaction id.
    - Unsupported transaction kinds return a CANCELED TransactionInfo and
      never touch the ledger.
    - build_form_descriptor / process_notification always raise.

Failure modes:
    - PersistenceError from the ledger, unchanged.
    - UnsupportedOperationError for hosted forms and notifications.
"""

from collections.abc import Iterable
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from deposit_kernel.domain.clock import Clock, SystemClock
from deposit_kernel.domain.properties import to_string_map
from deposit_kernel.domain.values import (
    CallContext,
    PaymentMethodDetail,
    PaymentMethodInfo,
    PaymentPluginStatus,
    PluginProperty,
    TransactionInfo,
    TransactionType,
)
from deposit_kernel.exceptions import PersistenceError, UnsupportedOperationError
from deposit_kernel.logging_config import get_logger
from deposit_kernel.selectors.ledger_selector import (
    LedgerSelector,
    to_payment_method_detail,
    to_payment_method_info,
)
from deposit_kernel.services.ledger_service import DepositLedgerService

logger = get_logger("services.payment")

UNSUPPORTED_OPERATION = "Unsupported operation"


class DepositPaymentPlugin:
    """Payment provider backed by the deposit ledger."""

    def __init__(self, ledger: DepositLedgerService, clock: Clock | None = None):
        self._ledger = ledger
        self._clock = clock or SystemClock()

    # ------------------------------------------------------------------
    # Payment methods
    # ------------------------------------------------------------------

    def add_payment_method(
        self,
        account_id: UUID,
        payment_method_id: UUID,
        payment_method_props: Iterable[PluginProperty] | None,
        set_default: bool,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> None:
        merged = to_string_map(payment_method_props, properties)
        self._ledger.register_payment_method(
            account_id,
            payment_method_id,
            merged,
            self._clock.now(),
            context.tenant_id,
        )

    def get_payment_methods(
        self,
        account_id: UUID,
        refresh_from_gateway: bool,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> list[PaymentMethodInfo]:
        records = self._read(
            "get_payment_methods",
            lambda selector: selector.payment_methods_for_account(account_id, context.tenant_id),
        )
        return [to_payment_method_info(record) for record in records]

    def get_payment_method_detail(
        self,
        account_id: UUID,
        payment_method_id: UUID,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> PaymentMethodDetail | None:
        record = self._read(
            "get_payment_method_detail",
            lambda selector: selector.payment_method(payment_method_id, context.tenant_id),
        )
        return None if record is None else to_payment_method_detail(record)

    # ------------------------------------------------------------------
    # Transactions
    # ------------------------------------------------------------------

    def purchase_payment(
        self,
        account_id: UUID,
        payment_id: UUID,
        transaction_id: UUID,
        payment_method_id: UUID,
        amount: Decimal | None,
        currency: str | None,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> TransactionInfo:
        properties = tuple(properties or ())
        self._ledger.record_transaction(
            account_id,
            payment_id,
            transaction_id,
            TransactionType.PURCHASE,
            amount,
            currency,
            properties,
            self._clock.now(),
            context.tenant_id,
        )
        info = self._read(
            "purchase_payment",
            lambda selector: selector.response_for_transaction(
                payment_id, transaction_id, context.tenant_id,
            ),
        )
        if info is None:
            raise PersistenceError("purchase_payment", "response not readable after write")
        return info

    def get_payment_info(
        self,
        account_id: UUID,
        payment_id: UUID,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> list[TransactionInfo]:
        return self._read(
            "get_payment_info",
            lambda selector: selector.responses_for_payment(payment_id, context.tenant_id),
        )

    def authorize_payment(
        self,
        account_id: UUID,
        payment_id: UUID,
        transaction_id: UUID,
        payment_method_id: UUID,
        amount: Decimal | None,
        currency: str | None,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> TransactionInfo:
        return self._unsupported(
            TransactionType.AUTHORIZE, payment_id, transaction_id, amount, currency,
        )

    def capture_payment(
        self,
        account_id: UUID,
        payment_id: UUID,
        transaction_id: UUID,
        payment_method_id: UUID,
        amount: Decimal | None,
        currency: str | None,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> TransactionInfo:
        return self._unsupported(
            TransactionType.CAPTURE, payment_id, transaction_id, amount, currency,
        )

    def void_payment(
        self,
        account_id: UUID,
        payment_id: UUID,
        transaction_id: UUID,
        payment_method_id: UUID,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> TransactionInfo:
        return self._unsupported(TransactionType.VOID, payment_id, transaction_id, None, None)

    def credit_payment(
        self,
        account_id: UUID,
        payment_id: UUID,
        transaction_id: UUID,
        payment_method_id: UUID,
        amount: Decimal | None,
        currency: str | None,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> TransactionInfo:
        return self._unsupported(
            TransactionType.CREDIT, payment_id, transaction_id, amount, currency,
        )

    def refund_payment(
        self,
        account_id: UUID,
        payment_id: UUID,
        transaction_id: UUID,
        payment_method_id: UUID,
        amount: Decimal | None,
        currency: str | None,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> TransactionInfo:
        return self._unsupported(
            TransactionType.REFUND, payment_id, transaction_id, amount, currency,
        )

    # ------------------------------------------------------------------
    # Hosted pages and gateway notifications
    # ------------------------------------------------------------------

    def build_form_descriptor(
        self,
        account_id: UUID,
        custom_fields: Iterable[PluginProperty] | None,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> Any:
        raise UnsupportedOperationError("build_form_descriptor")

    def process_notification(
        self,
        notification: str,
        properties: Iterable[PluginProperty] | None,
        context: CallContext,
    ) -> Any:
        raise UnsupportedOperationError("process_notification")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _unsupported(
        self,
        transaction_type: TransactionType,
        payment_id: UUID,
        transaction_id: UUID,
        amount: Decimal | None,
        currency: str | None,
    ) -> TransactionInfo:
        now = self._clock.now()
        logger.info(
            "unsupported_transaction",
            extra={"transaction_type": transaction_type.value, "payment_id": str(payment_id)},
        )
        return TransactionInfo(
            payment_id=payment_id,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            currency=currency,
            status=PaymentPluginStatus.CANCELED,
            created_date=now,
            effective_date=now,
            gateway_error=UNSUPPORTED_OPERATION,
        )

    def _read(self, operation: str, query):
        try:
            with self._ledger.session_factory() as session:
                return query(LedgerSelector(session))
        except SQLAlchemyError as exc:
            logger.error(
                "ledger_read_failed",
                extra={"operation": operation, "error": type(exc).__name__},
            )
            raise PersistenceError(operation, type(exc).__name__) from exc
