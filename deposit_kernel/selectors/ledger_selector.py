"""
Module: deposit_kernel.selectors.ledger_selector
Responsibility: Read access to the deposit ledger and reconstruction of the
    host-facing views (``TransactionInfo``, ``PaymentMethodInfo``,
    ``PaymentMethodDetail``) from stored rows.
Architecture position: Kernel > Selectors.  May import from models/, db/ and
    domain/ value objects.  MUST NOT import from services/.

Invariants enforced:
    - Responses are returned in write order (autoincrement record_id), never
      by timestamp: two writes may share a created_at.
    - Reconstructed TransactionInfo: status PROCESSED, created_date ==
      effective_date == the row's write time in UTC.
    - An empty or absent currency is reported as None, never defaulted.
    - The reference-number column wins over its copy in additional_data.

Failure modes:
    - ValueError if an additional_data blob is not a JSON object.
"""

from uuid import UUID

from sqlalchemy import select

from deposit_kernel.db.base import as_utc
from deposit_kernel.domain.properties import (
    PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER,
    build_properties,
    deserialize_additional_data,
)
from deposit_kernel.domain.values import (
    PaymentMethodDetail,
    PaymentMethodInfo,
    PaymentMethodRecord,
    PaymentPluginStatus,
    TransactionInfo,
    TransactionType,
)
from deposit_kernel.models.payment_method import DepositPaymentMethodModel
from deposit_kernel.models.response import DepositResponseModel
from deposit_kernel.selectors.base import BaseSelector


class LedgerSelector(BaseSelector[DepositResponseModel]):
    """Queries over ``deposit_responses`` and ``deposit_payment_methods``."""

    # ------------------------------------------------------------------
    # Transaction responses
    # ------------------------------------------------------------------

    def responses_for_payment(self, payment_id: UUID, tenant_id: UUID) -> list[TransactionInfo]:
        """Every response recorded for a payment, oldest first."""
        stmt = (
            select(DepositResponseModel)
            .where(
                DepositResponseModel.payment_id == payment_id,
                DepositResponseModel.tenant_id == tenant_id,
            )
            .order_by(DepositResponseModel.record_id)
        )
        return [self.to_transaction_info(row) for row in self.session.scalars(stmt)]

    def responses_for_reference(
        self,
        reference_number: str,
        tenant_id: UUID,
    ) -> list[TransactionInfo]:
        """Responses carrying a deposit reference number (reconciliation)."""
        stmt = (
            select(DepositResponseModel)
            .where(
                DepositResponseModel.deposit_reference_number == reference_number,
                DepositResponseModel.tenant_id == tenant_id,
            )
            .order_by(DepositResponseModel.record_id)
        )
        return [self.to_transaction_info(row) for row in self.session.scalars(stmt)]

    def response_for_transaction(
        self,
        payment_id: UUID,
        payment_transaction_id: UUID,
        tenant_id: UUID,
    ) -> TransactionInfo | None:
        """The latest response written for one payment transaction."""
        row = self.session.scalars(
            select(DepositResponseModel)
            .where(
                DepositResponseModel.payment_id == payment_id,
                DepositResponseModel.payment_transaction_id == payment_transaction_id,
                DepositResponseModel.tenant_id == tenant_id,
            )
            .order_by(DepositResponseModel.record_id.desc())
            .limit(1)
        ).first()
        return None if row is None else self.to_transaction_info(row)

    @staticmethod
    def to_transaction_info(row: DepositResponseModel) -> TransactionInfo:
        additional_data = deserialize_additional_data(row.additional_data)
        reference = row.deposit_reference_number
        if reference is None:
            stored = additional_data.get(PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER)
            reference = None if stored is None else str(stored)

        written_at = as_utc(row.created_at)
        return TransactionInfo(
            payment_id=row.payment_id,
            transaction_id=row.payment_transaction_id,
            transaction_type=TransactionType(row.transaction_type),
            amount=row.amount,
            currency=row.currency or None,
            status=PaymentPluginStatus.PROCESSED,
            created_date=written_at,
            effective_date=written_at,
            first_payment_reference_id=reference,
            properties=build_properties(additional_data),
        )

    # ------------------------------------------------------------------
    # Payment methods
    # ------------------------------------------------------------------

    def payment_methods_for_account(
        self,
        account_id: UUID,
        tenant_id: UUID,
        include_deleted: bool = False,
    ) -> list[PaymentMethodRecord]:
        stmt = select(DepositPaymentMethodModel).where(
            DepositPaymentMethodModel.account_id == account_id,
            DepositPaymentMethodModel.tenant_id == tenant_id,
        )
        if not include_deleted:
            stmt = stmt.where(DepositPaymentMethodModel.is_deleted.is_(False))
        stmt = stmt.order_by(DepositPaymentMethodModel.record_id)
        return [self.to_payment_method_record(row) for row in self.session.scalars(stmt)]

    def payment_method(
        self,
        payment_method_id: UUID,
        tenant_id: UUID,
    ) -> PaymentMethodRecord | None:
        row = self.session.scalars(
            select(DepositPaymentMethodModel).where(
                DepositPaymentMethodModel.payment_method_id == payment_method_id,
                DepositPaymentMethodModel.tenant_id == tenant_id,
            )
        ).one_or_none()
        return None if row is None else self.to_payment_method_record(row)

    @staticmethod
    def to_payment_method_record(row: DepositPaymentMethodModel) -> PaymentMethodRecord:
        return PaymentMethodRecord(
            record_id=row.id,
            account_id=row.account_id,
            payment_method_id=row.payment_method_id,
            is_default=row.is_default,
            is_deleted=row.is_deleted,
            properties=deserialize_additional_data(row.additional_data),
            created_at=as_utc(row.created_at),
            updated_at=as_utc(row.updated_at),
            tenant_id=row.tenant_id,
        )


def to_payment_method_info(record: PaymentMethodRecord) -> PaymentMethodInfo:
    return PaymentMethodInfo(
        account_id=record.account_id,
        payment_method_id=record.payment_method_id,
        is_default=record.is_default,
        external_payment_method_id=str(record.record_id),
    )


def to_payment_method_detail(record: PaymentMethodRecord) -> PaymentMethodDetail:
    return PaymentMethodDetail(
        payment_method_id=record.payment_method_id,
        external_payment_method_id=str(record.record_id),
        is_default=record.is_default,
        properties=build_properties(record.properties),
    )
