"""Request and response bodies for the deposit HTTP surface."""

from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from deposit_kernel.domain.properties import parse_effective_date
from deposit_kernel.domain.values import DepositOutcome, DepositRequest, InvoiceAllocation


class InvoiceDepositJson(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    invoice_number: int | None = Field(default=None, alias="invoiceNumber")
    payment_amount: Decimal | None = Field(default=None, alias="paymentAmount")


class DepositJson(BaseModel):
    """
    Body of ``POST /record``.

    Every field is optional here; missing deposit metadata is reported by the
    distributor as a 400 with the list of absent fields.
    """

    model_config = ConfigDict(populate_by_name=True)

    account_id: UUID | None = Field(default=None, alias="accountId")
    effective_date: datetime | None = Field(default=None, alias="effectiveDate")
    payment_reference_number: str | None = Field(default=None, alias="paymentReferenceNumber")
    deposit_type: str | None = Field(default=None, alias="depositType")
    payments: list[InvoiceDepositJson] | None = None

    @field_validator("effective_date", mode="before")
    @classmethod
    def _parse_effective_date(cls, value: Any) -> Any:
        if isinstance(value, str):
            return parse_effective_date(value)
        return value

    def to_request(self) -> DepositRequest:
        # account_id is checked by the route before conversion
        return DepositRequest(
            account_id=self.account_id,
            effective_date=parse_effective_date(self.effective_date),
            payment_reference_number=self.payment_reference_number,
            deposit_type=self.deposit_type,
            allocations=tuple(
                InvoiceAllocation(p.invoice_number, p.payment_amount)
                for p in (self.payments or ())
            ),
        )


class AppliedAllocationJson(BaseModel):
    invoiceNumber: int
    invoiceId: UUID
    amount: str
    currency: str
    paymentId: UUID
    transactionId: UUID


class DepositResultJson(BaseModel):
    status: str
    accountId: UUID
    paymentMethodId: UUID
    paymentMethodCreated: bool
    applied: list[AppliedAllocationJson]
    skipped: list[int | None]

    @classmethod
    def from_outcome(cls, outcome: DepositOutcome) -> "DepositResultJson":
        return cls(
            status=outcome.status.value,
            accountId=outcome.account_id,
            paymentMethodId=outcome.payment_method_id,
            paymentMethodCreated=outcome.payment_method_created,
            applied=[
                AppliedAllocationJson(
                    invoiceNumber=a.invoice_number,
                    invoiceId=a.invoice_id,
                    amount=str(a.amount),
                    currency=a.currency,
                    paymentId=a.payment_id,
                    transactionId=a.transaction_id,
                )
                for a in outcome.applied
            ],
            skipped=list(outcome.skipped),
        )


class HealthJson(BaseModel):
    healthy: bool
