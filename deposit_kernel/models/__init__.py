"""SQLAlchemy ORM models for the deposit ledger."""

from deposit_kernel.models.payment_method import DepositPaymentMethodModel
from deposit_kernel.models.response import DepositResponseModel
from deposit_kernel.db.immutability import register_immutability_listeners

register_immutability_listeners()

__all__ = [
    "DepositPaymentMethodModel",
    "DepositResponseModel",
]
