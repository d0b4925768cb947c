"""Kernel services: ledger writes, the payment provider, the control hook and the distributor."""

from deposit_kernel.services.control_plugin import DepositPaymentControlPlugin
from deposit_kernel.services.distributor import DepositDistributor
from deposit_kernel.services.ledger_service import DepositLedgerService
from deposit_kernel.services.payment_plugin import DepositPaymentPlugin

__all__ = [
    "DepositDistributor",
    "DepositLedgerService",
    "DepositPaymentControlPlugin",
    "DepositPaymentPlugin",
]
