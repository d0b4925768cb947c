"""Read-only ledger queries."""

from deposit_kernel.selectors.ledger_selector import (
    LedgerSelector,
    to_payment_method_detail,
    to_payment_method_info,
)

__all__ = [
    "LedgerSelector",
    "to_payment_method_detail",
    "to_payment_method_info",
]
