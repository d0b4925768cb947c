"""
Typed Exception Hierarchy for the Deposit Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the deposit plugin (the HTTP surface, the host billing platform)
have to tell apart failures that should be retried from failures that never
will succeed.  Every error therefore has:

  1. a TYPED exception class (catch by type, not message)
  2. a CODE class attribute (machine-readable, API-safe)
  3. a RETRYABLE class attribute (upstream vs. caller mistake)
  4. structured DATA attributes (account, invoice number, amount/threshold)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    DepositKernelError (base)
    |
    +-- DepositValidationError          missing deposit metadata
    |
    +-- NotFoundError
    |   +-- AccountNotFoundError
    |   +-- InvoiceNotFoundError
    |
    +-- ControlRejectionError           below the tenant minimum
    |
    +-- UpstreamError                   retryable
    |   +-- PersistenceError
    |   +-- HostApiError
    |
    +-- UnsupportedOperationError       deliberate stubs
    |
    +-- ImmutabilityViolationError      UPDATE/DELETE on a ledger row
    |
    +-- ConfigurationError              unparseable tenant configuration

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                     | When Raised
-------------|--------------------------|--------------------------------------
Validation   | MISSING_DEPOSIT_FIELDS   | reference / type / effective date absent
Not found    | ACCOUNT_NOT_FOUND        | account id unknown to the host
             | INVOICE_NOT_FOUND        | invoice number unknown to the host
Control      | PAYMENT_ABORTED          | amount < configured minimum
Upstream     | PERSISTENCE_ERROR        | ledger statement failed
             | HOST_API_ERROR           | any other host API failure
Unsupported  | UNSUPPORTED_OPERATION    | hosted forms, notifications
Immutability | IMMUTABILITY_VIOLATION   | ledger rows are append-only
Config       | INVALID_CONFIGURATION    | tenant YAML cannot be parsed

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        outcome = distributor.record(request, context)
    except ControlRejectionError as e:
        api_response(422, code=e.code, amount=e.amount, threshold=e.threshold)
    except UpstreamError as e:
        # e.retryable is True -- the caller decides whether to retry
        api_response(500, code=e.code)
"""

from decimal import Decimal
from uuid import UUID


class DepositKernelError(Exception):
    """
    Base exception for all deposit kernel errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    identification and a ``retryable`` flag.
    """

    code: str = "DEPOSIT_KERNEL_ERROR"
    retryable: bool = False


class DepositValidationError(DepositKernelError):
    """Required deposit metadata is missing from the request."""

    code: str = "MISSING_DEPOSIT_FIELDS"

    def __init__(self, missing_fields: tuple[str, ...], account_id: UUID | None = None):
        self.missing_fields = missing_fields
        self.account_id = account_id
        super().__init__(
            f"Missing required deposit fields: {', '.join(missing_fields)}"
        )


# Lookup failures


class NotFoundError(DepositKernelError):
    """Base exception for entities unknown to the host platform."""

    code: str = "NOT_FOUND"


class AccountNotFoundError(NotFoundError):
    """Account with given ID was not found."""

    code: str = "ACCOUNT_NOT_FOUND"

    def __init__(self, account_id: UUID):
        self.account_id = account_id
        super().__init__(f"Account not found: {account_id}")


class InvoiceNotFoundError(NotFoundError):
    """Invoice with given public number was not found."""

    code: str = "INVOICE_NOT_FOUND"

    def __init__(self, invoice_number: int, account_id: UUID | None = None):
        self.invoice_number = invoice_number
        self.account_id = account_id
        super().__init__(f"Invoice not found: #{invoice_number}")


class ControlRejectionError(DepositKernelError):
    """
    The payment-control hook aborted a purchase.

    Raised by the host pipeline when the minimum-amount guard rejects an
    allocation.  The distributor fills in ``invoice_number`` before letting
    it propagate.
    """

    code: str = "PAYMENT_ABORTED"

    def __init__(
        self,
        amount: Decimal | None,
        threshold: Decimal | None,
        currency: str | None = None,
        invoice_number: int | None = None,
    ):
        self.amount = amount
        self.threshold = threshold
        self.currency = currency
        self.invoice_number = invoice_number
        super().__init__(
            f"Payment aborted: amount={amount}, minAmount={threshold}, "
            f"currency={currency}"
        )


# Upstream failures (retryable by the caller)


class UpstreamError(DepositKernelError):
    """Base exception for storage and host failures."""

    code: str = "UPSTREAM_ERROR"
    retryable: bool = True


class PersistenceError(UpstreamError):
    """A ledger statement failed."""

    code: str = "PERSISTENCE_ERROR"

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(
            f"Ledger operation {operation} failed" + (f": {detail}" if detail else "")
        )


class HostApiError(UpstreamError):
    """A host platform API call failed for a reason other than not-found."""

    code: str = "HOST_API_ERROR"

    def __init__(self, operation: str, detail: str = ""):
        self.operation = operation
        self.detail = detail
        super().__init__(
            f"Host call {operation} failed" + (f": {detail}" if detail else "")
        )


class UnsupportedOperationError(DepositKernelError):
    """Operation deliberately not implemented by the deposit plugin."""

    code: str = "UNSUPPORTED_OPERATION"

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Unsupported operation: {operation}")


class ImmutabilityViolationError(DepositKernelError):
    """Attempt to update or delete an append-only ledger row."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, table: str, message: str | None = None):
        self.table = table
        super().__init__(message or f"Rows in {table} are append-only")


class ConfigurationError(DepositKernelError):
    """Tenant configuration document could not be interpreted."""

    code: str = "INVALID_CONFIGURATION"

    def __init__(self, message: str, tenant_id: UUID | None = None):
        self.tenant_id = tenant_id
        super().__init__(message)
