"""
ORM-Level Append-Only Enforcement for the deposit ledger.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  Both ledger tables are append-only, so any such flush is rejected:

    session.flush()
         |
         v
    [before_update] --> _reject_update() --> ImmutabilityViolationError
    [before_delete] --> _reject_delete() --> ImmutabilityViolationError

Entity                      | When Immutable
----------------------------|-----------------------------
DepositPaymentMethodModel   | ALWAYS (from creation)
DepositResponseModel        | ALWAYS (from creation)

Soft deletion of payment methods is a host concern: the ``is_deleted``
column exists for layout compatibility but nothing in the plugin flips it.

Listeners are registered when ``deposit_kernel.models`` is imported and can
be toggled by tests through ``register_immutability_listeners`` /
``unregister_immutability_listeners``.
"""

from sqlalchemy import event

from deposit_kernel.exceptions import ImmutabilityViolationError


def _reject_update(mapper, connection, target):
    """Raises ImmutabilityViolationError always -- ledger rows never change."""
    raise ImmutabilityViolationError(
        target.__tablename__,
        f"Ledger rows are append-only - cannot modify {target.__tablename__} row {target.id}",
    )


def _reject_delete(mapper, connection, target):
    """Raises ImmutabilityViolationError always -- ledger rows are never removed."""
    raise ImmutabilityViolationError(
        target.__tablename__,
        f"Ledger rows are append-only - cannot delete {target.__tablename__} row {target.id}",
    )


def _protected_models():
    from deposit_kernel.models.payment_method import DepositPaymentMethodModel
    from deposit_kernel.models.response import DepositResponseModel

    return (DepositPaymentMethodModel, DepositResponseModel)


def register_immutability_listeners() -> None:
    """Register the append-only listeners (idempotent)."""
    for model in _protected_models():
        if not event.contains(model, "before_update", _reject_update):
            event.listen(model, "before_update", _reject_update)
        if not event.contains(model, "before_delete", _reject_delete):
            event.listen(model, "before_delete", _reject_delete)


def unregister_immutability_listeners() -> None:
    """Remove the append-only listeners. FOR TESTING ONLY."""
    for model in _protected_models():
        if event.contains(model, "before_update", _reject_update):
            event.remove(model, "before_update", _reject_update)
        if event.contains(model, "before_delete", _reject_delete):
            event.remove(model, "before_delete", _reject_delete)
