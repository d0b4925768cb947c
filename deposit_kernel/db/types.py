"""
Decimal coercion for amounts entering the ledger from text sources.

Tenant YAML and JSON bodies may carry amounts as strings, ints or floats.
All of them pass through ``to_decimal`` before they are compared or stored
in a Numeric(38, 9) column.
"""

from decimal import Decimal, InvalidOperation
from typing import Any


def to_decimal(value: Any) -> Decimal:
    """
    Convert a configuration or JSON value to Decimal without float drift.

    Floats go through ``str()`` so that ``0.5`` becomes ``Decimal("0.5")``
    rather than its binary expansion.

    Raises:
        ValueError: booleans, non-numeric text, NaN and infinities.
    """
    if isinstance(value, Decimal) and value.is_finite():
        return value
    if isinstance(value, bool):
        raise ValueError(f"Not a monetary amount: {value!r}")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"Not a monetary amount: {value!r}") from exc
    if not result.is_finite():
        raise ValueError(f"Not a monetary amount: {value!r}")
    return result
