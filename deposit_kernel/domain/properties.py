"""
Plugin property helpers and the ledger's property-blob codec.

Responsibility:
    - Flatten host ``PluginProperty`` iterables into a ``str -> str`` map.
    - Look up the deposit metadata keys.
    - Encode / decode the opaque ``additional_data`` column.

Invariants enforced:
    - An empty or absent map encodes to ``None`` (SQL NULL), never ``"{}"``.
    - ``None`` or empty text decodes to ``{}``.
    - Encoding is deterministic (sorted keys, compact separators).
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from deposit_kernel.domain.values import PluginProperty

PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER = "depositPaymentReferenceNumber"
PROPERTY_DEPOSIT_TYPE = "depositType"
PROPERTY_DEPOSIT_EFFECTIVE_DATE = "depositEffectiveDate"

DEPOSIT_PROPERTY_KEYS = (
    PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER,
    PROPERTY_DEPOSIT_TYPE,
    PROPERTY_DEPOSIT_EFFECTIVE_DATE,
)


def stringify(value: Any) -> str:
    """Render a property value the way it is stored in the blob."""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def to_string_map(*sources: Iterable[PluginProperty] | None) -> dict[str, str]:
    """
    Merge property iterables into one map.  Later sources win on key clashes;
    properties whose value is None are dropped.
    """
    merged: dict[str, str] = {}
    for source in sources:
        if not source:
            continue
        for prop in source:
            if prop.value is not None:
                merged[prop.key] = stringify(prop.value)
    return merged


def find_property_value(key: str, properties: Iterable[PluginProperty] | None) -> str | None:
    """Return the first non-None value stored under ``key``."""
    if not properties:
        return None
    for prop in properties:
        if prop.key == key and prop.value is not None:
            return stringify(prop.value)
    return None


def build_properties(data: Mapping[str, Any]) -> tuple[PluginProperty, ...]:
    return tuple(PluginProperty(key, value) for key, value in data.items())


def deposit_properties(
    reference_number: str,
    deposit_type: str,
    effective_date: datetime,
) -> tuple[PluginProperty, ...]:
    """The three transaction-level properties attached to every deposit purchase."""
    return (
        PluginProperty(PROPERTY_DEPOSIT_PAYMENT_REFERENCE_NUMBER, reference_number),
        PluginProperty(PROPERTY_DEPOSIT_TYPE, deposit_type),
        PluginProperty(PROPERTY_DEPOSIT_EFFECTIVE_DATE, effective_date),
    )


def parse_effective_date(value: str | date | datetime | None) -> datetime | None:
    """
    Parse an effective date carried as a property.

    Date-only values become midnight; naive values are taken as UTC.

    Raises:
        ValueError: If the string is not ISO-8601.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Blob codec
# ---------------------------------------------------------------------------


def _json_default(obj: Any) -> Any:
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    if isinstance(obj, (Decimal, UUID)):
        return str(obj)
    raise TypeError(f"Property value of type {type(obj).__name__} is not serializable")


def serialize_additional_data(data: Mapping[str, Any] | None) -> str | None:
    """Encode a property map, or None when there is nothing to store."""
    if not data:
        return None
    return json.dumps(dict(data), sort_keys=True, separators=(",", ":"), default=_json_default)


def deserialize_additional_data(blob: str | None) -> dict[str, Any]:
    """
    Decode a stored property map.

    Raises:
        ValueError: If the blob is not a JSON object.
    """
    if not blob:
        return {}
    data = json.loads(blob)
    if not isinstance(data, dict):
        raise ValueError(f"additional_data is not a JSON object: {blob[:64]!r}")
    return data
