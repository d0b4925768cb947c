"""
Configuration Loader (``deposit_config.loader``).

Responsibility
--------------
Parses the per-tenant YAML document into a ``DepositConfiguration``::

    minAmounts:
      USD: 0.50
      EUR: "1.00"

``min_amounts`` is accepted as an alias for ``minAmounts``.

Failure modes
-------------
* Malformed YAML, a non-mapping document, or a non-numeric amount ->
  ``ConfigurationError``.  The handler treats that exactly like an absent
  document (fail-open) and logs it.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

import yaml

from deposit_config.schema import DepositConfiguration
from deposit_kernel.db.types import to_decimal
from deposit_kernel.exceptions import ConfigurationError

_AMOUNT_KEYS = ("minAmounts", "min_amounts")


def tenant_config_key(plugin_name: str) -> str:
    """Key under which the host stores this plugin's tenant document."""
    return f"PLUGIN_CONFIG_{plugin_name}"


def parse_deposit_configuration(
    raw: str | None,
    tenant_id: UUID | None = None,
) -> DepositConfiguration:
    """
    Parse one YAML document.  Empty input yields the empty configuration.

    Raises:
        ConfigurationError: if the document cannot be interpreted.
    """
    if raw is None or not raw.strip():
        return DepositConfiguration.empty()

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML: {exc}", tenant_id=tenant_id) from exc

    if data is None:
        return DepositConfiguration.empty()
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Expected a mapping, got {type(data).__name__}", tenant_id=tenant_id,
        )

    amounts: Any = None
    for key in _AMOUNT_KEYS:
        if key in data:
            amounts = data[key]
            break

    if amounts is None:
        return DepositConfiguration.empty()
    if not isinstance(amounts, dict):
        raise ConfigurationError(
            f"minAmounts must be a mapping, got {type(amounts).__name__}",
            tenant_id=tenant_id,
        )

    parsed = {}
    for currency, amount in amounts.items():
        try:
            parsed[str(currency).upper()] = to_decimal(amount)
        except ValueError as exc:
            raise ConfigurationError(
                f"Invalid minimum for {currency}: {amount!r}", tenant_id=tenant_id,
            ) from exc
    return DepositConfiguration(min_amounts=parsed)


def parse_tenant_values(
    values: list[str] | None,
    tenant_id: UUID | None = None,
) -> DepositConfiguration:
    """The host may store several values under one key; the last one wins."""
    if not values:
        return DepositConfiguration.empty()
    return parse_deposit_configuration(values[-1], tenant_id=tenant_id)
