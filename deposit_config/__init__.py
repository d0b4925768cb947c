"""
deposit_config -- configuration for the deposit plugin.

Responsibility:
    Two kinds of configuration flow through this package:

    * Per-tenant documents stored by the host under
      ``PLUGIN_CONFIG_<plugin name>`` and served through
      ``TenantConfigurationHandler`` (minimum deposit amounts).
    * Process-level ``PluginSettings`` (database, logging), obtained only
      through ``load_settings()``.

Architecture position:
    Sits above ``deposit_kernel`` and below ``deposit_api``.  The kernel
    never imports from here; it sees tenant configuration through the
    ``MinimumAmountProvider`` port, which the handler satisfies.

Failure modes:
    - ``ConfigurationError`` -- malformed settings file or value.
    - Tenant documents never raise to callers: an unreadable document is
      served as the empty configuration (fail-open).
"""

from deposit_config.handler import TenantConfigurationHandler
from deposit_config.loader import (
    parse_deposit_configuration,
    parse_tenant_values,
    tenant_config_key,
)
from deposit_config.schema import DatabaseSettings, DepositConfiguration, PluginSettings
from deposit_config.settings import load_settings

__all__ = [
    "DatabaseSettings",
    "DepositConfiguration",
    "PluginSettings",
    "TenantConfigurationHandler",
    "load_settings",
    "parse_deposit_configuration",
    "parse_tenant_values",
    "tenant_config_key",
]
