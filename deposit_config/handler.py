"""
Tenant configuration handler (``deposit_config.handler``).

Responsibility
--------------
Maps tenant ids to their parsed ``DepositConfiguration``.  Loads lazily on
first access, caches the result, and reloads when the host signals a
configuration change for the tenant.

Concurrency
-----------
Readers never take the lock: the cache is an immutable snapshot that is
replaced wholesale (copy-on-write) under ``_lock`` whenever it changes.

Failure modes
-------------
* The source raises, or the document does not parse -> the tenant is served
  the default configuration (no minimums) and nothing is cached, so the next
  call retries.  A ``tenant_config_unavailable`` warning is logged.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from decimal import Decimal
from types import MappingProxyType
from uuid import UUID

from deposit_config.loader import parse_tenant_values, tenant_config_key
from deposit_config.schema import DepositConfiguration
from deposit_kernel.domain.ports import TenantConfigSource
from deposit_kernel.exceptions import ConfigurationError
from deposit_kernel.logging_config import get_logger

logger = get_logger("config.handler")


class TenantConfigurationHandler:
    """Per-tenant configuration cache backed by the host's tenant storage."""

    def __init__(
        self,
        source: TenantConfigSource,
        plugin_name: str,
        default: DepositConfiguration | None = None,
    ):
        self._source = source
        self._plugin_name = plugin_name
        self._default = default or DepositConfiguration.empty()
        self._cache: Mapping[UUID, DepositConfiguration] = MappingProxyType({})
        self._lock = threading.Lock()

    @property
    def config_key(self) -> str:
        return tenant_config_key(self._plugin_name)

    @property
    def default_configuration(self) -> DepositConfiguration:
        return self._default

    def set_default_configurable(self, default: DepositConfiguration) -> None:
        self._default = default

    def get_configurable(self, tenant_id: UUID | None) -> DepositConfiguration:
        """Return the tenant's configuration, loading it on first use."""
        if tenant_id is None:
            return self._default

        cached = self._cache.get(tenant_id)
        if cached is not None:
            return cached

        loaded = self._load(tenant_id)
        if loaded is None:
            return self._default
        self._store(tenant_id, loaded)
        return loaded

    def min_amounts_for(self, tenant_id: UUID | None) -> Mapping[str, Decimal] | None:
        return self.get_configurable(tenant_id).min_amounts

    def on_configuration_changed(self, tenant_id: UUID) -> None:
        """Host callback: the tenant's document was written or removed."""
        loaded = self._load(tenant_id)
        if loaded is None:
            self._evict(tenant_id)
            return
        self._store(tenant_id, loaded)
        logger.info(
            "tenant_config_reloaded",
            extra={
                "tenant_id": str(tenant_id),
                "currencies": sorted(loaded.min_amounts),
            },
        )

    def _load(self, tenant_id: UUID) -> DepositConfiguration | None:
        try:
            values = self._source.get_tenant_values(self.config_key, tenant_id)
            return parse_tenant_values(values, tenant_id=tenant_id)
        except ConfigurationError as exc:
            logger.warning(
                "tenant_config_unavailable",
                extra={"tenant_id": str(tenant_id), "reason": str(exc)},
            )
            return None
        except Exception as exc:
            # Source outages must not block payments.
            logger.warning(
                "tenant_config_unavailable",
                extra={
                    "tenant_id": str(tenant_id),
                    "reason": f"{type(exc).__name__}: {exc}",
                },
            )
            return None

    def _store(self, tenant_id: UUID, configuration: DepositConfiguration) -> None:
        with self._lock:
            updated = dict(self._cache)
            updated[tenant_id] = configuration
            self._cache = MappingProxyType(updated)

    def _evict(self, tenant_id: UUID) -> None:
        with self._lock:
            if tenant_id not in self._cache:
                return
            updated = dict(self._cache)
            del updated[tenant_id]
            self._cache = MappingProxyType(updated)
