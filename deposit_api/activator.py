"""
DepositPlugin -- DI container and lifecycle for the deposit plugin.

Contract:
    Wires the tenant configuration handler, the payment-control hook, the
    ledger, the payment provider, the distributor and the HTTP app, and
    registers the host-facing services under ``PLUGIN_NAME``.

Architecture: deposit_api (top-level).  The only place where deposit_kernel
    and deposit_config are composed; the kernel never imports either this
    module or deposit_config.

Invariants enforced:
    - One Clock instance is shared by every service.
    - Every host-facing service is registered under the same plugin name.
"""

from __future__ import annotations

from collections.abc import Callable

from fastapi import FastAPI
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from deposit_api.app import create_app
from deposit_api.deps import TenantResolver
from deposit_config import (
    DepositConfiguration,
    PluginSettings,
    TenantConfigurationHandler,
    load_settings,
)
from deposit_kernel import PLUGIN_NAME
from deposit_kernel.db import engine as db_engine
from deposit_kernel.domain.clock import Clock, SystemClock
from deposit_kernel.domain.ports import HostPlatform, ServiceRegistrar
from deposit_kernel.logging_config import configure_logging, get_logger
from deposit_kernel.services.control_plugin import DepositPaymentControlPlugin
from deposit_kernel.services.distributor import DepositDistributor
from deposit_kernel.services.ledger_service import DepositLedgerService
from deposit_kernel.services.payment_plugin import DepositPaymentPlugin

logger = get_logger("plugin.activator")

SERVICE_PAYMENT_PLUGIN = "payment_plugin"
SERVICE_PAYMENT_CONTROL_PLUGIN = "payment_control_plugin"
SERVICE_CONFIG_HANDLER = "config_handler"
SERVICE_HEALTHCHECK = "healthcheck"
SERVICE_HTTP_APP = "http_app"


class DepositPlugin:
    """DI container for the deposit plugin.

    Contract:
        - ``from_settings()`` builds the engine from ``PluginSettings`` and
          owns it (``stop()`` disposes it).
        - The constructor takes an existing session factory and owns nothing.
        - ``start(registrar)`` exposes the services to the host.

    Non-goals:
        - Does NOT unregister services on stop; the host owns teardown.
    """

    def __init__(
        self,
        host: HostPlatform,
        session_factory: sessionmaker[Session],
        clock: Clock | None = None,
        tenant_resolver: TenantResolver | None = None,
        health_check: Callable[[], bool] | None = None,
        plugin_name: str = PLUGIN_NAME,
    ) -> None:
        self.plugin_name = plugin_name
        self.clock = clock or SystemClock()
        self._owned_engine: Engine | None = None
        self._started = False

        self.config_handler = TenantConfigurationHandler(
            host.tenant_config, plugin_name,
        )
        self.config_handler.set_default_configurable(DepositConfiguration.empty())
        self.control_plugin = DepositPaymentControlPlugin(self.config_handler)

        self.ledger = DepositLedgerService(session_factory, clock=self.clock)
        self.payment_plugin = DepositPaymentPlugin(self.ledger, clock=self.clock)

        self.distributor = DepositDistributor(
            host.account_api,
            host.invoice_api,
            host.payment_api,
            host.invoice_payment_api,
            plugin_name=plugin_name,
        )
        self._tenant_resolver = tenant_resolver
        self._health_check = health_check or _session_health_check(session_factory)
        self._app: FastAPI | None = None

    # -------------------------------------------------------------------------
    # Factory
    # -------------------------------------------------------------------------

    @classmethod
    def from_settings(
        cls,
        host: HostPlatform,
        settings: PluginSettings | None = None,
        clock: Clock | None = None,
        tenant_resolver: TenantResolver | None = None,
    ) -> DepositPlugin:
        """Create the engine from settings and wire a plugin that owns it."""
        settings = settings or load_settings()
        configure_logging(level=settings.log_level)

        engine = db_engine.init_engine_from_url(
            settings.database.url,
            echo=settings.database.echo,
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
        )
        if settings.create_tables:
            db_engine.create_tables(engine)

        plugin = cls(
            host,
            db_engine.get_session_factory(),
            clock=clock,
            tenant_resolver=tenant_resolver,
            health_check=lambda: db_engine.ping(engine),
        )
        plugin._owned_engine = engine
        return plugin

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def app(self) -> FastAPI:
        if self._app is None:
            self._app = self.create_app()
        return self._app

    def create_app(self) -> FastAPI:
        return create_app(
            self.distributor,
            tenant_resolver=self._tenant_resolver,
            clock=self.clock,
            health_check=self._health_check,
        )

    def start(self, registrar: ServiceRegistrar) -> None:
        registrar.register_service(SERVICE_PAYMENT_PLUGIN, self.payment_plugin, self.plugin_name)
        registrar.register_service(
            SERVICE_PAYMENT_CONTROL_PLUGIN, self.control_plugin, self.plugin_name,
        )
        registrar.register_service(SERVICE_CONFIG_HANDLER, self.config_handler, self.plugin_name)
        registrar.register_service(SERVICE_HEALTHCHECK, self._health_check, self.plugin_name)
        registrar.register_service(SERVICE_HTTP_APP, self.app, self.plugin_name)
        self._started = True
        logger.info("plugin_started", extra={"plugin_name": self.plugin_name})

    def stop(self) -> None:
        if self._owned_engine is not None:
            db_engine.reset_engine()
            self._owned_engine = None
        self._started = False
        logger.info("plugin_stopped", extra={"plugin_name": self.plugin_name})

    @property
    def started(self) -> bool:
        return self._started


def _session_health_check(session_factory: sessionmaker[Session]) -> Callable[[], bool]:
    def check() -> bool:
        with session_factory() as session:
            db_engine.ping(session.get_bind())
        return True

    return check
