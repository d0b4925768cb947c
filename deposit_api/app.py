"""FastAPI application factory for the deposit plugin."""

from collections.abc import Callable

from fastapi import FastAPI

from deposit_api.deps import HeaderTenantResolver, TenantResolver
from deposit_api.errors import register_error_handlers
from deposit_api.routes import router
from deposit_kernel import PLUGIN_NAME, __version__
from deposit_kernel.domain.clock import Clock, SystemClock
from deposit_kernel.services.distributor import DepositDistributor


def create_app(
    distributor: DepositDistributor,
    tenant_resolver: TenantResolver | None = None,
    clock: Clock | None = None,
    health_check: Callable[[], bool] | None = None,
) -> FastAPI:
    app = FastAPI(title=PLUGIN_NAME, version=__version__)

    app.state.distributor = distributor
    app.state.tenant_resolver = tenant_resolver or HeaderTenantResolver()
    app.state.clock = clock or SystemClock()
    app.state.health_check = health_check or (lambda: True)

    register_error_handlers(app)
    app.include_router(router)
    return app
