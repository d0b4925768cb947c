"""FastAPI dependency providers and tenant resolution."""

from collections.abc import Callable
from typing import Protocol
from uuid import UUID, uuid4

from fastapi import HTTPException, Request

from deposit_kernel.domain.clock import Clock
from deposit_kernel.services.distributor import DepositDistributor

TENANT_HEADER = "X-Killbill-TenantId"


class TenantResolver(Protocol):
    def __call__(self, request: Request) -> UUID | None:
        """Return the tenant the request belongs to, or None if unknown."""
        ...


class HeaderTenantResolver:
    """Reads the tenant id from a request header."""

    def __init__(self, header: str = TENANT_HEADER):
        self.header = header

    def __call__(self, request: Request) -> UUID | None:
        value = request.headers.get(self.header)
        if not value:
            return None
        try:
            return UUID(value)
        except ValueError:
            return None


def get_or_create_user_token(request_id: str | None) -> UUID:
    """Reuse ``X-Request-Id`` when it is a UUID, otherwise allocate one."""
    if request_id:
        try:
            return UUID(request_id)
        except ValueError:
            pass
    return uuid4()


def get_distributor(request: Request) -> DepositDistributor:
    return request.app.state.distributor


def get_clock(request: Request) -> Clock:
    return request.app.state.clock


def get_tenant_id(request: Request) -> UUID:
    resolver: TenantResolver = request.app.state.tenant_resolver
    tenant_id = resolver(request)
    if tenant_id is None:
        raise HTTPException(status_code=401, detail="Unknown tenant")
    return tenant_id


def get_health_check(request: Request) -> Callable[[], bool]:
    return request.app.state.health_check
