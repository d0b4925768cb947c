"""
deposit_api -- HTTP surface and plugin activation.

``create_app`` builds the FastAPI application (``POST /record``,
``GET /healthcheck``); ``DepositPlugin`` wires the kernel services and the
tenant configuration handler and registers them with the host.
"""

from deposit_api.activator import DepositPlugin
from deposit_api.app import create_app
from deposit_api.deps import HeaderTenantResolver, TenantResolver, get_or_create_user_token

__all__ = [
    "DepositPlugin",
    "HeaderTenantResolver",
    "TenantResolver",
    "create_app",
    "get_or_create_user_token",
]
