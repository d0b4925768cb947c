"""Deposit endpoints: ``POST /record`` and ``GET /healthcheck``."""

from collections.abc import Callable
from uuid import UUID

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from deposit_api.deps import (
    get_clock,
    get_distributor,
    get_health_check,
    get_or_create_user_token,
    get_tenant_id,
)
from deposit_api.schemas import DepositJson, DepositResultJson, HealthJson
from deposit_kernel import PLUGIN_NAME
from deposit_kernel.domain.clock import Clock
from deposit_kernel.domain.values import CallContext
from deposit_kernel.exceptions import DepositValidationError
from deposit_kernel.logging_config import get_logger
from deposit_kernel.services.distributor import DepositDistributor

logger = get_logger("api.routes")

router = APIRouter()


@router.post("/record", status_code=201, response_model=DepositResultJson)
def record_payments(
    body: DepositJson,
    x_request_id: str | None = Header(default=None),
    x_killbill_createdby: str | None = Header(default=None),
    x_killbill_reason: str | None = Header(default=None),
    x_killbill_comment: str | None = Header(default=None),
    tenant_id: UUID = Depends(get_tenant_id),
    distributor: DepositDistributor = Depends(get_distributor),
    clock: Clock = Depends(get_clock),
):
    if body.account_id is None:
        raise DepositValidationError(("accountId",))

    now = clock.now()
    context = CallContext(
        user_token=get_or_create_user_token(x_request_id),
        created_by=x_killbill_createdby or PLUGIN_NAME,
        tenant_id=tenant_id,
        created_date=now,
        updated_date=now,
        account_id=body.account_id,
        reason=x_killbill_reason,
        comment=x_killbill_comment,
    )
    outcome = distributor.record(body.to_request(), context)
    return DepositResultJson.from_outcome(outcome)


@router.get("/healthcheck", response_model=HealthJson)
def healthcheck(health_check: Callable[[], bool] = Depends(get_health_check)):
    try:
        healthy = bool(health_check())
    except Exception as exc:
        logger.warning("healthcheck_failed", extra={"error": type(exc).__name__})
        healthy = False
    if not healthy:
        return JSONResponse(status_code=503, content={"healthy": False})
    return HealthJson(healthy=True)
