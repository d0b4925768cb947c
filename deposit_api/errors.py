"""
Kernel error -> HTTP response mapping.

This is the only place that turns typed kernel errors into status codes:

    NotFoundError              404
    DepositValidationError     400
    request body malformed     400
    ControlRejectionError      422
    anything else              500

Error bodies are ``{"code", "message", "retryable", ...context}``.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from deposit_kernel.exceptions import (
    ControlRejectionError,
    DepositKernelError,
    DepositValidationError,
    NotFoundError,
)
from deposit_kernel.logging_config import get_logger

logger = get_logger("api.errors")


def status_for(exc: BaseException) -> int:
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, DepositValidationError):
        return 400
    if isinstance(exc, ControlRejectionError):
        return 422
    return 500


def _json_value(value: Any) -> Any:
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (tuple, list, set, frozenset)):
        return [_json_value(v) for v in value]
    return value


def error_body(exc: DepositKernelError) -> dict[str, Any]:
    body: dict[str, Any] = {
        "code": exc.code,
        "message": str(exc),
        "retryable": exc.retryable,
    }
    for key, value in vars(exc).items():
        if not key.startswith("_"):
            body[key] = _json_value(value)
    return body


async def _kernel_error_handler(request: Request, exc: DepositKernelError) -> JSONResponse:
    status = status_for(exc)
    if status >= 500:
        logger.error("request_failed", exc_info=exc)
    else:
        logger.info("request_rejected", extra={"code": exc.code, "status": status})
    return JSONResponse(status_code=status, content=error_body(exc))


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": [str(part) for part in err.get("loc", ())], "msg": err.get("msg")}
        for err in exc.errors()
    ]
    logger.info("request_malformed", extra={"errors": errors})
    return JSONResponse(
        status_code=400,
        content={
            "code": "INVALID_REQUEST",
            "message": "Request body could not be parsed",
            "retryable": False,
            "errors": errors,
        },
    )


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("request_failed_unexpectedly", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "code": "INTERNAL_ERROR",
            "message": "Internal error",
            "retryable": False,
        },
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DepositKernelError, _kernel_error_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
