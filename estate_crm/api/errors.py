"""Unified API error response helpers."""
from __future__ import annotations

from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette import status

from estate_crm.core.logging import get_logger
from estate_crm.services.errors import (
    BusinessRuleViolation,
    ForbiddenError,
    NotFoundError,
    ServiceError,
    StoreFailure,
    ValidationError,
)

logger = get_logger(__name__)

SERVICE_ERROR_STATUS: dict[type[ServiceError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ForbiddenError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    BusinessRuleViolation: status.HTTP_409_CONFLICT,
    StoreFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def build_error_payload(
    *,
    code: str,
    message: str,
    detail: Any = None,
    context: dict[str, Any] | None = None,
    request: Request | None = None,
) -> dict[str, Any]:
    payload_context = context.copy() if context else {}
    if request is not None:
        payload_context.setdefault("request_id", getattr(request.state, "request_id", None))
        payload_context.setdefault("correlation_id", getattr(request.state, "correlation_id", None))
        payload_context.setdefault("path", request.url.path)
        payload_context.setdefault("method", request.method)

    return {
        "code": code,
        "message": message,
        "detail": detail,
        "context": payload_context,
    }


def status_for(exc: ServiceError) -> int:
    for error_cls in type(exc).__mro__:
        if error_cls in SERVICE_ERROR_STATUS:
            return SERVICE_ERROR_STATUS[error_cls]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(
            "store failure",
            code=exc.code,
            error=exc.message,
            cause=str(exc.__cause__) if exc.__cause__ else None,
            path=request.url.path,
            **exc.context,
        )
        # Internal details stay in the log
        message, context = "Internal server error", {}
    else:
        message, context = exc.message, exc.context

    return JSONResponse(
        status_code=status_code,
        content=build_error_payload(
            code=exc.code,
            message=message,
            detail=message,
            context=context,
            request=request,
        ),
    )
