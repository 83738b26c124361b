"""
Request logging and last-resort error middleware.
"""
import time
import uuid
from typing import Callable

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from estate_crm.api.errors import build_error_payload
from estate_crm.core.logging import get_logger

logger = get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns request/correlation ids and logs every request with its duration."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse incoming IDs when present
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        correlation_id = request.headers.get("X-Correlation-ID") or request_id
        request.state.request_id = request_id
        request.state.correlation_id = correlation_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id, correlation_id=correlation_id)

        start_time = time.perf_counter()
        logger.info(
            "request started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else None,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("request failed", method=request.method, path=request.url.path, error=str(e))
            raise

        logger.info(
            "request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Correlation-ID"] = correlation_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Turns anything unhandled into a 500 with the unified error payload."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            logger.exception("unhandled error", method=request.method, path=request.url.path, error=str(e))

            debug = getattr(request.app.state, "debug", False)
            return JSONResponse(
                status_code=500,
                content=build_error_payload(
                    code="internal_error",
                    message="Internal server error",
                    detail=str(e) if debug else "An error occurred",
                    request=request,
                ),
            )
