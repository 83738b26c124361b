"""
Health check endpoint for monitoring and container orchestration.
"""
import time

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from estate_crm.core.config import settings
from estate_crm.core.database import get_db
from estate_crm.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="", tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_db)):
    """Database ping plus app version."""
    db_status = "healthy"
    db_latency = 0.0
    try:
        db_start = time.perf_counter()
        await session.execute(text("SELECT 1"))
        db_latency = round((time.perf_counter() - db_start) * 1000, 2)
    except SQLAlchemyError as e:
        logger.error("health check database error", error=str(e))
        db_status = "unhealthy"

    overall = "healthy" if db_status == "healthy" else "unhealthy"
    return JSONResponse(
        status_code=200 if overall == "healthy" else 503,
        content={
            "status": overall,
            "version": settings.APP_VERSION,
            "components": {"database": {"status": db_status, "latency_ms": db_latency}},
        },
    )
