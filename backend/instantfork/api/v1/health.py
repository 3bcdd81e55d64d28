"""Health check endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from instantfork.config import settings
from instantfork.dependencies import get_db
from instantfork.schemas import HealthCheckResponse
from instantfork.services.cache_service import CacheService, get_cache

router = APIRouter()


@router.get("/health", response_model=HealthCheckResponse)
async def health_check(
    db: AsyncSession = Depends(get_db),
    cache: CacheService = Depends(get_cache),
):
    """Return service health status.

    Checks connectivity to the database and to Redis. Redis is optional, so
    a failed ping degrades the status instead of failing the check.
    """
    try:
        await db.execute(text("SELECT 1"))
        db_status = "ok"
    except Exception as e:
        db_status = f"error: {e}"

    redis_status = "ok" if await cache.health_check() else "error: ping failed"

    overall_status = "ok" if db_status == redis_status == "ok" else "degraded"

    return HealthCheckResponse(
        status=overall_status,
        environment=settings.ENVIRONMENT,
        database=db_status,
        redis=redis_status,
    )
