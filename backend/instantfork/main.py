"""InstantFork Backend -- FastAPI Application Entry Point."""

import logging
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from instantfork.api.v1.router import api_v1_router
from instantfork.config import settings
from instantfork.core.exceptions import InstantForkException
from instantfork.db.session import engine
from instantfork.models import Base
from instantfork.schemas.common import ErrorDetail, ErrorResponse
from instantfork.services.cache_service import get_cache_service

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.DEBUG else logging.WARNING,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    logger.info(
        "api_starting",
        environment=settings.ENVIRONMENT,
        debug=settings.DEBUG,
    )

    # Tables are created idempotently; there is no migration tool
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("database_tables_ready")

    cache = get_cache_service()
    if await cache.health_check():
        logger.info("redis_connected")
    else:
        logger.warning("redis_unavailable", detail="operating without caching")

    yield

    logger.info("api_stopping")
    await cache.close()
    await engine.dispose()


app = FastAPI(
    title="InstantFork API",
    description="Time-limited restaurant deals in the DC, Maryland and Virginia area",
    version="0.1.0",
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        settings.FRONTEND_URL,
        "http://localhost:3000",
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InstantForkException)
async def instantfork_exception_handler(request: Request, exc: InstantForkException):
    """Render domain errors in the standard error envelope."""
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", path=request.url.path, code=exc.code)

    body = ErrorResponse(
        error=ErrorDetail(code=exc.code, message=exc.message, details=exc.extra()),
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump(mode="json"))


# Register API v1 router
app.include_router(api_v1_router, prefix="/api/v1")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "name": "InstantFork API",
        "version": "0.1.0",
        "docs": "/docs" if settings.DEBUG else None,
        "health": "/api/v1/health",
    }
