"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from linkpulse.api.redirect import router as redirect_router
from linkpulse.api.v1.router import router as v1_router
from linkpulse.core.config import get_settings
from linkpulse.core.database import Database
from linkpulse.core.errors import StorageError
from linkpulse.core.observability import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from linkpulse.core.rate_limit import limiter
from linkpulse.core.redis import LinkCache
from linkpulse.services.click_storage import ClickStorageService
from linkpulse.services.geoip import GeoIPService

settings = get_settings()

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    # Startup
    logger.info("Starting Linkpulse", version=settings.app_version)
    app.state.db = Database.from_settings(settings)
    app.state.link_cache = (
        LinkCache.from_url(settings.redis_url, ttl=settings.link_cache_ttl)
        if settings.link_cache_enabled
        else None
    )
    app.state.click_storage = ClickStorageService(
        GeoIPService(
            geoip_database_path=settings.geoip_database_path or None,
            enabled=settings.geoip_lookup_enabled,
        )
    )
    yield
    # Shutdown
    logger.info("Shutting down Linkpulse")
    app.state.click_storage.close()
    if app.state.link_cache:
        await app.state.link_cache.close()
        logger.info("Redis connection closed")
    await app.state.db.close()
    logger.info("Database connections closed")


async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Report store failures as 503 instead of a generic 500."""
    logger.error("Storage failure", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Storage temporarily unavailable"},
    )


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="URL Shortener with Click Analytics",
    lifespan=lifespan,
)

# Set up observability (logging, tracing, metrics, Sentry)
setup_observability(app)

# Rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(StorageError, storage_error_handler)

# Middleware stack (order matters - first added = outermost = runs last on request, first on response)

# Request logging middleware (logs all requests with timing)
app.add_middleware(RequestLoggingMiddleware)

# Request ID middleware (adds unique ID to each request)
app.add_middleware(RequestIDMiddleware)

# CORS middleware (innermost - runs first on request)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset", "X-Request-ID"],
)

# Include routers
app.include_router(v1_router)

# Redirect router - must be after v1_router so /api/v1/* routes take precedence
app.include_router(redirect_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Welcome to Linkpulse", "version": settings.app_version}
