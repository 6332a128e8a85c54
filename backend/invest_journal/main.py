"""
FastAPI main application.

Invest Journal backend API.
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
import logging
import time
from typing import Dict, Any, Optional

from invest_journal.config import settings
from invest_journal.database import AsyncSessionLocal, create_tables
from invest_journal.services.cache import get_cache
from invest_journal.api import (
    journals_router,
    profiles_router,
    public_router,
    performance_router,
)

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

# Health check cache (in-memory, short TTL)
_health_cache: Dict[str, Dict[str, Any]] = {}
_HEALTH_CACHE_TTL = 30  # seconds


def _get_cached_health() -> Optional[Dict[str, Any]]:
    """Get cached health data if still valid."""
    cached = _health_cache.get(settings.environment)
    if cached and time.time() - cached["timestamp"] < _HEALTH_CACHE_TTL:
        logger.debug("Using cached health check data")
        return {**cached["data"], "cached": True}
    _health_cache.pop(settings.environment, None)
    return None


def _cache_health_data(data: Dict[str, Any]) -> None:
    _health_cache[settings.environment] = {"data": data, "timestamp": time.time()}


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Investment journal with valuation history and benchmark comparison",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(journals_router)
app.include_router(profiles_router)
app.include_router(public_router)
app.include_router(performance_router)


@app.get("/api/health")
async def health_check():
    """Health check with database and cache status."""
    cached_health = _get_cached_health()
    if cached_health:
        return cached_health

    health_data = {
        "status": "healthy",
        "app": settings.app_name,
        "environment": settings.environment,
        "database": "unknown",
        "cache": "connected" if get_cache().ping() else "unavailable",
        "cached": False
    }

    try:
        async with AsyncSessionLocal() as session:
            await session.execute(text("SELECT 1"))
        health_data["database"] = "connected"
    except (SQLAlchemyError, OSError) as e:
        logger.warning(f"Database health check failed: {e}")
        health_data["status"] = "degraded"
        health_data["database"] = "connection_failed"
        health_data["database_error"] = str(e)

    # Cache the result (even errors, to avoid repeated failed queries)
    _cache_health_data(health_data)
    return health_data


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Invest Journal API",
        "docs": "/api/docs",
        "health": "/api/health"
    }


# Startup event
@app.on_event("startup")
async def startup_event():
    """Run on application startup."""
    logger.info(f"Starting {settings.app_name} in {settings.environment} mode")
    logger.info(f"Allowed origins: {settings.allowed_origins}")
    if settings.environment == "development":
        # Migrations own the schema everywhere else
        await create_tables()
        logger.info("Development mode: database tables created")


# Shutdown event
@app.on_event("shutdown")
async def shutdown_event():
    """Run on application shutdown."""
    logger.info(f"Shutting down {settings.app_name} API")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "invest_journal.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.log_level.lower()
    )
