# src/forum_tally/main.py
"""Main entry point for the forum tally application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from forum_tally.api.errors import register_exception_handlers
from forum_tally.api.v1 import (
    categories_router,
    comments_router,
    forums_router,
    posts_router,
    votes_router,
)
from forum_tally.core.settings import settings
from forum_tally.services.cache import CacheSweeper, ReadThroughCache

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Forum voting, tallies and ranked listings behind a read-through cache",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

register_exception_handlers(app)

# Include API routers
app.include_router(votes_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(forums_router, prefix="/api/v1")
app.include_router(categories_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    cache = ReadThroughCache(settings.cache_default_ttl_seconds)
    sweeper = CacheSweeper(cache, settings.cache_sweep_interval_seconds)
    await sweeper.start()
    app.state.cache = cache
    app.state.cache_sweeper = sweeper
    logger.info("Read-through cache ready (default TTL %ss)", settings.cache_default_ttl_seconds)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    sweeper: CacheSweeper | None = getattr(app.state, "cache_sweeper", None)
    if sweeper:
        await sweeper.stop()
    cache: ReadThroughCache | None = getattr(app.state, "cache", None)
    if cache is not None:
        cache.clear()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("forum_tally.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
