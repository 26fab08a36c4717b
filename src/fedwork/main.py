# src/fedwork/main.py
"""Main entry point for the Fedwork application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from fedwork.api.v1 import (
    activities_router,
    activitypub_router,
    federations_router,
    instances_router,
    posts_router,
    users_router,
)
from fedwork.core.logging import configure_logging
from fedwork.core.settings import settings

logger = logging.getLogger(__name__)

APP_DESCRIPTION = "ActivityPub-style federation between community instances"

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description=APP_DESCRIPTION,
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

# Include API routers
app.include_router(instances_router, prefix="/api/v1")
app.include_router(federations_router, prefix="/api/v1")
app.include_router(activities_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")

# Federation endpoints live at the site root so actor URLs stay stable
app.include_router(activitypub_router)


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    logger.info("Serving federation for %s", settings.public_base_url)


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
        "description": APP_DESCRIPTION,
        "base_url": settings.public_base_url,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("fedwork.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
