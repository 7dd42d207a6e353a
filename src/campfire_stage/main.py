# src/campfire_stage/main.py
"""Main entry point for the Campfire application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from campfire_stage.api.v1 import groups_router, messages_router, system_router
from campfire_stage.core.logging import configure_logging
from campfire_stage.core.settings import settings
from campfire_stage.services.sweeper import SelfDestructSweepWorker

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Campfire API",
    description="Ephemeral chat groups with self-destruct rules",
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
app.include_router(groups_router, prefix="/api/v1")
app.include_router(messages_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging()
    if settings.sweep_enabled:
        worker = SelfDestructSweepWorker()
        await worker.start()
        app.state.sweep_worker = worker
    else:
        logger.info("Self-destruct sweeper disabled")
        app.state.sweep_worker = None


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: SelfDestructSweepWorker | None = getattr(app.state, "sweep_worker", None)
    if worker:
        await worker.stop()


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": "Campfire API",
        "version": settings.app_version,
        "description": "Ephemeral chat groups with self-destruct rules",
        "docs": "/docs",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("campfire_stage.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
