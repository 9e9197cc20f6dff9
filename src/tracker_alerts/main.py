# src/tracker_alerts/main.py
"""Main entry point for the tracker alerts service."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from tracker_alerts.api.v1 import alerts_router
from tracker_alerts.core.settings import settings
from tracker_alerts.services.dispatch import DispatchWorker, NotificationDispatcher
from tracker_alerts.services.transport import TransportDisabledError, get_transport

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Change-stamp based alerts and notifications for an issue tracker",
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
app.include_router(alerts_router, prefix="/api/v1")


@app.on_event("startup")
async def on_startup() -> None:
    app.state.dispatch_worker = None
    app.state.transport = None
    if not settings.dispatch_enabled:
        return

    try:
        transport = get_transport()
    except TransportDisabledError as exc:
        logger.warning("Dispatch enabled but not started: %s", exc)
        return

    worker = DispatchWorker(NotificationDispatcher(transport))
    await worker.start()
    app.state.transport = transport
    app.state.dispatch_worker = worker


@app.on_event("shutdown")
async def on_shutdown() -> None:
    worker: DispatchWorker | None = getattr(app.state, "dispatch_worker", None)
    if worker:
        await worker.stop()
    transport = getattr(app.state, "transport", None)
    if transport is not None:
        transport.close()


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
    uvicorn.run("tracker_alerts.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
