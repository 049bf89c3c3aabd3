# src/round_intake/main.py
"""Main entry point for the Round Intake application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from round_intake.api.v1 import snapshots_router, system_router
from round_intake.core.errors import SnapshotError
from round_intake.core.logging_config import configure_logging
from round_intake.core.settings import settings
from round_intake.services.lifecycle import SnapshotLifecycle

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Round Intake API",
    description="Validation and import of game server round snapshots",
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
app.include_router(snapshots_router, prefix="/api/v1")
app.include_router(system_router, prefix="/api/v1")


@app.exception_handler(SnapshotError)
async def snapshot_error_handler(request: Request, exc: SnapshotError) -> JSONResponse:
    """Render snapshot errors that escape an endpoint as a failed action."""
    logger.error("Unhandled snapshot error on %s: %s", request.url.path, exc)
    return JSONResponse(status_code=500, content={"success": False, "message": str(exc)})


@app.on_event("startup")
async def on_startup() -> None:
    configure_logging(settings)
    SnapshotLifecycle(settings).ensure_directories()


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
        "redoc": "/redoc"
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("round_intake.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
