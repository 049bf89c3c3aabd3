# src/round_intake/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import snapshots_router, system_router

__all__ = [
    "snapshots_router",
    "system_router",
]
