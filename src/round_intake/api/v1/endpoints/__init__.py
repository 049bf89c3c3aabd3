# src/round_intake/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .snapshots import router as snapshots_router
from .system import router as system_router

__all__ = [
    "snapshots_router",
    "system_router",
]
