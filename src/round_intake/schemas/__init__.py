# src/round_intake/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .snapshot import (
    AcceptSnapshotRequest,
    ActionResult,
    DeleteSnapshotsRequest,
    FailedSnapshotResponse,
    SnapshotSummary,
)

__all__ = [
    "AcceptSnapshotRequest",
    "ActionResult",
    "DeleteSnapshotsRequest",
    "FailedSnapshotResponse",
    "SnapshotSummary",
]
