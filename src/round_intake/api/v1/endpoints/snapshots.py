"""Snapshot intake endpoints for the Round Intake API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from round_intake.api.v1.dependencies import IntakeServiceDep
from round_intake.core.errors import UnknownSnapshotFolderError
from round_intake.schemas.snapshot import (
    AcceptSnapshotRequest,
    ActionResult,
    DeleteSnapshotsRequest,
    FailedSnapshotResponse,
    SnapshotSummary,
)

router = APIRouter(prefix="/snapshots", tags=["snapshots"])

INVALID_ACTION = ActionResult(success=False, message="Invalid Action!")


@router.get("", response_model=list[SnapshotSummary])
def list_snapshots(
    service: IntakeServiceDep,
    folder: str | None = Query(None, description="Lifecycle folder, pending by default"),
) -> list[SnapshotSummary]:
    """List snapshot files of a lifecycle folder with display metadata."""
    try:
        return service.list_pending(folder)
    except UnknownSnapshotFolderError as err:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(err)) from err


@router.post("/accept", response_model=ActionResult)
def accept_snapshot(payload: AcceptSnapshotRequest, service: IntakeServiceDep) -> ActionResult:
    """Process a pending snapshot."""
    if payload.action != "process":
        return INVALID_ACTION
    return service.accept_pending(payload.snapshot or "", payload.ignore_authorization)


@router.post("/delete", response_model=ActionResult)
def delete_snapshots(payload: DeleteSnapshotsRequest, service: IntakeServiceDep) -> ActionResult:
    """Delete pending snapshots without processing them."""
    if payload.action != "delete":
        return INVALID_ACTION
    return service.delete_pending(payload.snapshots)


@router.get("/failed", response_model=list[FailedSnapshotResponse])
def list_failed_snapshots(service: IntakeServiceDep) -> list[FailedSnapshotResponse]:
    """List failed snapshot records, oldest first."""
    return [FailedSnapshotResponse.model_validate(row) for row in service.list_failed_records()]


@router.delete("/failed/{record_id}", response_model=ActionResult)
def delete_failed_snapshot(record_id: int, service: IntakeServiceDep) -> ActionResult:
    """Delete a failed snapshot record and its file."""
    if not service.delete_failed_record(record_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Failed snapshot not found",
        )
    return ActionResult(success=True, message="Failed snapshot removed.")
