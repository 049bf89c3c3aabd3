# src/round_intake/schemas/snapshot.py
"""Snapshot-related Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field


class SnapshotSummary(BaseModel):
    """Display metadata of a snapshot file waiting in a lifecycle folder."""

    name: str = Field(..., description="Filename without extension")
    authid: str
    server: str
    port: int
    ipaddress: str
    map: str
    players: int = Field(..., description="Number of players in the round")
    date: str = Field(..., description="Formatted round end time")


class FailedSnapshotResponse(BaseModel):
    """Schema for failed snapshot records returned by the API."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    server_id: int | None
    server_name: str | None
    timestamp: int
    filename: str
    reason: str


class ActionResult(BaseModel):
    """Result of an operator action on snapshots."""

    success: bool
    message: str


class AcceptSnapshotRequest(BaseModel):
    """Schema for accepting a pending snapshot."""

    action: str = "process"
    snapshot: str | None = Field(None, description="Pending snapshot name without extension")
    ignore_authorization: bool = Field(
        False,
        description="Skip server authorization; only for operator-approved manual imports",
    )


class DeleteSnapshotsRequest(BaseModel):
    """Schema for deleting pending snapshots."""

    action: str = "delete"
    snapshots: list[str] | None = Field(None, description="Pending snapshot names to delete")
