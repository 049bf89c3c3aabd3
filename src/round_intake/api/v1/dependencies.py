"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from round_intake.core.settings import Settings, settings
from round_intake.db.session import get_db
from round_intake.services.intake import SnapshotIntakeService

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]


def get_settings() -> Settings:
    """Return the application settings."""
    return settings


SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_intake_service(db: SessionDep, config: SettingsDep) -> SnapshotIntakeService:
    """Build the snapshot intake service for one request."""
    return SnapshotIntakeService(db, config)


IntakeServiceDep = Annotated[SnapshotIntakeService, Depends(get_intake_service)]
