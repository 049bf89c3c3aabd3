"""System endpoints for the Round Intake API."""

from __future__ import annotations

from fastapi import APIRouter
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from round_intake.api.v1.dependencies import SessionDep, SettingsDep
from round_intake.services.lifecycle import SnapshotLifecycle

router = APIRouter(prefix="/system", tags=["system"])


@router.get("/config")
async def get_public_config(config: SettingsDep) -> dict[str, object]:
    """Return a sanitized snapshot of runtime configuration.

    Excludes connection strings; suitable for the admin UI.
    """
    return {
        "app": {
            "name": config.app_name,
            "version": config.app_version,
            "debug": config.debug,
        },
        "intake": {
            "folders": sorted(config.snapshot_folders),
            "auto_register_servers": config.auto_register_servers,
            "failure_reason_max_words": config.failure_reason_max_words,
            "display_timezone": config.display_timezone,
        },
    }


@router.get("/health")
def get_system_health(db: SessionDep, config: SettingsDep) -> dict[str, object]:
    """Report database connectivity and snapshot directory writability."""
    try:
        db.execute(text("SELECT 1"))
        db_status = "healthy"
    except SQLAlchemyError as e:
        db_status = f"unhealthy: {str(e)}"

    directories_writable = SnapshotLifecycle(config).is_writable()

    return {
        "status": "healthy" if db_status == "healthy" and directories_writable else "unhealthy",
        "components": {
            "database": db_status,
            "snapshot_directories": "writable" if directories_writable else "not writable",
        },
        "version": config.app_version,
    }
