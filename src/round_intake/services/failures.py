"""Recording of snapshots that failed to import."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from round_intake.core.errors import PersistenceError, SnapshotError
from round_intake.core.settings import Settings
from round_intake.core.settings import settings as default_settings
from round_intake.db.time import unix_now
from round_intake.models import FailedSnapshot, Server
from round_intake.services.lifecycle import SnapshotLifecycle, snapshot_basename
from round_intake.services.snapshot import Snapshot

logger = logging.getLogger(__name__)


def truncate_reason(text: str, max_words: int, max_length: int) -> str:
    """Shorten a failure reason to at most ``max_words`` words and ``max_length`` characters.

    Text within both limits is returned unchanged. Longer text is cut at a
    word boundary where one exists.
    """
    words = text.split()
    if len(words) > max_words:
        text = " ".join(words[:max_words])
    if len(text) <= max_length:
        return text

    cut = text[:max_length]
    boundary = cut.rfind(" ")
    if boundary > 0 and not text[max_length].isspace():
        cut = cut[:boundary]
    return cut.rstrip()


@dataclass(frozen=True)
class FailedSnapshotRow:
    """Failed snapshot record joined with its server name."""

    id: int
    server_id: int | None
    server_name: str | None
    timestamp: int
    filename: str
    reason: str


class FailedSnapshotStore:
    """Data access for the ``failed_snapshot`` table."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def insert_failure(self, server_id: int | None, timestamp: int, filename: str, reason: str) -> int:
        """Insert a failure record and return its id."""
        record = FailedSnapshot(
            server_id=server_id,
            timestamp=timestamp,
            filename=filename,
            reason=reason,
        )
        self.db.add(record)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Failed to record failed snapshot {filename}: {exc}") from exc
        return record.id

    def get(self, record_id: int) -> FailedSnapshot | None:
        return self.db.get(FailedSnapshot, record_id)

    def list_failures(self) -> list[FailedSnapshotRow]:
        """Return all failure records ordered by id."""
        stmt = (
            select(FailedSnapshot, Server.name)
            .outerjoin(Server, FailedSnapshot.server_id == Server.id)
            .order_by(FailedSnapshot.id.asc())
        )
        return [
            FailedSnapshotRow(
                id=record.id,
                server_id=record.server_id,
                server_name=server_name,
                timestamp=record.timestamp,
                filename=record.filename,
                reason=record.reason,
            )
            for record, server_name in self.db.execute(stmt).all()
        ]

    def delete_failure(self, record_id: int) -> bool:
        """Delete a failure record; return False if it does not exist."""
        record = self.get(record_id)
        if record is None:
            return False
        self.db.delete(record)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Failed to delete failed snapshot {record_id}: {exc}") from exc
        return True


class FailureRecorder:
    """Persist failure reasons and quarantine the offending files.

    Errors raised while recording are logged and swallowed so that the
    original processing error remains the one reported to the caller.
    """

    def __init__(
        self,
        store: FailedSnapshotStore,
        lifecycle: SnapshotLifecycle,
        config: Settings | None = None,
    ) -> None:
        self.store = store
        self.lifecycle = lifecycle
        self.config = config or default_settings

    def record(self, snapshot: Snapshot | None, error: BaseException, source: Path) -> int | None:
        """Insert a failure record when the snapshot has a resolved server.

        The record is filed under the name ``source`` gets in ``failed``, so
        a later ``quarantine(source)`` puts the file where the record expects it.

        Returns:
            The new record id, or None when nothing was recorded.
        """
        if snapshot is None or snapshot.server_id <= 0:
            logger.debug("Not recording failure for %s: no resolved server", source.name)
            return None

        reason = truncate_reason(
            str(error) or type(error).__name__,
            self.config.failure_reason_max_words,
            self.config.failure_reason_max_length,
        )
        try:
            record_id = self.store.insert_failure(
                snapshot.server_id,
                unix_now(),
                snapshot_basename(self.lifecycle.failed_path_for(source).name),
                reason,
            )
        except PersistenceError:
            logger.exception("Could not record failure of snapshot %s", source.name)
            return None

        logger.warning(
            "Recorded failed snapshot %s for server %s (record %s)",
            source.name,
            snapshot.server_id,
            record_id,
        )
        return record_id

    def quarantine(self, path: Path) -> bool:
        """Best-effort move of a pending file to ``failed``."""
        try:
            self.lifecycle.move_to_failed(path)
        except (SnapshotError, OSError):
            logger.exception("Could not move snapshot %s to the failed directory", path)
            return False
        return True
