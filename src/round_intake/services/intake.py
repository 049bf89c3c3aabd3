"""Operator actions on snapshot files.

``SnapshotIntakeService`` is the transport-free action surface: every action
returns an ``ActionResult`` (or plain data for listings) and never lets a
snapshot error escape without a message.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from sqlalchemy.orm import Session

from round_intake.core.errors import SnapshotError, SnapshotFileError, SnapshotNotFoundError
from round_intake.core.settings import Settings
from round_intake.core.settings import settings as default_settings
from round_intake.schemas.snapshot import ActionResult, SnapshotSummary
from round_intake.services.failures import FailedSnapshotRow, FailedSnapshotStore, FailureRecorder
from round_intake.services.lifecycle import SnapshotLifecycle
from round_intake.services.processor import SnapshotProcessor
from round_intake.services.summary import SummaryScanner

logger = logging.getLogger(__name__)

MESSAGE_NOT_WRITABLE = (
    "Not all snapshot directories are writable. Please Test your system configuration."
)
MESSAGE_NONE_SPECIFIED = "No snapshots specified!"
MESSAGE_REMOVED = "Snapshots Removed."


class SnapshotIntakeService:
    """Accept, delete and list snapshot files."""

    def __init__(self, db: Session, config: Settings | None = None) -> None:
        self.config = config or default_settings
        self.lifecycle = SnapshotLifecycle(self.config)
        self.failures = FailedSnapshotStore(db)
        self.recorder = FailureRecorder(self.failures, self.lifecycle, self.config)
        self.processor = SnapshotProcessor(db, self.recorder, self.config)
        self.scanner = SummaryScanner(self.lifecycle, self.config)

    def list_pending(self, folder: str | None = None) -> list[SnapshotSummary]:
        """List snapshots of a lifecycle folder, the pending one by default."""
        return self.scanner.list_snapshots(folder or self.config.pending_dir_name)

    def accept_pending(self, name: str, ignore_authorization: bool = False) -> ActionResult:
        """Process a pending snapshot and move it to its terminal directory.

        Args:
            name: Pending snapshot name without extension.
            ignore_authorization: Skip server authorization. Only for imports
                an operator has approved.
        """
        if not name:
            return ActionResult(success=False, message=MESSAGE_NONE_SPECIFIED)

        try:
            path = self.lifecycle.pending_path(name)
        except SnapshotFileError as exc:
            return ActionResult(success=False, message=str(exc))

        if not self.lifecycle.is_writable():
            return ActionResult(success=False, message=MESSAGE_NOT_WRITABLE)

        with self.lifecycle.lock(name):
            if not path.is_file():
                return ActionResult(
                    success=False,
                    message=f"No snapshots with the filename exists: {name}",
                )

            try:
                outcome = self.processor.process(path, ignore_authorization)
            except SnapshotNotFoundError as exc:
                return ActionResult(success=False, message=str(exc))
            except SnapshotError as exc:
                logger.warning("Snapshot %s failed to import: %s", path.name, exc)
                self.recorder.quarantine(path)
                return self._failure(path, exc)
            except Exception as exc:
                logger.exception("Unexpected error importing snapshot %s", path.name)
                self.recorder.quarantine(path)
                return self._failure(path, exc)

            try:
                self.lifecycle.move_to_processed(path, outcome.source_filename)
            except SnapshotError as exc:
                logger.error(
                    "Snapshot %s was imported but could not be moved to processed: %s",
                    path.name,
                    exc,
                )
                return self._failure(path, exc)

        return ActionResult(success=True, message=outcome.message)

    def delete_pending(self, names: Iterable[str] | None) -> ActionResult:
        """Delete pending snapshots without processing them."""
        selected = list(dict.fromkeys(names or ()))
        if not selected:
            return ActionResult(success=False, message=MESSAGE_NONE_SPECIFIED)

        report = self.lifecycle.delete_pending(selected)
        if report.success:
            return ActionResult(success=True, message=MESSAGE_REMOVED)
        return ActionResult(success=False, message="\n".join(report.errors.values()))

    def list_failed_records(self) -> list[FailedSnapshotRow]:
        return self.failures.list_failures()

    def delete_failed_record(self, record_id: int) -> bool:
        """Delete a failed snapshot record together with its file.

        The file goes first so a row never outlives a failed file delete. A
        file that is already missing does not keep the row alive.
        """
        record = self.failures.get(record_id)
        if record is None:
            return False

        try:
            removed = self.lifecycle.delete_failed(record.filename)
        except SnapshotFileError as exc:
            logger.error("Keeping failed snapshot record %s: %s", record_id, exc)
            return False
        if not removed:
            logger.warning(
                "Failed snapshot file %s was already missing; removing record %s",
                record.filename,
                record_id,
            )

        return self.failures.delete_failure(record_id)

    @staticmethod
    def _failure(path: object, error: BaseException) -> ActionResult:
        return ActionResult(
            success=False,
            message=f"Failed to process snapshot ({path})!\n\n{error}",
        )
