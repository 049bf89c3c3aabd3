"""Import of a single snapshot file into the stats store."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from sqlalchemy.orm import Session

from round_intake.core.errors import SnapshotError, SnapshotFileError, SnapshotNotFoundError
from round_intake.core.settings import Settings
from round_intake.core.settings import settings as default_settings
from round_intake.services.authorization import ServerAuthorizer
from round_intake.services.decoder import read_snapshot
from round_intake.services.failures import FailureRecorder
from round_intake.services.snapshot import Snapshot
from round_intake.services.stats_store import DuplicateRoundError, StatsStore

logger = logging.getLogger(__name__)

MESSAGE_PROCESSED = "Snapshot was processed successfully."
MESSAGE_ALREADY_PROCESSED = "Snapshot was already processed."


class ProcessStatus(Enum):
    PROCESSED = "processed"
    ALREADY_PROCESSED = "already_processed"


@dataclass(frozen=True)
class ProcessOutcome:
    """Successful result of processing a snapshot file."""

    status: ProcessStatus
    snapshot: Snapshot
    message: str

    @property
    def source_filename(self) -> str:
        return self.snapshot.source_filename


def load_snapshot(path: Path, config: Settings) -> Snapshot:
    """Read, decode and parse a snapshot file."""
    try:
        data = read_snapshot(path, max_depth=config.json_max_depth)
    except FileNotFoundError as exc:
        raise SnapshotNotFoundError(f"No snapshots with the filename exists: {path.stem}") from exc
    except OSError as exc:
        raise SnapshotFileError(f"Failed to read snapshot {path}: {exc.strerror or exc}") from exc
    return Snapshot.from_mapping(data)


class SnapshotProcessor:
    """Decode, authorize and commit snapshot files.

    The processor never moves files; callers apply the lifecycle transition
    that matches the returned outcome or raised error.
    """

    def __init__(
        self,
        db: Session,
        recorder: FailureRecorder,
        config: Settings | None = None,
    ) -> None:
        self.db = db
        self.config = config or default_settings
        self.recorder = recorder
        self.authorizer = ServerAuthorizer(db, self.config)
        self.stats = StatsStore(db)

    def is_processed(self, snapshot: Snapshot) -> bool:
        """Return True if the snapshot's round is already in the stats store."""
        server = self.authorizer.lookup(snapshot.auth_id, snapshot.server_ip, snapshot.game_port)
        if server is None:
            return False
        return self.stats.find_existing_round(server.id, snapshot.map_name, snapshot.map_end)

    def process(self, path: Path, ignore_authorization: bool = False) -> ProcessOutcome:
        """Import one snapshot file.

        Args:
            path: Snapshot file to import.
            ignore_authorization: Operator override for manual imports. Should
                stay False for automatic processing.

        Returns:
            The outcome, carrying the parsed snapshot.

        Raises:
            SnapshotError: Decode, parse and authorization errors propagate
                unchanged. Errors after the server was resolved are recorded
                with the failure recorder first.
        """
        snapshot = load_snapshot(path, self.config)

        if self.is_processed(snapshot):
            logger.info("Snapshot %s was already processed", path.name)
            return ProcessOutcome(ProcessStatus.ALREADY_PROCESSED, snapshot, MESSAGE_ALREADY_PROCESSED)

        try:
            server_id = self.authorizer.resolve(
                snapshot.auth_id,
                snapshot.server_ip,
                snapshot.game_port,
                ignore_authorization,
                name=snapshot.server_name,
            )
        except SnapshotError as exc:
            exc.snapshot = snapshot
            raise

        snapshot.server_id = server_id

        try:
            self.stats.write_round(snapshot)
        except DuplicateRoundError:
            logger.info("Snapshot %s was committed concurrently", path.name)
            return ProcessOutcome(ProcessStatus.ALREADY_PROCESSED, snapshot, MESSAGE_ALREADY_PROCESSED)
        except Exception as exc:
            # The failure record must not ride on a transaction left half done.
            self.db.rollback()
            self.recorder.record(snapshot, exc, path)
            if isinstance(exc, SnapshotError):
                exc.snapshot = snapshot
            raise

        return ProcessOutcome(ProcessStatus.PROCESSED, snapshot, MESSAGE_PROCESSED)
