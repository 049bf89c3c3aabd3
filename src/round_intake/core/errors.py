"""Exception taxonomy for snapshot intake.

Every failure raised by the intake pipeline derives from ``SnapshotError`` so
the action layer can turn it into a success/failure flag plus a message.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from round_intake.services.snapshot import Snapshot


class SnapshotError(RuntimeError):
    """Base exception raised for snapshot intake failures.

    ``snapshot`` is attached once the document has been parsed, so failure
    handling can attribute the error to a resolved server.
    """

    def __init__(self, message: str, *, snapshot: Snapshot | None = None) -> None:
        super().__init__(message)
        self.snapshot = snapshot


class DecodeReason(Enum):
    """Diagnosis of why a snapshot document could not be decoded."""

    DEPTH_EXCEEDED = "Maximum stack depth exceeded"
    STATE_MISMATCH = "Underflow or the modes mismatch"
    CONTROL_CHARACTER = "Unexpected control character found"
    SYNTAX_ERROR = "Syntax error, malformed JSON"
    LEGACY_FORMAT = "Detected old SNAPSHOT format"
    INVALID_ENCODING = "Malformed UTF-8 characters, possibly incorrectly encoded"
    UNKNOWN = "Unknown error"

    @property
    def message(self) -> str:
        return self.value


class SnapshotDecodeError(SnapshotError):
    """Raised when a snapshot file does not contain a decodable JSON object."""

    def __init__(self, reason: DecodeReason, path: Path | str, fault: str) -> None:
        self.reason = reason
        self.path = str(path)
        self.fault = fault
        super().__init__(
            "Unable to decode json from snapshot!\n\n"
            f"Error Message: {reason.message}\n"
            f"Error Code: {fault}\n"
            f"Snapshot: {self.path}"
        )

    @property
    def message(self) -> str:
        """Short human-readable diagnosis."""
        return self.reason.message


class IncompleteSnapshotError(SnapshotError):
    """Raised when a decoded snapshot is missing required fields."""


class UnauthorizedServerError(SnapshotError):
    """Raised when the reporting server may not submit rounds automatically.

    ``server_id`` is the id of the matching server record when one exists,
    otherwise 0. It is informational only; the snapshot itself stays
    unresolved.
    """

    def __init__(self, message: str, *, server_id: int = 0, snapshot: Snapshot | None = None) -> None:
        super().__init__(message, snapshot=snapshot)
        self.server_id = server_id


class SnapshotFileError(SnapshotError):
    """Raised when moving, reading or deleting a snapshot file fails."""


class SnapshotNotFoundError(SnapshotFileError):
    """Raised when the snapshot file no longer exists."""


class UnknownSnapshotFolderError(SnapshotFileError):
    """Raised when a listing is requested for a folder outside the lifecycle."""


class PersistenceError(SnapshotError):
    """Raised when writing to the stats store or failure table fails."""
