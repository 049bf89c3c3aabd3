# src/round_intake/services/__init__.py
"""Business logic services for the Round Intake application."""

from .authorization import ServerAuthorizer
from .failures import FailedSnapshotStore, FailureRecorder
from .intake import SnapshotIntakeService
from .lifecycle import SnapshotLifecycle
from .processor import ProcessOutcome, ProcessStatus, SnapshotProcessor
from .snapshot import PlayerRecord, Snapshot
from .stats_store import StatsStore
from .summary import SummaryScanner

__all__ = [
    "FailedSnapshotStore",
    "FailureRecorder",
    "PlayerRecord",
    "ProcessOutcome",
    "ProcessStatus",
    "ServerAuthorizer",
    "Snapshot",
    "SnapshotIntakeService",
    "SnapshotLifecycle",
    "SnapshotProcessor",
    "StatsStore",
    "SummaryScanner",
]
