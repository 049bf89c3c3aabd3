"""Read-only listing of snapshot files for operators."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from round_intake.core.errors import SnapshotError
from round_intake.core.settings import Settings
from round_intake.core.settings import settings as default_settings
from round_intake.schemas.snapshot import SnapshotSummary
from round_intake.services.decoder import read_snapshot
from round_intake.services.lifecycle import SNAPSHOT_EXTENSION, SnapshotLifecycle

logger = logging.getLogger(__name__)


def format_round_time(timestamp: int, zone: ZoneInfo) -> str:
    """Format an epoch timestamp like ``Nov 14, 2023 22:13 UTC``."""
    moment = datetime.fromtimestamp(timestamp, zone)
    return f"{moment:%b} {moment.day}, {moment.year} {moment.hour}:{moment:%M} {moment:%Z}"


class SummaryScanner:
    """List snapshot files with their display metadata.

    Only the display fields are extracted; the full snapshot is not
    validated. Files are decoded independently and a corrupt file is skipped
    rather than failing the whole listing. Nothing is moved or written.
    """

    def __init__(self, lifecycle: SnapshotLifecycle, config: Settings | None = None) -> None:
        self.lifecycle = lifecycle
        self.config = config or default_settings
        self.zone = ZoneInfo(self.config.display_timezone)

    def list_snapshots(self, folder: str) -> list[SnapshotSummary]:
        """Return summaries of the ``*.json`` files in a lifecycle folder."""
        directory = self.lifecycle.folder(folder)
        if not directory.is_dir():
            logger.warning("Snapshot folder %s does not exist", directory)
            return []

        summaries: list[SnapshotSummary] = []
        for path in sorted(directory.glob(f"*{SNAPSHOT_EXTENSION}")):
            if not path.is_file():
                continue
            try:
                data = read_snapshot(path, max_depth=self.config.json_max_depth)
                summaries.append(self._summarize(path.stem, data))
            except (SnapshotError, OSError, ValueError, TypeError, OverflowError) as exc:
                logger.warning("Skipping unreadable snapshot %s: %s", path.name, exc)
        return summaries

    def _summarize(self, name: str, data: dict[str, Any]) -> SnapshotSummary:
        players = data.get("players")
        return SnapshotSummary(
            name=name,
            authid=str(data.get("authId", "")),
            server=str(data.get("serverName", "")),
            port=int(data.get("gamePort", 0)),
            ipaddress=str(data.get("serverIp", "")),
            map=str(data.get("mapName", "")),
            players=len(players) if isinstance(players, list) else 0,
            date=format_round_time(int(data.get("mapEnd", 0)), self.zone),
        )
