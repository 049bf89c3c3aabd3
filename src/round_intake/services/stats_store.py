"""Data access for committed rounds."""
from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from round_intake.core.errors import PersistenceError
from round_intake.db.time import unix_now
from round_intake.models import Round, RoundPlayer
from round_intake.services.snapshot import Snapshot

__all__ = ["DuplicateRoundError", "StatsStore"]

logger = logging.getLogger(__name__)


class DuplicateRoundError(PersistenceError):
    """Raised when the round was committed by another writer first."""


class StatsStore:
    """Thin wrapper around database access for round data."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def find_existing_round(self, server_id: int, map_name: str, map_end: int) -> bool:
        """Return True if the round is already committed."""
        if server_id <= 0:
            return False
        stmt = select(Round.id).where(
            Round.server_id == server_id,
            Round.map_name == map_name,
            Round.map_end == map_end,
        )
        return self.db.execute(stmt).first() is not None

    def write_round(self, snapshot: Snapshot) -> Round:
        """Commit the round and its players in one transaction.

        Raises:
            DuplicateRoundError: If the round key already exists.
            PersistenceError: For any other database failure.
        """
        round_ = Round(
            server_id=snapshot.server_id,
            map_name=snapshot.map_name,
            map_start=snapshot.map_start,
            map_end=snapshot.map_end,
            game_mode=snapshot.game_mode,
            player_count=snapshot.player_count,
            filename=snapshot.source_filename,
            imported=unix_now(),
        )
        round_.players = [
            RoundPlayer(
                position=position,
                pid=player.pid,
                name=player.name,
                rank=player.rank,
                team=player.team,
                score=player.score,
                kills=player.kills,
                deaths=player.deaths,
            )
            for position, player in enumerate(snapshot.players)
        ]

        self.db.add(round_)
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateRoundError(
                f"Round {snapshot.map_name} ending {snapshot.map_end} already exists "
                f"for server {snapshot.server_id}"
            ) from exc
        except Exception as exc:
            # Driver errors such as OverflowError are not wrapped by SQLAlchemy.
            self.db.rollback()
            logger.error("Failed to write round for server %s: %s", snapshot.server_id, exc)
            raise PersistenceError(f"Failed to save round data: {exc}") from exc

        logger.info(
            "Committed round %s (%s, %d players) for server %s",
            round_.id,
            snapshot.map_name,
            snapshot.player_count,
            snapshot.server_id,
        )
        return round_
