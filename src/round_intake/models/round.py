# src/round_intake/models/round.py
"""Models holding committed round data."""

from __future__ import annotations

from sqlalchemy import BigInteger, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from round_intake.db.session import Base


class Round(Base):
    """A round imported from a snapshot.

    (server_id, map_name, map_end) identifies the round; a snapshot that
    matches an existing row has already been processed.
    """

    __tablename__ = "round"
    __table_args__ = (
        UniqueConstraint("server_id", "map_name", "map_end", name="uq_round_identity"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    server_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("server.id"),
        nullable=False,
    )
    map_name: Mapped[str] = mapped_column(Text, nullable=False)
    map_start: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    map_end: Mapped[int] = mapped_column(BigInteger, nullable=False)
    game_mode: Mapped[str | None] = mapped_column(Text, nullable=True)
    player_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    filename: Mapped[str] = mapped_column(Text, nullable=False)
    imported: Mapped[int] = mapped_column(BigInteger, nullable=False)

    players: Mapped[list[RoundPlayer]] = relationship(
        "RoundPlayer",
        back_populates="round",
        cascade="all, delete-orphan",
        order_by="RoundPlayer.position",
    )


class RoundPlayer(Base):
    """A player row as reported in the snapshot, stored verbatim."""

    __tablename__ = "round_player"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    round_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("round.id", ondelete="CASCADE"),
        nullable=False,
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    pid: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    rank: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    team: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    kills: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deaths: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    round: Mapped[Round] = relationship("Round", back_populates="players")
