"""SQLAlchemy model for snapshots that failed to import."""

from sqlalchemy import BigInteger, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column

from round_intake.db.session import Base


class FailedSnapshot(Base):
    """Operator-facing record of a snapshot moved to the failed directory.

    Rows are never updated; deleting one also deletes the file named by
    ``filename`` from the failed directory.
    """

    __tablename__ = "failed_snapshot"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    server_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("server.id", ondelete="SET NULL"),
        nullable=True,
    )
    timestamp: Mapped[int] = mapped_column(BigInteger, nullable=False)  # time of failure, not of the round
    filename: Mapped[str] = mapped_column(Text, nullable=False)  # without extension
    reason: Mapped[str] = mapped_column(Text, nullable=False)
