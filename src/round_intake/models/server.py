# src/round_intake/models/server.py
"""SQLAlchemy model for game servers that report rounds."""

from sqlalchemy import BigInteger, Boolean, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from round_intake.db.session import Base


class Server(Base):
    """A game server identified by its auth id, address and game port."""

    __tablename__ = "server"
    __table_args__ = (UniqueConstraint("auth_id", "ip", "port", name="uq_server_identity"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    auth_id: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ip: Mapped[str] = mapped_column(Text, nullable=False)
    port: Mapped[int] = mapped_column(Integer, nullable=False)
    # New servers must be approved by an operator before rounds are imported.
    authorized: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    last_seen: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
