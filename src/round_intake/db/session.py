"""Engine and session factory for the intake database."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from round_intake.core.settings import settings


class Base(DeclarativeBase):
    """Declarative base for servers, rounds and failed snapshots."""


# Registers every table on Base.metadata before create_all or Alembic reads it.
import round_intake.models  # noqa: E402,F401


def _connect_args(url: str) -> dict[str, object]:
    # Sync endpoints and their session dependency may run on different
    # threadpool workers.
    if make_url(url).get_backend_name() == "sqlite":
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.effective_database_url,
    connect_args=_connect_args(settings.effective_database_url),
    pool_pre_ping=True,
    echo=settings.sql_debug,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """Yield one session per request and close it afterwards."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def create_tables() -> None:
    Base.metadata.create_all(bind=engine)


def drop_tables() -> None:
    Base.metadata.drop_all(bind=engine)
