# tests/conftest.py
from __future__ import annotations

import json
import os
import tempfile
from collections.abc import Callable, Generator, Iterator
from pathlib import Path
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("SNAPSHOT_ROOT", tempfile.mkdtemp(prefix="round-intake-"))

from round_intake.api.v1.dependencies import get_settings as app_get_settings
from round_intake.core.settings import Settings
from round_intake.db.session import Base
from round_intake.db.session import get_db as app_get_session
from round_intake.main import app as fastapi_app
from round_intake.models import Server
from round_intake.services.intake import SnapshotIntakeService
from round_intake.services.lifecycle import SnapshotLifecycle
from tests.helpers import snapshot_payload

TEST_DB_URL = "sqlite://"


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture()
def test_settings(tmp_path: Path) -> Settings:
    """Settings pointing the snapshot directories at a temporary root."""
    return Settings(
        DATABASE_URL=TEST_DB_URL,
        SNAPSHOT_ROOT=tmp_path / "snapshots",
        AUTO_REGISTER_SERVERS=True,
    )


@pytest.fixture()
def lifecycle(test_settings: Settings) -> SnapshotLifecycle:
    lifecycle = SnapshotLifecycle(test_settings)
    lifecycle.ensure_directories()
    return lifecycle


@pytest.fixture()
def intake(db_session: Session, test_settings: Settings, lifecycle: SnapshotLifecycle) -> SnapshotIntakeService:
    return SnapshotIntakeService(db_session, test_settings)


@pytest.fixture()
def write_pending(lifecycle: SnapshotLifecycle) -> Callable[..., Path]:
    """Write a pending snapshot file and return its path."""

    def _write(name: str = "foo", content: bytes | str | dict[str, Any] | None = None, **overrides: Any) -> Path:
        if content is None:
            content = snapshot_payload(**overrides)
        if isinstance(content, dict):
            content = json.dumps(content)
        if isinstance(content, str):
            content = content.encode("utf-8")
        path = lifecycle.pending_dir / f"{name}.json"
        path.write_bytes(content)
        return path

    return _write


@pytest.fixture()
def authorized_server(db_session: Session) -> Server:
    """Persist an authorized server matching the default snapshot payload."""
    server = Server(auth_id="A1", name="Test Server", ip="10.0.0.5", port=16567, authorized=True)
    db_session.add(server)
    db_session.commit()
    db_session.refresh(server)
    return server


@pytest.fixture()
def unauthorized_server(db_session: Session) -> Server:
    """Persist a known server that has not been authorized."""
    server = Server(auth_id="A1", name="Test Server", ip="10.0.0.5", port=16567, authorized=False)
    db_session.add(server)
    db_session.commit()
    db_session.refresh(server)
    return server


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(
    app: FastAPI,
    db_session: Session,
    test_settings: Settings,
    lifecycle: SnapshotLifecycle,
) -> Iterator[TestClient]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    app.dependency_overrides[app_get_settings] = lambda: test_settings
    try:
        with TestClient(app, base_url="http://test") as test_client:
            yield test_client
    finally:
        app.dependency_overrides.pop(app_get_session, None)
        app.dependency_overrides.pop(app_get_settings, None)
